"""Tests for money helpers"""
import pytest
from decimal import Decimal

from core.services.money import to_decimal, to_price, round_money, to_float


def test_to_decimal_from_float_keeps_precision():
    assert to_decimal(0.1) == Decimal("0.1")


@pytest.mark.parametrize("value", [None, "abc", True, object()])
def test_to_decimal_invalid(value):
    assert to_decimal(value) == Decimal("0")


@pytest.mark.parametrize("value", [-1, "-0.5", float("nan"), float("inf"), "Infinity"])
def test_to_price_rejects_unusable_values(value):
    assert to_price(value) == Decimal("0")


def test_to_price_accepts_strings():
    assert to_price(" 19.90 ") == Decimal("19.90")


def test_round_money():
    assert round_money("10.005") == Decimal("10.01")
    assert to_float(round_money(3)) == 3.0
