# Services Module
from .money import to_decimal, to_price, round_money, to_float

__all__ = ["to_decimal", "to_price", "round_money", "to_float"]
