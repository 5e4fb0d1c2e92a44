"""
Money Utilities - Safe Decimal operations for monetary values.

Avoids float precision issues by using Decimal throughout.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")

Number = Union[str, int, float, Decimal, None]


def to_decimal(value: Number) -> Decimal:
    """
    Convert any value to Decimal safely.
    
    Args:
        value: Value to convert (str, int, float, Decimal, or None)
        
    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    
    if isinstance(value, Decimal):
        return value
    
    try:
        # Convert via string to avoid float precision issues
        if isinstance(value, float):
            return Decimal(str(value))
        if isinstance(value, str):
            return Decimal(value.strip())
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def to_price(value: Number) -> Decimal:
    """
    Convert a value to a usable unit price.
    
    NaN, infinities and negative amounts all collapse to Decimal("0"),
    so the result is always a finite, non-negative Decimal.
    """
    decimal_value = to_decimal(value)
    # Comparisons on NaN raise, so check finiteness first
    if not decimal_value.is_finite() or decimal_value < 0:
        return Decimal("0")
    return decimal_value


def round_money(value: Number) -> Decimal:
    """
    Round monetary value to 2 decimal places.
    
    Args:
        value: Value to round
        
    Returns:
        Rounded Decimal value
    """
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def to_float(value: Number) -> float:
    """
    Convert Decimal to float for JSON serialization or external APIs.
    
    Use only at API boundaries, not for internal calculations.
    """
    return float(to_decimal(value))


def add(a: Number, b: Number) -> Decimal:
    """Safe addition of monetary values."""
    return to_decimal(a) + to_decimal(b)


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)
