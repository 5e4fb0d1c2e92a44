"""Cart line model with Decimal-based pricing and snapshot normalization."""
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional, Tuple

from core.services.money import to_price, to_float, multiply

LineKey = Tuple[str, Optional[str]]


def norm_id(value: Any) -> str:
    """Product ids are compared as strings (numeric ids included)."""
    return "" if value is None else str(value)


def norm_variant(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def coerce_int(value: Any) -> Optional[int]:
    """Whole-number view of a loosely typed value, or None when unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number)


def positive_int(value: Any, default: int = 1) -> int:
    """Coerce to an integer >= 1, falling back to default."""
    number = coerce_int(value)
    if number is None or number < 1:
        return default
    return number


def stock_ceiling(value: Any) -> Optional[int]:
    """
    Ceiling supplied by the catalog, or None when it gave none.

    Finite values below 1 are raised to 1 so a line can always hold
    the unit it was created with.
    """
    number = coerce_int(value)
    if number is None:
        return None
    return max(1, number)


@dataclass
class CartLine:
    """One purchasable line, unique per (product_id, variant_key)."""
    product_id: str
    variant_key: Optional[str]
    unit_price: Decimal
    quantity: int
    max_quantity: int
    name: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None

    def __post_init__(self):
        self.product_id = norm_id(self.product_id)
        self.variant_key = norm_variant(self.variant_key)
        self.unit_price = to_price(self.unit_price)

    @property
    def key(self) -> LineKey:
        return (self.product_id, self.variant_key)

    @property
    def total_price(self) -> Decimal:
        """Price for all units on this line."""
        return multiply(self.unit_price, self.quantity)

    @property
    def at_limit(self) -> bool:
        """True once the line holds as many units as its ceiling allows."""
        return self.quantity >= self.max_quantity

    def matches(self, product_id: Any, variant_key: Any) -> bool:
        return self.key == (norm_id(product_id), norm_variant(variant_key))

    def to_dict(self) -> dict:
        """Convert to the persisted snapshot shape."""
        return {
            "id": self.product_id,
            "size": self.variant_key,
            "name": self.name,
            "image": self.image,
            "category": self.category,
            "price": to_float(self.unit_price),
            "qty": self.quantity,
            "maxStock": self.max_quantity,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CartLine":
        """
        Create from a stored snapshot entry.

        Lines written without a usable maxStock are locked to their
        current quantity; a stored quantity above a usable maxStock is
        brought back down to it.
        """
        quantity = positive_int(data.get("qty"))
        max_quantity = coerce_int(data.get("maxStock"))
        if max_quantity is None or max_quantity < 1:
            max_quantity = quantity
        else:
            quantity = min(quantity, max_quantity)

        return cls(
            product_id=data.get("id"),
            variant_key=data.get("size"),
            unit_price=data.get("price"),
            quantity=quantity,
            max_quantity=max_quantity,
            name=_text(data.get("name")),
            image=_text(data.get("image")),
            category=_text(data.get("category")),
        )

    @classmethod
    def from_catalog(cls, item: Mapping[str, Any], quantity: int, max_quantity: int) -> "CartLine":
        """Create a new line from a catalog item at add-time."""
        return cls(
            product_id=item.get("id"),
            variant_key=item.get("size"),
            unit_price=item.get("price"),
            quantity=quantity,
            max_quantity=max_quantity,
            name=_text(item.get("name")),
            image=_text(item.get("image")),
            category=_text(item.get("category")),
        )
