"""Cart manager service: per-identity cart state persisted to a key-value store."""
import json
from dataclasses import replace
from decimal import Decimal
from itertools import chain
from typing import Any, Dict, Iterable, List, Mapping, Optional

from core.errors import ERROR_CART_CORRUPTED, ERROR_CART_READ_FAILED, ERROR_CART_WRITE_FAILED
from core.logging import get_logger, sanitize_id_for_logging
from core.services.money import round_money, to_float
from .identity import identity_id, storage_key, guest_storage_key
from .models import CartLine, LineKey, coerce_int, norm_id, positive_int, stock_ceiling
from .storage import KeyValueStore, get_default_store

logger = get_logger(__name__)


def merge_lines(*carts: Iterable[CartLine]) -> List[CartLine]:
    """
    Merge carts line by line, summing quantities per (product_id, variant_key).

    Display fields and the ceiling come from the last line seen for a key.
    Summed quantities are not re-clamped against that ceiling.
    """
    merged: Dict[LineKey, CartLine] = {}
    for line in chain(*carts):
        previous = merged.get(line.key)
        quantity = max(1, line.quantity) + (previous.quantity if previous else 0)
        merged[line.key] = replace(line, quantity=quantity)
    return list(merged.values())


def _clamp(quantity: int, max_quantity: int) -> int:
    return min(max(1, quantity), max_quantity)


def _step(step: Any) -> int:
    """Relative adjustment; only unusable values fall back to 1."""
    number = coerce_int(step)
    return 1 if number is None else number


class CartManager:
    """
    Shopping cart for one session.

    Features:
    - Lines keyed by (product_id, variant_key), quantities capped by a stock ceiling
    - Full snapshot persisted under the active identity after every mutation
    - One-time merge of the guest cart into the user's cart on login

    Store failures never reach the caller: the in-memory cart stays
    authoritative for the rest of the session.
    """

    def __init__(self, store: Optional[KeyValueStore] = None, identity: Any = None):
        self.store = store if store is not None else get_default_store()
        self._identity = identity
        self._merged = False
        self._lines: List[CartLine] = []
        self._activate()

    # ==================== IDENTITY ====================

    @property
    def identity(self) -> Any:
        return self._identity

    @property
    def storage_key(self) -> str:
        return storage_key(self._identity)

    @property
    def is_guest(self) -> bool:
        return identity_id(self._identity) is None

    @property
    def merged(self) -> bool:
        """Whether the guest cart has already been merged by this manager."""
        return self._merged

    def set_identity(self, identity: Any) -> None:
        """Switch partition on login/logout and reload the cart."""
        previous_key = self.storage_key
        self._identity = identity
        if self.storage_key == previous_key:
            # Same partition: keep the in-memory cart, it may hold unsaved writes
            self.merge_guest_cart()
            return
        self._activate()

    def _activate(self) -> None:
        if not self.merge_guest_cart():
            self._lines = self._load(self.storage_key)

    def merge_guest_cart(self) -> bool:
        """
        Fold the guest cart into the active identity's cart.

        Runs at most once per manager. Returns True when a merge happened.
        """
        if self._merged or self.is_guest:
            return False

        guest_key = guest_storage_key()
        guest_lines = self._load(guest_key)
        if not guest_lines:
            return False

        self._lines = merge_lines(self._load(self.storage_key), guest_lines)
        self._merged = True
        # Keep the guest partition when the merged cart could not be written
        if self._persist():
            self._delete(guest_key)

        logger.info(
            f"Merged {len(guest_lines)} guest cart line(s) for user "
            f"{sanitize_id_for_logging(identity_id(self._identity))}"
        )
        return True

    # ==================== STORAGE ====================

    def _load(self, key: str) -> List[CartLine]:
        try:
            raw = self.store.get(key)
        except Exception as e:
            logger.warning(f"{ERROR_CART_READ_FAILED} for {self._log_key(key)}: {e}")
            return []

        if not raw:
            return []

        try:
            data = json.loads(raw)
        except (ValueError, TypeError) as e:
            logger.warning(f"{ERROR_CART_CORRUPTED} for {self._log_key(key)}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"{ERROR_CART_CORRUPTED} for {self._log_key(key)}: not a list")
            return []

        # Later duplicates replace earlier ones in place
        lines: Dict[LineKey, CartLine] = {}
        for entry in data:
            if isinstance(entry, Mapping):
                line = CartLine.from_dict(entry)
                lines[line.key] = line
        return list(lines.values())

    def _persist(self) -> bool:
        try:
            payload = json.dumps([line.to_dict() for line in self._lines])
            self.store.set(self.storage_key, payload)
            return True
        except Exception as e:
            logger.warning(f"{ERROR_CART_WRITE_FAILED} for {self._log_key(self.storage_key)}: {e}")
            return False

    def _delete(self, key: str) -> None:
        try:
            self.store.delete(key)
        except Exception as e:
            logger.warning(f"Failed to delete cart {self._log_key(key)}: {e}")

    @staticmethod
    def _log_key(key: str) -> str:
        prefix, _, owner = key.partition(":")
        return f"{prefix}:{sanitize_id_for_logging(owner)}"

    # ==================== LOOKUP ====================

    def _find(self, product_id: Any, variant_key: Any) -> Optional[CartLine]:
        return next((line for line in self._lines if line.matches(product_id, variant_key)), None)

    def _target(self, product_id: Any, variant_key: Any) -> Optional[CartLine]:
        """Exact line, or the first line of the product when no variant is given."""
        line = self._find(product_id, variant_key)
        if line is None and variant_key is None:
            pid = norm_id(product_id)
            line = next((item for item in self._lines if item.product_id == pid), None)
        return line

    def _drop(self, line: CartLine) -> None:
        self._lines = [item for item in self._lines if item is not line]

    # ==================== MUTATIONS ====================

    def add_to_cart(self, item: Mapping[str, Any], quantity_to_add: Any = None) -> CartLine:
        """
        Add a catalog item, silently capping at its stock ceiling.

        Args:
            item: Catalog item ``{id, name, image, price, category, size?, qty?, maxStock?}``
            quantity_to_add: Units to add; defaults to ``item["qty"]`` or 1

        Returns:
            The resulting line, so callers can tell when the limit was reached
        """
        if quantity_to_add is None:
            quantity_to_add = item.get("qty")
        quantity_to_add = positive_int(quantity_to_add)
        ceiling = stock_ceiling(item.get("maxStock"))

        line = self._find(item.get("id"), item.get("size"))
        if line is None:
            # Unknown stock: lock the ceiling to the amount being added
            max_quantity = ceiling if ceiling is not None else quantity_to_add
            line = CartLine.from_catalog(item, min(quantity_to_add, max_quantity), max_quantity)
            self._lines.append(line)
        else:
            new_max = ceiling if ceiling is not None else line.max_quantity
            line.max_quantity = new_max
            if line.quantity < new_max:
                line.quantity = min(line.quantity + quantity_to_add, new_max)

        logger.debug(f"Cart add {line.product_id}/{line.variant_key}: qty={line.quantity} max={line.max_quantity}")
        self._persist()
        return replace(line)

    def remove_from_cart(self, product_id: Any, variant_key: Any = None) -> None:
        """Remove one variant, or every variant of the product when none is given."""
        pid = norm_id(product_id)
        if variant_key is None:
            remaining = [line for line in self._lines if line.product_id != pid]
        else:
            remaining = [line for line in self._lines if not line.matches(pid, variant_key)]

        if len(remaining) == len(self._lines):
            return
        self._lines = remaining
        self._persist()

    def set_quantity(self, product_id: Any, variant_key: Any, quantity: Any) -> Optional[CartLine]:
        """Set an absolute quantity; zero (or anything unusable) removes the line."""
        line = self._target(product_id, variant_key)
        if line is None:
            return None

        target = coerce_int(quantity)
        if target is None or target <= 0:
            self._drop(line)
            self._persist()
            return None

        line.quantity = _clamp(target, line.max_quantity)
        self._persist()
        return replace(line)

    def increase_quantity(self, product_id: Any, variant_key: Any = None, step: Any = 1) -> Optional[CartLine]:
        line = self._target(product_id, variant_key)
        if line is None:
            return None

        line.quantity = _clamp(line.quantity + _step(step), line.max_quantity)
        self._persist()
        return replace(line)

    def decrease_quantity(self, product_id: Any, variant_key: Any = None, step: Any = 1) -> Optional[CartLine]:
        """Step the quantity down; reaching zero removes the line."""
        line = self._target(product_id, variant_key)
        if line is None:
            return None

        remaining = line.quantity - _step(step)
        if remaining <= 0:
            self._drop(line)
            self._persist()
            return None

        line.quantity = _clamp(remaining, line.max_quantity)
        self._persist()
        return replace(line)

    def clear_cart(self) -> None:
        """Empty the active partition."""
        self._lines = []
        self._persist()

    # ==================== READ MODEL ====================

    @property
    def lines(self) -> List[CartLine]:
        """Copies of the current lines in display order."""
        return [replace(line) for line in self._lines]

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def total_quantity(self) -> int:
        """Total number of units in cart."""
        return sum(line.quantity for line in self._lines)

    @property
    def total_price(self) -> Decimal:
        """Exact sum of quantity * unit price over all lines; rounded only when serialized."""
        return sum((line.total_price for line in self._lines), Decimal("0"))

    def get_cart_summary(self) -> dict:
        """Cart read model for display layers."""
        return {
            "is_empty": self.is_empty,
            "items": [line.to_dict() for line in self._lines],
            "total_quantity": self.total_quantity,
            "total_price": to_float(round_money(self.total_price)),
        }


def get_cart_manager(identity: Any = None, store: Optional[KeyValueStore] = None) -> CartManager:
    """Create a cart manager bound to the default store."""
    return CartManager(store=store, identity=identity)
