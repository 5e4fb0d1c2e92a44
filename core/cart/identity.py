"""Identity -> cart partition key."""
from typing import Any, Mapping, Optional

from core.db import RedisKeys

# Checked in order; the first non-empty one identifies the partition
IDENTITY_FIELDS = ("id", "user_id", "email")


def identity_field(identity: Any, field: str) -> Any:
    """Read a field from a mapping or an attribute from a user object."""
    if identity is None:
        return None
    if isinstance(identity, Mapping):
        return identity.get(field)
    return getattr(identity, field, None)


def identity_id(identity: Any) -> Optional[str]:
    """
    Stable identifier of a user, or None for a guest.

    Accepts a mapping (e.g. the decoded user object) or any object
    exposing ``id``, ``user_id`` or ``email`` attributes.
    """
    for field in IDENTITY_FIELDS:
        value = identity_field(identity, field)
        if value is not None and str(value) != "":
            return str(value)
    return None


def storage_key(identity: Any) -> str:
    """Partition key: ``cart:<id>`` or ``cart:guest``."""
    return RedisKeys.cart_key(identity_id(identity))


def guest_storage_key() -> str:
    return RedisKeys.guest_cart_key()
