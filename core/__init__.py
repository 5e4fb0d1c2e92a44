"""
Storefront Core Module

This package contains the cart infrastructure:
- db: Upstash Redis client and cart key layout
- cart: cart manager, stores, checkout read model
- services.money: Decimal helpers for prices
- logging: logging configuration

Note: Imports are lazy so importing ``core`` does not touch Redis settings.
"""

__all__ = [
    "CartManager",
    "get_cart_manager",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "CartManager":
        from core.cart import CartManager
        return CartManager
    elif name == "get_cart_manager":
        from core.cart import get_cart_manager
        return get_cart_manager
    raise AttributeError(f"module 'core' has no attribute '{name}'")
