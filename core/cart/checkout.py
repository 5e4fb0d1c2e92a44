"""
Checkout read model built on top of the cart.

Shipping fees, address validation and the order request body sent to
the storefront API. Order handling itself happens server-side.
"""
import os
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from core.errors import (
    ERROR_CART_EMPTY,
    ERROR_FIELD_REQUIRED,
    ERROR_INVALID_PHONE,
    ERROR_INVALID_POSTCODE,
    ERROR_SLIP_REQUIRED,
)
from core.services.money import add, round_money, to_decimal, to_float
from .identity import identity_field
from .service import CartManager

SHIPPING_FREE_THRESHOLD = to_decimal(os.environ.get("SHIPPING_FREE_THRESHOLD", "1000"))
SHIPPING_FEE_STANDARD = to_decimal(os.environ.get("SHIPPING_FEE_STANDARD", "50"))
SHIPPING_FEE_EXPRESS = to_decimal(os.environ.get("SHIPPING_FEE_EXPRESS", "80"))

POSTCODE_RE = re.compile(r"^\d{5}$")
PHONE_RE = re.compile(r"^\d{9,10}$")


class ShippingMethod(str, Enum):
    """Delivery options offered at checkout."""
    STANDARD = "standard"
    EXPRESS = "express"


class PaymentMethod(str, Enum):
    """
    Payment options offered at checkout.

    - cod: cash on delivery
    - transfer: bank transfer, the customer uploads a payment slip
    """
    COD = "cod"
    TRANSFER = "transfer"


def shipping_fee(subtotal: Any, method: Union[ShippingMethod, str] = ShippingMethod.STANDARD) -> Decimal:
    """Express is always charged; standard is free for empty or large orders."""
    if ShippingMethod(method) == ShippingMethod.EXPRESS:
        return SHIPPING_FEE_EXPRESS
    amount = to_decimal(subtotal)
    if amount == 0 or amount >= SHIPPING_FREE_THRESHOLD:
        return Decimal("0")
    return SHIPPING_FEE_STANDARD


@dataclass
class CheckoutSummary:
    """Amounts shown on the checkout page."""
    subtotal: Decimal
    shipping: Decimal
    total_quantity: int

    @property
    def total(self) -> Decimal:
        return round_money(add(self.subtotal, self.shipping))

    def to_dict(self) -> dict:
        return {
            "subtotal": to_float(round_money(self.subtotal)),
            "shipping": to_float(self.shipping),
            "total": to_float(self.total),
            "totalQty": self.total_quantity,
        }


def build_checkout_summary(
    cart: CartManager,
    method: Union[ShippingMethod, str] = ShippingMethod.STANDARD,
) -> CheckoutSummary:
    subtotal = cart.total_price
    return CheckoutSummary(
        subtotal=subtotal,
        shipping=shipping_fee(subtotal, method),
        total_quantity=cart.total_quantity,
    )


class ShippingAddress(BaseModel):
    """Delivery address entered at checkout."""
    full_name: str
    phone: str
    address_line: str
    district: str
    province: str
    postcode: str
    note: str = ""

    @field_validator("full_name", "phone", "address_line", "district", "province", "postcode", mode="before")
    @classmethod
    def require_text(cls, v, info):
        text = "" if v is None else str(v).strip()
        if not text:
            raise ValueError(f"{ERROR_FIELD_REQUIRED}: {info.field_name}")
        return text

    @field_validator("note", mode="before")
    @classmethod
    def note_to_text(cls, v):
        return "" if v is None else str(v)

    @model_validator(mode="after")
    def check_formats(self):
        if not POSTCODE_RE.match(self.postcode):
            raise ValueError(ERROR_INVALID_POSTCODE)
        if not PHONE_RE.match(self.phone):
            raise ValueError(ERROR_INVALID_PHONE)
        return self


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    if error["type"] == "missing":
        return f"{ERROR_FIELD_REQUIRED}: {error['loc'][0]}"
    cause = error.get("ctx", {}).get("error")
    return str(cause) if cause is not None else error["msg"]


def validate_checkout(
    address: Union[ShippingAddress, Mapping[str, Any]],
    payment_method: Union[PaymentMethod, str] = PaymentMethod.COD,
    has_slip: bool = False,
) -> Optional[str]:
    """
    Check the checkout form.

    Returns:
        The first problem as a message, or None when the order can be placed
    """
    if not isinstance(address, ShippingAddress):
        try:
            ShippingAddress.model_validate(dict(address))
        except ValidationError as e:
            return _first_error(e)

    if PaymentMethod(payment_method) == PaymentMethod.TRANSFER and not has_slip:
        return ERROR_SLIP_REQUIRED
    return None


def build_order_payload(
    cart: CartManager,
    address: Union[ShippingAddress, Mapping[str, Any]],
    shipping_method: Union[ShippingMethod, str] = ShippingMethod.STANDARD,
    payment_method: Union[PaymentMethod, str] = PaymentMethod.COD,
) -> dict:
    """
    Build the order request body for the storefront API.

    Raises:
        ValueError: If the cart is empty
        pydantic.ValidationError: If the address is invalid
    """
    if cart.is_empty:
        raise ValueError(ERROR_CART_EMPTY)

    if not isinstance(address, ShippingAddress):
        address = ShippingAddress.model_validate(dict(address))

    shipping_method = ShippingMethod(shipping_method)
    identity = cart.identity
    user_id = identity_field(identity, "id") or identity_field(identity, "user_id")

    return {
        "userId": user_id,
        "email": identity_field(identity, "email") or None,
        "items": [
            {
                "id": line.product_id,
                "name": line.name,
                "size": line.variant_key,
                "price": to_float(line.unit_price),
                "qty": line.quantity,
                "image": line.image,
                "category": line.category,
            }
            for line in cart.lines
        ],
        "amounts": build_checkout_summary(cart, shipping_method).to_dict(),
        "shippingMethod": shipping_method.value,
        "paymentMethod": PaymentMethod(payment_method).value,
        "address": address.model_dump(),
        "note": address.note,
    }
