"""
Discount codes: eligibility checks and discount amount for a checkout total.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from commerce.domain.money import round2, to_decimal


class DiscountType(str, Enum):
    """Discount type enumeration."""
    PERCENTAGE = "percentage"
    FLAT = "flat"
    BOGO = "bogo"


class DiscountRejection(str, Enum):
    """Why a discount code was refused, in the order the checks run."""
    NOT_FOUND = "NOT_FOUND"
    INACTIVE = "INACTIVE"
    NOT_STARTED = "NOT_STARTED"
    EXPIRED = "EXPIRED"
    USAGE_LIMIT_REACHED = "USAGE_LIMIT_REACHED"
    BELOW_MIN_ORDER = "BELOW_MIN_ORDER"


@dataclass(frozen=True)
class DiscountRecord:
    """Discount code value object as stored for a store."""
    code: str
    discount_type: DiscountType
    value: Decimal
    starts_at: datetime
    ends_at: datetime | None = None
    active: bool = True
    usage_limit: int | None = None
    used_count: int = 0
    min_order_value: Decimal | None = None
    max_discount: Decimal | None = None
    id: UUID | None = None

    def __post_init__(self):
        object.__setattr__(self, "discount_type", DiscountType(self.discount_type))
        object.__setattr__(self, "value", to_decimal(self.value))
        for name in ("min_order_value", "max_discount"):
            if getattr(self, name) is not None:
                object.__setattr__(self, name, to_decimal(getattr(self, name)))


@dataclass(frozen=True)
class DiscountResult:
    valid: bool
    amount: Decimal
    message: str
    reason: DiscountRejection | None = None
    discount_id: UUID | None = None


def _reject(reason: DiscountRejection, message: str) -> DiscountResult:
    return DiscountResult(valid=False, amount=Decimal("0.00"), message=message, reason=reason)


def _format_inr(amount: Decimal) -> str:
    return f"₹{round2(amount)}"


def validate_discount(
    code: str,
    order_total,
    discount: DiscountRecord | None,
    now: datetime,
) -> DiscountResult:
    """
    Check ``discount`` against an order total at ``now``.

    ``discount`` is the record found for ``code`` (None if there is none).
    Rejections come back as results with a reason, never as exceptions.
    """
    if discount is None:
        return _reject(DiscountRejection.NOT_FOUND, f"Invalid discount code {code}")
    if not discount.active:
        return _reject(DiscountRejection.INACTIVE, "This discount is no longer active")
    if discount.starts_at > now:
        return _reject(DiscountRejection.NOT_STARTED, "This discount has not started yet")
    if discount.ends_at is not None and discount.ends_at <= now:
        return _reject(DiscountRejection.EXPIRED, "This discount has expired")
    if discount.usage_limit is not None and discount.used_count >= discount.usage_limit:
        return _reject(
            DiscountRejection.USAGE_LIMIT_REACHED,
            "This discount has reached its usage limit",
        )

    order_total = to_decimal(order_total)
    if discount.min_order_value is not None and order_total < discount.min_order_value:
        return _reject(
            DiscountRejection.BELOW_MIN_ORDER,
            f"Minimum order of {_format_inr(discount.min_order_value)} required",
        )

    if discount.discount_type == DiscountType.PERCENTAGE:
        amount = order_total * discount.value / 100
    elif discount.discount_type == DiscountType.FLAT:
        amount = discount.value
    else:
        # BOGO is priced per cart line by the cart, not on the order total.
        amount = Decimal("0")

    if discount.max_discount is not None and amount > discount.max_discount:
        amount = discount.max_discount
    if amount > order_total:
        amount = order_total
    amount = round2(amount)

    if discount.discount_type == DiscountType.PERCENTAGE:
        message = f"{discount.value.normalize():f}% off, you save {_format_inr(amount)}"
    else:
        message = f"{_format_inr(amount)} off applied"

    return DiscountResult(valid=True, amount=amount, message=message, discount_id=discount.id)
