"""Cart pricing engine — subtotal, tax, shipping, discount and total for a cart.

``compute_totals`` is a pure function of the cart lines, the applied coupons
and the pricing policy. It is re-run after every cart mutation instead of
being maintained incrementally, so stored and derived totals never drift.

Every currency value is rounded to cents (half away from zero) at the step
that derives it, not only at the end: tax and discount are each rounded off
the rounded subtotal before the total is summed.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from uuid import uuid4

from protean.exceptions import ValidationError
from pydantic import BaseModel, ConfigDict, Field

from ordering.cart.exceptions import InvalidPrice, InvalidQuantity
from shared.config import PricingPolicy, get_pricing_policy

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def round_currency(value) -> Decimal:
    """Round to two decimal places, half away from zero."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value, field: str) -> Decimal:
    """Parse a caller-supplied amount. NaN and infinities are not money."""
    if isinstance(value, bool):
        raise InvalidPrice(field, value)
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidPrice(field, value) from None
    if not amount.is_finite():
        raise InvalidPrice(field, value)
    return amount


def validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity(quantity)
    return quantity


class CouponKind(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class CartLine(BaseModel):
    """A product in the cart with its quantity, unit price and variant price deltas."""

    model_config = ConfigDict(validate_assignment=True)

    line_id: str = Field(default_factory=lambda: str(uuid4()))
    product_id: str
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0)
    variant_modifiers: list[Decimal] = Field(default_factory=list)
    added_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def effective_unit_price(self) -> Decimal:
        return self.unit_price + sum(self.variant_modifiers, ZERO)

    @property
    def effective_price(self) -> Decimal:
        return self.effective_unit_price * self.quantity


class Coupon(BaseModel):
    """A discount applied to the whole cart, identified by its code."""

    model_config = ConfigDict(frozen=True)

    code: str
    kind: CouponKind
    amount: Decimal = Field(ge=0)

    def discount_for(self, subtotal: Decimal) -> Decimal:
        if self.kind == CouponKind.PERCENTAGE:
            return subtotal * self.amount / 100
        return self.amount


def price_line(product_id, quantity, unit_price, variant_modifiers=()) -> CartLine:
    """Validate a caller-supplied line and build it. The effective unit price may not go below zero."""
    quantity = validate_quantity(quantity)
    if quantity < 1:
        raise InvalidQuantity(quantity)

    price = to_money(unit_price, "unit_price")
    if price < 0:
        raise InvalidPrice("unit_price", unit_price)

    if not isinstance(variant_modifiers, list | tuple):
        raise InvalidPrice("variant_modifiers", variant_modifiers)
    modifiers = [to_money(m, "variant_modifiers") for m in variant_modifiers]
    if price + sum(modifiers, ZERO) < 0:
        raise InvalidPrice("variant_modifiers", [str(m) for m in modifiers])

    return CartLine(product_id=str(product_id), quantity=quantity, unit_price=price, variant_modifiers=modifiers)


def make_coupon(code, amount, kind) -> Coupon:
    value = to_money(amount, "amount")
    if value < 0:
        raise InvalidPrice("amount", amount)

    try:
        coupon_kind = CouponKind(kind)
    except ValueError:
        raise ValidationError({"kind": [f"Coupon kind must be 'percentage' or 'fixed', got {kind!r}"]}) from None

    return Coupon(code=code, kind=coupon_kind, amount=value)


class CartTotals(BaseModel):
    """Derived cart figures; a fresh snapshot is returned after every mutation."""

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = ZERO
    item_count: int = 0
    tax: Decimal = ZERO
    shipping: Decimal = ZERO
    discount: Decimal = ZERO
    total: Decimal = ZERO


def compute_totals(
    lines: Iterable[CartLine],
    coupons: Iterable[Coupon],
    policy: PricingPolicy | None = None,
) -> CartTotals:
    """Price a cart.

    Coupons are each computed against the pre-discount subtotal, so the
    order in which they were applied does not matter. The total never goes
    below zero.
    """
    policy = policy or get_pricing_policy()

    raw_subtotal = ZERO
    item_count = 0
    for line in lines:
        raw_subtotal += line.effective_price
        item_count += line.quantity
    subtotal = round_currency(raw_subtotal)

    tax = round_currency(subtotal * policy.tax_rate)
    shipping = ZERO if subtotal >= policy.free_shipping_threshold else round_currency(policy.flat_shipping)

    discount = round_currency(sum((coupon.discount_for(subtotal) for coupon in coupons), ZERO))

    total = max(ZERO, round_currency(subtotal + tax + shipping - discount))

    return CartTotals(
        subtotal=subtotal,
        item_count=item_count,
        tax=tax,
        shipping=shipping,
        discount=discount,
        total=total,
    )
