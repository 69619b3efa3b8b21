"""Shopping Cart aggregate — lines, coupons and always-current totals.

The cart owns its lines and applied coupons. Every mutating method validates
its input before touching state, raises a domain event, reprices the cart
from scratch and returns the fresh ``CartTotals`` snapshot. A failed call
leaves the cart unchanged.
"""

import json
from datetime import UTC, datetime
from decimal import Decimal

from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text
from pydantic import BaseModel

from ordering.cart.events import (
    CartCheckedOut,
    CartCleared,
    CartCouponApplied,
    CartCouponRemoved,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from ordering.cart.exceptions import DuplicateCoupon, EmptyCart, LineNotFound
from ordering.cart.pricing import (
    CartLine,
    CartTotals,
    Coupon,
    compute_totals,
    make_coupon,
    price_line,
    validate_quantity,
)
from ordering.domain import ordering


class CheckoutSnapshot(BaseModel):
    """Everything an order needs from the cart, frozen at checkout time."""

    order_number: str
    customer_id: str | None = None
    lines: list[CartLine]
    coupons: list[Coupon]
    totals: CartTotals
    checked_out_at: datetime


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = String(required=True, max_length=32)  # Decimal text, exact to the cent
    variant_modifiers = Text()  # JSON: list of decimal strings
    added_at = DateTime()

    def modifiers(self) -> list[Decimal]:
        return [Decimal(m) for m in json.loads(self.variant_modifiers)] if self.variant_modifiers else []

    def to_line(self) -> CartLine:
        return CartLine(
            line_id=str(self.id),
            product_id=str(self.product_id),
            quantity=self.quantity,
            unit_price=Decimal(self.unit_price),
            variant_modifiers=self.modifiers(),
            added_at=self.added_at or datetime.now(UTC),
        )


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier()  # Nullable for guest carts
    session_id = String(max_length=255)  # For guest cart identification
    items = HasMany(CartItem)
    applied_coupons = Text()  # JSON: list of {code, kind, amount}
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id=None, session_id=None):
        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            session_id=session_id,
            applied_coupons=json.dumps([]),
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------
    @property
    def lines(self) -> list[CartLine]:
        return [item.to_line() for item in self.items]

    @property
    def coupons(self) -> dict[str, Coupon]:
        entries = json.loads(self.applied_coupons) if self.applied_coupons else []
        return {entry["code"]: Coupon.model_validate(entry) for entry in entries}

    @property
    def totals(self) -> CartTotals:
        return compute_totals(self.lines, self.coupons.values())

    def line(self, line_id):
        return next((item for item in self.items if str(item.id) == str(line_id)), None)

    def _store_coupons(self, coupons: dict[str, Coupon]) -> None:
        self.applied_coupons = json.dumps([c.model_dump(mode="json") for c in coupons.values()])

    def _touch(self) -> CartTotals:
        self.updated_at = datetime.now(UTC)
        return self.totals

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, unit_price, variant_modifiers=()) -> CartTotals:
        """Add a product, merging into a line with the same product and variant modifiers."""
        line = price_line(product_id, quantity, unit_price, variant_modifiers)
        quantity, modifiers = line.quantity, line.variant_modifiers

        existing = next(
            (i for i in self.items if str(i.product_id) == str(product_id) and i.modifiers() == modifiers),
            None,
        )

        now = datetime.now(UTC)
        if existing:
            existing.quantity += quantity
            existing.added_at = now
            item = existing
        else:
            item = CartItem(
                product_id=str(product_id),
                quantity=quantity,
                unit_price=str(line.unit_price),
                variant_modifiers=json.dumps([str(m) for m in modifiers]),
                added_at=now,
            )
            self.add_items(item)

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                line_id=str(item.id),
                product_id=str(product_id),
                quantity=quantity,
                unit_price=float(item.unit_price),
                variant_modifiers=item.variant_modifiers,
                merged=existing is not None,
            )
        )
        return self._touch()

    def update_item_quantity(self, line_id, quantity) -> CartTotals:
        """Set a line's quantity; zero or less removes the line."""
        quantity = validate_quantity(quantity)

        item = self.line(line_id)
        if item is None:
            raise LineNotFound(str(line_id))

        if quantity <= 0:
            return self.remove_item(line_id)

        previous_quantity = item.quantity
        item.quantity = quantity
        item.added_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                line_id=str(item.id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )
        return self._touch()

    def remove_item(self, line_id) -> CartTotals:
        """Remove a line. Removing a line that is not in the cart does nothing."""
        item = self.line(line_id)
        if item is None:
            return self.totals

        self.remove_items(item)

        self.raise_(CartItemRemoved(cart_id=str(self.id), line_id=str(item.id), product_id=str(item.product_id)))
        return self._touch()

    # -------------------------------------------------------------------
    # Coupon management
    # -------------------------------------------------------------------
    def apply_coupon(self, code, amount, kind) -> CartTotals:
        """Apply a coupon; each code can be applied once."""
        coupons = self.coupons
        if code in coupons:
            raise DuplicateCoupon(code)

        coupon = make_coupon(code, amount, kind)
        coupons[code] = coupon
        self._store_coupons(coupons)

        self.raise_(
            CartCouponApplied(
                cart_id=str(self.id),
                coupon_code=code,
                kind=coupon.kind.value,
                amount=float(coupon.amount),
            )
        )
        return self._touch()

    def remove_coupon(self, code) -> CartTotals:
        """Take a coupon off the cart. Unknown codes are ignored."""
        coupons = self.coupons
        if code not in coupons:
            return self.totals

        del coupons[code]
        self._store_coupons(coupons)

        self.raise_(CartCouponRemoved(cart_id=str(self.id), coupon_code=code))
        return self._touch()

    # -------------------------------------------------------------------
    # Cart lifecycle
    # -------------------------------------------------------------------
    def _empty(self) -> None:
        for item in list(self.items):
            self.remove_items(item)
        self._store_coupons({})

    def clear(self) -> CartTotals:
        """Empty the cart of lines and coupons."""
        lines_removed, coupons_removed = len(self.items), len(self.coupons)
        if not lines_removed and not coupons_removed:
            return self.totals

        self._empty()

        self.raise_(CartCleared(cart_id=str(self.id), lines_removed=lines_removed, coupons_removed=coupons_removed))
        return self._touch()

    def checkout(self, order_number: str) -> CheckoutSnapshot:
        """Capture the cart as an order snapshot, then empty it."""
        if not self.items:
            raise EmptyCart()

        totals = self.totals
        snapshot = CheckoutSnapshot(
            order_number=order_number,
            customer_id=str(self.customer_id) if self.customer_id else None,
            lines=self.lines,
            coupons=list(self.coupons.values()),
            totals=totals,
            checked_out_at=datetime.now(UTC),
        )

        self._empty()
        self._touch()

        self.raise_(
            CartCheckedOut(
                cart_id=str(self.id),
                order_number=order_number,
                item_count=totals.item_count,
                total=float(totals.total),
            )
        )
        return snapshot
