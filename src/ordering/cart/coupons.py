"""Cart coupon management — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.pricing import CouponKind
from ordering.domain import ordering
from shared.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="ShoppingCart")
class ApplyCouponToCart:
    """Apply a coupon code to a shopping cart."""

    cart_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=20)
    amount = String(required=True, max_length=32)
    kind = String(choices=CouponKind, default=CouponKind.PERCENTAGE.value)


@ordering.command(part_of="ShoppingCart")
class RemoveCouponFromCart:
    """Take a coupon code off a shopping cart."""

    cart_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=100)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCouponsHandler:
    @handle(ApplyCouponToCart)
    def apply_coupon(self, command):
        if len(command.coupon_code) < 3:
            raise ValidationError({"coupon_code": ["Coupon code must be 3-20 characters"]})

        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        totals = cart.apply_coupon(
            code=command.coupon_code,
            amount=command.amount,
            kind=command.kind,
        )
        repo.add(cart)

        logger.info(
            "Coupon applied",
            cart_id=str(command.cart_id),
            coupon_code=command.coupon_code,
            discount=str(totals.discount),
        )
        return totals

    @handle(RemoveCouponFromCart)
    def remove_coupon(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        totals = cart.remove_coupon(code=command.coupon_code)
        repo.add(cart)

        logger.info("Coupon removed", cart_id=str(command.cart_id), coupon_code=command.coupon_code)
        return totals
