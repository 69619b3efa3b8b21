"""Cart management — commands and handler.

Handles cart creation and clearing. A registered customer keeps one cart:
creating a cart for a customer who already has one returns the existing id.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from shared.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="ShoppingCart")
class CreateCart:
    """Create a new shopping cart for a registered customer or guest session."""

    customer_id = Identifier()  # Optional for guest carts
    session_id = String(max_length=255)


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    """Remove every line and coupon from a cart."""

    cart_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)

        if command.customer_id:
            existing = repo._dao.query.filter(customer_id=str(command.customer_id)).all()
            if existing.items:
                return str(existing.items[0].id)

        cart = ShoppingCart.create(
            customer_id=command.customer_id,
            session_id=command.session_id,
        )
        repo.add(cart)

        logger.info(
            "Cart created",
            cart_id=str(cart.id),
            customer_id=command.customer_id,
            session_id=command.session_id,
        )
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        totals = cart.clear()
        repo.add(cart)

        logger.info("Cart cleared", cart_id=str(command.cart_id))
        return totals
