"""Cart checkout — command and handler.

Checkout captures the priced cart as an order snapshot and empties the cart.
"""

from datetime import UTC, datetime
from itertools import count

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from shared.logging import get_logger

logger = get_logger(__name__)

_order_sequence = count(1)


def order_number(placed_at: datetime, sequence: int) -> str:
    """Human-facing order number: ``SE`` + epoch milliseconds + 4-digit sequence."""
    return f"SE{int(placed_at.timestamp() * 1000)}{sequence:04d}"


@ordering.command(part_of="ShoppingCart")
class CheckoutCart:
    cart_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class CheckoutHandler:
    @handle(CheckoutCart)
    def checkout(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        snapshot = cart.checkout(order_number=order_number(datetime.now(UTC), next(_order_sequence)))
        repo.add(cart)

        logger.info(
            "Cart checked out",
            cart_id=str(command.cart_id),
            order_number=snapshot.order_number,
            item_count=snapshot.totals.item_count,
            total=str(snapshot.totals.total),
        )
        return snapshot
