"""Cart item management — commands and handler."""

import json

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.exceptions import InvalidPrice
from ordering.domain import ordering
from shared.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="ShoppingCart")
class AddToCart:
    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1)
    unit_price = String(required=True, max_length=32)
    variant_modifiers = Text()  # JSON: list of signed price deltas


@ordering.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    new_quantity = Integer(required=True)


@ordering.command(part_of="ShoppingCart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)

        try:
            modifiers = json.loads(command.variant_modifiers) if command.variant_modifiers else []
        except json.JSONDecodeError:
            raise InvalidPrice("variant_modifiers", command.variant_modifiers) from None
        totals = cart.add_item(
            product_id=command.product_id,
            quantity=command.quantity,
            unit_price=command.unit_price,
            variant_modifiers=modifiers,
        )
        repo.add(cart)

        logger.info(
            "Item added to cart",
            cart_id=str(command.cart_id),
            product_id=str(command.product_id),
            quantity=command.quantity,
            total=str(totals.total),
        )
        return totals

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        totals = cart.update_item_quantity(
            line_id=command.line_id,
            quantity=command.new_quantity,
        )
        repo.add(cart)

        logger.info(
            "Cart quantity updated",
            cart_id=str(command.cart_id),
            line_id=str(command.line_id),
            new_quantity=command.new_quantity,
        )
        return totals

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        totals = cart.remove_item(line_id=command.line_id)
        repo.add(cart)

        logger.info("Item removed from cart", cart_id=str(command.cart_id), line_id=str(command.line_id))
        return totals
