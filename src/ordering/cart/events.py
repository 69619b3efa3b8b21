"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Boolean, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the shopping cart (new line or merged quantity)."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    variant_modifiers = Text()  # JSON: list of decimal strings
    merged = Boolean(default=False)


@ordering.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity of a cart line was changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemRemoved:
    """A line was removed from the shopping cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    product_id = Identifier(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCouponApplied:
    """A coupon code was applied to the shopping cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=100)
    kind = String(required=True, max_length=20)
    amount = Float(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCouponRemoved:
    """A previously applied coupon was taken off the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=100)


@ordering.event(part_of="ShoppingCart")
class CartCleared:
    """All lines and coupons were removed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    lines_removed = Integer(required=True)
    coupons_removed = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCheckedOut:
    """The cart contents were captured as an order and the cart was emptied."""

    __version__ = 1

    cart_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    item_count = Integer(required=True)
    total = Float(required=True)
