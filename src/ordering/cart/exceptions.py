"""Cart validation failures.

All of them are local to the request that caused them: the cart is left
exactly as it was before the failing call.
"""

from protean.exceptions import ValidationError


class InvalidQuantity(ValidationError):
    def __init__(self, quantity):
        super().__init__({"quantity": [f"Quantity must be a whole number of at least 1, got {quantity!r}"]})


class InvalidPrice(ValidationError):
    def __init__(self, field: str, value):
        super().__init__({field: [f"Price must be a finite, non-negative amount, got {value!r}"]})


class DuplicateCoupon(ValidationError):
    def __init__(self, code: str):
        super().__init__({"coupon_code": [f"Coupon {code!r} already applied"]})


class LineNotFound(ValidationError):
    def __init__(self, line_id: str):
        super().__init__({"line_id": [f"Item {line_id!r} not found in cart"]})


class EmptyCart(ValidationError):
    def __init__(self):
        super().__init__({"cart": ["Cannot check out an empty cart"]})
