"""Shared BDD fixtures and step definitions for the Ordering domain."""

from decimal import Decimal

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.cart.events import (
    CartCheckedOut,
    CartCleared,
    CartCouponApplied,
    CartCouponRemoved,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

_CART_EVENT_CLASSES = {
    "CartItemAdded": CartItemAdded,
    "CartQuantityUpdated": CartQuantityUpdated,
    "CartItemRemoved": CartItemRemoved,
    "CartCouponApplied": CartCouponApplied,
    "CartCouponRemoved": CartCouponRemoved,
    "CartCleared": CartCleared,
    "CartCheckedOut": CartCheckedOut,
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an active cart", target_fixture="cart")
def active_cart():
    cart = ShoppingCart.create(customer_id="cust-001")
    cart._events.clear()
    return cart


@given("a guest cart", target_fixture="cart")
def guest_cart():
    cart = ShoppingCart.create(session_id="sess-001")
    cart._events.clear()
    return cart


@given(parsers.cfparse('the cart has {qty:d} of product "{product_id}" at {price}'), target_fixture="cart")
def cart_with_product(cart, qty, product_id, price):
    cart.add_item(product_id=product_id, quantity=qty, unit_price=price)
    cart._events.clear()
    return cart


@given(parsers.cfparse('the cart has a {kind} coupon "{code}" of {amount}'), target_fixture="cart")
def cart_with_coupon(cart, kind, code, amount):
    cart.apply_coupon(code, amount, kind)
    cart._events.clear()
    return cart


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the cart action fails with a validation error")
def cart_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("a {event_type} cart event is raised"))
def cart_event_raised(cart, event_type):
    event_cls = _CART_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in cart._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in cart._events]}"


@then("no cart event is raised")
def no_cart_event_raised(cart):
    assert cart._events == []


@then(parsers.cfparse("the cart has {count:d} line"))
def cart_has_n_lines_singular(cart, count):
    assert len(cart.items) == count


@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_n_lines(cart, count):
    assert len(cart.items) == count


@then(parsers.cfparse("the cart {figure} is {amount}"))
def cart_figure_is(cart, figure, amount):
    assert getattr(cart.totals, figure) == Decimal(amount)
