"""Tests for the cart pricing engine."""

from decimal import Decimal

import pytest
from ordering.cart.exceptions import InvalidPrice, InvalidQuantity
from ordering.cart.pricing import (
    CartLine,
    Coupon,
    CouponKind,
    compute_totals,
    make_coupon,
    price_line,
    round_currency,
    to_money,
)
from protean.exceptions import ValidationError
from shared.config import PricingPolicy


def _line(price, quantity=1, modifiers=()):
    return CartLine(
        product_id="prod-001", quantity=quantity, unit_price=Decimal(price), variant_modifiers=list(modifiers)
    )


def _coupon(code, kind, amount):
    return Coupon(code=code, kind=kind, amount=Decimal(amount))


class TestRoundCurrency:
    def test_rounds_half_away_from_zero(self):
        assert round_currency(Decimal("2.125")) == Decimal("2.13")
        assert round_currency(Decimal("-2.125")) == Decimal("-2.13")

    def test_floats_round_through_their_string_form(self):
        assert round_currency(2.125) == Decimal("2.13")
        assert round_currency(1.005) == Decimal("1.01")

    def test_keeps_two_decimal_places(self):
        assert str(round_currency(5)) == "5.00"


class TestComputeTotals:
    def test_empty_cart(self):
        totals = compute_totals([], [])
        assert totals.subtotal == Decimal("0.00")
        assert totals.item_count == 0
        assert totals.tax == Decimal("0.00")
        assert totals.shipping == Decimal("5.99")
        assert totals.total == Decimal("5.99")

    def test_two_lines_below_free_shipping(self):
        totals = compute_totals([_line("10", 2), _line("5", 1)], [])
        assert totals.subtotal == Decimal("25.00")
        assert totals.item_count == 3
        assert totals.tax == Decimal("2.13")
        assert totals.shipping == Decimal("5.99")
        assert totals.discount == Decimal("0.00")
        assert totals.total == Decimal("33.12")

    def test_free_shipping_at_threshold(self):
        totals = compute_totals([_line("35.00")], [])
        assert totals.shipping == Decimal("0.00")

    def test_flat_shipping_just_below_threshold(self):
        totals = compute_totals([_line("34.99")], [])
        assert totals.shipping == Decimal("5.99")

    def test_variant_modifiers_adjust_unit_price(self):
        totals = compute_totals([_line("20.00", 2, ["2.50", "-1.00"])], [])
        assert totals.subtotal == Decimal("43.00")

    def test_percentage_coupon(self):
        totals = compute_totals([_line("100.00")], [_coupon("SAVE10", CouponKind.PERCENTAGE, "10")])
        assert totals.discount == Decimal("10.00")

    def test_coupons_are_computed_off_the_subtotal_independently(self):
        coupons = [
            _coupon("SAVE10", CouponKind.PERCENTAGE, "10"),
            _coupon("FIVEOFF", CouponKind.FIXED, "5"),
        ]
        totals = compute_totals([_line("100.00")], coupons)
        assert totals.discount == Decimal("15.00")
        assert compute_totals([_line("100.00")], list(reversed(coupons))) == totals

    def test_total_is_clamped_at_zero(self):
        totals = compute_totals([_line("10.00")], [_coupon("BIG", CouponKind.FIXED, "500")])
        assert totals.total == Decimal("0.00")

    def test_total_combines_rounded_parts(self):
        totals = compute_totals([_line("100.00")], [_coupon("SAVE10", CouponKind.PERCENTAGE, "10")])
        assert totals.tax == Decimal("8.50")
        assert totals.shipping == Decimal("0.00")
        assert totals.total == Decimal("98.50")

    def test_same_inputs_give_same_totals(self):
        lines = [_line("12.34", 3)]
        assert compute_totals(lines, []) == compute_totals(lines, [])

    def test_uses_given_policy(self):
        policy = PricingPolicy(
            tax_rate=Decimal("0.10"), free_shipping_threshold=Decimal("50"), flat_shipping=Decimal("4")
        )
        totals = compute_totals([_line("40.00")], [], policy)
        assert totals.tax == Decimal("4.00")
        assert totals.shipping == Decimal("4.00")
        assert totals.total == Decimal("48.00")


class TestToMoney:
    def test_parses_strings_ints_and_floats(self):
        assert to_money("10.50", "unit_price") == Decimal("10.50")
        assert to_money(3, "unit_price") == Decimal(3)
        assert to_money(0.1, "unit_price") == Decimal("0.1")

    @pytest.mark.parametrize("value", ["NaN", "sNaN", "-NaN", "Infinity", "-inf", float("nan"), float("-inf")])
    def test_non_finite_values_are_not_money(self, value):
        with pytest.raises(InvalidPrice) as exc:
            to_money(value, "unit_price")
        assert "unit_price" in exc.value.messages

    @pytest.mark.parametrize("value", [True, None, "ten", [1]])
    def test_non_numeric_values_are_not_money(self, value):
        with pytest.raises(InvalidPrice):
            to_money(value, "amount")


class TestPriceLine:
    def test_builds_line(self):
        line = price_line("prod-001", 2, "10.00", ["1.50"])
        assert line.effective_price == Decimal("23.00")

    def test_rejects_zero_quantity(self):
        with pytest.raises(InvalidQuantity):
            price_line("prod-001", 0, "10.00")

    def test_rejects_modifiers_that_are_not_a_list(self):
        with pytest.raises(InvalidPrice) as exc:
            price_line("prod-001", 1, "10.00", "1.50")
        assert "variant_modifiers" in exc.value.messages


class TestMakeCoupon:
    def test_builds_coupon(self):
        assert make_coupon("SAVE10", "10", "percentage") == _coupon("SAVE10", CouponKind.PERCENTAGE, "10")

    def test_rejects_unknown_kind(self):
        with pytest.raises(ValidationError) as exc:
            make_coupon("SAVE10", "10", "bogus")
        assert "kind" in exc.value.messages

    def test_rejects_non_finite_amount(self):
        with pytest.raises(InvalidPrice):
            make_coupon("SAVE10", "Infinity", "fixed")
