"""Ordering bounded context — Shopping Cart and its pricing.

Handles cart line and coupon management, always-current cart totals, and
the checkout that captures a priced cart as an order snapshot.
"""

from protean.domain import Domain

from shared.logging import get_logger

ordering = Domain(name="ordering")

logger = get_logger(__name__)
