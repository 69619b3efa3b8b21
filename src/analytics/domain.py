"""Analytics bounded context — browsing sessions and shopper stress.

Records what happens during a visit, detects stress patterns from raw
interactions, scores them, and keeps a per-user history of the patterns seen.
"""

from protean.domain import Domain

from shared.logging import get_logger

analytics = Domain(name="analytics")

logger = get_logger(__name__)
