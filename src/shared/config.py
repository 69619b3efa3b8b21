"""Runtime configuration for pricing and stress detection.

Values come from environment variables (or a ``.env`` file) and fall back to
the production defaults below. Accessors are cached; tests that override the
environment call ``clear_config_cache()``.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STRESS_WEIGHTS = {
    "rapid_navigation": 15,
    "long_pauses": 10,
    "failed_submissions": 20,
    "erratic_scrolling": 12,
    "repeated_clicks": 18,
    "back_button_usage": 8,
    "form_abandonment": 25,
    "search_frustration": 15,
}

DEFAULT_SEVERITY_MULTIPLIERS = {
    "high": 1.5,
    "medium": 1.2,
    "low": 1.0,
}


class PricingPolicy(BaseSettings):
    """Tax and shipping rules applied to every cart."""

    model_config = SettingsConfigDict(env_prefix="SENSEEASE_PRICING_", env_file=".env", extra="ignore", frozen=True)

    tax_rate: Decimal = Field(default=Decimal("0.085"), ge=0)
    free_shipping_threshold: Decimal = Field(default=Decimal("35.00"), ge=0)
    flat_shipping: Decimal = Field(default=Decimal("5.99"), ge=0)
    currency: str = Field(default="USD", max_length=3)


class StressPolicy(BaseSettings):
    """Weights, windows and thresholds of the stress heuristic."""

    model_config = SettingsConfigDict(env_prefix="SENSEEASE_STRESS_", env_file=".env", extra="ignore", frozen=True)

    window_seconds: float = Field(default=60.0, gt=0)
    log_capacity: int = Field(default=200, ge=1)
    max_score: float = Field(default=100.0, gt=0)
    high_threshold: float = 70.0
    medium_threshold: float = 40.0
    # Same 0-100 scale as the score
    calming_threshold: float = 80.0
    poll_interval_seconds: float = Field(default=5.0, gt=0)
    default_weight: float = 10.0
    default_severity: str = "medium"
    weights: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_STRESS_WEIGHTS))
    severity_multipliers: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_SEVERITY_MULTIPLIERS))


@lru_cache
def get_pricing_policy() -> PricingPolicy:
    return PricingPolicy()


@lru_cache
def get_stress_policy() -> StressPolicy:
    return StressPolicy()


def clear_config_cache() -> None:
    get_pricing_policy.cache_clear()
    get_stress_policy.cache_clear()
