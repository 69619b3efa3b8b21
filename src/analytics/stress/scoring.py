"""Stress scoring heuristic.

A weighted sum over the stress events of the last minute, capped at 100 and
bucketed into low / medium / high. Scores are recomputed from scratch on
every evaluation; the log is small and bounded.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from analytics.stress.log import InteractionEvent, InteractionLog, as_utc
from shared.config import StressPolicy, get_stress_policy


class StressLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StressState(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float = Field(default=0.0, ge=0.0, le=100.0)
    level: StressLevel = StressLevel.LOW


def event_weight(event: InteractionEvent, policy: StressPolicy) -> float:
    """Base weight of the event type times its severity multiplier.

    Unknown types fall back to the default weight; unknown severities count
    as low, and a missing severity counts as the policy default (medium).
    """
    base = policy.weights.get(event.type, policy.default_weight)
    severity = event.severity or policy.default_severity
    return base * policy.severity_multipliers.get(severity, 1.0)


def level_for(score: float, policy: StressPolicy) -> StressLevel:
    if score >= policy.high_threshold:
        return StressLevel.HIGH
    if score >= policy.medium_threshold:
        return StressLevel.MEDIUM
    return StressLevel.LOW


def score_stress(
    events: Iterable[InteractionEvent] | InteractionLog,
    now: datetime,
    policy: StressPolicy | None = None,
) -> StressState:
    """Score the events that fall within the trailing window ending at ``now``."""
    policy = policy or get_stress_policy()
    if isinstance(events, InteractionLog):
        events = events.events

    now = as_utc(now)
    window_start = now - timedelta(seconds=policy.window_seconds)

    raw = sum(event_weight(event, policy) for event in events if window_start < event.timestamp <= now)
    score = min(max(raw, 0.0), policy.max_score)

    return StressState(score=score, level=level_for(score, policy))
