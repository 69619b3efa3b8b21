"""Interaction events and the bounded log that holds them.

The log is append-only and keeps the most recent ``capacity`` events;
appending past capacity evicts the oldest first. The bound also holds for
logs built from stored data: loading more than ``capacity`` events keeps
the newest ones.
"""

from collections import deque
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shared.config import get_stress_policy


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StressPattern(Enum):
    RAPID_NAVIGATION = "rapid_navigation"
    LONG_PAUSES = "long_pauses"
    FAILED_SUBMISSIONS = "failed_submissions"
    ERRATIC_SCROLLING = "erratic_scrolling"
    REPEATED_CLICKS = "repeated_clicks"
    BACK_BUTTON_USAGE = "back_button_usage"
    FORM_ABANDONMENT = "form_abandonment"
    SEARCH_FRUSTRATION = "search_frustration"


class InteractionEvent(BaseModel):
    """Something the shopper did, or a stress pattern detected from what they did.

    ``type`` is free-form: raw interactions (``click``, ``scroll``, ...) and
    stress patterns share the shape. ``severity`` is only meaningful for
    stress patterns; ``None`` means unspecified.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    severity: str | None = None
    page: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, value: datetime) -> datetime:
        return as_utc(value)


def _default_capacity() -> int:
    return get_stress_policy().log_capacity


class InteractionLog(BaseModel):
    capacity: int = Field(default_factory=_default_capacity, ge=1)
    events: deque[InteractionEvent] = Field(default_factory=deque)

    @model_validator(mode="after")
    def keep_newest_events(self) -> "InteractionLog":
        if self.events.maxlen != self.capacity:
            self.events = deque(self.events, maxlen=self.capacity)
        return self

    def append(self, event: InteractionEvent) -> InteractionEvent | None:
        """Append an event, returning the evicted one when the log was full."""
        evicted = self.events[0] if len(self.events) == self.capacity else None
        self.events.append(event)
        return evicted

    def extend(self, events) -> None:
        for event in events:
            self.append(event)

    def within(self, window: timedelta, now: datetime) -> list[InteractionEvent]:
        """Events in the trailing window ``(now - window, now]``."""
        now = as_utc(now)
        return [e for e in self.events if now - window < e.timestamp <= now]

    def of_type(self, *types: str) -> list[InteractionEvent]:
        return [e for e in self.events if e.type in types]

    def latest(self) -> InteractionEvent | None:
        return self.events[-1] if self.events else None
