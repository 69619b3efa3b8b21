"""Domain events for the AnalyticsSession aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from analytics.domain import analytics


@analytics.event(part_of="AnalyticsSession")
class StressEventRecorded:
    """A stress event was tracked or detected and the session rescored."""

    __version__ = 1

    session_id = Identifier(required=True)
    user_id = Identifier()
    pattern = String(required=True, max_length=50)
    severity = String(max_length=10)
    stress_score = Float(required=True)
    stress_level = String(required=True, max_length=10)
    occurred_at = DateTime(required=True)


@analytics.event(part_of="AnalyticsSession")
class SessionEnded:
    """The shopper left and the session was closed."""

    __version__ = 1

    session_id = Identifier(required=True)
    user_id = Identifier()
    exit_page = String(max_length=2048)
    exit_reason = String(required=True, max_length=20)
    session_duration = Integer(required=True)
    ended_at = DateTime(required=True)
