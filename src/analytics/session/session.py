"""Analytics session aggregate.

One session per browser visit, keyed by ``session_id``. Interactions and
stress events are held in bounded logs; the session's stress score is the
stress heuristic evaluated at the newest stress event.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from analytics.domain import analytics
from analytics.session.events import SessionEnded, StressEventRecorded
from analytics.stress.detection import detect_patterns
from analytics.stress.log import InteractionEvent, InteractionLog, as_utc
from analytics.stress.scoring import StressLevel, score_stress
from shared.config import StressPolicy, get_stress_policy


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DeviceType(Enum):
    DESKTOP = "desktop"
    TABLET = "tablet"
    MOBILE = "mobile"


class ExitReason(Enum):
    NATURAL = "natural"
    ERROR = "error"
    FRUSTRATION = "frustration"
    COMPLETION = "completion"
    UNKNOWN = "unknown"


def device_type(user_agent: str | None) -> DeviceType:
    """Classify a user agent string. Anything unrecognised is a desktop."""
    if not user_agent:
        return DeviceType.DESKTOP

    ua = user_agent.lower()
    if "mobile" in ua or "android" in ua or "iphone" in ua:
        return DeviceType.MOBILE
    if "tablet" in ua or "ipad" in ua:
        return DeviceType.TABLET
    return DeviceType.DESKTOP


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@analytics.value_object(part_of="AnalyticsSession")
class DeviceInfo:
    user_agent = String(max_length=1024)
    device_type = String(choices=DeviceType, default=DeviceType.DESKTOP.value)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@analytics.entity(part_of="AnalyticsSession")
class PageView:
    page = String(required=True, max_length=2048)
    referrer = String(max_length=2048)
    time_on_page = Float(default=0.0)
    timestamp = DateTime(required=True)


@analytics.entity(part_of="AnalyticsSession")
class AccessibilityUsage:
    feature = String(required=True, max_length=100)
    enabled = Boolean(default=False)
    session_duration = Float()
    timestamp = DateTime(required=True)


@analytics.entity(part_of="AnalyticsSession")
class SearchQuery:
    query = String(required=True, max_length=500)
    results_count = Integer()
    clicked_result = Boolean()
    timestamp = DateTime(required=True)


@analytics.entity(part_of="AnalyticsSession")
class CartActivity:
    action = String(required=True, max_length=50)
    product_id = Identifier()
    quantity = Integer()
    timestamp = DateTime(required=True)


@analytics.entity(part_of="AnalyticsSession")
class TrackedError:
    error_type = String(max_length=100)
    message = Text()
    page = String(max_length=2048)
    stack = Text()
    timestamp = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@analytics.aggregate
class AnalyticsSession:
    """A single browsing visit and everything recorded during it.

    The interaction and stress logs are stored as serialized ``InteractionLog``
    documents; reading them back re-applies the log's capacity bound.
    """

    session_id = Identifier(identifier=True, required=True)
    user_id = Identifier()
    session_start = DateTime(required=True)
    session_end = DateTime()
    session_duration = Integer()

    page_views = HasMany(PageView)
    accessibility_usage = HasMany(AccessibilityUsage)
    search_queries = HasMany(SearchQuery)
    cart_events = HasMany(CartActivity)
    tracked_errors = HasMany(TrackedError)

    interaction_log = Text()  # JSON: InteractionLog
    stress_log = Text()  # JSON: InteractionLog
    stress_score = Float(default=0.0)
    stress_level = String(choices=StressLevel, default=StressLevel.LOW.value)

    device = ValueObject(DeviceInfo)
    exit_page = String(max_length=2048)
    exit_reason = String(choices=ExitReason, default=ExitReason.UNKNOWN.value)

    @classmethod
    def start(
        cls,
        session_id,
        user_id=None,
        user_agent=None,
        started_at: datetime | None = None,
        policy: StressPolicy | None = None,
    ) -> "AnalyticsSession":
        policy = policy or get_stress_policy()
        empty_log = InteractionLog(capacity=policy.log_capacity).model_dump_json()
        return cls(
            session_id=session_id,
            user_id=user_id,
            session_start=as_utc(started_at or _utcnow()),
            interaction_log=empty_log,
            stress_log=empty_log,
            device=DeviceInfo(user_agent=user_agent, device_type=device_type(user_agent).value),
        )

    # -------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------
    @property
    def interactions(self) -> InteractionLog:
        return InteractionLog.model_validate_json(self.interaction_log) if self.interaction_log else InteractionLog()

    @property
    def stress_events(self) -> InteractionLog:
        return InteractionLog.model_validate_json(self.stress_log) if self.stress_log else InteractionLog()

    @property
    def total_page_views(self) -> int:
        return len(self.page_views)

    @property
    def total_interactions(self) -> int:
        return len(self.interactions.events)

    @property
    def ended(self) -> bool:
        return self.session_end is not None

    # -------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------
    def add_page_view(self, page, timestamp: datetime | None = None, referrer=None) -> PageView:
        view = PageView(page=page, referrer=referrer, timestamp=as_utc(timestamp or _utcnow()))
        self.add_page_views(view)
        return view

    def add_interaction(self, interaction: InteractionEvent) -> list[InteractionEvent]:
        """Record an interaction and the stress events it completes."""
        log = self.interactions
        log.append(interaction)
        self.interaction_log = log.model_dump_json()

        detected = detect_patterns(log, interaction)
        for event in detected:
            self.add_stress_event(event)
        return detected

    def add_stress_event(self, event: InteractionEvent) -> None:
        log = self.stress_events
        log.append(event)
        self.stress_log = log.model_dump_json()
        self.refresh_stress()

        self.raise_(
            StressEventRecorded(
                session_id=str(self.session_id),
                user_id=str(self.user_id) if self.user_id else None,
                pattern=event.type,
                severity=event.severity,
                stress_score=self.stress_score,
                stress_level=self.stress_level,
                occurred_at=event.timestamp,
            )
        )

    def refresh_stress(self) -> None:
        events = self.stress_events
        if not events.events:
            self.stress_score, self.stress_level = 0.0, StressLevel.LOW.value
            return

        newest = max(event.timestamp for event in events.events)
        state = score_stress(events, newest, get_stress_policy())
        self.stress_score, self.stress_level = state.score, state.level.value

    def record_accessibility_usage(
        self,
        feature,
        enabled: bool,
        timestamp: datetime | None = None,
        session_duration: float | None = None,
    ) -> AccessibilityUsage:
        usage = AccessibilityUsage(
            feature=feature,
            enabled=enabled,
            session_duration=session_duration,
            timestamp=as_utc(timestamp or _utcnow()),
        )
        self.add_accessibility_usage(usage)
        return usage

    def add_search(self, query, timestamp: datetime | None = None, results_count=None, clicked_result=None):
        search = SearchQuery(
            query=query,
            results_count=results_count,
            clicked_result=clicked_result,
            timestamp=as_utc(timestamp or _utcnow()),
        )
        self.add_search_queries(search)
        return search

    def add_cart_event(self, action, timestamp: datetime | None = None, product_id=None, quantity=None):
        activity = CartActivity(
            action=action,
            product_id=product_id,
            quantity=quantity,
            timestamp=as_utc(timestamp or _utcnow()),
        )
        self.add_cart_events(activity)
        return activity

    def add_error(self, timestamp: datetime | None = None, error_type=None, message=None, page=None, stack=None):
        error = TrackedError(
            error_type=error_type,
            message=message,
            page=page,
            stack=stack,
            timestamp=as_utc(timestamp or _utcnow()),
        )
        self.add_tracked_errors(error)
        return error

    def end_session(self, exit_page=None, exit_reason=ExitReason.NATURAL, ended_at: datetime | None = None) -> int:
        """Close the session and return its duration in whole seconds."""
        try:
            reason = ExitReason(exit_reason)
        except ValueError:
            raise ValidationError({"exit_reason": [f"Unknown exit reason: {exit_reason}"]}) from None

        self.session_end = as_utc(ended_at or _utcnow())
        self.exit_page = exit_page
        self.exit_reason = reason.value
        self.session_duration = int((self.session_end - as_utc(self.session_start)).total_seconds())

        self.raise_(
            SessionEnded(
                session_id=str(self.session_id),
                user_id=str(self.user_id) if self.user_id else None,
                exit_page=exit_page,
                exit_reason=reason.value,
                session_duration=self.session_duration,
                ended_at=self.session_end,
            )
        )
        return self.session_duration
