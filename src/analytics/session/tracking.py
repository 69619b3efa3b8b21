"""Analytics event tracking — commands and handler.

``TrackEvent`` finds or starts the session named by ``session_id`` and
records one event on it. Raw interactions pass through stress pattern
detection; every stress event, tracked or detected, also counts against the
user's stress profile.
"""

import json
from datetime import UTC, datetime
from typing import Any

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from analytics.domain import analytics
from analytics.session.session import AnalyticsSession, ExitReason
from analytics.stress.log import InteractionEvent, Severity
from analytics.stress.profile import UserStressProfile
from shared.logging import get_logger

logger = get_logger(__name__)

EVENT_TYPES = (
    "page_view",
    "interaction",
    "stress_event",
    "accessibility_usage",
    "search",
    "cart_event",
    "error",
)


@analytics.command(part_of="AnalyticsSession")
class TrackEvent:
    session_id = Identifier(required=True)
    event_type = String(required=True, max_length=50)
    event_data = Text()  # JSON object
    page = String(max_length=2048)
    timestamp = DateTime()
    user_id = Identifier()
    user_agent = String(max_length=1024)


@analytics.command(part_of="AnalyticsSession")
class EndSession:
    session_id = Identifier(required=True)
    exit_page = String(max_length=2048)
    exit_reason = String(max_length=20, default=ExitReason.NATURAL.value)


def _event_data(command: TrackEvent) -> dict[str, Any]:
    if not command.event_data:
        return {}
    try:
        data = json.loads(command.event_data)
    except json.JSONDecodeError:
        raise ValidationError({"event_data": ["event_data must be a JSON object"]}) from None
    if not isinstance(data, dict):
        raise ValidationError({"event_data": ["event_data must be a JSON object"]})
    return data


def _require(data: dict[str, Any], *keys: str) -> None:
    missing = {key: [f"{key} is required"] for key in keys if data.get(key) is None}
    if missing:
        raise ValidationError(missing)


@analytics.command_handler(part_of=AnalyticsSession)
class TrackEventHandler:
    @handle(TrackEvent)
    def track_event(self, command: TrackEvent) -> AnalyticsSession:
        if command.event_type not in EVENT_TYPES:
            raise ValidationError({"event_type": ["Invalid event type"]})
        recorder = getattr(self, f"_record_{command.event_type}")
        data = _event_data(command)
        timestamp = command.timestamp or datetime.now(UTC)

        repo = current_domain.repository_for(AnalyticsSession)
        try:
            session = repo.get(command.session_id)
        except ObjectNotFoundError:
            session = AnalyticsSession.start(
                command.session_id,
                user_id=command.user_id,
                user_agent=command.user_agent,
                started_at=timestamp,
            )
            logger.debug(
                "Analytics session started",
                session_id=str(command.session_id),
                device_type=session.device.device_type,
            )

        stress_events = recorder(session, command, data, timestamp)
        repo.add(session)

        if stress_events and session.user_id is not None:
            self._count_in_profile(str(session.user_id), stress_events)

        logger.debug("Analytics event tracked", session_id=str(command.session_id), event_type=command.event_type)
        return session

    @handle(EndSession)
    def end_session(self, command: EndSession) -> int | None:
        """Close a session. Unknown sessions are ignored and return ``None``."""
        repo = current_domain.repository_for(AnalyticsSession)
        try:
            session = repo.get(command.session_id)
        except ObjectNotFoundError:
            return None

        duration = session.end_session(command.exit_page, command.exit_reason)
        repo.add(session)

        logger.debug("Analytics session ended", session_id=str(command.session_id), duration=duration)
        return duration

    def _record_page_view(self, session, command, data, timestamp):
        page = data.get("page") or command.page
        _require({"page": page}, "page")
        session.add_page_view(page, timestamp=timestamp, referrer=data.get("referrer"))

    def _record_interaction(self, session, command, data, timestamp):
        _require(data, "type")
        metadata = dict(data.get("metadata") or {})
        if data.get("element") is not None:
            metadata["element"] = data["element"]

        interaction = InteractionEvent(type=data["type"], timestamp=timestamp, page=command.page, metadata=metadata)
        detected = session.add_interaction(interaction)
        for event in detected:
            logger.info(
                "Stress pattern detected",
                session_id=str(session.session_id),
                pattern=event.type,
                severity=event.severity,
            )
        return detected

    def _record_stress_event(self, session, command, data, timestamp):
        _require(data, "type")
        severity = data.get("severity") or Severity.MEDIUM.value
        if severity not in {s.value for s in Severity}:
            raise ValidationError({"severity": [f"Unknown severity: {severity}"]})

        event = InteractionEvent(
            type=data["type"],
            severity=severity,
            timestamp=timestamp,
            page=command.page,
            metadata=dict(data.get("context") or {}),
        )
        session.add_stress_event(event)
        logger.info(
            "Stress event tracked",
            session_id=str(session.session_id),
            user_id=str(session.user_id) if session.user_id else None,
            pattern=event.type,
            stress_score=session.stress_score,
        )
        return [event]

    def _record_accessibility_usage(self, session, command, data, timestamp):
        _require(data, "feature", "enabled")
        session.record_accessibility_usage(
            data["feature"],
            bool(data["enabled"]),
            timestamp=timestamp,
            session_duration=data.get("session_duration"),
        )

    def _record_search(self, session, command, data, timestamp):
        _require(data, "query")
        session.add_search(
            data["query"],
            timestamp=timestamp,
            results_count=data.get("results_count"),
            clicked_result=data.get("clicked_result"),
        )

    def _record_cart_event(self, session, command, data, timestamp):
        _require(data, "action")
        session.add_cart_event(
            data["action"],
            timestamp=timestamp,
            product_id=data.get("product_id"),
            quantity=data.get("quantity"),
        )

    def _record_error(self, session, command, data, timestamp):
        session.add_error(
            timestamp=timestamp,
            error_type=data.get("type"),
            message=data.get("message"),
            page=command.page,
            stack=data.get("stack"),
        )

    def _count_in_profile(self, user_id: str, events: list[InteractionEvent]) -> None:
        repo = current_domain.repository_for(UserStressProfile)
        try:
            profile = repo.get(user_id)
        except ObjectNotFoundError:
            profile = UserStressProfile(user_id=user_id)

        for event in events:
            profile.record(event)
        repo.add(profile)
