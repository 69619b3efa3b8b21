"""Shared BDD fixtures and step definitions for the Analytics domain."""

from datetime import UTC, datetime

import pytest
from analytics.session.events import SessionEnded, StressEventRecorded
from analytics.session.session import AnalyticsSession
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

_SESSION_EVENT_CLASSES = {
    "StressEventRecorded": StressEventRecorded,
    "SessionEnded": SessionEnded,
}

SESSION_START = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def clock():
    """The current time in the scenario, advanced by the steps."""
    return {"at": SESSION_START}


@given("a shopper's browsing session", target_fixture="session")
def browsing_session():
    session = AnalyticsSession.start("sess-001", user_id="user-001", started_at=SESSION_START)
    session._events.clear()
    return session


@then("the session action fails with a validation error")
def session_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("a {event_type} session event is raised"))
def session_event_raised(session, event_type):
    event_cls = _SESSION_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in session._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in session._events]}"


@then(parsers.cfparse("the stress level is {level}"))
def stress_level_is(session, level):
    assert session.stress_level == level


@then(parsers.cfparse("the stress score is {score:g}"))
def stress_score_is(session, score):
    assert session.stress_score == pytest.approx(score)
