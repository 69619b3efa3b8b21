"""Application tests for the polling stress monitor."""

from datetime import timedelta

import pytest
from accessibility.settings import AccessibilitySettings
from accessibility.store import set_store
from accessibility.store.memory_adapter import InMemorySettingsStore
from analytics.stress.log import InteractionEvent
from analytics.stress.monitor import StressMonitor
from analytics.stress.scoring import StressLevel, StressState
from shared.config import get_stress_policy


@pytest.fixture
def store():
    store = InMemorySettingsStore(AccessibilitySettings(stress_detection=True))
    set_store(store)
    return store


def _stress(type_, at, severity="high"):
    return InteractionEvent(type=type_, severity=severity, timestamp=at)


class TestTick:
    def test_disabled_detection_scores_zero(self, now):
        monitor = StressMonitor(store=InMemorySettingsStore())
        monitor.stress_log.append(_stress("form_abandonment", now))
        assert monitor.tick(now) == StressState()

    def test_scores_stress_log(self, store, now, seconds_ago):
        monitor = StressMonitor()
        monitor.stress_log.append(_stress("form_abandonment", seconds_ago(5)))
        state = monitor.tick(now)
        assert state.score == pytest.approx(37.5)
        assert state.level == StressLevel.LOW
        assert monitor.state == state

    def test_uses_clock_when_now_is_omitted(self, store, now):
        monitor = StressMonitor(clock=lambda: now)
        monitor.stress_log.append(_stress("form_abandonment", now))
        assert monitor.tick().score == pytest.approx(37.5)

    def test_enables_calming_mode_at_threshold(self, store, now, seconds_ago):
        monitor = StressMonitor()
        for i in range(3):
            monitor.stress_log.append(_stress("form_abandonment", seconds_ago(i)))

        state = monitor.tick(now)

        assert state.score == 100
        assert store.settings.calming_mode is True
        assert store.saves == 1

    def test_calming_mode_is_not_re_saved(self, now, seconds_ago):
        store = InMemorySettingsStore(AccessibilitySettings(stress_detection=True, calming_mode=True))
        monitor = StressMonitor(store=store)
        for i in range(3):
            monitor.stress_log.append(_stress("form_abandonment", seconds_ago(i)))
        monitor.tick(now)
        assert store.saves == 0

    def test_below_calming_threshold(self, store, now, seconds_ago):
        monitor = StressMonitor()
        monitor.stress_log.append(_stress("form_abandonment", seconds_ago(1)))
        monitor.stress_log.append(_stress("form_abandonment", seconds_ago(2)))
        state = monitor.tick(now)
        assert state.level == StressLevel.HIGH
        assert store.settings.calming_mode is False


class TestTimedDetectors:
    def test_idle_period_is_reported_once(self, store, now, seconds_ago):
        monitor = StressMonitor()
        monitor.record(InteractionEvent(type="click", timestamp=seconds_ago(40)))

        monitor.tick(now)
        monitor.tick(now + timedelta(seconds=5))

        assert [e.type for e in monitor.stress_log.events] == ["long_pauses"]

    def test_new_idle_period_after_activity(self, store, now, seconds_ago):
        monitor = StressMonitor()
        monitor.record(InteractionEvent(type="click", timestamp=seconds_ago(40)))
        monitor.tick(now)
        monitor.record(InteractionEvent(type="click", timestamp=now))
        monitor.tick(now + timedelta(seconds=31))
        assert [e.type for e in monitor.stress_log.events] == ["long_pauses", "long_pauses"]

    def test_abandoned_form_is_reported_once(self, store, now, seconds_ago):
        monitor = StressMonitor()
        monitor.record(InteractionEvent(type="form_focus", timestamp=seconds_ago(35), metadata={"element": "email"}))
        monitor.record(InteractionEvent(type="click", timestamp=seconds_ago(1)))

        monitor.tick(now)
        monitor.tick(now + timedelta(seconds=5))

        assert [e.type for e in monitor.stress_log.events] == ["form_abandonment"]

    def test_forms_focused_at_the_same_instant_are_both_reported(self, store, now, seconds_ago):
        monitor = StressMonitor()
        monitor.record(InteractionEvent(type="form_focus", timestamp=seconds_ago(35), metadata={"element": "email"}))
        monitor.record(InteractionEvent(type="form_focus", timestamp=seconds_ago(35), metadata={"element": "search"}))

        monitor.tick(now)

        reported = [e.metadata["element"] for e in monitor.stress_log.events if e.type == "form_abandonment"]
        assert sorted(reported) == ["email", "search"]

    def test_focuses_evicted_from_the_log_are_forgotten(self, store, now, seconds_ago):
        policy = get_stress_policy().model_copy(update={"log_capacity": 2})
        monitor = StressMonitor(policy=policy)
        monitor.record(InteractionEvent(type="form_focus", timestamp=seconds_ago(35), metadata={"element": "email"}))
        monitor.tick(now)
        assert len(monitor._abandoned_focuses) == 1

        monitor.record(InteractionEvent(type="click", timestamp=now))
        monitor.record(InteractionEvent(type="click", timestamp=now + timedelta(seconds=1)))
        monitor.tick(now + timedelta(seconds=2))

        assert monitor._abandoned_focuses == set()

    def test_record_runs_pattern_detection(self, store, now):
        monitor = StressMonitor()
        detected = []
        for i in range(3):
            detected = monitor.record(
                InteractionEvent(
                    type="click", timestamp=now + timedelta(milliseconds=100 * i), metadata={"element": "x"}
                )
            )
        assert [e.type for e in detected] == ["repeated_clicks"]
        assert len(monitor.stress_log.events) == 1
