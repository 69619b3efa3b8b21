"""Stress monitor.

Owns the interaction and stress logs for one browsing session and is polled
on a fixed interval (``StressPolicy.poll_interval_seconds``). Each tick runs
the timer-driven detectors, rescores the stress log and switches calming mode
on once the score reaches the calming threshold.
"""

from collections.abc import Callable
from datetime import UTC, datetime

from accessibility.store import SettingsStore, get_store
from analytics.stress.detection import detect_abandoned_forms, detect_idle, detect_patterns
from analytics.stress.log import InteractionEvent, InteractionLog, as_utc
from analytics.stress.scoring import StressState, score_stress
from shared.config import StressPolicy, get_stress_policy
from shared.logging import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StressMonitor:
    def __init__(
        self,
        stress_log: InteractionLog | None = None,
        interaction_log: InteractionLog | None = None,
        store: SettingsStore | None = None,
        policy: StressPolicy | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.policy = policy or get_stress_policy()
        self.stress_log = stress_log if stress_log is not None else InteractionLog(capacity=self.policy.log_capacity)
        self.interaction_log = (
            interaction_log if interaction_log is not None else InteractionLog(capacity=self.policy.log_capacity)
        )
        self.store = store or get_store()
        self.clock = clock
        self.state = StressState()

        self._idle_reported_after: datetime | None = None
        self._abandoned_focuses: set[tuple[str, str | None]] = set()

    def record(self, interaction: InteractionEvent) -> list[InteractionEvent]:
        """Log a raw interaction and any stress patterns it completes."""
        self.interaction_log.append(interaction)
        detected = detect_patterns(self.interaction_log, interaction)
        self.stress_log.extend(detected)
        for event in detected:
            logger.info("Stress pattern detected", pattern=event.type, severity=event.severity, page=event.page)
        return detected

    def tick(self, now: datetime | None = None) -> StressState:
        now = as_utc(now or self.clock())
        settings = self.store.load()
        if not settings.stress_detection:
            self.state = StressState()
            return self.state

        self._run_timed_detectors(now)

        self.state = score_stress(self.stress_log, now, self.policy)
        if self.state.score >= self.policy.calming_threshold and not settings.calming_mode:
            self.store.save(settings.enable_calming_mode())
            logger.info("Calming mode enabled", score=self.state.score, level=self.state.level.value)

        return self.state

    def _run_timed_detectors(self, now: datetime) -> None:
        idle = detect_idle(self.interaction_log, now)
        last = self.interaction_log.latest()
        if idle is not None and last.timestamp != self._idle_reported_after:
            self._idle_reported_after = last.timestamp
            self.stress_log.append(idle)
            logger.debug("Long pause detected", inactivity=idle.metadata["inactivity_duration"])

        logged_focuses = {
            (e.timestamp.isoformat(), e.metadata.get("element"))
            for e in self.interaction_log.events
            if e.type == "form_focus"
        }
        self._abandoned_focuses &= logged_focuses

        for event in detect_abandoned_forms(self.interaction_log, now):
            focus = (event.metadata["focus_time"], event.metadata.get("element"))
            if focus in self._abandoned_focuses:
                continue
            self._abandoned_focuses.add(focus)
            self.stress_log.append(event)
            logger.debug("Form abandonment detected", element=event.metadata.get("element"), page=event.page)
