"""Stress pattern detection — turns raw interactions into stress events.

``detect_patterns`` runs when an interaction is recorded and looks back over
the interaction log from that interaction's timestamp. The timer-driven
checks (``detect_idle`` and ``detect_abandoned_forms``) have no triggering
interaction; the stress monitor runs them on every tick.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from analytics.stress.log import InteractionEvent, InteractionLog, Severity, StressPattern, as_utc


@dataclass(frozen=True)
class Threshold:
    count: int
    window: timedelta


RAPID_NAVIGATION = Threshold(count=5, window=timedelta(seconds=10))
REPEATED_CLICKS = Threshold(count=3, window=timedelta(seconds=1))
ERRATIC_SCROLLING = Threshold(count=10, window=timedelta(seconds=5))
BACK_BUTTON_USAGE = Threshold(count=3, window=timedelta(seconds=30))
FAILED_SUBMISSIONS = Threshold(count=3, window=timedelta(seconds=60))
SEARCH_FRUSTRATION = Threshold(count=5, window=timedelta(seconds=60))
SEARCH_NO_RESULTS_COUNT = 3
LONG_PAUSE = timedelta(seconds=30)
FORM_ABANDONMENT_DELAY = timedelta(seconds=30)


def _recent(log: InteractionLog, interaction_type: str, window: timedelta, now: datetime) -> list[InteractionEvent]:
    return [e for e in log.within(window, now) if e.type == interaction_type]


def _stress_event(pattern: StressPattern, severity: Severity, at: datetime, page=None, **context) -> InteractionEvent:
    return InteractionEvent(
        type=pattern.value,
        severity=severity.value,
        timestamp=at,
        page=page,
        metadata=context,
    )


def detect_patterns(log: InteractionLog, interaction: InteractionEvent) -> list[InteractionEvent]:
    """Stress events triggered by ``interaction``, which must already be in ``log``."""
    now = interaction.timestamp
    detected = []

    if interaction.type == "click":
        clicks = _recent(log, "click", RAPID_NAVIGATION.window, now)
        if len(clicks) >= RAPID_NAVIGATION.count:
            detected.append(
                _stress_event(
                    StressPattern.RAPID_NAVIGATION,
                    Severity.MEDIUM,
                    now,
                    interaction.page,
                    click_count=len(clicks),
                    time_window=RAPID_NAVIGATION.window.total_seconds(),
                )
            )

        element = interaction.metadata.get("element")
        same_element = [
            e for e in _recent(log, "click", REPEATED_CLICKS.window, now) if e.metadata.get("element") == element
        ]
        if len(same_element) >= REPEATED_CLICKS.count:
            detected.append(
                _stress_event(
                    StressPattern.REPEATED_CLICKS,
                    Severity.HIGH,
                    now,
                    interaction.page,
                    element=element,
                    click_count=len(same_element),
                )
            )

    elif interaction.type == "scroll":
        scrolls = _recent(log, "scroll", ERRATIC_SCROLLING.window, now)
        if len(scrolls) >= ERRATIC_SCROLLING.count:
            detected.append(
                _stress_event(
                    StressPattern.ERRATIC_SCROLLING, Severity.MEDIUM, now, interaction.page, scroll_count=len(scrolls)
                )
            )

    elif interaction.type == "back_button":
        backs = _recent(log, "back_button", BACK_BUTTON_USAGE.window, now)
        if len(backs) >= BACK_BUTTON_USAGE.count:
            detected.append(
                _stress_event(
                    StressPattern.BACK_BUTTON_USAGE,
                    Severity.MEDIUM,
                    now,
                    interaction.page,
                    back_button_count=len(backs),
                )
            )

    elif interaction.type == "failed_submission":
        failures = _recent(log, "failed_submission", FAILED_SUBMISSIONS.window, now)
        if len(failures) >= FAILED_SUBMISSIONS.count:
            detected.append(
                _stress_event(
                    StressPattern.FAILED_SUBMISSIONS,
                    Severity.HIGH,
                    now,
                    interaction.page,
                    failure_count=len(failures),
                    last_error=interaction.metadata.get("error_type"),
                )
            )

    elif interaction.type == "search":
        searches = _recent(log, "search", SEARCH_FRUSTRATION.window, now)
        if len(searches) >= SEARCH_FRUSTRATION.count:
            no_results = [s for s in searches if s.metadata.get("results_count") == 0]
            if len(no_results) >= SEARCH_NO_RESULTS_COUNT:
                detected.append(
                    _stress_event(
                        StressPattern.SEARCH_FRUSTRATION,
                        Severity.MEDIUM,
                        now,
                        interaction.page,
                        search_count=len(searches),
                        no_results_count=len(no_results),
                    )
                )

    return detected


def detect_idle(log: InteractionLog, now: datetime) -> InteractionEvent | None:
    """A long-pause event when nothing has happened for 30 seconds."""
    last = log.latest()
    if last is None:
        return None

    idle_for = as_utc(now) - last.timestamp
    if idle_for < LONG_PAUSE:
        return None

    return _stress_event(
        StressPattern.LONG_PAUSES,
        Severity.LOW,
        as_utc(now),
        last.page,
        inactivity_duration=idle_for.total_seconds(),
        last_activity=last.timestamp.isoformat(),
    )


def detect_abandoned_forms(log: InteractionLog, now: datetime) -> list[InteractionEvent]:
    """Form-abandonment events for focused forms not submitted within 30 seconds.

    Each result carries the focus timestamp in ``metadata["focus_time"]`` so
    callers can avoid reporting the same focus twice.
    """
    now = as_utc(now)
    submits = [e.timestamp for e in log.events if e.type == "form_submit"]

    abandoned = []
    for focus in log.events:
        if focus.type != "form_focus" or now - focus.timestamp < FORM_ABANDONMENT_DELAY:
            continue
        if any(submitted > focus.timestamp for submitted in submits):
            continue
        abandoned.append(
            _stress_event(
                StressPattern.FORM_ABANDONMENT,
                Severity.LOW,
                now,
                focus.page,
                element=focus.metadata.get("element"),
                focus_time=focus.timestamp.isoformat(),
            )
        )
    return abandoned
