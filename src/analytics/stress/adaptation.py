"""Adaptive responses to detected stress.

Maps a single stress event to the UI adaptations it should trigger, and a
stress level plus the recent patterns to the suggestions offered to the
shopper.
"""

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict

from accessibility.settings import AccessibilitySettings
from analytics.stress.log import InteractionEvent, Severity, StressPattern
from analytics.stress.scoring import StressLevel


class AdaptiveResponse(Enum):
    FOCUS_MODE = "focus_mode"
    CALMING_MESSAGE = "calming_message"
    SIMPLIFIED_NAVIGATION = "simplified_navigation"


_CALMING_PATTERNS = {StressPattern.REPEATED_CLICKS.value, StressPattern.FORM_ABANDONMENT.value}
_NAVIGATION_PATTERNS = {StressPattern.RAPID_NAVIGATION.value, StressPattern.BACK_BUTTON_USAGE.value}


def adaptive_responses(event: InteractionEvent) -> list[AdaptiveResponse]:
    responses = []
    if event.severity == Severity.HIGH.value:
        responses.append(AdaptiveResponse.FOCUS_MODE)
    if event.type in _CALMING_PATTERNS:
        responses.append(AdaptiveResponse.CALMING_MESSAGE)
    if event.type in _NAVIGATION_PATTERNS:
        responses.append(AdaptiveResponse.SIMPLIFIED_NAVIGATION)
    return responses


class Suggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    title: str
    description: str
    action: str


FOCUS_MODE = Suggestion(
    type="focus_mode",
    title="Switch to Focus Mode",
    description="Simplify the interface to reduce distractions",
    action="enable_focus_mode",
)
REDUCE_MOTION = Suggestion(
    type="reduce_motion",
    title="Reduce Motion",
    description="Turn off animations and moving elements",
    action="enable_reduced_motion",
)
FORM_HELP = Suggestion(
    type="form_help",
    title="Need Help with Forms?",
    description="Get clearer instructions and validation hints",
    action="show_form_help",
)
SIMPLIFIED_NAV = Suggestion(
    type="simplified_nav",
    title="Simplify Navigation",
    description="Show only essential menu items",
    action="enable_simple_nav",
)


def suggestions_for(
    level: StressLevel,
    patterns: Iterable[str],
    settings: AccessibilitySettings | None = None,
) -> list[Suggestion]:
    """Suggestions for the current stress level.

    ``patterns`` are the stress event types seen recently.
    """
    settings = settings or AccessibilitySettings()
    patterns = set(patterns)
    suggestions = []

    if level is StressLevel.HIGH:
        suggestions.append(FOCUS_MODE)
        if not settings.reduced_motion:
            suggestions.append(REDUCE_MOTION)

    if level in (StressLevel.MEDIUM, StressLevel.HIGH):
        if StressPattern.FAILED_SUBMISSIONS.value in patterns:
            suggestions.append(FORM_HELP)
        if StressPattern.RAPID_NAVIGATION.value in patterns:
            suggestions.append(SIMPLIFIED_NAV)

    return suggestions
