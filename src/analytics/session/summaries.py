"""Read-side summaries over analytics sessions.

Pure functions: callers pass the sessions (usually from the session
repository) and get a pydantic result back. The optional ``start`` / ``end``
bounds are inclusive and apply to the session start time.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, Field

from analytics.session.session import AnalyticsSession
from analytics.stress.log import as_utc
from analytics.stress.profile import UserStressProfile
from shared.config import get_stress_policy


class PatternSummary(BaseModel):
    frequency: int = 0
    last_detected: datetime | None = None
    severity: str | None = None


def pattern_summaries(profile: UserStressProfile) -> dict[str, PatternSummary]:
    """Flatten a stress profile into per-pattern summaries."""
    return {
        entry.pattern: PatternSummary(
            frequency=entry.frequency,
            last_detected=entry.last_detected,
            severity=entry.severity,
        )
        for entry in profile.patterns
    }


class UserSummary(BaseModel):
    total_sessions: int = 0
    total_page_views: int = 0
    total_interactions: int = 0
    average_stress_score: float | None = None
    total_stress_events: int = 0
    average_session_duration: float | None = None
    accessibility_features: dict[str, int] = Field(default_factory=dict)
    stress_patterns: dict[str, PatternSummary] = Field(default_factory=dict)

    @property
    def most_used_accessibility_features(self) -> list[str]:
        return [feature for feature, _ in Counter(self.accessibility_features).most_common()]


class PlatformStats(BaseModel):
    total_users: int = 0
    total_sessions: int = 0
    average_stress_score: float | None = None
    high_stress_sessions: int = 0
    stress_percentage: float = 0.0
    accessibility_feature_usage: dict[str, int] = Field(default_factory=dict)
    device_breakdown: dict[str, int] = Field(default_factory=dict)


class StressInsight(BaseModel):
    type: str
    severity: str
    count: int
    last_occurrence: datetime


class AccessibilityInsight(BaseModel):
    feature: str
    total_usage: int
    average_duration: float | None
    last_used: datetime


def _in_range(sessions: Iterable[AnalyticsSession], start: datetime | None, end: datetime | None):
    for session in sessions:
        started = as_utc(session.session_start)
        if start is not None and started < as_utc(start):
            continue
        if end is not None and started > as_utc(end):
            continue
        yield session


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def user_summary(
    sessions: Iterable[AnalyticsSession],
    start: datetime | None = None,
    end: datetime | None = None,
    stress_patterns: dict[str, PatternSummary] | None = None,
) -> UserSummary:
    """Totals and averages across one user's sessions."""
    selected = list(_in_range(sessions, start, end))
    features = Counter(usage.feature for s in selected for usage in s.accessibility_usage)

    return UserSummary(
        total_sessions=len(selected),
        total_page_views=sum(s.total_page_views for s in selected),
        total_interactions=sum(s.total_interactions for s in selected),
        average_stress_score=_mean([s.stress_score for s in selected]),
        total_stress_events=sum(len(s.stress_events.events) for s in selected),
        average_session_duration=_mean([s.session_duration for s in selected if s.session_duration is not None]),
        accessibility_features=dict(features),
        stress_patterns=stress_patterns or {},
    )


def platform_stats(
    sessions: Iterable[AnalyticsSession],
    start: datetime | None = None,
    end: datetime | None = None,
) -> PlatformStats:
    """Platform-wide session statistics. High stress means a score at or above the high threshold."""
    selected = list(_in_range(sessions, start, end))
    if not selected:
        return PlatformStats()

    high_threshold = get_stress_policy().high_threshold
    high_stress = sum(1 for s in selected if s.stress_score >= high_threshold)

    return PlatformStats(
        total_users=len({str(s.user_id) for s in selected if s.user_id is not None}),
        total_sessions=len(selected),
        average_stress_score=_mean([s.stress_score for s in selected]),
        high_stress_sessions=high_stress,
        stress_percentage=high_stress / len(selected) * 100,
        accessibility_feature_usage=dict(Counter(u.feature for s in selected for u in s.accessibility_usage)),
        device_breakdown=dict(Counter(s.device.device_type for s in selected if s.device)),
    )


def stress_insights(sessions: Iterable[AnalyticsSession]) -> list[StressInsight]:
    """Stress events grouped by type and severity, most frequent first."""
    counts: Counter = Counter()
    last_seen: dict[tuple[str, str], datetime] = {}

    for session in sessions:
        for event in session.stress_events.events:
            key = (event.type, event.severity or get_stress_policy().default_severity)
            counts[key] += 1
            if key not in last_seen or event.timestamp > last_seen[key]:
                last_seen[key] = event.timestamp

    return [
        StressInsight(type=type_, severity=severity, count=count, last_occurrence=last_seen[(type_, severity)])
        for (type_, severity), count in counts.most_common()
    ]


def accessibility_insights(sessions: Iterable[AnalyticsSession]) -> list[AccessibilityInsight]:
    """Accessibility feature usage grouped by feature, most used first."""
    usages: dict[str, list] = {}
    for session in sessions:
        for usage in session.accessibility_usage:
            usages.setdefault(usage.feature, []).append(usage)

    insights = [
        AccessibilityInsight(
            feature=feature,
            total_usage=len(entries),
            average_duration=_mean([u.session_duration for u in entries if u.session_duration is not None]),
            last_used=max(u.timestamp for u in entries),
        )
        for feature, entries in usages.items()
    ]
    return sorted(insights, key=lambda insight: insight.total_usage, reverse=True)
