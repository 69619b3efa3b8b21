"""Per-user stress pattern history."""

from protean.fields import DateTime, HasMany, Identifier, Integer, String

from analytics.domain import analytics
from analytics.stress.log import InteractionEvent


@analytics.entity(part_of="UserStressProfile")
class PatternRecord:
    pattern = String(required=True, max_length=50)
    frequency = Integer(default=0)
    last_detected = DateTime()
    severity = String(max_length=10)


@analytics.aggregate
class UserStressProfile:
    user_id = Identifier(identifier=True, required=True)
    patterns = HasMany(PatternRecord)

    def pattern(self, name: str) -> PatternRecord | None:
        return next((entry for entry in self.patterns if entry.pattern == name), None)

    def record(self, event: InteractionEvent) -> PatternRecord:
        """Count a stress event against its pattern type."""
        entry = self.pattern(event.type)
        if entry is None:
            entry = PatternRecord(
                pattern=event.type,
                frequency=1,
                last_detected=event.timestamp,
                severity=event.severity,
            )
            self.add_patterns(entry)
            return entry

        entry.frequency += 1
        entry.last_detected = event.timestamp
        entry.severity = event.severity
        return entry

    def frequency(self, pattern: str) -> int:
        entry = self.pattern(pattern)
        return entry.frequency if entry else 0

    def most_frequent(self) -> str | None:
        if not self.patterns:
            return None
        return max(self.patterns, key=lambda entry: entry.frequency).pattern
