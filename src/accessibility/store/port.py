"""Settings store port.

Adapters persist one AccessibilitySettings snapshot. Loading never fails:
missing or unreadable data yields the defaults.
"""

from abc import ABC, abstractmethod

from accessibility.settings import AccessibilitySettings


class SettingsStore(ABC):
    """Abstract accessibility settings store."""

    @abstractmethod
    def load(self) -> AccessibilitySettings:
        """Return the stored settings, or the defaults when nothing usable is stored."""
        ...

    @abstractmethod
    def save(self, settings: AccessibilitySettings) -> None:
        """Persist a settings snapshot, replacing the previous one."""
        ...
