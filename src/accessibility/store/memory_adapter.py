"""In-memory settings store for development and testing."""

from accessibility.settings import AccessibilitySettings
from accessibility.store.port import SettingsStore


class InMemorySettingsStore(SettingsStore):
    def __init__(self, settings: AccessibilitySettings | None = None) -> None:
        self.settings: AccessibilitySettings = settings or AccessibilitySettings()
        self.saves: int = 0

    def load(self) -> AccessibilitySettings:
        return self.settings

    def save(self, settings: AccessibilitySettings) -> None:
        self.settings = settings
        self.saves += 1
