"""Accessibility settings store factory.

Provides get_store() / set_store() to swap implementations:
- InMemorySettingsStore by default and in tests
- JsonFileSettingsStore for settings that outlive the process
"""

from accessibility.store.memory_adapter import InMemorySettingsStore
from accessibility.store.port import SettingsStore

_current_store: SettingsStore | None = None


def get_store() -> SettingsStore:
    """Return the current settings store. Defaults to InMemorySettingsStore."""
    global _current_store
    if _current_store is None:
        _current_store = InMemorySettingsStore()
    return _current_store


def set_store(store: SettingsStore) -> None:
    """Override the active settings store."""
    global _current_store
    _current_store = store


def reset_store() -> None:
    """Reset to the default store."""
    global _current_store
    _current_store = None
