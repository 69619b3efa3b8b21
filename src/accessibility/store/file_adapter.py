"""JSON file settings store.

Stores the settings as a flat JSON object. Unknown keys are ignored on load;
a missing, unreadable or invalid file falls back to the defaults.
"""

import json
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from accessibility.settings import AccessibilitySettings
from accessibility.store.port import SettingsStore
from shared.logging import get_logger

logger = get_logger(__name__)


class JsonFileSettingsStore(SettingsStore):
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> AccessibilitySettings:
        if not self.path.exists():
            return AccessibilitySettings()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("settings file does not hold a JSON object")
            return AccessibilitySettings.model_validate(data)
        except (OSError, ValueError, PydanticValidationError) as exc:
            logger.warning("Unreadable accessibility settings, using defaults", path=str(self.path), error=str(exc))
            return AccessibilitySettings()

    def save(self, settings: AccessibilitySettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(settings.model_dump(mode="json"), indent=2), encoding="utf-8")
        logger.debug("Accessibility settings saved", path=str(self.path))
