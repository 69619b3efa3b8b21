"""Accessibility preferences.

AccessibilitySettings is an immutable value object. Every mutator returns a
new instance and leaves the original untouched, so a settings snapshot can be
shared between the monitor, the store and the caller safely.
"""

from enum import Enum
from typing import Any

from protean.exceptions import ValidationError
from pydantic import BaseModel, ConfigDict


class Theme(Enum):
    DEFAULT = "default"
    HIGH_CONTRAST = "high-contrast"
    LOW_SATURATION = "low-saturation"


class FontSize(Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    EXTRA_LARGE = "extra-large"


class FontFamily(Enum):
    INTER = "inter"
    DYSLEXIC = "dyslexic"


class ColorBlindSupport(Enum):
    NONE = "none"
    PROTANOPIA = "protanopia"
    DEUTERANOPIA = "deuteranopia"
    TRITANOPIA = "tritanopia"


NEURODIVERSITY_FLAGS = ("adhd_support", "autism_support", "dyslexia_support")


class AccessibilitySettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    # Visual
    theme: Theme = Theme.DEFAULT
    font_size: FontSize = FontSize.MEDIUM
    font_family: FontFamily = FontFamily.INTER
    high_contrast: bool = False
    reduced_motion: bool = False
    color_blind_support: ColorBlindSupport = ColorBlindSupport.NONE

    # Cognitive
    focus_mode: bool = False
    reading_guide: bool = False
    simplified_layout: bool = False
    cognitive_support: bool = False

    # Motor
    keyboard_navigation: bool = False
    voice_control: bool = False
    motor_impairment_support: bool = False

    # Neurodiversity
    adhd_support: bool = False
    autism_support: bool = False
    dyslexia_support: bool = False

    # Sensory
    reduced_sounds: bool = False
    no_flashing: bool = False

    # Stress detection and calming
    stress_detection: bool = False
    stress_level: float = 0.0
    calming_mode: bool = False

    distraction_free: bool = False
    text_highlight: bool = False
    reading_ruler: bool = False

    @classmethod
    def toggles(cls) -> tuple[str, ...]:
        """Names of the boolean preferences that can be toggled."""
        return tuple(name for name, field in cls.model_fields.items() if field.annotation is bool)

    def _with(self, **changes: Any) -> "AccessibilitySettings":
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)

    def toggle(self, flag: str) -> "AccessibilitySettings":
        """Flip a boolean preference. High contrast also switches the theme."""
        if flag not in self.toggles():
            raise ValidationError({"flag": [f"Unknown accessibility toggle: {flag}"]})

        enabled = not getattr(self, flag)
        if flag == "high_contrast":
            return self._with(high_contrast=enabled, theme=Theme.HIGH_CONTRAST if enabled else Theme.DEFAULT)
        return self._with(**{flag: enabled})

    def set_theme(self, theme: Theme | str) -> "AccessibilitySettings":
        return self._with(theme=_coerce(Theme, theme, "theme"))

    def set_font_size(self, size: FontSize | str) -> "AccessibilitySettings":
        return self._with(font_size=_coerce(FontSize, size, "font_size"))

    def set_font_family(self, family: FontFamily | str) -> "AccessibilitySettings":
        return self._with(font_family=_coerce(FontFamily, family, "font_family"))

    def set_color_blind_support(self, mode: ColorBlindSupport | str) -> "AccessibilitySettings":
        return self._with(color_blind_support=_coerce(ColorBlindSupport, mode, "color_blind_support"))

    def set_neurodiversity_support(self, **flags: bool) -> "AccessibilitySettings":
        unknown = sorted(set(flags) - set(NEURODIVERSITY_FLAGS))
        if unknown:
            raise ValidationError({"flags": [f"Unknown neurodiversity flag: {name}" for name in unknown]})
        return self._with(**{name: bool(value) for name, value in flags.items()})

    def set_stress_level(self, level: float) -> "AccessibilitySettings":
        return self._with(stress_level=level)

    def enable_calming_mode(self) -> "AccessibilitySettings":
        if self.calming_mode:
            return self
        return self._with(calming_mode=True)

    def reset(self) -> "AccessibilitySettings":
        return type(self)()


def _coerce(enum_cls: type[Enum], value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError({field: [f"Must be one of: {allowed}"]}) from None
