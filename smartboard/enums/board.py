from enum import Enum


class BoardKind(str, Enum):
    """Board types a playlist entry can point at (backend ``component_key``)."""

    ZMANIM = "zmanim"
    SHABBAT = "shabbat"
    NIFTARIM = "niftarim"
    REFUAH = "refuah"
    BRACHOT = "brachot"
    MODAOT = "modaot"
    HALACHOT = "halachot"
    LEILUY = "leiluy"
    COMMUNITY = "community"
    CHIZUK = "chizuk"
    COUNTDOWN = "countdown"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> "BoardKind":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class DayType(str, Enum):
    """Which part of the week an entry belongs to."""

    ALWAYS = "always"
    WEEKDAY = "weekday"
    SHABBAT = "shabbat"

    @classmethod
    def parse(cls, value: object) -> "DayType":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.ALWAYS


class RotationState(str, Enum):
    ROTATING = "rotating"
    SUSPENDED_FOR_COUNTDOWN = "suspended_for_countdown"


class ThemePreset(str, Enum):
    DEFAULT = "default"
    DARK = "dark"
    LIGHT = "light"
    OCEAN = "ocean"
    SUNSET = "sunset"
    FOREST = "forest"
