"""
Default playlist, collection catalogue and theme presets.

These are read-only fallbacks; everything here can be overridden by data the
admin stores in the backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from smartboard.enums.board import BoardKind, ThemePreset

# Used verbatim when the backend has no BoardSchedule rows.
DEFAULT_PLAYLIST: tuple[dict[str, Any], ...] = (
    {
        "id": "default-zmanim",
        "component_key": "zmanim",
        "name": "זמני היום",
        "duration": 120,
        "order": 1,
        "active": True,
        "day_type": "always",
    },
    {
        "id": "default-shabbat",
        "component_key": "shabbat",
        "name": "זמני שבת",
        "duration": 30,
        "order": 2,
        "active": True,
        "day_type": "shabbat",
    },
    {
        "id": "default-halachot",
        "component_key": "halachot",
        "name": "הלכות",
        "duration": 60,
        "order": 3,
        "active": True,
        "day_type": "always",
    },
)


@dataclass(frozen=True)
class CollectionSpec:
    """
    How one cached collection is fetched from the backend.

    ``date_field`` adds today's ISO date to the query, for rows such as the
    daily zmanim that must match the current day.
    """

    name: str
    entity: str
    query: dict[str, Any] | None = None
    sort: str | None = None
    limit: int | None = None
    date_field: str | None = None

    def resolved_query(self, today: date) -> dict[str, Any] | None:
        if self.query is None and self.date_field is None:
            return None
        query = dict(self.query or {})
        if self.date_field:
            query[self.date_field] = today.isoformat()
        return query


_ACTIVE = {"active": True}

DEFAULT_COLLECTIONS: tuple[CollectionSpec, ...] = (
    CollectionSpec("settings", "Settings"),
    CollectionSpec("daily_zmanim", "DailyZmanim", date_field="date"),
    CollectionSpec("announcements", "Announcement", query=_ACTIVE, sort="-priority"),
    CollectionSpec("niftarim", "NiftarWeekly", query=_ACTIVE),
    CollectionSpec("refuah", "RefuahShelema", query=_ACTIVE, sort="priority"),
    CollectionSpec("halachot", "Halacha", query=_ACTIVE, sort="order"),
    CollectionSpec("brachot", "Bracha", query=_ACTIVE, sort="order"),
    CollectionSpec("leiluy_nishmat", "LeiluyNishmat", sort="order"),
    CollectionSpec("community_gallery", "CommunityGallery", query=_ACTIVE, sort="order"),
    CollectionSpec("community_messages", "CommunityMessage", query=_ACTIVE),
    CollectionSpec("shabbat_times", "ShabbatTimes", query=_ACTIVE),
    CollectionSpec("slide_settings", "SlideSettings", sort="-updated_date", limit=100),
    CollectionSpec("board_schedule", "BoardSchedule"),
    CollectionSpec("chizuk_yomi", "ChizukYomi", sort="order"),
)


@dataclass(frozen=True)
class BoardBinding:
    """Which slide key a board kind renders as and which collections feed it."""

    slide_key: str
    collections: tuple[str, ...] = ()
    settings_slide: bool = False


BOARD_BINDINGS: dict[BoardKind, BoardBinding] = {
    BoardKind.ZMANIM: BoardBinding("WeekdayPrayerTimes", ("daily_zmanim", "settings")),
    BoardKind.SHABBAT: BoardBinding("ShabbatTimes", ("shabbat_times", "settings")),
    BoardKind.NIFTARIM: BoardBinding("Niftarim", ("niftarim",)),
    BoardKind.REFUAH: BoardBinding("Refuah", ("refuah",)),
    BoardKind.BRACHOT: BoardBinding("Brachot", ("brachot",)),
    BoardKind.MODAOT: BoardBinding("Modaot", ("announcements",)),
    BoardKind.HALACHOT: BoardBinding("Halachot", ("halachot",)),
    BoardKind.LEILUY: BoardBinding("LeiluyNishmat", ("leiluy_nishmat",)),
    BoardKind.COMMUNITY: BoardBinding(
        "Community",
        ("settings", "community_gallery", "community_messages"),
        settings_slide=True,
    ),
}

# Collections exposed as a single record rather than a list
SINGLE_RECORD_COLLECTIONS = frozenset({"settings", "daily_zmanim"})

THEME_PRESETS: dict[ThemePreset, dict[str, Any]] = {
    ThemePreset.DEFAULT: {},
    ThemePreset.DARK: {"overlay_color": "#000000", "overlay_opacity": 0.5},
    ThemePreset.LIGHT: {"overlay_color": "#ffffff", "overlay_opacity": 0.3},
    ThemePreset.OCEAN: {"overlay_color": "#0ea5e9", "overlay_opacity": 0.2},
    ThemePreset.SUNSET: {"overlay_color": "#f97316", "overlay_opacity": 0.25},
    ThemePreset.FOREST: {"overlay_color": "#16a34a", "overlay_opacity": 0.3},
}


def theme_overrides(name: Any) -> dict[str, Any]:
    """Overlay overrides for a theme preset name; unknown names override nothing."""
    try:
        return THEME_PRESETS[ThemePreset(str(name or ThemePreset.DEFAULT.value))]
    except ValueError:
        return {}
