"""
Filtering, sorting, grouping and export of a fetched library.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from .config import VIEW
from .models import LibraryItem
from .utils.utilities import fold_search_text, fuzzy_score, write_csv


class SortField:
    NAME = "name"
    PLAYTIME = "playtime"
    RECENT = "recent"


SORT_FIELDS = (SortField.PLAYTIME, SortField.NAME, SortField.RECENT)

ALL_PLATFORMS = "All"

# Steam and IGDB name platforms differently; these filters match on several spellings.
_PLATFORM_KEYWORDS: dict[str, tuple[str, ...]] = {
    "pc (microsoft windows)": ("windows", "pc"),
    "windows": ("windows", "pc"),
    "pc": ("windows", "pc"),
    "mac": ("mac", "os x", "osx", "macos"),
    "linux": ("linux",),
    "steamvr": ("steamvr", "steam vr"),
}


def search_items(items: Iterable[LibraryItem], query: str | None, *, fuzzy: bool = False) -> list[LibraryItem]:
    """
    Case-insensitive substring search on names; with `fuzzy`, also accept close matches
    (RapidFuzz partial ratio >= VIEW.fuzzy_min_score).
    """
    q = fold_search_text(query or "")
    if not q:
        return list(items)
    out: list[LibraryItem] = []
    for it in items:
        if q in fold_search_text(it.name):
            out.append(it)
        elif fuzzy and fuzzy_score(q, it.name) >= VIEW.fuzzy_min_score:
            out.append(it)
    return out


def matches_platform(item: LibraryItem, platform: str) -> bool:
    if not item.platforms:
        return False
    wanted = platform.strip().casefold()
    keywords = _PLATFORM_KEYWORDS.get(wanted, (wanted,))
    return any(k in p.casefold() for p in item.platforms for k in keywords)


def filter_platform(items: Iterable[LibraryItem], platform: str | None) -> list[LibraryItem]:
    if not platform or platform.strip().casefold() == ALL_PLATFORMS.casefold():
        return list(items)
    return [it for it in items if matches_platform(it, platform)]


def default_sort_ascending(field: str) -> bool:
    return field == SortField.NAME


def sort_items(
    items: Iterable[LibraryItem],
    field: str = SortField.PLAYTIME,
    ascending: bool | None = None,
) -> list[LibraryItem]:
    """
    Stable sort by name, total playtime or recent playtime (missing recent counts as 0).

    Without an explicit direction, names sort ascending and playtimes descending.
    """
    if ascending is None:
        ascending = default_sort_ascending(field)
    if field == SortField.NAME:
        return sorted(items, key=lambda it: it.name.casefold(), reverse=not ascending)
    if field == SortField.PLAYTIME:
        return sorted(items, key=lambda it: it.playtime_minutes, reverse=not ascending)
    if field == SortField.RECENT:
        return sorted(items, key=lambda it: it.playtime_recent_minutes or 0, reverse=not ascending)
    raise ValueError(f"unknown sort field: {field!r}")


def group_by_genre(items: Iterable[LibraryItem]) -> list[tuple[str, list[LibraryItem]]]:
    """
    Group items by genre, groups sorted alphabetically. Items with several genres appear in each
    group; items without genres go to VIEW.uncategorized_label.
    """
    groups: dict[str, list[LibraryItem]] = {}
    for it in items:
        for genre in it.genres or [VIEW.uncategorized_label]:
            groups.setdefault(genre, []).append(it)
    return sorted(groups.items(), key=lambda kv: kv[0].casefold())


def format_playtime(minutes: int | None) -> str:
    minutes = int(minutes or 0)
    if minutes <= 0:
        return "Never played"
    hours = minutes / 60
    if hours < 1:
        return f"{minutes} min"
    if hours < 10:
        return f"{hours:.1f} hrs"
    return f"{int(hours + 0.5)} hrs"


def library_to_frame(items: Iterable[LibraryItem]) -> pd.DataFrame:
    rows = [
        {
            "AppID": it.app_id,
            "Name": it.name,
            "Playtime_Minutes": it.playtime_minutes,
            "Playtime": format_playtime(it.playtime_minutes),
            "Playtime_Recent_Minutes": "" if it.playtime_recent_minutes is None else it.playtime_recent_minutes,
            "Genres": ", ".join(it.genres or []),
            "Platforms": ", ".join(it.platforms or []),
            "Release_Year": "" if it.release_year is None else it.release_year,
            "Icon_URL": it.icon_url or "",
            "Cover_URL": it.cover_url or "",
        }
        for it in items
    ]
    columns = [
        "AppID",
        "Name",
        "Playtime_Minutes",
        "Playtime",
        "Playtime_Recent_Minutes",
        "Genres",
        "Platforms",
        "Release_Year",
        "Icon_URL",
        "Cover_URL",
    ]
    return pd.DataFrame(rows, columns=columns)


def export_library_csv(items: Iterable[LibraryItem], path: str | Path) -> Path:
    p = Path(path)
    write_csv(library_to_frame(items), p)
    return p
