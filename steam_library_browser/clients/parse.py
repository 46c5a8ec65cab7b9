"""
Field coercion for Steam and IGDB JSON payloads.

Numbers are strict: JSON numbers are accepted, numeric strings are not (bools never count). The
one exception is `parse_int_text`, for the few fields upstream sends as text.
"""

from __future__ import annotations

from typing import Any


def as_str(value: object) -> str:
    return "" if value is None else str(value).strip()


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def as_int(value: object) -> int | None:
    if not _is_number(value):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    return int(value)


def as_float(value: object) -> float | None:
    return float(value) if _is_number(value) else None


def as_non_negative_int(value: object) -> int | None:
    """Steam sometimes reports negative playtimes; clamp them to zero."""
    n = as_int(value)
    return None if n is None else max(n, 0)


def parse_int_text(value: object) -> int | None:
    """
    Integer from a text field (IGDB `external_games.uid`, Steam `steamid`).
    """
    if isinstance(value, str):
        s = value.strip()
        return int(s) if s.isdigit() else None
    return as_int(value)


def normalize_str_list(values: object) -> list[str]:
    """
    Non-empty strings from a JSON list, de-duplicated case-insensitively in first-seen order.
    Anything that is not a list gives [].
    """
    if not isinstance(values, list):
        return []
    out: dict[str, str] = {}
    for v in values:
        s = as_str(v)
        if s:
            out.setdefault(s.casefold(), s)
    return list(out.values())


def get_list_of_dicts(value: Any) -> list[dict[str, Any]]:
    return [v for v in value if isinstance(v, dict)] if isinstance(value, list) else []


def names_list(items: Any) -> list[str]:
    """`name` values of IGDB expanded relations (`genres.name`, `platforms.name`)."""
    return normalize_str_list([it.get("name") for it in get_list_of_dicts(items)])


def earliest_year(release_dates: Any) -> int | None:
    """Smallest positive `y` among IGDB `release_dates` entries."""
    years = [y for y in (as_int(d.get("y")) for d in get_list_of_dicts(release_dates)) if y and y > 0]
    return min(years) if years else None
