"""
Map decoded Steam / IGDB payloads onto library entities.

Only shape coercion happens here; payloads are validated by the client decode step.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .clients.parse import as_int, as_non_negative_int, as_str, get_list_of_dicts
from .config import STEAM
from .models import LibraryItem, MetadataRecord, SteamProfile


@dataclass(frozen=True)
class NormalizedLibrary:
    items: list[LibraryItem] = field(default_factory=list)
    count: int = 0


def build_media_url(app_id: int, image_hash: Any) -> str | None:
    """Icon/logo URL for an app, or None when Steam sent no hash."""
    h = as_str(image_hash)
    if not h:
        return None
    return f"{STEAM.media_base}/{app_id}/{h}.jpg"


def normalize_game(raw: dict[str, Any]) -> LibraryItem:
    app_id = as_int(raw.get("appid"))
    if app_id is None:
        raise ValueError(f"game entry without appid: {raw!r}")
    return LibraryItem(
        app_id=app_id,
        name=as_str(raw.get("name")) or f"App {app_id}",
        playtime_minutes=as_non_negative_int(raw.get("playtime_forever")) or 0,
        playtime_recent_minutes=as_non_negative_int(raw.get("playtime_2weeks")),
        icon_url=build_media_url(app_id, raw.get("img_icon_url")),
        logo_url=build_media_url(app_id, raw.get("img_logo_url")),
    )


def normalize_owned_games(raw: dict[str, Any]) -> NormalizedLibrary:
    response = raw.get("response") if isinstance(raw, dict) else None
    if not isinstance(response, dict):
        response = {}
    games = get_list_of_dicts(response.get("games"))
    items = [normalize_game(g) for g in games]
    count = as_int(response.get("game_count"))
    return NormalizedLibrary(items=items, count=len(items) if count is None else count)


def normalize_profile(raw: dict[str, Any]) -> SteamProfile:
    return SteamProfile(
        steam_id=as_str(raw.get("steamid")),
        persona_name=as_str(raw.get("personaname")),
        profile_url=as_str(raw.get("profileurl")),
        avatar=as_str(raw.get("avatar")),
        avatar_medium=as_str(raw.get("avatarmedium")),
        avatar_full=as_str(raw.get("avatarfull")),
        persona_state=as_int(raw.get("personastate")) or 0,
        real_name=as_str(raw.get("realname")) or None,
        country_code=as_str(raw.get("loccountrycode")) or None,
        time_created=as_int(raw.get("timecreated")),
    )


def apply_metadata(items: Iterable[LibraryItem], records: Iterable[MetadataRecord]) -> list[LibraryItem]:
    """
    Return new items with genres/platforms/year/cover merged in from matching records.

    Items without a record are returned unchanged; existing values are kept when the record
    has nothing for a field.
    """
    by_id = {r.app_id: r for r in records}
    out: list[LibraryItem] = []
    for item in items:
        rec = by_id.get(item.app_id)
        if rec is None:
            out.append(item)
            continue
        out.append(
            dataclasses.replace(
                item,
                genres=list(rec.genres),
                platforms=list(rec.platforms) if rec.platforms is not None else item.platforms,
                release_year=rec.year if rec.year is not None else item.release_year,
                cover_url=rec.cover_url or item.cover_url,
            )
        )
    return out
