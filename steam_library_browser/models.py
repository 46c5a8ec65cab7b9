from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .clients.parse import as_float, as_int, as_str, normalize_str_list


class InputKind:
    STEAM_ID = "steamid64"
    VANITY = "vanity"
    PROFILE_URL = "profile_url"


@dataclass(frozen=True)
class ParsedInput:
    kind: str
    # Either the SteamID64 or the vanity name still needing resolution.
    value: str
    steam_id: str | None = None


# -----------------------------------------------------------------------------
# Library entities
# -----------------------------------------------------------------------------


def _optional_str_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return normalize_str_list(value)


@dataclass(frozen=True)
class LibraryItem:
    app_id: int
    name: str
    playtime_minutes: int = 0
    playtime_recent_minutes: int | None = None
    icon_url: str | None = None
    logo_url: str | None = None
    cover_url: str | None = None
    genres: list[str] | None = None
    platforms: list[str] | None = None
    release_year: int | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "itemId": self.app_id,
            "name": self.name,
            "playtimeTotalMinutes": self.playtime_minutes,
            "playtimeRecentMinutes": self.playtime_recent_minutes,
            "iconUrl": self.icon_url,
            "logoUrl": self.logo_url,
            "coverUrl": self.cover_url,
        }
        if self.genres is not None:
            out["genres"] = list(self.genres)
        if self.platforms is not None:
            out["platforms"] = list(self.platforms)
        if self.release_year is not None:
            out["releaseYear"] = self.release_year
        return out

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> LibraryItem:
        app_id = as_int(raw.get("itemId"))
        if app_id is None:
            raise ValueError(f"library item without itemId: {raw!r}")
        return LibraryItem(
            app_id=app_id,
            name=as_str(raw.get("name")) or f"App {app_id}",
            playtime_minutes=as_int(raw.get("playtimeTotalMinutes")) or 0,
            playtime_recent_minutes=as_int(raw.get("playtimeRecentMinutes")),
            icon_url=as_str(raw.get("iconUrl")) or None,
            logo_url=as_str(raw.get("logoUrl")) or None,
            cover_url=as_str(raw.get("coverUrl")) or None,
            genres=_optional_str_list(raw.get("genres")),
            platforms=_optional_str_list(raw.get("platforms")),
            release_year=as_int(raw.get("releaseYear")),
        )


@dataclass(frozen=True)
class SteamProfile:
    steam_id: str
    persona_name: str
    profile_url: str
    avatar: str
    avatar_medium: str
    avatar_full: str
    # 0 = offline, 1 = online, 2 = busy, ...
    persona_state: int = 0
    real_name: str | None = None
    country_code: str | None = None
    time_created: int | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "canonicalId": self.steam_id,
            "displayName": self.persona_name,
            "profileUrl": self.profile_url,
            "avatarSmall": self.avatar,
            "avatarMedium": self.avatar_medium,
            "avatarLarge": self.avatar_full,
            "onlineState": self.persona_state,
        }
        if self.real_name is not None:
            out["realName"] = self.real_name
        if self.country_code is not None:
            out["countryCode"] = self.country_code
        if self.time_created is not None:
            out["createdAtEpoch"] = self.time_created
        return out

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> SteamProfile:
        return SteamProfile(
            steam_id=as_str(raw.get("canonicalId")),
            persona_name=as_str(raw.get("displayName")),
            profile_url=as_str(raw.get("profileUrl")),
            avatar=as_str(raw.get("avatarSmall")),
            avatar_medium=as_str(raw.get("avatarMedium")),
            avatar_full=as_str(raw.get("avatarLarge")),
            persona_state=as_int(raw.get("onlineState")) or 0,
            real_name=as_str(raw.get("realName")) or None,
            country_code=as_str(raw.get("countryCode")) or None,
            time_created=as_int(raw.get("createdAtEpoch")),
        )


@dataclass(frozen=True)
class MetadataRecord:
    app_id: int
    name: str
    genres: list[str] = field(default_factory=list)
    igdb_id: int | None = None
    year: int | None = None
    platforms: list[str] | None = None
    external_game_source: int | None = None
    rating: float | None = None
    summary: str | None = None
    cover_url: str | None = None
    updated_at: str | None = None

    def to_row(self) -> dict[str, Any]:
        """
        Persistence row (snake_case, keyed by `appid`).
        """
        return {
            "appid": self.app_id,
            "igdb_id": self.igdb_id,
            "name": self.name,
            "genres": list(self.genres),
            "year": self.year,
            "platforms": list(self.platforms) if self.platforms is not None else None,
            "external_game_source": self.external_game_source,
            "rating": self.rating,
            "summary": self.summary,
            "cover_url": self.cover_url,
            "updated_at": self.updated_at,
        }

    @staticmethod
    def from_row(row: dict[str, Any]) -> MetadataRecord | None:
        app_id = as_int(row.get("appid"))
        if app_id is None:
            return None
        return MetadataRecord(
            app_id=app_id,
            name=as_str(row.get("name")),
            genres=normalize_str_list(row.get("genres")),
            igdb_id=as_int(row.get("igdb_id")),
            year=as_int(row.get("year")),
            platforms=_optional_str_list(row.get("platforms")),
            external_game_source=as_int(row.get("external_game_source")),
            rating=as_float(row.get("rating")),
            summary=as_str(row.get("summary")) or None,
            cover_url=as_str(row.get("cover_url")) or None,
            updated_at=as_str(row.get("updated_at")) or None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "itemId": self.app_id,
            "name": self.name,
            "genres": list(self.genres),
        }
        optional = {
            "externalId": self.igdb_id,
            "releaseYear": self.year,
            "platforms": list(self.platforms) if self.platforms is not None else None,
            "sourceTag": self.external_game_source,
            "rating": self.rating,
            "summary": self.summary,
            "coverUrl": self.cover_url,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        return out

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> MetadataRecord | None:
        app_id = as_int(raw.get("itemId"))
        if app_id is None:
            return None
        return MetadataRecord(
            app_id=app_id,
            name=as_str(raw.get("name")),
            genres=normalize_str_list(raw.get("genres")),
            igdb_id=as_int(raw.get("externalId")),
            year=as_int(raw.get("releaseYear")),
            platforms=_optional_str_list(raw.get("platforms")),
            external_game_source=as_int(raw.get("sourceTag")),
            rating=as_float(raw.get("rating")),
            summary=as_str(raw.get("summary")) or None,
            cover_url=as_str(raw.get("coverUrl")) or None,
        )


@dataclass(frozen=True)
class SavedIdentity:
    steam_id: str
    display_name: str | None = None
    vanity_name: str | None = None
    saved_at_ms: int = 0
    avatar_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "steamId64": self.steam_id,
            "displayName": self.display_name,
            "vanityUrl": self.vanity_name,
            "savedAt": self.saved_at_ms,
        }
        if self.avatar_url is not None:
            out["avatarUrl"] = self.avatar_url
        return out

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> SavedIdentity | None:
        steam_id = as_str(raw.get("steamId64"))
        if not steam_id:
            return None
        return SavedIdentity(
            steam_id=steam_id,
            display_name=as_str(raw.get("displayName")) or None,
            vanity_name=as_str(raw.get("vanityUrl")) or None,
            saved_at_ms=as_int(raw.get("savedAt")) or 0,
            avatar_url=as_str(raw.get("avatarUrl")) or None,
        )


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolveResult:
    steam_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.steam_id)


@dataclass(frozen=True)
class LibraryResult:
    items: list[LibraryItem] = field(default_factory=list)
    count: int = 0
    profile: SteamProfile | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class MetadataResult:
    records: list[MetadataRecord] = field(default_factory=list)
    # Store query failure; everything was fetched remotely instead.
    cache_error: str | None = None
    # Store write failure; `records` is still complete.
    persist_error: str | None = None
    failed_batches: int = 0

    def by_app_id(self) -> dict[int, MetadataRecord]:
        return {r.app_id: r for r in self.records}
