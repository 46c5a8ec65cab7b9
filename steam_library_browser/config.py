from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestConfig:
    timeout_s: int = 10


@dataclass(frozen=True)
class SteamConfig:
    api_base: str = "https://api.steampowered.com"
    media_base: str = "https://media.steampowered.com/steamcommunity/public/images/apps"
    # Owned games + player summary are fetched together.
    library_workers: int = 2


@dataclass(frozen=True)
class IGDBConfig:
    # IGDB rejects queries with more than 500 results per request.
    batch_size: int = 500
    # `external_game_source` id used by IGDB for Steam.
    steam_source: int = 1
    # Renew the bearer token this many seconds before Twitch says it expires.
    token_expiry_margin_s: float = 60.0
    # Used when the token response carries no usable `expires_in`.
    default_token_ttl_s: float = 3600.0
    cover_size: str = "t_cover_big"


@dataclass(frozen=True)
class StorageConfig:
    consent_key: str = "steamlib_storage_consent"
    profiles_key: str = "steamlib_saved_profiles"
    metadata_cache_name: str = "metadata_cache.json"
    profiles_file_name: str = "profiles.json"


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 3001


@dataclass(frozen=True)
class ViewConfig:
    # RapidFuzz partial_ratio threshold for fuzzy library search.
    fuzzy_min_score: int = 85
    uncategorized_label: str = "Uncategorized"


REQUEST = RequestConfig()
STEAM = SteamConfig()
IGDB = IGDBConfig()
STORAGE = StorageConfig()
SERVER = ServerConfig()
VIEW = ViewConfig()
