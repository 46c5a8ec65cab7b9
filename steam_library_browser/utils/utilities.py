from __future__ import annotations

import json
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
import yaml
from rapidfuzz import fuzz

from ..config import STORAGE

# ----------------------------
# Paths / Folder structure
# ----------------------------


@dataclass(frozen=True)
class ProjectPaths:
    root: Path
    data_cache: Path
    data_logs: Path
    metadata_cache: Path
    profiles_file: Path
    credentials: Path

    @staticmethod
    def from_root(root: str | Path) -> ProjectPaths:
        rootp = Path(root).resolve()
        data = rootp / "data"
        return ProjectPaths(
            root=rootp,
            data_cache=data / "cache",
            data_logs=data / "logs",
            metadata_cache=data / "cache" / STORAGE.metadata_cache_name,
            profiles_file=data / STORAGE.profiles_file_name,
            credentials=data / "credentials.yaml",
        )

    def ensure(self) -> None:
        self.data_cache.mkdir(parents=True, exist_ok=True)
        self.data_logs.mkdir(parents=True, exist_ok=True)


# ----------------------------
# CSV Helpers
# ----------------------------


def write_csv(df: pd.DataFrame, path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)


# ----------------------------
# Name normalization
# ----------------------------

_TRADEMARKS = re.compile(r"[™®©]")
_APOSTROPHES = re.compile(r"[’'`]")
_SEPARATORS = re.compile(r"[^\w\s]|_")
_ROMAN_NUMERALS = {
    numeral: str(i) for i, numeral in enumerate(("i", "ii", "iii", "iv", "v", "vi", "vii", "viii", "ix", "x"), start=1)
}


def normalize_game_name(name: str) -> str:
    """
    Fuzzy-comparison form of a game name: lowercase words without punctuation or trademark
    signs, standalone roman numerals turned into digits ("Witcher III" -> "witcher 3").
    """
    s = _APOSTROPHES.sub("", _TRADEMARKS.sub("", (name or "").lower()))
    words = _SEPARATORS.sub(" ", s).split()
    return " ".join(_ROMAN_NUMERALS.get(w, w) for w in words)


def fold_search_text(text: str) -> str:
    """
    Case-fold text for plain substring search (keeps punctuation and numerals as typed).
    """
    return " ".join(_TRADEMARKS.sub("", text or "").split()).casefold()


def fuzzy_score(query: str, name: str) -> int:
    """
    Partial-match score (0-100) of a search query against a game name.

    Both sides are normalized first so "Witcher 3" scores high against "The Witcher® III".
    """
    nq = normalize_game_name(query)
    nn = normalize_game_name(name)
    if not nq or not nn:
        return 0
    return int(round(fuzz.partial_ratio(nq, nn)))


# ----------------------------
# JSON files
# ----------------------------


def read_json_file(path: str | Path) -> dict[str, Any]:
    """
    Read a JSON object from disk. Missing file -> {}.

    Raises ValueError when the file exists but does not hold a JSON object.
    """
    p = Path(path)
    if not p.exists():
        return {}
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{p.name}: expected a JSON object, got {type(raw).__name__}")
    return raw


def save_json_cache(cache: dict[str, Any], path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_name(f"{p.name}.tmp")
    tmp.write_text(json.dumps(cache, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(p)


def iter_chunks(items: list[Any], chunk_size: int) -> list[list[Any]]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    if not items:
        return []
    return [items[i : i + chunk_size] for i in range(0, len(items), chunk_size)]


# ----------------------------
# Credentials loading
# ----------------------------


def load_credentials(credentials_path: str | Path | None = None) -> dict[str, Any]:
    """
    Parse the credentials YAML (`steam.api_key`, `igdb.client_id`, `igdb.client_secret`).

    Defaults to `data/credentials.yaml` under the current directory. Raises FileNotFoundError
    when the file is missing.
    """
    path = Path(credentials_path) if credentials_path is not None else ProjectPaths.from_root(".").credentials
    if not path.exists():
        raise FileNotFoundError(f"Credentials file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@dataclass(frozen=True)
class Credentials:
    steam_api_key: str = ""
    igdb_client_id: str = ""
    igdb_client_secret: str = ""

    @property
    def has_steam(self) -> bool:
        return bool(self.steam_api_key)

    @property
    def has_igdb(self) -> bool:
        return bool(self.igdb_client_id and self.igdb_client_secret)


def _section(creds: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = creds.get(name)
    return value if isinstance(value, Mapping) else {}


def resolve_credentials(
    credentials_path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Credentials:
    """
    Merge the YAML credentials file with environment overrides.

    A missing file is not an error here: the server still starts and answers with
    `STEAM_API_ERROR` until a key is configured.
    """
    env = os.environ if environ is None else environ
    try:
        creds = load_credentials(credentials_path)
    except FileNotFoundError:
        creds = {}
    if not isinstance(creds, Mapping):
        creds = {}
    steam = _section(creds, "steam")
    igdb = _section(creds, "igdb")

    def pick(env_key: str, section: Mapping[str, Any], key: str) -> str:
        return str(env.get(env_key) or "").strip() or str(section.get(key) or "").strip()

    return Credentials(
        steam_api_key=pick("STEAM_API_KEY", steam, "api_key"),
        igdb_client_id=pick("IGDB_CLIENT_ID", igdb, "client_id"),
        igdb_client_secret=pick("IGDB_CLIENT_SECRET", igdb, "client_secret"),
    )
