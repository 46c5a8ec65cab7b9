"""
Classify user input (SteamID64, vanity name or community profile URL) into a ParsedInput.

Pure functions: no network, no configuration.
"""

from __future__ import annotations

import re

from .models import InputKind, ParsedInput

_STEAM_ID_RE = re.compile(r"[0-9]{17}")
_VANITY_NAME_RE = re.compile(r"[A-Za-z0-9_-]{2,32}")
_PROFILE_ID_URL_RE = re.compile(r"https?://(?:www\.)?steamcommunity\.com/profiles/(?P<id>[0-9]{17})/?")
_PROFILE_VANITY_URL_RE = re.compile(
    r"https?://(?:www\.)?steamcommunity\.com/id/(?P<name>[A-Za-z0-9_-]{2,32})/?"
)


def is_valid_steam_id(value: object) -> bool:
    return isinstance(value, str) and _STEAM_ID_RE.fullmatch(value) is not None


def is_valid_vanity_name(value: object) -> bool:
    return isinstance(value, str) and _VANITY_NAME_RE.fullmatch(value) is not None


def parse_steam_input(raw: str | None) -> ParsedInput | None:
    """
    Parse raw input; first matching rule wins:

    1. 17 digits -> SteamID64
    2. steamcommunity.com/profiles/<17 digits>[/] -> profile URL with a known id
    3. steamcommunity.com/id/<name>[/] -> profile URL that still needs vanity resolution
    4. 2-32 chars of [A-Za-z0-9_-] -> bare vanity name

    Returns None for anything else (including blank input).
    """
    s = (raw or "").strip()
    if not s:
        return None

    if is_valid_steam_id(s):
        return ParsedInput(kind=InputKind.STEAM_ID, value=s, steam_id=s)

    m = _PROFILE_ID_URL_RE.fullmatch(s)
    if m:
        steam_id = m.group("id")
        return ParsedInput(kind=InputKind.PROFILE_URL, value=steam_id, steam_id=steam_id)

    m = _PROFILE_VANITY_URL_RE.fullmatch(s)
    if m:
        return ParsedInput(kind=InputKind.PROFILE_URL, value=m.group("name"))

    if is_valid_vanity_name(s):
        return ParsedInput(kind=InputKind.VANITY, value=s)

    return None


def needs_vanity_resolution(parsed: ParsedInput) -> bool:
    return parsed.steam_id is None
