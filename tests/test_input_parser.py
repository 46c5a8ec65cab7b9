from __future__ import annotations

import pytest


def test_seventeen_digits_is_direct_steam_id():
    from steam_library_browser.models import InputKind
    from steam_library_browser.parser import needs_vanity_resolution, parse_steam_input

    parsed = parse_steam_input("  76561197960287930 ")
    assert parsed is not None
    assert parsed.kind == InputKind.STEAM_ID
    assert parsed.value == "76561197960287930"
    assert parsed.steam_id == "76561197960287930"
    assert needs_vanity_resolution(parsed) is False


@pytest.mark.parametrize(
    "url",
    [
        "https://steamcommunity.com/profiles/76561197960287930",
        "https://steamcommunity.com/profiles/76561197960287930/",
        "http://www.steamcommunity.com/profiles/76561197960287930/",
    ],
)
def test_profile_url_with_id_yields_embedded_id(url):
    from steam_library_browser.models import InputKind
    from steam_library_browser.parser import parse_steam_input

    parsed = parse_steam_input(url)
    assert parsed is not None
    assert parsed.kind == InputKind.PROFILE_URL
    assert parsed.steam_id == "76561197960287930"


def test_profile_url_with_vanity_needs_resolution():
    from steam_library_browser.models import InputKind
    from steam_library_browser.parser import needs_vanity_resolution, parse_steam_input

    parsed = parse_steam_input("https://steamcommunity.com/id/gabelogannewell/")
    assert parsed is not None
    assert parsed.kind == InputKind.PROFILE_URL
    assert parsed.value == "gabelogannewell"
    assert parsed.steam_id is None
    assert needs_vanity_resolution(parsed) is True


def test_bare_vanity_name():
    from steam_library_browser.models import InputKind
    from steam_library_browser.parser import parse_steam_input

    parsed = parse_steam_input("ab")
    assert parsed is not None
    assert parsed.kind == InputKind.VANITY
    assert parsed.value == "ab"
    assert parsed.steam_id is None


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "a",
        "x" * 33,
        "has space",
        "bad!name",
        "https://steamcommunity.com/profiles/123",
        "https://example.com/id/someone",
        "https://steamcommunity.com/id/a",
        "steamcommunity.com/id/someone",
    ],
)
def test_invalid_inputs(raw):
    from steam_library_browser.parser import parse_steam_input

    assert parse_steam_input(raw) is None


def test_sixteen_and_eighteen_digit_numbers_are_vanity_names():
    from steam_library_browser.models import InputKind
    from steam_library_browser.parser import parse_steam_input

    for raw in ("7656119796028793", "765611979602879300"):
        parsed = parse_steam_input(raw)
        assert parsed is not None
        assert parsed.kind == InputKind.VANITY
        assert parsed.steam_id is None


def test_parsing_is_idempotent_on_normalized_value():
    from steam_library_browser.parser import parse_steam_input

    first = parse_steam_input("https://steamcommunity.com/id/some_player-1")
    assert first is not None
    again = parse_steam_input(f"https://steamcommunity.com/id/{first.value}")
    assert again == first

    direct = parse_steam_input("https://steamcommunity.com/profiles/76561197960287930")
    assert direct is not None
    assert parse_steam_input(direct.value).steam_id == direct.steam_id


def test_validators():
    from steam_library_browser.parser import is_valid_steam_id, is_valid_vanity_name

    assert is_valid_steam_id("76561197960287930")
    assert not is_valid_steam_id(76561197960287930)
    assert not is_valid_steam_id("7656119796028793a")
    assert is_valid_vanity_name("a_b-c")
    assert not is_valid_vanity_name(None)
    assert not is_valid_vanity_name("a")
