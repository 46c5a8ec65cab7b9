from __future__ import annotations

import threading

STEAM_ID = "76561197960287930"

PLAYER = {
    "steamid": STEAM_ID,
    "personaname": "Rabscuttle",
    "profileurl": "https://steamcommunity.com/id/rabscuttle/",
    "avatar": "s.jpg",
    "avatarmedium": "m.jpg",
    "avatarfull": "f.jpg",
    "personastate": 0,
}


class FakeSteam:
    configured = True

    def __init__(self, games=None, player=None, barrier: threading.Barrier | None = None):
        from steam_library_browser.clients.steam_client import SteamResult

        self.games = games if games is not None else SteamResult(
            value={"response": {"game_count": 2, "games": [{"appid": 10, "name": "A"}, {"appid": 20}]}}
        )
        self.player = player if player is not None else SteamResult(value=PLAYER)
        self.barrier = barrier
        self.calls: list[str] = []

    def _wait(self):
        if self.barrier is not None:
            self.barrier.wait()

    def resolve_vanity(self, name):
        from steam_library_browser.clients.steam_client import SteamResult

        self.calls.append(f"vanity:{name}")
        return SteamResult(value=STEAM_ID)

    def get_owned_games(self, steam_id):
        self.calls.append("games")
        self._wait()
        return self.games

    def get_player_summary(self, steam_id):
        self.calls.append("profile")
        self._wait()
        return self.player


def test_fetch_library_success():
    from steam_library_browser.pipelines.library_service import LibraryService

    res = LibraryService(FakeSteam()).fetch_library(STEAM_ID)
    assert res.ok
    assert res.count == 2
    assert [i.app_id for i in res.items] == [10, 20]
    assert res.items[1].name == "App 20"
    assert res.profile is not None and res.profile.persona_name == "Rabscuttle"


def test_owned_games_and_profile_requests_run_concurrently():
    from steam_library_browser.pipelines.library_service import LibraryService

    # Both calls block until the other has started; sequential execution would time out.
    barrier = threading.Barrier(2, timeout=5)
    res = LibraryService(FakeSteam(barrier=barrier)).fetch_library(STEAM_ID)
    assert res.ok


def test_missing_games_is_private_and_empty_list_is_empty_library():
    from steam_library_browser.clients.steam_client import SteamResult
    from steam_library_browser.errors import ErrorCode
    from steam_library_browser.pipelines.library_service import LibraryService

    private = LibraryService(FakeSteam(games=SteamResult(value={"response": {}}))).fetch_library(STEAM_ID)
    assert private.error == ErrorCode.PROFILE_PRIVATE

    empty = LibraryService(
        FakeSteam(games=SteamResult(value={"response": {"game_count": 0, "games": []}}))
    ).fetch_library(STEAM_ID)
    assert empty.error == ErrorCode.EMPTY_LIBRARY


def test_partial_failure_is_total_failure():
    from steam_library_browser.clients.steam_client import SteamResult
    from steam_library_browser.errors import ErrorCode
    from steam_library_browser.pipelines.library_service import LibraryService

    res = LibraryService(
        FakeSteam(player=SteamResult(error=ErrorCode.STEAM_API_ERROR))
    ).fetch_library(STEAM_ID)
    assert res.error == ErrorCode.STEAM_API_ERROR
    assert res.items == []
    assert res.profile is None

    limited = LibraryService(
        FakeSteam(games=SteamResult(error=ErrorCode.RATE_LIMITED))
    ).fetch_library(STEAM_ID)
    assert limited.error == ErrorCode.RATE_LIMITED


def test_input_validation_and_missing_key():
    from steam_library_browser.errors import ErrorCode
    from steam_library_browser.pipelines.library_service import LibraryService

    steam = FakeSteam()
    service = LibraryService(steam)
    assert service.fetch_library("123").error == ErrorCode.INVALID_INPUT_FORMAT
    assert service.resolve_identity("a").error == ErrorCode.INVALID_INPUT_FORMAT
    assert steam.calls == []

    unconfigured = LibraryService(None)
    assert unconfigured.configured is False
    assert unconfigured.resolve_identity("someone").error == ErrorCode.STEAM_API_ERROR
    assert unconfigured.fetch_library(STEAM_ID).error == ErrorCode.STEAM_API_ERROR


def test_resolve_identity_delegates_to_steam():
    from steam_library_browser.pipelines.library_service import LibraryService

    steam = FakeSteam()
    res = LibraryService(steam).resolve_identity("rabscuttle")
    assert res.ok and res.steam_id == STEAM_ID
    assert steam.calls == ["vanity:rabscuttle"]


def test_fetch_library_over_http(monkeypatch):
    from steam_library_browser.clients.steam_client import SteamWebClient
    from steam_library_browser.pipelines.library_service import LibraryService

    class Resp:
        status_code = 200
        headers: dict[str, str] = {}

        def __init__(self, payload):
            self._payload = payload

        def raise_for_status(self):
            return None

        def json(self):
            return self._payload

    def fake_get(_self, url, params=None, headers=None, timeout=None):
        if "GetOwnedGames" in url:
            assert params["include_appinfo"] == 1
            assert params["include_played_free_games"] == 1
            return Resp({"response": {"game_count": 1, "games": [{"appid": 440, "name": "TF2"}]}})
        if "GetPlayerSummaries" in url:
            return Resp({"response": {"players": [PLAYER]}})
        raise AssertionError(f"unexpected url {url}")

    monkeypatch.setattr("requests.sessions.Session.get", fake_get)

    res = LibraryService(SteamWebClient("k")).fetch_library(STEAM_ID)
    assert res.ok
    assert [i.name for i in res.items] == ["TF2"]
    assert res.profile.steam_id == STEAM_ID
