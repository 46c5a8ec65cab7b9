from __future__ import annotations

STEAM_ID = "76561197960287930"


def _resp(status: int, payload):
    class Resp:
        status_code = status
        headers: dict[str, str] = {}

        def raise_for_status(self):
            return None

        def json(self):
            if payload is None:
                raise ValueError("no JSON")
            return payload

    return Resp()


def test_remote_workflow_round_trip(monkeypatch):
    from steam_library_browser.clients.library_api_client import LibraryAPIClient
    from steam_library_browser.pipelines.library_workflow import LibraryWorkflow, WorkflowState

    bodies: list[tuple[str, dict]] = []

    def fake_post(_self, url, headers=None, data=None, json=None, params=None, timeout=None):
        bodies.append((url, json))
        if url.endswith("/api/resolve-identity"):
            return _resp(200, {"success": True, "canonicalId": STEAM_ID})
        if url.endswith("/api/fetch-library"):
            return _resp(
                200,
                {
                    "success": True,
                    "count": 1,
                    "items": [{"itemId": 440, "name": "TF2", "playtimeTotalMinutes": 7}],
                    "identity": {"canonicalId": STEAM_ID, "displayName": "Me"},
                },
            )
        if url.endswith("/api/fetch-metadata"):
            return _resp(200, {"success": True, "data": [{"itemId": 440, "name": "TF2", "genres": ["Shooter"]}]})
        raise AssertionError(url)

    monkeypatch.setattr("requests.sessions.Session.post", fake_post)

    remote = LibraryAPIClient("http://localhost:3001/")
    wf = LibraryWorkflow(remote, remote, enrich=True)
    assert wf.fetch_library("rabscuttle") == WorkflowState.SUCCEEDED
    assert wf.profile.persona_name == "Me"
    assert wf.items[0].playtime_minutes == 7
    assert wf.items[0].genres == ["Shooter"]
    assert bodies[0] == ("http://localhost:3001/api/resolve-identity", {"name": "rabscuttle"})
    assert bodies[1] == ("http://localhost:3001/api/fetch-library", {"canonicalId": STEAM_ID})
    assert bodies[2] == ("http://localhost:3001/api/fetch-metadata", {"itemIds": [440]})


def test_remote_error_codes_are_passed_through(monkeypatch):
    from steam_library_browser.clients.library_api_client import LibraryAPIClient
    from steam_library_browser.errors import ErrorCode

    responses = iter(
        [
            _resp(404, {"success": False, "error": "VANITY_NOT_FOUND"}),
            _resp(200, {"success": False, "error": "PROFILE_PRIVATE"}),
            _resp(429, None),
            _resp(500, {"success": False, "error": "something new"}),
        ]
    )

    def fake_post(_self, url, headers=None, data=None, json=None, params=None, timeout=None):
        return next(responses)

    monkeypatch.setattr("requests.sessions.Session.post", fake_post)

    remote = LibraryAPIClient("http://api")
    assert remote.resolve_identity("nobody").error == ErrorCode.VANITY_NOT_FOUND
    assert remote.fetch_library(STEAM_ID).error == ErrorCode.PROFILE_PRIVATE
    assert remote.fetch_library(STEAM_ID).error == ErrorCode.RATE_LIMITED
    assert remote.resolve_identity("x1").error == ErrorCode.STEAM_API_ERROR


def test_unreachable_server_is_steam_api_error(monkeypatch):
    import requests

    from steam_library_browser.clients.library_api_client import LibraryAPIClient
    from steam_library_browser.errors import ErrorCode

    def fake_post(_self, url, **kwargs):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr("requests.sessions.Session.post", fake_post)

    remote = LibraryAPIClient("http://api")
    assert remote.fetch_library(STEAM_ID).error == ErrorCode.STEAM_API_ERROR
    assert remote.ensure_metadata([1]).failed_batches == 1
