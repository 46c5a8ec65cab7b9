from __future__ import annotations

STEAM_ID = "76561197960287930"


class FakeService:
    configured = True

    def __init__(self, resolve=None, library=None):
        self.resolve = resolve
        self.library = library
        self.calls: list[str] = []

    def resolve_identity(self, name):
        self.calls.append(name)
        return self.resolve

    def fetch_library(self, steam_id):
        self.calls.append(steam_id)
        return self.library


def _client(service, fetcher=None):
    from steam_library_browser.api import create_app

    app = create_app(service, fetcher)
    app.testing = True
    return app.test_client()


def test_health():
    client = _client(FakeService())
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.get_json() == {"status": "ok"}


def test_non_post_is_405_with_steam_api_error():
    client = _client(FakeService())
    r = client.get("/api/resolve-identity")
    assert r.status_code == 405
    assert r.get_json() == {"success": False, "error": "STEAM_API_ERROR"}


def test_resolve_identity_statuses():
    from steam_library_browser.errors import ErrorCode
    from steam_library_browser.models import ResolveResult

    service = FakeService(resolve=ResolveResult(steam_id=STEAM_ID))
    client = _client(service)

    r = client.post("/api/resolve-identity", json={"name": "rabscuttle"})
    assert r.status_code == 200
    assert r.get_json() == {"success": True, "canonicalId": STEAM_ID}

    r = client.post("/api/resolve-identity", json={"name": "x"})
    assert r.status_code == 400
    assert r.get_json()["error"] == ErrorCode.INVALID_INPUT_FORMAT
    r = client.post("/api/resolve-identity", json={})
    assert r.status_code == 400
    assert service.calls == ["rabscuttle"]

    for code, status in (
        (ErrorCode.VANITY_NOT_FOUND, 404),
        (ErrorCode.STEAM_API_ERROR, 502),
        (ErrorCode.RATE_LIMITED, 429),
    ):
        service.resolve = ResolveResult(error=code)
        r = client.post("/api/resolve-identity", json={"name": "someone"})
        assert r.status_code == status
        assert r.get_json() == {"success": False, "error": code}


def test_missing_api_key_is_500():
    service = FakeService()
    service.configured = False
    client = _client(service)
    r = client.post("/api/fetch-library", json={"canonicalId": STEAM_ID})
    assert r.status_code == 500
    assert r.get_json() == {"success": False, "error": "STEAM_API_ERROR"}
    assert service.calls == []


def test_fetch_library_success_and_soft_failures():
    from steam_library_browser.errors import ErrorCode
    from steam_library_browser.models import LibraryItem, LibraryResult, SteamProfile

    profile = SteamProfile(
        steam_id=STEAM_ID,
        persona_name="Me",
        profile_url="u",
        avatar="s",
        avatar_medium="m",
        avatar_full="f",
    )
    service = FakeService(
        library=LibraryResult(items=[LibraryItem(app_id=440, name="TF2")], count=1, profile=profile)
    )
    client = _client(service)

    r = client.post("/api/fetch-library", json={"canonicalId": STEAM_ID})
    assert r.status_code == 200
    body = r.get_json()
    assert body["success"] is True
    assert body["count"] == 1
    assert body["items"][0]["itemId"] == 440
    assert body["identity"]["canonicalId"] == STEAM_ID

    for code, status in (
        (ErrorCode.PROFILE_PRIVATE, 200),
        (ErrorCode.EMPTY_LIBRARY, 200),
        (ErrorCode.STEAM_API_ERROR, 502),
    ):
        service.library = LibraryResult(error=code)
        r = client.post("/api/fetch-library", json={"canonicalId": STEAM_ID})
        assert r.status_code == status
        assert r.get_json() == {"success": False, "error": code}

    r = client.post("/api/fetch-library", json={"canonicalId": "123"})
    assert r.status_code == 400


def test_fetch_metadata():
    from steam_library_browser.models import MetadataRecord, MetadataResult

    class FakeFetcher:
        def __init__(self):
            self.calls: list[list[int]] = []
            self.fail = False

        def ensure_metadata(self, app_ids):
            if self.fail:
                raise RuntimeError("boom")
            self.calls.append(list(app_ids))
            return MetadataResult(records=[MetadataRecord(app_id=1, name="One", genres=["RPG"], year=2000)])

    fetcher = FakeFetcher()
    client = _client(FakeService(), fetcher)

    r = client.post("/api/fetch-metadata", json={"itemIds": [1, 1, 2]})
    assert r.status_code == 200
    assert r.get_json() == {
        "success": True,
        "data": [{"itemId": 1, "name": "One", "genres": ["RPG"], "releaseYear": 2000}],
    }
    assert fetcher.calls == [[1, 2]]

    r = client.post("/api/fetch-metadata", json={"itemIds": "1,2"})
    assert r.status_code == 400
    assert r.get_json() == {"success": False, "error": "Invalid input"}

    fetcher.fail = True
    r = client.post("/api/fetch-metadata", json={"itemIds": [1]})
    assert r.status_code == 500
    assert r.get_json()["success"] is False
