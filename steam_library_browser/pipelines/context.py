from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import requests

from ..clients.igdb_client import IGDBClient, TwitchTokenProvider
from ..clients.steam_client import SteamWebClient
from ..stores.local_storage import JSONFileStorage
from ..stores.metadata_store import JSONMetadataStore
from ..stores.profile_store import ProfileStore
from ..utils.utilities import Credentials, ProjectPaths, resolve_credentials
from .library_service import LibraryService
from .metadata_pipeline import MetadataCache, MetadataFetcher


@dataclass(frozen=True)
class AppContext:
    """
    Everything a process needs to serve libraries: paths plus credentials.

    Credentials come from `data/credentials.yaml`, overridden by environment variables.
    """

    paths: ProjectPaths
    credentials_path: Path | None = None

    @staticmethod
    def from_root(root: str | Path, credentials_path: str | Path | None = None) -> AppContext:
        paths = ProjectPaths.from_root(root)
        creds = Path(credentials_path) if credentials_path is not None else paths.credentials
        return AppContext(paths=paths, credentials_path=creds)

    def credentials(self) -> Credentials:
        return resolve_credentials(self.credentials_path)

    def build_library_service(self, credentials: Credentials | None = None) -> LibraryService:
        creds = credentials or self.credentials()
        steam = SteamWebClient(creds.steam_api_key) if creds.has_steam else None
        return LibraryService(steam)

    def build_metadata_fetcher(
        self,
        credentials: Credentials | None = None,
        cache: MetadataCache | None = None,
    ) -> MetadataFetcher:
        creds = credentials or self.credentials()
        igdb: IGDBClient | None = None
        if creds.has_igdb:
            session = requests.Session()
            tokens = TwitchTokenProvider(creds.igdb_client_id, creds.igdb_client_secret, session)
            igdb = IGDBClient(creds.igdb_client_id, tokens, session)
        self.paths.ensure()
        return MetadataFetcher(igdb, JSONMetadataStore(self.paths.metadata_cache), cache)

    def build_profile_store(self) -> ProfileStore:
        return ProfileStore(JSONFileStorage(self.paths.profiles_file))
