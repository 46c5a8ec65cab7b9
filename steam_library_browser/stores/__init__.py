"""Persistence collaborators: metadata store, key/value storage and the saved-profile store."""

from __future__ import annotations

from .local_storage import JSONFileStorage, KeyValueStorage, MemoryStorage
from .metadata_store import InMemoryMetadataStore, JSONMetadataStore, MetadataStore
from .profile_store import ProfileStore

__all__ = [
    "InMemoryMetadataStore",
    "JSONFileStorage",
    "JSONMetadataStore",
    "KeyValueStorage",
    "MemoryStorage",
    "MetadataStore",
    "ProfileStore",
]
