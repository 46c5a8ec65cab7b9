from __future__ import annotations

import json
import logging

from ..config import STORAGE
from ..models import SavedIdentity
from .local_storage import KeyValueStorage


class ProfileStore:
    """
    Consent-gated list of saved identities.

    Without consent every operation is a no-op returning [] / False, except `set_consent(True)`.
    Storage failures are logged and reported as a False / [] result, never raised.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    def has_consent(self) -> bool:
        try:
            return self.storage.get_item(STORAGE.consent_key) == "true"
        except Exception as e:
            logging.error(f"[PROFILES] Failed to read storage consent: {e}")
            return False

    def set_consent(self, consent: bool) -> bool:
        """Grant or revoke consent; revoking also purges every saved identity."""
        try:
            if consent:
                self.storage.set_item(STORAGE.consent_key, "true")
            else:
                self.storage.remove_item(STORAGE.consent_key)
                self.storage.remove_item(STORAGE.profiles_key)
            return True
        except Exception as e:
            logging.error(f"[PROFILES] Failed to set storage consent: {e}")
            return False

    def _read_profiles(self) -> list[SavedIdentity]:
        stored = self.storage.get_item(STORAGE.profiles_key)
        if not stored:
            return []
        raw = json.loads(stored)
        if not isinstance(raw, list):
            raise ValueError("saved profiles are not a JSON list")
        out: list[SavedIdentity] = []
        for entry in raw:
            identity = SavedIdentity.from_dict(entry) if isinstance(entry, dict) else None
            if identity is not None:
                out.append(identity)
        return out

    def _write_profiles(self, profiles: list[SavedIdentity]) -> None:
        self.storage.set_item(STORAGE.profiles_key, json.dumps([p.to_dict() for p in profiles]))

    def list_profiles(self) -> list[SavedIdentity]:
        if not self.has_consent():
            return []
        try:
            return self._read_profiles()
        except Exception as e:
            logging.error(f"[PROFILES] Failed to get saved profiles: {e}")
            return []

    def get(self, steam_id: str) -> SavedIdentity | None:
        for p in self.list_profiles():
            if p.steam_id == steam_id:
                return p
        return None

    def upsert(self, identity: SavedIdentity) -> bool:
        """Insert or replace by steam_id, keeping the original position of an existing entry."""
        if not self.has_consent():
            return False
        try:
            profiles = self._read_profiles()
            for i, p in enumerate(profiles):
                if p.steam_id == identity.steam_id:
                    profiles[i] = identity
                    break
            else:
                profiles.append(identity)
            self._write_profiles(profiles)
            return True
        except Exception as e:
            logging.error(f"[PROFILES] Failed to save profile {identity.steam_id}: {e}")
            return False

    def remove(self, steam_id: str) -> bool:
        if not self.has_consent():
            return False
        try:
            profiles = self._read_profiles()
            self._write_profiles([p for p in profiles if p.steam_id != steam_id])
            return True
        except Exception as e:
            logging.error(f"[PROFILES] Failed to delete profile {steam_id}: {e}")
            return False

    def clear(self) -> bool:
        if not self.has_consent():
            return False
        try:
            self.storage.remove_item(STORAGE.profiles_key)
            return True
        except Exception as e:
            logging.error(f"[PROFILES] Failed to clear profiles: {e}")
            return False
