"""
Credential stores for the local auth backend.

The local backend runs without a hosted user database: accounts, the
signed-in user and workspace invitations live in a small key/value store
that is injected into ``LocalAuthProvider``. Two implementations:

    - MemoryCredentialStore:   process-local dict (tests, ephemeral runs)
    - JsonFileCredentialStore: one JSON document on disk, rewritten atomically

Stores never raise on a missing or unreadable document; they behave as
empty so sign-in can still seed the defaults.
"""

import copy
import json
import logging
import os
import tempfile
import threading

logger = logging.getLogger(__name__)


class CredentialStore:
    """Key/value contract used by LocalAuthProvider."""

    def read(self, key: str, default=None):
        raise NotImplementedError

    def write(self, key: str, value) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryCredentialStore(CredentialStore):
    def __init__(self, initial: dict | None = None):
        self._data = copy.deepcopy(initial) if initial else {}

    def read(self, key, default=None):
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def write(self, key, value):
        self._data[key] = copy.deepcopy(value)

    def delete(self, key):
        self._data.pop(key, None)


class JsonFileCredentialStore(CredentialStore):
    """All keys in one JSON object at ``path``."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> dict:
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Credential store %s unreadable (%s), treating as empty", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".credentials-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            logger.exception("Failed to write credential store %s", self.path)
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def read(self, key, default=None):
        with self._lock:
            return self._load().get(key, default)

    def write(self, key, value):
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key):
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)
