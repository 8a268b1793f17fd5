"""Run-scoped caching of repository metadata."""

import logging
from threading import Lock
from typing import Dict, Optional

_NOT_FOUND = object()


def normalize_key(identifier) -> str:
    return str(identifier).strip().lower()


class RepositoryCache:
    """In-memory repository metadata keyed by normalized identifier.

    Lives for a single run and is never written to disk. Failed lookups are
    remembered as "not found" so later lookups for the same key skip the API.
    """

    def __init__(self, name: str = 'repository'):
        self.name = name
        self._entries: Dict[str, object] = {}
        self._lock = Lock()

    def get(self, identifier) -> Optional[Dict]:
        """Get cached metadata, or None when absent or marked not found."""
        with self._lock:
            value = self._entries.get(normalize_key(identifier))
        if value is _NOT_FOUND:
            return None
        return value

    def put(self, identifier, data: Dict):
        with self._lock:
            self._entries[normalize_key(identifier)] = data

    def mark_not_found(self, identifier):
        logging.debug(f"Caching {self.name} {identifier} as not found")
        with self._lock:
            self._entries[normalize_key(identifier)] = _NOT_FOUND

    def discard(self, identifier):
        with self._lock:
            self._entries.pop(normalize_key(identifier), None)

    def __contains__(self, identifier) -> bool:
        """True for cached metadata and for not-found markers."""
        with self._lock:
            return normalize_key(identifier) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
