"""
In-memory credential store.

Design:
    - The current mapping is a read-only view over a private dict that is
      never mutated after installation.
    - Readers grab the current reference once and read from it without any
      lock; a reference read is atomic, so a lookup sees either the old or
      the new table, never a mix.
    - Writers build the frozen copy first, then take the lock only for the
      reference swap. The lock serializes concurrent replaces.
"""

import threading
from types import MappingProxyType
from typing import Mapping, Optional

from .base import BaseCredentialStore


class CredentialStore(BaseCredentialStore):
    def __init__(self, mapping: Optional[Mapping[str, str]] = None):
        self._lock = threading.Lock()
        self._mapping: Mapping[str, str] = MappingProxyType(dict(mapping or {}))

    def lookup(self, username: str) -> Optional[str]:
        return self._mapping.get(username)

    def replace(self, mapping: Mapping[str, str]) -> None:
        frozen = MappingProxyType(dict(mapping))
        with self._lock:
            self._mapping = frozen

    def snapshot(self) -> Mapping[str, str]:
        """Return the mapping currently in effect (read-only)."""
        return self._mapping

    def __len__(self) -> int:
        return len(self._mapping)
