"""In-memory cache of per-file validation results."""

from __future__ import annotations

import hashlib
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from archgate.engine.models import ValidationResult

# Cache key: (resolved file path, sha256 of content)
CacheKey = tuple[str, str]


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class ResultCache:
    """Process-lifetime cache keyed by path and content hash.

    Any content change produces a new key, so entries never go stale
    for the file they describe.  The engine clears the cache when its
    rules change.
    """

    def __init__(self) -> None:
        self._store: dict[CacheKey, ValidationResult] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, file_path: str, digest: str) -> ValidationResult | None:
        """Return the cached result, or None on a miss."""
        with self._lock:
            result = self._store.get((file_path, digest))
            if result is None:
                self._misses += 1
                return None
            self._hits += 1
            return result

    def put(self, file_path: str, digest: str, result: ValidationResult) -> None:
        with self._lock:
            # Older digests of the same path can never hit again.
            stale = [k for k in self._store if k[0] == file_path and k[1] != digest]
            for k in stale:
                del self._store[k]
            self._store[(file_path, digest)] = result

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def stats(self) -> dict[str, int]:
        """Return cache statistics."""
        with self._lock:
            return {"entries": len(self._store), "hits": self._hits, "misses": self._misses}
