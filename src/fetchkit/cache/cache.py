"""Disk-backed key/value cache for response bodies.

Uses :mod:`diskcache` to persist entries under ``<cache_dir>/store``. The
store is a single flat namespace of string keys with no TTL, no size bound
and no eviction; entries live until they are deleted or the cache is
cleared.

Values are kept as text. :meth:`ResponseCache.put` therefore only accepts
bytes that decode as UTF-8, and :meth:`ResponseCache.get` returns the
UTF-8 encoding of the stored text, which round-trips any such input exactly.
Other byte sequences are skipped (``put`` returns ``False``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import diskcache

logger = logging.getLogger(__name__)


class ResponseCache:
    """Persistent string-keyed store for response bodies.

    :mod:`diskcache` is safe to use from several threads and processes at
    once, so instances can be shared freely.

    Args:
        cache_dir: Root directory for the cache. A ``store/``
            subdirectory is created inside it.

    Example::

        from fetchkit.cache import ResponseCache

        cache = ResponseCache("/tmp/fetchkit-cache")
        cache.put("profile", b'{"username": "quan"}')
        cache.get("profile")  # b'{"username": "quan"}'
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._cache_dir = Path(cache_dir)
        self._cache = diskcache.Cache(str(self._cache_dir / "store"))

    @property
    def directory(self) -> Path:
        """Directory holding the underlying store."""
        return self._cache_dir / "store"

    def put(self, key: str, data: bytes) -> bool:
        """Store *data* under *key*, replacing any previous entry.

        Args:
            key: Cache key.
            data: Bytes to store. Must be valid UTF-8.

        Returns:
            ``True`` if the entry was stored, ``False`` if *data* is not
            valid UTF-8 and was skipped.
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping cache entry %r: value is not UTF-8 text", key)
            return False
        self._cache.set(key, text)
        logger.debug("Cached %r (%d bytes)", key, len(data))
        return True

    def get(self, key: str) -> Optional[bytes]:
        """Return the bytes stored under *key*, or ``None`` on a miss."""
        text = self._cache.get(key)
        if text is None:
            return None
        return text.encode("utf-8")

    def delete(self, key: str) -> bool:
        """Remove *key*. Returns ``True`` if an entry was removed."""
        return bool(self._cache.delete(key))

    def clear(self) -> None:
        """Remove all entries from the cache."""
        self._cache.clear()

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)


# ------------------------------------------------------------------ #
# Process-wide cache instance
# ------------------------------------------------------------------ #

_cache: Optional[ResponseCache] = None


def get_cache() -> ResponseCache:
    """Return the process-wide cache, creating it under the XDG cache directory."""
    global _cache
    if _cache is None:
        from fetchkit.config import get_cache_dir

        _cache = ResponseCache(get_cache_dir())
    return _cache


def set_cache(cache: ResponseCache) -> None:
    """Install *cache* as the process-wide instance."""
    global _cache
    _cache = cache


def reset_cache() -> None:
    """Close and drop the process-wide instance. Primarily useful in test suites."""
    global _cache
    if _cache is not None:
        _cache.close()
    _cache = None
