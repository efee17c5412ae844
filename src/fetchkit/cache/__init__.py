"""Disk-based key/value caching for fetchkit.

This package provides :class:`ResponseCache`, a flat string-keyed store
persisted with :mod:`diskcache`, and a lazily created process-wide instance
(:func:`get_cache`). The cache is independent of the request pipeline;
callers decide what to store. The ``fetchkit request --cache-key`` command
uses it to keep the last good response.
"""

from fetchkit.cache.cache import ResponseCache, get_cache, reset_cache, set_cache

__all__ = ["ResponseCache", "get_cache", "reset_cache", "set_cache"]
