"""Cache store library — atomic per-source file cache with staleness checks.

Public API:
    - FileCacheStore: get / get_entry / put / is_stale
    - CacheEntry: Stored payload plus fingerprint
    - RemoteFingerprint: Remote size/date used for change detection
"""

from election_tally.lib.cache.store import FileCacheStore, format_cache_key
from election_tally.lib.cache.types import CacheEntry, RemoteFingerprint

__all__ = [
    "CacheEntry",
    "FileCacheStore",
    "RemoteFingerprint",
    "format_cache_key",
]
