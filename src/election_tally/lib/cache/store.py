"""Per-source-kind file cache with change detection.

Entries live at ``{cache_dir}/{source_kind}/{formatted_key}.json`` and
hold the raw payload together with the remote fingerprint observed when
it was fetched. Writes go to a uniquely named ``.part`` file in the same
directory and are moved into place with ``os.replace``, so a concurrent
reader sees either the previous complete entry or the new one.
"""

import hashlib
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os
from loguru import logger
from pydantic import ValidationError

from election_tally.lib.cache.types import CacheEntry, RemoteFingerprint
from election_tally.lib.identity.normalizer import make_id

_MAX_KEY_PREFIX = 80


def format_cache_key(key: str) -> str:
    """Turn a request key (usually a URL) into a safe, collision-resistant file stem.

    Args:
        key: Request key.

    Returns:
        A readable kebab-case prefix followed by a short SHA256 digest.
    """
    readable = (make_id(key) or "entry")[:_MAX_KEY_PREFIX].strip("-")
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
    return f"{readable}-{digest}"


class FileCacheStore:
    """File-backed cache keyed by (source kind, request key).

    Args:
        cache_dir: Root directory for cache entries.
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._cache_dir = Path(cache_dir)

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def entry_path(self, source_kind: str, key: str) -> Path:
        """Filesystem location of an entry."""
        kind_dir = make_id(source_kind) or "default"
        return self._cache_dir / kind_dir / f"{format_cache_key(key)}.json"

    async def get_entry(self, source_kind: str, key: str) -> CacheEntry | None:
        """Load a full entry (payload and fingerprint).

        An unreadable or corrupt entry is treated as a miss.

        Returns:
            The entry, or None on cache miss.
        """
        path = self.entry_path(source_kind, key)
        if not await aiofiles.os.path.exists(path):
            return None
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                text = await f.read()
            return CacheEntry.model_validate_json(text)
        except (OSError, ValidationError) as exc:
            logger.warning("Ignoring unreadable cache entry {}: {}", path, exc)
            return None

    async def get(self, source_kind: str, key: str) -> tuple[str | None, bool]:
        """Look up a cached payload.

        Returns:
            ``(payload, True)`` on a hit, ``(None, False)`` on a miss.
        """
        entry = await self.get_entry(source_kind, key)
        if entry is None:
            return None, False
        return entry.payload, True

    async def put(
        self,
        source_kind: str,
        key: str,
        payload: str,
        fingerprint: RemoteFingerprint | None = None,
    ) -> CacheEntry:
        """Store a payload atomically.

        Args:
            source_kind: Source namespace (e.g. "results").
            key: Request key.
            payload: Raw fetched text.
            fingerprint: Remote size/date observed with the payload.

        Returns:
            The stored entry.
        """
        entry = CacheEntry(
            source_kind=source_kind,
            key=key,
            payload=payload,
            fingerprint=fingerprint or RemoteFingerprint(),
        )
        path = self.entry_path(source_kind, key)
        await aiofiles.os.makedirs(path.parent, exist_ok=True)

        part_path = path.with_name(f"{path.name}.{uuid.uuid4().hex}.part")
        try:
            async with aiofiles.open(part_path, "w", encoding="utf-8") as f:
                await f.write(entry.model_dump_json())
            await aiofiles.os.replace(part_path, path)
        except OSError:
            if await aiofiles.os.path.exists(part_path):
                await aiofiles.os.remove(part_path)
            raise

        logger.debug("Cached {} entry for {} ({} chars)", source_kind, key, len(payload))
        return entry

    async def is_stale(self, source_kind: str, key: str, probe: RemoteFingerprint) -> bool:
        """Compare a remote probe against the stored fingerprint.

        Args:
            source_kind: Source namespace.
            key: Request key.
            probe: Size/date reported by the remote right now.

        Returns:
            True when there is no entry, the probe carries no comparable
            metadata, or the metadata differs.
        """
        entry = await self.get_entry(source_kind, key)
        if entry is None:
            return True
        return not probe.matches(entry.fingerprint)
