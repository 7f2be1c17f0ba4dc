"""Common fetch/cache/fallback machinery shared by all source fetchers.

Each concrete fetcher supplies a ``source_kind`` namespace and a
``parse`` method; the base class owns cache lookup, change detection,
live retrieval, and use-cache-on-failure fallback.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel

from election_tally.lib.cache import FileCacheStore, RemoteFingerprint
from election_tally.lib.identity import parse_int
from election_tally.lib.sources.records import ParseOutcome, RowError

T = TypeVar("T")


class FetchError(Exception):
    """Raised when a remote source is unavailable or returns a bad payload."""

    def __init__(self, message: str, status_code: int | None = None, source_kind: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.source_kind = source_kind


class SourceRequest(BaseModel):
    """Where to fetch one payload from.

    Attributes:
        url: Remote URL.
        key: Cache key; defaults to the URL.
        encoding: Text encoding override for this payload.
    """

    url: str
    key: str | None = None
    encoding: str | None = None

    @property
    def cache_key(self) -> str:
        return self.key or self.url


@dataclass(frozen=True)
class FetchPolicy:
    """How a fetch may use the cache.

    Attributes:
        use_cache: Serve an existing cache entry instead of fetching live.
        check_for_change: With ``use_cache``, only serve the entry if a
            size/date probe shows the remote is unchanged.
        use_cache_on_fail: Serve any existing entry (fresh or not) when the
            live fetch fails.
    """

    use_cache: bool = False
    check_for_change: bool = True
    use_cache_on_fail: bool = True


@dataclass
class FetchResult:
    """A retrieved payload and where it came from."""

    source_kind: str
    key: str
    payload: str
    from_cache: bool = False
    degraded: bool = False
    fingerprint: RemoteFingerprint | None = None
    error: str | None = None


@dataclass
class SourceBatch(Generic[T]):
    """Parsed records for one request, with fetch provenance."""

    fetch: FetchResult
    records: list[T] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    @property
    def dropped(self) -> int:
        return len(self.errors)

    @property
    def degraded(self) -> bool:
        return self.fetch.degraded


def _fingerprint_from(response: httpx.Response, fallback_size: int | None = None) -> RemoteFingerprint:
    size = parse_int(response.headers.get("content-length"))
    return RemoteFingerprint(
        size=size if size is not None else fallback_size,
        last_modified=response.headers.get("last-modified"),
    )


class SourceFetcher(ABC, Generic[T]):
    """Abstract cached fetcher for one kind of source.

    Args:
        cache: Cache store shared by all fetchers.
        client: Optional shared HTTP client; a short-lived client is
            created per request when omitted.
        timeout: HTTP timeout in seconds.
        encoding: Default payload encoding.
    """

    def __init__(
        self,
        cache: FileCacheStore,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        encoding: str = "utf-8",
    ) -> None:
        self._cache = cache
        self._client = client
        self._timeout = timeout
        self._encoding = encoding

    @property
    @abstractmethod
    def source_kind(self) -> str:
        """Cache namespace for this fetcher (e.g. 'results')."""

    @abstractmethod
    def parse(self, payload: str, request: SourceRequest) -> ParseOutcome[T]:
        """Parse a raw payload into typed records, dropping bad rows.

        Args:
            payload: Decoded payload text.
            request: The request the payload was fetched for.

        Returns:
            Parsed records and dropped-row errors.
        """

    async def fetch(self, request: SourceRequest, policy: FetchPolicy) -> SourceBatch[T]:
        """Fetch (live or cached) and parse one request.

        Raises:
            FetchError: If the live fetch fails and no usable cache entry exists.
        """
        result = await self.fetch_payload(request, policy)
        outcome = self.parse(result.payload, request)
        if outcome.dropped:
            logger.warning(
                "Dropped {} malformed {} row(s) from {}",
                outcome.dropped,
                self.source_kind,
                request.cache_key,
            )
        logger.info(
            "Parsed {} {} record(s) from {}{}",
            len(outcome.records),
            self.source_kind,
            request.cache_key,
            " (degraded, served from cache)" if result.degraded else "",
        )
        return SourceBatch(fetch=result, records=outcome.records, errors=outcome.errors)

    async def fetch_payload(self, request: SourceRequest, policy: FetchPolicy) -> FetchResult:
        """Return the raw payload for a request according to the cache policy.

        Raises:
            FetchError: If the live fetch fails and no usable cache entry exists.
        """
        key = request.cache_key

        if policy.use_cache:
            entry = await self._cache.get_entry(self.source_kind, key)
            if entry is not None:
                if not policy.check_for_change:
                    logger.debug("Using cached {} for {}", self.source_kind, key)
                    return FetchResult(self.source_kind, key, entry.payload, from_cache=True, fingerprint=entry.fingerprint)
                probe = await self._probe(request)
                if probe is not None and not await self._cache.is_stale(self.source_kind, key, probe):
                    logger.debug("Remote unchanged; using cached {} for {}", self.source_kind, key)
                    return FetchResult(self.source_kind, key, entry.payload, from_cache=True, fingerprint=entry.fingerprint)

        try:
            payload, fingerprint = await self._retrieve(request)
        except FetchError as exc:
            exc.source_kind = self.source_kind
            if policy.use_cache_on_fail:
                entry = await self._cache.get_entry(self.source_kind, key)
                if entry is not None:
                    logger.warning("Live fetch of {} failed ({}); serving cached copy", key, exc)
                    return FetchResult(
                        self.source_kind,
                        key,
                        entry.payload,
                        from_cache=True,
                        degraded=True,
                        fingerprint=entry.fingerprint,
                        error=str(exc),
                    )
            raise

        await self._cache.put(self.source_kind, key, payload, fingerprint)
        return FetchResult(self.source_kind, key, payload, fingerprint=fingerprint)

    async def _probe(self, request: SourceRequest) -> RemoteFingerprint | None:
        """Fetch only the remote size/date. None when the probe fails."""
        try:
            response = await self._send("HEAD", request.url)
        except FetchError as exc:
            logger.info("Change probe for {} failed ({}); refetching", request.url, exc)
            return None
        return _fingerprint_from(response)

    async def _retrieve(self, request: SourceRequest) -> tuple[str, RemoteFingerprint]:
        """Fetch and decode a full payload.

        A body shorter or longer than its Content-Length, or one that does
        not decode, is a fetch failure.
        """
        response = await self._send("GET", request.url)

        expected = parse_int(response.headers.get("content-length"))
        if expected is not None and expected != response.num_bytes_downloaded:
            msg = (
                f"Incomplete download from {request.url}: "
                f"expected {expected} bytes, got {response.num_bytes_downloaded}"
            )
            logger.error(msg)
            raise FetchError(msg, status_code=response.status_code)

        encoding = request.encoding or self._encoding
        try:
            text = response.content.decode(encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            msg = f"Payload from {request.url} is not valid {encoding}"
            logger.error(msg)
            raise FetchError(msg, status_code=response.status_code) from exc

        return text, _fingerprint_from(response, fallback_size=len(response.content))

    async def _send(self, method: str, url: str) -> httpx.Response:
        try:
            if self._client is not None:
                return await self._request(self._client, method, url)
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                return await self._request(client, method, url)
        except httpx.TimeoutException as exc:
            msg = f"Timeout fetching {self.source_kind} from {url}"
            logger.error(msg)
            raise FetchError(msg) from exc
        except httpx.HTTPStatusError as exc:
            msg = f"HTTP {exc.response.status_code} fetching {self.source_kind} from {url}"
            logger.error(msg)
            raise FetchError(msg, status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            msg = f"HTTP error fetching {self.source_kind} from {url}: {exc}"
            logger.error(msg)
            raise FetchError(msg) from exc

    @staticmethod
    async def _request(client: httpx.AsyncClient, method: str, url: str) -> httpx.Response:
        logger.debug("{} {}", method, url)
        response = await client.request(method, url)
        response.raise_for_status()
        return response
