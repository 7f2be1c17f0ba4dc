"""Independent count sources for verification.

Provides an ``IndependentCountSource`` Protocol and an ``HttpCountSource``
implementation that reads a JSON count document:

    {"contests": {"<contest id>": {"candidates": {"<candidate id>": 123},
                                   "winners": ["<candidate id>"]}}}
"""

from typing import Protocol

import httpx
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from election_tally.lib.sources.base import FetchError
from election_tally.lib.verifier.comparator import IndependentContestCount


class IndependentCountSource(Protocol):
    """A second, independently tabulated count of the same contests."""

    async def fetch_counts(self, contest_ids: list[str]) -> dict[str, IndependentContestCount] | None:
        """Return independent counts keyed by contest ID.

        Args:
            contest_ids: Contests being verified. Sources may return more
                or fewer contests than asked for.

        Returns:
            Counts by contest ID, or None when the source has no data.

        Raises:
            FetchError: If the source is unreachable or its document is invalid.
        """
        ...


class _ContestCountDocument(BaseModel):
    candidates: dict[str, int] = Field(default_factory=dict)
    winners: list[str] | None = None


class CountDocument(BaseModel):
    """Wire format of an independent count document."""

    contests: dict[str, _ContestCountDocument] = Field(default_factory=dict)


class HttpCountSource:
    """Reads independent counts from a JSON document over HTTP.

    Args:
        url: Document URL.
        client: Optional shared HTTP client.
        timeout: HTTP timeout in seconds when no client is given.
    """

    def __init__(self, url: str, client: httpx.AsyncClient | None = None, timeout: float = 30.0) -> None:
        self.url = url
        self._client = client
        self._timeout = timeout

    async def _get(self) -> httpx.Response:
        try:
            if self._client is not None:
                response = await self._client.get(self.url)
            else:
                async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                    response = await client.get(self.url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            msg = f"Timeout fetching independent counts from {self.url}"
            logger.error(msg)
            raise FetchError(msg, source_kind="verification") from exc
        except httpx.HTTPStatusError as exc:
            msg = f"HTTP {exc.response.status_code} fetching independent counts from {self.url}"
            logger.error(msg)
            raise FetchError(msg, status_code=exc.response.status_code, source_kind="verification") from exc
        except httpx.HTTPError as exc:
            msg = f"HTTP error fetching independent counts from {self.url}: {exc}"
            logger.error(msg)
            raise FetchError(msg, source_kind="verification") from exc
        return response

    async def fetch_counts(self, contest_ids: list[str]) -> dict[str, IndependentContestCount] | None:
        response = await self._get()
        if not response.content.strip():
            return None

        try:
            document = CountDocument.model_validate_json(response.content)
        except ValidationError as exc:
            msg = f"Invalid independent count document from {self.url}: {exc}"
            logger.error(msg)
            raise FetchError(msg, source_kind="verification") from exc

        if not document.contests:
            return None
        return {
            contest_id: IndependentContestCount(candidates=dict(doc.candidates), winners=doc.winners)
            for contest_id, doc in document.contests.items()
        }
