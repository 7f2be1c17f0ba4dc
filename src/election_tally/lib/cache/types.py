"""Data types for the file cache: entries and remote fingerprints."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class RemoteFingerprint(BaseModel):
    """Size/modification metadata reported by a remote source.

    Either field may be missing when the server does not send the
    corresponding header.
    """

    size: int | None = None
    last_modified: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.size is None and self.last_modified is None

    def matches(self, other: "RemoteFingerprint") -> bool:
        """True when every field known to both sides agrees.

        Fingerprints sharing no known field cannot be compared and never
        match.
        """
        compared = False
        if self.size is not None and other.size is not None:
            if self.size != other.size:
                return False
            compared = True
        if self.last_modified is not None and other.last_modified is not None:
            if self.last_modified != other.last_modified:
                return False
            compared = True
        return compared


class CacheEntry(BaseModel):
    """One cached payload for a (source kind, request key) pair."""

    source_kind: str
    key: str
    payload: str
    fingerprint: RemoteFingerprint = Field(default_factory=RemoteFingerprint)
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
