"""Typed records produced by the source fetchers, and row-level errors.

Records carry natural keys only; canonical IDs are computed by the
resolver, which knows the election they belong to.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar

from election_tally.models.district import DistrictKind

T = TypeVar("T")


class ParseError(Exception):
    """Raised when a single row fails required-field parsing."""

    def __init__(self, message: str, row_number: int | None = None) -> None:
        super().__init__(message)
        self.row_number = row_number


class ConfigurationError(Exception):
    """Raised when a required identifying field (e.g. district kind) is absent."""


class RowErrorKind(StrEnum):
    PARSE = "parse"
    CONFIGURATION = "configuration"


@dataclass(frozen=True)
class RowError:
    """A dropped row and the reason it was dropped."""

    row_number: int
    message: str
    kind: RowErrorKind = RowErrorKind.PARSE


@dataclass
class ParseOutcome(Generic[T]):
    """Parsed records plus the count and reasons of dropped rows."""

    records: list[T] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    @property
    def dropped(self) -> int:
        return len(self.errors)


@dataclass(frozen=True)
class DistrictRecord:
    """One district metadata row."""

    kind: DistrictKind
    name: str | None
    county: str | None = None
    school: str | None = None
    local: str | None = None
    precinct: str | None = None
    county_name: str | None = None
    precincts: int | None = None
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class QuestionRecord:
    """Ballot-question text for a contest."""

    kind: DistrictKind
    county: str | None
    district: str | None
    office: str
    number: str | None
    title: str | None
    text: str | None


@dataclass
class MetadataBatch:
    """All metadata records for one election, by record type."""

    districts: list[DistrictRecord] = field(default_factory=list)
    questions: list[QuestionRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ResultRecord:
    """One candidate row from the results feed."""

    kind: DistrictKind
    office: str
    office_name: str | None
    candidate_name: str
    county: str | None = None
    precinct: str | None = None
    district: str | None = None
    candidate_code: str | None = None
    suffix: str | None = None
    incumbent: bool | None = None
    party: str | None = None
    precincts_reporting: int | None = None
    total_precincts: int | None = None
    votes: int | None = None
    reported_percent: float | None = None
    total_votes: int | None = None
    round_votes: tuple[int | None, ...] = ()
    row_number: int = 0
    source: str | None = None

    @property
    def ranked(self) -> bool:
        return len(self.round_votes) > 0


@dataclass(frozen=True)
class SupplementRecord:
    """A supplemental-store record addressed by canonical ID."""

    entity: str
    id: str
    fields: dict[str, Any] = field(default_factory=dict)
