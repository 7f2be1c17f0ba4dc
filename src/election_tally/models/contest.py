"""Contest entity: a race or ballot question within an election."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from election_tally.models.candidate import Candidate
from election_tally.models.district import DistrictKind


class ContestState(StrEnum):
    """Computation lifecycle of a contest. Never moves backwards."""

    PENDING = "pending"
    COMPUTED = "computed"
    VERIFIED = "verified"


class RoundStatus(StrEnum):
    """Whether a ranked-choice round has any reported votes."""

    REPORTING = "reporting"
    NOT_REPORTING = "not_reporting"


@dataclass
class Contest:
    """A race or ballot question.

    Feed-derived attributes are filled by the resolver; the ``state``,
    ``total_votes``, ``round_status``, ``uncontested``, ``close`` and
    candidate winner/percent fields are set by the result computer.
    """

    id: str
    contest_match: str | None
    kind: DistrictKind
    election_id: str
    office: str | None = None
    title: str | None = None
    seat_name: str | None = None
    sub_area: str | None = None
    seats: int = 1
    primary: bool = False
    special: bool = False
    ranked: bool = False
    nonpartisan: bool = False
    question: bool = False
    question_title: str | None = None
    question_text: str | None = None
    precincts_reporting: int | None = None
    total_precincts: int | None = None
    reported_total_votes: int | None = None

    # District join
    district_key: str | None = None
    district_match_key: str | None = None
    district_id: str | None = None
    area: str | None = None
    unmatched: bool = False

    candidates: dict[str, Candidate] = field(default_factory=dict)
    notes: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    # Computed
    state: ContestState = ContestState.PENDING
    total_votes: int | None = None
    round_status: dict[int, RoundStatus] = field(default_factory=dict)
    uncontested: bool = False
    uncontested_parties: list[str] = field(default_factory=list)
    close: bool = False
    called: bool | None = None
    called_derived: bool = False

    @property
    def candidate_list(self) -> list[Candidate]:
        """Candidates in ingestion order."""
        return list(self.candidates.values())

    @property
    def counted_candidates(self) -> list[Candidate]:
        """Candidates that count toward totals (write-ins excluded)."""
        return [c for c in self.candidates.values() if not c.write_in]

    @property
    def winners(self) -> list[Candidate]:
        return [c for c in self.candidates.values() if c.winner]

    @property
    def reporting_percent(self) -> float | None:
        """Share of precincts reporting, or None without a precinct total."""
        if not self.total_precincts:
            return None
        return (self.precincts_reporting or 0) / self.total_precincts * 100
