"""Pydantic v2 export schemas for a computed election graph.

The export tree is what collaborators (print layout, publishing, the
supplemental store) consume: Election -> contests -> candidates, plus
districts, notes, the test flag and recorded issues.
"""

from datetime import date
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

from election_tally.models import Election


class RankedRoundExport(BaseModel):
    model_config = {"from_attributes": True}

    round_number: int
    votes: int | None = None
    percent: float | None = None


class CandidateExport(BaseModel):
    """A candidate with its computed tally."""

    model_config = {"from_attributes": True}

    id: str
    code: str | None = None
    full_name: str | None = None
    first: str | None = None
    middle: str | None = None
    last: str | None = None
    suffix: str | None = None
    nickname: str | None = None
    prefix: str | None = None
    title: str | None = None
    party: str | None = None
    incumbent: bool | None = None
    write_in: bool = False
    votes: int | None = None
    percent: float | None = None
    winner: bool = False
    ranks: list[RankedRoundExport] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)


class ContestExport(BaseModel):
    """A contest with its computed outcome."""

    model_config = {"from_attributes": True}

    id: str
    kind: str
    office: str | None = None
    title: str | None = None
    seat_name: str | None = None
    sub_area: str | None = None
    area: str | None = None
    district_id: str | None = None
    unmatched: bool = False
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
    total_votes: int | None = None
    state: str
    round_status: dict[int, str] = Field(default_factory=dict)
    uncontested: bool = False
    uncontested_parties: list[str] = Field(default_factory=list)
    close: bool = False
    called: bool | None = None
    notes: list[str] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)
    candidates: list[CandidateExport] = Field(default_factory=list)


class DistrictExport(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    kind: str
    name: str | None = None
    county: str | None = None
    school: str | None = None
    local: str | None = None
    precinct: str | None = None
    county_name: str | None = None
    parent_ids: list[str] = Field(default_factory=list)
    precincts: int | None = None
    attributes: dict[str, str] = Field(default_factory=dict)


class IssueExport(BaseModel):
    model_config = {"from_attributes": True}

    kind: str
    message: str
    source: str | None = None
    entity_id: str | None = None


class ElectionExport(BaseModel):
    """Full export of one election."""

    id: str
    title: str
    election_date: date | None = None
    primary: bool = False
    test: bool = False
    notes: list[str] = Field(default_factory=list)
    contests: list[ContestExport] = Field(default_factory=list)
    districts: list[DistrictExport] = Field(default_factory=list)
    issues: list[IssueExport] = Field(default_factory=list)
    dropped_rows: dict[str, int] = Field(default_factory=dict)
    degraded_sources: list[str] = Field(default_factory=list)

    def write_export(self, path: str | Path) -> Path:
        """Write the export as indented JSON, creating parent directories.

        Returns:
            The written path.
        """
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        logger.info("Wrote {} contest(s) to {}", len(self.contests), out)
        return out


def export_election(election: Election) -> ElectionExport:
    """Convert the in-memory graph to its export tree."""
    contests = []
    for contest in election.contests.values():
        # Contest.candidates is keyed by ID; the export lists them in order.
        fields = {name: getattr(contest, name) for name in ContestExport.model_fields if name != "candidates"}
        fields["candidates"] = [CandidateExport.model_validate(c) for c in contest.candidate_list]
        contests.append(ContestExport.model_validate(fields))

    return ElectionExport(
        id=election.id,
        title=election.title,
        election_date=election.election_date,
        primary=election.primary,
        test=election.test,
        notes=list(election.notes),
        contests=contests,
        districts=[DistrictExport.model_validate(d) for d in election.districts.values()],
        issues=[IssueExport.model_validate(i) for i in election.issues],
        dropped_rows=dict(election.dropped_rows),
        degraded_sources=list(election.degraded_sources),
    )
