"""Election graph entities, owned by one pipeline run."""

from election_tally.models.candidate import WRITE_IN_PARTY, Candidate, RankedRound
from election_tally.models.contest import Contest, ContestState, RoundStatus
from election_tally.models.district import District, DistrictKind
from election_tally.models.election import CacheConfig, Election, Issue, IssueKind

__all__ = [
    "WRITE_IN_PARTY",
    "CacheConfig",
    "Candidate",
    "Contest",
    "ContestState",
    "District",
    "DistrictKind",
    "Election",
    "Issue",
    "IssueKind",
    "RankedRound",
    "RoundStatus",
]
