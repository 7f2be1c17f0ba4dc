"""Candidate entity: one option within a contest."""

from dataclasses import dataclass, field
from typing import Any

WRITE_IN_PARTY = "WI"


@dataclass
class RankedRound:
    """A candidate's tally in one ranked-choice round.

    ``votes`` and ``percent`` are None until the round is computed; a
    round nobody has reported yet keeps ``percent`` None, while a genuine
    zero among nonzero rivals is ``0.0``.
    """

    round_number: int
    votes: int | None = None
    percent: float | None = None


@dataclass
class Candidate:
    """A named option (person, write-in, or Yes/No) in a contest."""

    id: str
    contest_id: str
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
    ranks: list[RankedRound] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def rank(self, round_number: int) -> RankedRound | None:
        """Return this candidate's record for a ranked round, if any."""
        for ranked in self.ranks:
            if ranked.round_number == round_number:
                return ranked
        return None

    def round_votes(self, round_number: int) -> int:
        """Votes in a round, treating an absent count as zero."""
        ranked = self.rank(round_number)
        return (ranked.votes or 0) if ranked else 0
