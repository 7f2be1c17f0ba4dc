"""Compare computed tallies against independent counts.

Aligns both sides by canonical contest and candidate ID, itemizes every
disagreement, and classifies the overall verification status.
"""

from dataclasses import dataclass, field
from enum import StrEnum

from election_tally.models import Contest


class VerificationStatus(StrEnum):
    MATCH = "match"
    MISMATCH = "mismatch"
    NO_DATA = "no_data"


@dataclass
class IndependentContestCount:
    """Independent tally for one contest.

    Attributes:
        candidates: Candidate ID to vote count.
        winners: Candidate IDs the independent source declares winners,
            or None when it does not say.
    """

    candidates: dict[str, int] = field(default_factory=dict)
    winners: list[str] | None = None


@dataclass
class ContestVerification:
    """Per-contest comparison row."""

    contest_id: str
    computed: dict[str, int | None]
    independent: dict[str, int] | None
    match: bool
    diffs: list[dict[str, str]] = field(default_factory=list)
    independent_winners: list[str] | None = None

    def independent_count(self) -> IndependentContestCount | None:
        if self.independent is None:
            return None
        return IndependentContestCount(dict(self.independent), winners=self.independent_winners)


def computed_counts(contest: Contest) -> dict[str, int | None]:
    """Candidate ID to computed vote count for a contest."""
    return {c.id: c.votes for c in contest.candidates.values()}


def compare_contest(
    contest_id: str,
    contest: Contest | None,
    independent: IndependentContestCount | None,
) -> ContestVerification:
    """Compare one contest's computed tally with an independent count.

    Args:
        contest_id: Canonical contest ID both sides are keyed by.
        contest: The computed contest, or None if the graph lacks it.
        independent: The independent count, or None if the source lacks it.

    Returns:
        ContestVerification with itemized diffs. A side that is missing
        entirely is a single ``missing_contest`` diff.
    """
    computed = computed_counts(contest) if contest is not None else {}
    if contest is None or independent is None:
        side = "computed" if contest is None else "independent"
        return ContestVerification(
            contest_id=contest_id,
            computed=computed,
            independent=independent.candidates if independent else None,
            independent_winners=independent.winners if independent else None,
            match=False,
            diffs=[{"field": "missing_contest", "side": side, "contest_id": contest_id}],
        )

    diffs: list[dict[str, str]] = []
    for candidate_id in sorted(set(computed) | set(independent.candidates)):
        if candidate_id not in independent.candidates:
            diffs.append({"field": "missing_candidate", "side": "independent", "candidate_id": candidate_id})
            continue
        if candidate_id not in computed:
            diffs.append({"field": "missing_candidate", "side": "computed", "candidate_id": candidate_id})
            continue
        ours = computed[candidate_id] or 0
        theirs = independent.candidates[candidate_id]
        if ours != theirs:
            diffs.append(
                {
                    "field": "votes",
                    "candidate_id": candidate_id,
                    "computed": str(ours),
                    "independent": str(theirs),
                }
            )

    if independent.winners is not None:
        ours = sorted(c.id for c in contest.winners)
        theirs = sorted(independent.winners)
        if ours != theirs:
            diffs.append(
                {
                    "field": "winners",
                    "computed": ",".join(ours),
                    "independent": ",".join(theirs),
                }
            )

    return ContestVerification(
        contest_id=contest_id,
        computed=computed,
        independent=dict(independent.candidates),
        independent_winners=independent.winners,
        match=not diffs,
        diffs=diffs,
    )


def classify(rows: list[ContestVerification]) -> VerificationStatus:
    """Overall status for a set of comparison rows."""
    if not rows:
        return VerificationStatus.NO_DATA
    if all(row.match for row in rows):
        return VerificationStatus.MATCH
    return VerificationStatus.MISMATCH
