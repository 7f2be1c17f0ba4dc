"""Verification of computed results against an independent count."""

from dataclasses import dataclass, field

from loguru import logger

from election_tally.lib.tabulator import DEFAULT_CLOSE_MARGIN, DEFAULT_RANKED_ROUNDS, compute_contest
from election_tally.lib.verifier.comparator import (
    ContestVerification,
    VerificationStatus,
    classify,
    compare_contest,
)
from election_tally.lib.verifier.sources import IndependentCountSource
from election_tally.models import ContestState, Election, IssueKind


@dataclass
class VerificationReport:
    """Outcome of one verification pass.

    Attributes:
        status: Overall match / mismatch / no_data.
        rows: Per-contest comparison rows, keyed by contest ID.
        unverified: Requested contests the independent source had no count for.
    """

    status: VerificationStatus
    rows: dict[str, ContestVerification] = field(default_factory=dict)
    unverified: list[str] = field(default_factory=list)

    @property
    def mismatches(self) -> list[ContestVerification]:
        return [row for row in self.rows.values() if not row.match]

    def summary(self) -> dict[str, dict]:
        """Contest ID to ``{computed, independent, match}``."""
        return {
            cid: {"computed": row.computed, "independent": row.independent, "match": row.match}
            for cid, row in self.rows.items()
        }


async def verify(
    source: IndependentCountSource | None,
    election: Election,
    contest_ids: list[str] | None = None,
) -> VerificationReport:
    """Compare computed contests against an independent count.

    Matching contests move to ``verified``. Mismatches are recorded as
    ``verification_mismatch`` issues and left as computed; nothing is
    corrected here (see ``apply_corrections``).

    Args:
        source: Independent count source, or None when none is configured.
        election: A computed election graph.
        contest_ids: Contests to verify; all contests when omitted.

    Returns:
        The verification report. ``no_data`` when there is no source or
        the source has nothing to compare.

    Raises:
        FetchError: If the independent source cannot be read.
    """
    requested = list(contest_ids) if contest_ids is not None else list(election.contests)
    if source is None:
        logger.info("No independent count source configured; skipping verification")
        return VerificationReport(status=VerificationStatus.NO_DATA, unverified=requested)

    counts = await source.fetch_counts(requested)
    if not counts:
        logger.info("Independent count source returned no data")
        return VerificationReport(status=VerificationStatus.NO_DATA, unverified=requested)

    report = VerificationReport(status=VerificationStatus.NO_DATA)
    scope = set(requested)
    for contest_id in requested:
        if contest_id not in counts:
            report.unverified.append(contest_id)
            continue
        report.rows[contest_id] = compare_contest(contest_id, election.contests.get(contest_id), counts[contest_id])

    # Contests the independent source knows about but the graph does not.
    for contest_id, count in counts.items():
        if contest_id not in election.contests and (contest_ids is None or contest_id in scope):
            report.rows.setdefault(contest_id, compare_contest(contest_id, None, count))

    for contest_id, row in report.rows.items():
        contest = election.contests.get(contest_id)
        if row.match and contest is not None:
            contest.state = ContestState.VERIFIED
            continue
        if not row.match:
            fields = ", ".join(sorted({d["field"] for d in row.diffs}))
            election.record_issue(
                IssueKind.VERIFICATION_MISMATCH,
                f"Independent count disagrees on {fields}",
                source="verifier",
                entity_id=contest_id,
            )

    report.status = classify(list(report.rows.values()))
    logger.info(
        "Verification {}: {} contest(s) compared, {} mismatched, {} without independent data",
        report.status,
        len(report.rows),
        len(report.mismatches),
        len(report.unverified),
    )
    return report


def apply_corrections(
    election: Election,
    report: VerificationReport,
    *,
    close_margin: float = DEFAULT_CLOSE_MARGIN,
    ranked_rounds: int = DEFAULT_RANKED_ROUNDS,
) -> list[str]:
    """Replace computed votes with the independent counts for mismatched contests.

    This is an explicit operator action; ``verify`` never calls it.
    Candidates the independent source does not list keep their votes.
    Each corrected contest is recomputed and compared again: it becomes
    ``verified`` only if it now matches. The report row is replaced with
    the new comparison, so disagreements that votes cannot fix (winners,
    candidates missing on one side) stay reported.

    Returns:
        IDs of the contests whose votes were corrected.
    """
    corrected = []
    for row in report.mismatches:
        contest = election.contests.get(row.contest_id)
        if contest is None or row.independent is None:
            continue
        for candidate_id, votes in row.independent.items():
            candidate = contest.candidates.get(candidate_id)
            if candidate is not None:
                candidate.votes = votes
        compute_contest(contest, close_margin=close_margin, ranked_rounds=ranked_rounds)
        contest.notes.append("Vote counts corrected from independent count.")
        corrected.append(contest.id)

        recheck = compare_contest(contest.id, contest, row.independent_count())
        report.rows[contest.id] = recheck
        if recheck.match:
            contest.state = ContestState.VERIFIED
            continue
        fields = ", ".join(sorted({d["field"] for d in recheck.diffs}))
        election.record_issue(
            IssueKind.VERIFICATION_MISMATCH,
            f"Independent count still disagrees on {fields} after correction",
            source="verifier",
            entity_id=contest.id,
        )

    if corrected:
        report.status = classify(list(report.rows.values()))
        logger.warning(
            "Applied independent counts to {} contest(s); {} still mismatched",
            len(corrected),
            sum(1 for cid in corrected if not report.rows[cid].match),
        )
    return corrected
