"""Percentages, winners and flags for each contest.

Computation is pure arithmetic over the resolved graph: it never reads
the network or the cache, and running it twice gives the same answer.
A zero vote total is "no data" (None), never NaN or a division error.
"""

from collections import Counter

from loguru import logger

from election_tally.models import (
    Candidate,
    Contest,
    ContestState,
    Election,
    RankedRound,
    RoundStatus,
)

DEFAULT_CLOSE_MARGIN = 0.5
DEFAULT_RANKED_ROUNDS = 3


def _percent(votes: int | None, total: int) -> float | None:
    if total <= 0:
        return None
    return (votes or 0) / total * 100


def _ordered(candidates: list[Candidate], votes_of) -> list[Candidate]:
    return sorted(candidates, key=votes_of, reverse=True)


def _top(candidates: list[Candidate], seats: int, votes_of) -> list[Candidate]:
    """The ``seats`` highest candidates, or fewer when there is a tie at the cut.

    Candidates tied across the last winning place are all left out.
    """
    ordered = _ordered(candidates, votes_of)
    if seats <= 0 or not ordered:
        return []
    if len(ordered) <= seats:
        return [c for c in ordered if votes_of(c) > 0]
    cut = votes_of(ordered[seats - 1])
    if votes_of(ordered[seats]) == cut:
        return [c for c in ordered[:seats] if votes_of(c) > cut]
    return [c for c in ordered[:seats] if votes_of(c) > 0]


def _pad_rounds(candidate: Candidate, rounds: int) -> None:
    present = {r.round_number for r in candidate.ranks}
    for number in range(1, rounds + 1):
        if number not in present:
            candidate.ranks.append(RankedRound(round_number=number))
    candidate.ranks.sort(key=lambda r: r.round_number)


def compute_rounds(contest: Contest, ranked_rounds: int = DEFAULT_RANKED_ROUNDS) -> int | None:
    """Fill per-round percentages and statuses for a ranked contest.

    Args:
        contest: A ranked-choice contest.
        ranked_rounds: Minimum number of rounds to report.

    Returns:
        The last reporting round number, or None if no round has votes.
    """
    counted = contest.counted_candidates
    rounds = max([ranked_rounds, *(len(c.ranks) for c in contest.candidates.values())])
    for candidate in contest.candidates.values():
        _pad_rounds(candidate, rounds)

    last_reporting = None
    contest.round_status = {}
    for number in range(1, rounds + 1):
        total = sum(c.round_votes(number) for c in counted)
        status = RoundStatus.REPORTING if total > 0 else RoundStatus.NOT_REPORTING
        contest.round_status[number] = status
        if status == RoundStatus.REPORTING:
            last_reporting = number
        for candidate in contest.candidates.values():
            ranked = candidate.rank(number)
            ranked.percent = _percent(ranked.votes, total) if status == RoundStatus.REPORTING else None
    return last_reporting


def _ranked_winner(contest: Contest, last_reporting: int | None) -> Candidate | None:
    counted = contest.counted_candidates
    if any(c.votes for c in counted):
        winners = _top(counted, 1, lambda c: c.votes or 0)
        return winners[0] if winners else None
    if last_reporting is None:
        return None

    def votes_of(c: Candidate) -> int:
        return c.round_votes(last_reporting)

    total = sum(votes_of(c) for c in counted)
    for candidate in counted:
        if votes_of(candidate) * 2 > total:
            return candidate
    winners = _top(counted, 1, votes_of)
    return winners[0] if winners else None


def _uncontested(contest: Contest) -> tuple[bool, list[str]]:
    """Whether a contest is uncontested, and the single-candidate parties."""
    counted = contest.counted_candidates
    if contest.ranked or contest.question or not counted:
        return False, []
    if contest.primary and not contest.nonpartisan:
        by_party = Counter(c.party for c in counted)
        singles = sorted(party for party, n in by_party.items() if party and n == 1)
        return bool(by_party) and all(n <= 1 for n in by_party.values()), singles
    return len(counted) <= contest.seats, []


def _is_close(contest: Contest, margin: float) -> bool:
    """Whether the last winning and first losing places are within ``margin`` points."""
    if contest.ranked:
        return False
    ordered = [c.percent for c in _ordered(contest.counted_candidates, lambda c: c.votes or 0)]
    if len(ordered) <= contest.seats or ordered[contest.seats] is None:
        return False
    return ordered[contest.seats - 1] - ordered[contest.seats] <= margin


def _is_called(contest: Contest) -> bool:
    """Every precinct in, a winner in every seat and not close."""
    if contest.close or not contest.total_precincts:
        return False
    if (contest.precincts_reporting or 0) < contest.total_precincts:
        return False
    return len(contest.winners) == contest.seats


def compute_contest(
    contest: Contest,
    *,
    close_margin: float = DEFAULT_CLOSE_MARGIN,
    ranked_rounds: int = DEFAULT_RANKED_ROUNDS,
) -> Contest:
    """Compute percentages, winners and flags for one contest.

    Moves the contest from ``pending`` to ``computed``; a ``verified``
    contest keeps its state. ``called`` is derived unless a supplemental
    record set it. Write-in candidates are excluded from totals
    and winners.

    Args:
        contest: The contest to compute, mutated in place.
        close_margin: Percentage-point margin at or below which a race is close.
        ranked_rounds: Number of ranked-choice rounds to report.

    Returns:
        The same contest.
    """
    counted = contest.counted_candidates
    total = sum(c.votes or 0 for c in counted)
    contest.total_votes = total

    for candidate in contest.candidates.values():
        candidate.percent = _percent(candidate.votes, total)
        candidate.winner = False

    if contest.ranked:
        last_reporting = compute_rounds(contest, ranked_rounds)
        winner = _ranked_winner(contest, last_reporting)
        if winner is not None:
            winner.winner = True
    else:
        for winner in _top(counted, contest.seats, lambda c: c.votes or 0):
            winner.winner = True

    contest.uncontested, contest.uncontested_parties = _uncontested(contest)
    contest.close = _is_close(contest, close_margin)
    # A supplemental call is kept as given.
    if contest.called is None or contest.called_derived:
        contest.called = _is_called(contest)
        contest.called_derived = True

    if contest.state == ContestState.PENDING:
        contest.state = ContestState.COMPUTED
    return contest


def compute_election(
    election: Election,
    *,
    close_margin: float = DEFAULT_CLOSE_MARGIN,
    ranked_rounds: int = DEFAULT_RANKED_ROUNDS,
) -> Election:
    """Compute every contest in an election."""
    for contest in election.contests.values():
        compute_contest(contest, close_margin=close_margin, ranked_rounds=ranked_rounds)

    logger.info(
        "Computed {} contest(s): {} uncontested, {} close",
        len(election.contests),
        sum(1 for c in election.contests.values() if c.uncontested),
        sum(1 for c in election.contests.values() if c.close),
    )
    return election
