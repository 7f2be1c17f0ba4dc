"""Result computer — per-contest tallies, winners and flags.

Public API:
    - compute_contest: Compute one contest (pending -> computed)
    - compute_election: Compute every contest of an election
    - compute_rounds: Ranked-choice round percentages and statuses
"""

from election_tally.lib.tabulator.computer import (
    DEFAULT_CLOSE_MARGIN,
    DEFAULT_RANKED_ROUNDS,
    compute_contest,
    compute_election,
    compute_rounds,
)

__all__ = [
    "DEFAULT_CLOSE_MARGIN",
    "DEFAULT_RANKED_ROUNDS",
    "compute_contest",
    "compute_election",
    "compute_rounds",
]
