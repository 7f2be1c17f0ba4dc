"""Verifier — checks computed results against an independent count.

Public API:
    - verify: Compare computed contests with an independent source
    - apply_corrections: Explicitly adopt independent counts and recompute
    - VerificationReport / VerificationStatus / ContestVerification: Report types
    - IndependentCountSource: Protocol for count sources
    - HttpCountSource: JSON count document over HTTP
"""

from election_tally.lib.verifier.comparator import (
    ContestVerification,
    IndependentContestCount,
    VerificationStatus,
    compare_contest,
)
from election_tally.lib.verifier.sources import CountDocument, HttpCountSource, IndependentCountSource
from election_tally.lib.verifier.verifier import VerificationReport, apply_corrections, verify

__all__ = [
    "ContestVerification",
    "CountDocument",
    "HttpCountSource",
    "IndependentContestCount",
    "IndependentCountSource",
    "VerificationReport",
    "VerificationStatus",
    "apply_corrections",
    "compare_contest",
    "verify",
]
