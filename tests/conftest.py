"""Shared test fixtures: settings, cache store, and graph builders."""

from pathlib import Path

import pytest

from election_tally.core.config import Settings
from election_tally.lib.cache import FileCacheStore
from election_tally.models import Candidate, Contest, DistrictKind, Election


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Test engine settings with an isolated cache and output directory."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        cache_dir=str(tmp_path / "cache"),
        output_dir=str(tmp_path / "output"),
    )


@pytest.fixture
def cache(tmp_path: Path) -> FileCacheStore:
    """File cache rooted in the test's temporary directory."""
    return FileCacheStore(tmp_path / "cache")


@pytest.fixture
def election() -> Election:
    """An empty general-election graph root."""
    return Election(id="2024-general", title="General Election")


def make_contest(
    *votes: tuple[str, int | None] | tuple[str, int | None, str | None],
    contest_id: str = "c1",
    seats: int = 1,
    **attrs,
) -> Contest:
    """Build a contest with candidates named by ID.

    Each positional argument is ``(candidate_id, votes)`` or
    ``(candidate_id, votes, party)``.
    """
    contest = Contest(
        id=contest_id,
        contest_match=contest_id,
        kind=DistrictKind.COUNTY,
        election_id="2024-general",
        seats=seats,
        **attrs,
    )
    for entry in votes:
        cand_id, count = entry[0], entry[1]
        party = entry[2] if len(entry) > 2 else None
        contest.candidates[cand_id] = Candidate(
            id=cand_id,
            contest_id=contest_id,
            full_name=cand_id,
            last=cand_id,
            party=party,
            write_in=party == "WI",
            votes=count,
        )
    return contest


@pytest.fixture
def contest_factory():
    """Factory fixture wrapping ``make_contest``."""
    return make_contest
