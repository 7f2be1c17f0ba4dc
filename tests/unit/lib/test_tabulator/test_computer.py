"""Unit tests for the result computer."""

import pytest

from election_tally.lib.tabulator import compute_contest, compute_election, compute_rounds
from election_tally.models import Contest, ContestState, Election, RankedRound, RoundStatus


def _ranked(contest: Contest, rounds: dict[str, list[int | None]]) -> Contest:
    contest.ranked = True
    for cand_id, votes in rounds.items():
        contest.candidates[cand_id].ranks = [RankedRound(round_number=i, votes=v) for i, v in enumerate(votes, start=1)]
    return contest


class TestPercentages:
    """Tests for per-candidate percentages."""

    def test_percent_of_counted_total(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("smith", 120), ("jones", 80)))
        assert contest.total_votes == 200
        assert contest.candidates["smith"].percent == pytest.approx(60.0)
        assert contest.candidates["jones"].percent == pytest.approx(40.0)

    def test_write_ins_excluded_from_total(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("smith", 120), ("jones", 80), ("write-in", 10, "WI")))
        assert contest.total_votes == 200
        counted = [c.percent for c in contest.counted_candidates]
        assert sum(counted) == pytest.approx(100.0)
        assert contest.candidates["write-in"].percent == pytest.approx(5.0)
        assert not contest.candidates["write-in"].winner

    def test_zero_total_is_no_data(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("smith", 0), ("jones", None)))
        assert contest.total_votes == 0
        assert [c.percent for c in contest.candidate_list] == [None, None]
        assert contest.winners == []

    @pytest.mark.parametrize(
        "votes",
        [(1, 1, 1), (7, 0, 3), (1000, 999, 1), (5, 5, 0, 13)],
    )
    def test_percents_sum_to_hundred(self, contest_factory, votes) -> None:
        contest = compute_contest(contest_factory(*((f"c{i}", v) for i, v in enumerate(votes))))
        assert sum(c.percent for c in contest.counted_candidates) == pytest.approx(100.0)


class TestPluralityWinners:
    """Tests for plurality winner selection."""

    def test_single_seat(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("smith", 120), ("jones", 80)))
        assert [c.id for c in contest.winners] == ["smith"]

    def test_tie_leaves_winner_unset(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("smith", 50), ("jones", 50)))
        assert contest.winners == []

    def test_multi_seat(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("a", 50), ("b", 40), ("c", 10), seats=2))
        assert sorted(c.id for c in contest.winners) == ["a", "b"]

    def test_tie_at_cut_leaves_those_seats_unset(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("a", 50), ("b", 30), ("c", 30), seats=2))
        assert [c.id for c in contest.winners] == ["a"]

    def test_recompute_resets_winners(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("smith", 120), ("jones", 80)))
        contest.candidates["jones"].votes = 200
        compute_contest(contest)
        assert [c.id for c in contest.winners] == ["jones"]


class TestRankedChoice:
    """Tests for ranked-choice round semantics."""

    def test_round_status_and_genuine_zero(self, contest_factory) -> None:
        contest = _ranked(
            contest_factory(("a", None), ("b", None)),
            {"a": [100, 120, 0], "b": [80, 0, 0]},
        )
        compute_contest(contest)

        assert contest.round_status == {
            1: RoundStatus.REPORTING,
            2: RoundStatus.REPORTING,
            3: RoundStatus.NOT_REPORTING,
        }
        b = contest.candidates["b"]
        assert b.rank(1).percent == pytest.approx(80 / 180 * 100)
        assert b.rank(2).percent == 0.0
        assert b.rank(3).percent is None
        assert contest.candidates["a"].rank(3).percent is None

    def test_last_reporting_round_majority_wins(self, contest_factory) -> None:
        contest = _ranked(
            contest_factory(("a", None), ("b", None), ("c", None)),
            {"a": [40, 55, None], "b": [35, 45, None], "c": [25, 0, None]},
        )
        compute_contest(contest)
        assert [c.id for c in contest.winners] == ["a"]

    def test_final_tally_takes_precedence(self, contest_factory) -> None:
        contest = _ranked(
            contest_factory(("a", 180), ("b", 200)),
            {"a": [100, 120, 0], "b": [80, 90, 0]},
        )
        compute_contest(contest)
        assert [c.id for c in contest.winners] == ["b"]

    def test_pads_to_configured_rounds(self, contest_factory) -> None:
        contest = _ranked(contest_factory(("a", None), ("b", None)), {"a": [10], "b": [5]})
        last = compute_rounds(contest, ranked_rounds=3)
        assert last == 1
        assert [r.round_number for r in contest.candidates["a"].ranks] == [1, 2, 3]
        assert contest.round_status[2] == RoundStatus.NOT_REPORTING

    def test_nothing_reported(self, contest_factory) -> None:
        contest = _ranked(contest_factory(("a", None), ("b", None)), {"a": [0, 0, 0], "b": [None, None, None]})
        compute_contest(contest)
        assert contest.winners == []
        assert set(contest.round_status.values()) == {RoundStatus.NOT_REPORTING}

    def test_ranked_never_uncontested_or_close(self, contest_factory) -> None:
        contest = _ranked(contest_factory(("a", 501), ("b", 499)), {"a": [501], "b": [499]})
        compute_contest(contest)
        assert not contest.uncontested
        assert not contest.close


class TestFlags:
    """Tests for uncontested and close detection."""

    def test_single_candidate_uncontested(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("smith", 120), ("write-in", 3, "WI")))
        assert contest.uncontested

    def test_multi_seat_uncontested(self, contest_factory) -> None:
        assert compute_contest(contest_factory(("a", 1), ("b", 2), seats=2)).uncontested

    def test_contested(self, contest_factory) -> None:
        assert not compute_contest(contest_factory(("a", 1), ("b", 2))).uncontested

    def test_partisan_primary(self, contest_factory) -> None:
        contest = compute_contest(
            contest_factory(("a", 10, "DFL"), ("b", 20, "R"), ("c", 5, "R"), primary=True)
        )
        assert not contest.uncontested
        assert contest.uncontested_parties == ["DFL"]

    def test_partisan_primary_all_single(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("a", 10, "DFL"), ("b", 20, "R"), primary=True))
        assert contest.uncontested
        assert contest.uncontested_parties == ["DFL", "R"]

    def test_write_in_only_not_uncontested(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("write-in", 12, "WI")))
        assert not contest.uncontested
        assert contest.uncontested_parties == []

    def test_question_never_uncontested(self, contest_factory) -> None:
        assert not compute_contest(contest_factory(("yes", 10), question=True)).uncontested

    def test_close(self, contest_factory) -> None:
        assert compute_contest(contest_factory(("a", 502), ("b", 498))).close
        assert not compute_contest(contest_factory(("a", 520), ("b", 480))).close

    def test_close_threshold_configurable(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("a", 520), ("b", 480)), close_margin=5.0)
        assert contest.close

    def test_close_multi_seat_compares_cut(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("a", 500), ("b", 251), ("c", 249), seats=2))
        assert contest.close


class TestState:
    """Tests for the contest lifecycle."""

    def test_pending_to_computed(self, contest_factory) -> None:
        contest = contest_factory(("a", 1))
        assert contest.state == ContestState.PENDING
        assert compute_contest(contest).state == ContestState.COMPUTED

    def test_verified_never_rewinds(self, contest_factory) -> None:
        contest = contest_factory(("a", 1))
        contest.state = ContestState.VERIFIED
        assert compute_contest(contest).state == ContestState.VERIFIED

    def test_compute_election(self, election: Election, contest_factory) -> None:
        election.contests = {
            "c1": contest_factory(("a", 1), ("b", 2), contest_id="c1"),
            "c2": contest_factory(("a", 3), contest_id="c2"),
        }
        compute_election(election)
        assert all(c.state == ContestState.COMPUTED for c in election.contests.values())
        assert election.contests["c2"].uncontested


class TestCalled:
    """Tests for the called flag."""

    def test_called_when_all_precincts_in(self, contest_factory) -> None:
        contest = contest_factory(("a", 600), ("b", 400), precincts_reporting=10, total_precincts=10)
        assert compute_contest(contest).called is True

    def test_not_called_while_counting(self, contest_factory) -> None:
        contest = contest_factory(("a", 600), ("b", 400), precincts_reporting=9, total_precincts=10)
        assert compute_contest(contest).called is False

    def test_close_race_not_called(self, contest_factory) -> None:
        contest = contest_factory(("a", 501), ("b", 499), precincts_reporting=10, total_precincts=10)
        assert compute_contest(contest).called is False

    def test_supplemental_call_kept(self, contest_factory) -> None:
        contest = contest_factory(("a", 501), ("b", 499), called=True)
        assert compute_contest(contest).called is True

    def test_derived_call_recomputed(self, contest_factory) -> None:
        contest = compute_contest(contest_factory(("a", 600), ("b", 400), precincts_reporting=9, total_precincts=10))
        contest.precincts_reporting = 10
        assert compute_contest(contest).called is True
