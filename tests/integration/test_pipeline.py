"""Integration tests for the fetch, resolve, compute and verify pipeline."""

import pytest
from pytest_httpx import HTTPXMock

from election_tally.core.config import Settings
from election_tally.lib.cache import FileCacheStore
from election_tally.lib.identity import candidate_id, contest_id
from election_tally.lib.sources import FetchError
from election_tally.lib.verifier import VerificationStatus
from election_tally.models import ContestState, DistrictKind, IssueKind
from election_tally.schemas.definition import ElectionDefinition
from election_tally.services.pipeline_service import run_pipeline

EID = "2024-general"
METADATA_URL = "https://feeds.test/county.txt"
RESULTS_URL = "https://feeds.test/results/county.txt"
COUNTS_URL = "https://counts.test/2024-general.json"

HENNEPIN = "27;Hennepin;850\n"
SHERIFF = "MN;27;;0101;Sheriff;;{code};{name};;;{party};{reporting};850;{votes};;\n"
SHERIFF_ID = contest_id(EID, DistrictKind.COUNTY, "27", None, "0101")


def sheriff_rows(*rows: tuple[str, str, str, int, int]) -> str:
    return "".join(
        SHERIFF.format(code=code, name=name, party=party, votes=votes, reporting=reporting)
        for code, name, party, votes, reporting in rows
    )


@pytest.fixture
def definition() -> ElectionDefinition:
    return ElectionDefinition.model_validate(
        {
            "id": EID,
            "title": "General Election",
            "date": "2024-11-05",
            "metadata": [{"url": METADATA_URL, "kind": "county"}],
            "results": [{"url": RESULTS_URL, "kind": "county"}],
            "verification_url": COUNTS_URL,
        }
    )


class TestPipeline:
    """End-to-end batch passes against mocked feeds."""

    async def test_county_contest(self, httpx_mock: HTTPXMock, settings: Settings, definition) -> None:
        httpx_mock.add_response(url=METADATA_URL, text=HENNEPIN)
        httpx_mock.add_response(
            url=RESULTS_URL,
            text=sheriff_rows(("01", "Jane Smith", "D", 120, 850), ("02", "Bob Jones", "R", 80, 850)),
        )

        election = (await run_pipeline(definition, settings)).election

        contest = election.contests[SHERIFF_ID]
        smith = contest.candidates[candidate_id(SHERIFF_ID, "01")]
        jones = contest.candidates[candidate_id(SHERIFF_ID, "02")]
        assert contest.area == "Hennepin"
        assert contest.state == ContestState.COMPUTED
        assert contest.total_votes == 200
        assert smith.winner and not jones.winner
        assert smith.percent == pytest.approx(60.0)
        assert jones.percent == pytest.approx(40.0)
        assert election.issues == []
        assert election.degraded_sources == []

    async def test_duplicate_rows_latest_wins(self, httpx_mock: HTTPXMock, settings: Settings, definition) -> None:
        httpx_mock.add_response(url=METADATA_URL, text=HENNEPIN)
        httpx_mock.add_response(
            url=RESULTS_URL,
            text=sheriff_rows(
                ("01", "Jane Smith", "D", 100, 400),
                ("02", "Bob Jones", "R", 90, 400),
                ("01", "Jane Smith", "D", 120, 850),
            ),
        )

        contest = (await run_pipeline(definition, settings)).election.contests[SHERIFF_ID]

        assert len(contest.candidates) == 2
        assert contest.candidates[candidate_id(SHERIFF_ID, "01")].votes == 120
        assert contest.precincts_reporting == 850

    async def test_unknown_county_is_unmatched(self, httpx_mock: HTTPXMock, settings: Settings, definition) -> None:
        httpx_mock.add_response(url=METADATA_URL, text=HENNEPIN)
        httpx_mock.add_response(url=RESULTS_URL, text=sheriff_rows(("01", "Jane Smith", "D", 120, 1)).replace("MN;27", "MN;99"))

        election = (await run_pipeline(definition, settings)).election

        [contest] = election.unmatched_contests
        assert contest.district_id is None
        assert contest.state == ContestState.COMPUTED
        assert [i.entity_id for i in election.issues_of(IssueKind.UNRESOLVED_ENTITY)] == [contest.id]

    async def test_bad_rows_are_counted(self, httpx_mock: HTTPXMock, settings: Settings, definition) -> None:
        httpx_mock.add_response(url=METADATA_URL, text=HENNEPIN)
        httpx_mock.add_response(url=RESULTS_URL, text=sheriff_rows(("01", "Jane Smith", "D", 120, 1)) + "MN;27;short\n")

        election = (await run_pipeline(definition, settings)).election

        assert len(election.contests) == 1
        assert election.dropped_rows == {"results": 1}
        [issue] = election.issues_of(IssueKind.PARSE_ERROR)
        assert issue.message.startswith("Row 2:")

    async def test_metadata_failure_is_not_fatal(self, httpx_mock: HTTPXMock, settings: Settings, definition) -> None:
        httpx_mock.add_response(url=METADATA_URL, status_code=500)
        httpx_mock.add_response(url=RESULTS_URL, text=sheriff_rows(("01", "Jane Smith", "D", 120, 1)))

        election = (await run_pipeline(definition, settings)).election

        [issue] = election.issues_of(IssueKind.FETCH_ERROR)
        assert issue.source == "metadata"
        assert election.contests[SHERIFF_ID].unmatched


class TestCacheFallback:
    """Results-feed outages with and without a cached copy."""

    async def test_stale_cache_is_degraded_success(self, httpx_mock: HTTPXMock, settings: Settings, definition) -> None:
        await FileCacheStore(settings.cache_dir).put(
            "results", RESULTS_URL, sheriff_rows(("01", "Jane Smith", "D", 120, 850))
        )
        httpx_mock.add_response(url=METADATA_URL, text=HENNEPIN)
        httpx_mock.add_response(url=RESULTS_URL, status_code=503)

        election = (await run_pipeline(definition, settings)).election

        assert election.degraded_sources == [RESULTS_URL]
        assert election.contests[SHERIFF_ID].candidates[candidate_id(SHERIFF_ID, "01")].votes == 120

    async def test_results_failure_without_fallback_aborts(
        self, httpx_mock: HTTPXMock, settings: Settings, definition
    ) -> None:
        await FileCacheStore(settings.cache_dir).put(
            "results", RESULTS_URL, sheriff_rows(("01", "Jane Smith", "D", 120, 850))
        )
        httpx_mock.add_response(url=METADATA_URL, text=HENNEPIN)
        httpx_mock.add_response(url=RESULTS_URL, status_code=503)

        with pytest.raises(FetchError, match="HTTP 503"):
            await run_pipeline(definition, settings.model_copy(update={"use_cache_on_fail": False}))


class TestPipelineVerification:
    """Verification as the last step of a pass."""

    async def test_verifies_against_definition_url(
        self, httpx_mock: HTTPXMock, settings: Settings, definition
    ) -> None:
        smith, jones = candidate_id(SHERIFF_ID, "01"), candidate_id(SHERIFF_ID, "02")
        httpx_mock.add_response(url=METADATA_URL, text=HENNEPIN)
        httpx_mock.add_response(
            url=RESULTS_URL,
            text=sheriff_rows(("01", "Jane Smith", "D", 120, 850), ("02", "Bob Jones", "R", 80, 850)),
        )
        httpx_mock.add_response(
            url=COUNTS_URL,
            json={"contests": {SHERIFF_ID: {"candidates": {smith: 120, jones: 80}, "winners": [smith]}}},
        )

        result = await run_pipeline(definition, settings, run_verification=True)

        assert result.report is not None
        assert result.report.status == VerificationStatus.MATCH
        assert result.election.contests[SHERIFF_ID].state == ContestState.VERIFIED

    async def test_without_source_is_no_data(self, httpx_mock: HTTPXMock, settings: Settings, definition) -> None:
        httpx_mock.add_response(url=METADATA_URL, text=HENNEPIN)
        httpx_mock.add_response(url=RESULTS_URL, text=sheriff_rows(("01", "Jane Smith", "D", 120, 850)))

        unverifiable = definition.model_copy(update={"verification_url": None})
        result = await run_pipeline(unverifiable, settings, run_verification=True)

        assert result.report.status == VerificationStatus.NO_DATA
        assert result.election.contests[SHERIFF_ID].state == ContestState.COMPUTED
