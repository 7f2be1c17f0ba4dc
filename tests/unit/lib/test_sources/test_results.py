"""Unit tests for results row parsing."""

import pytest

from election_tally.lib.cache import FileCacheStore
from election_tally.lib.sources import (
    ConfigurationError,
    ParseError,
    ResultsFetcher,
    ResultsRequest,
    RowErrorKind,
)
from election_tally.lib.sources.results import parse_result_row
from election_tally.models import DistrictKind

ROW = "27;27;;101;County Commissioner District 1;1;0101;Jane Smith;;Y;dfl;10;20;120;60.0;200"


def _row(text: str = ROW) -> list[str]:
    return text.split(";")


class TestParseResultRow:
    """Tests for parse_result_row()."""

    def test_fields(self) -> None:
        record = parse_result_row(_row(), DistrictKind.COUNTY, row_number=3, source="county.txt")
        assert record.kind == DistrictKind.COUNTY
        assert record.county == "27"
        assert record.precinct is None
        assert record.office == "0101"
        assert record.office_name == "County Commissioner District 1"
        assert record.district == "1"
        assert record.candidate_code == "0101"
        assert record.candidate_name == "Jane Smith"
        assert record.incumbent is True
        assert record.party == "DFL"
        assert record.precincts_reporting == 10
        assert record.total_precincts == 20
        assert record.votes == 120
        assert record.reported_percent == 60.0
        assert record.total_votes == 200
        assert record.round_votes == ()
        assert not record.ranked
        assert record.row_number == 3
        assert record.source == "county.txt"

    def test_round_columns_mark_ranked(self) -> None:
        record = parse_result_row(_row(ROW + ";100;;150"), DistrictKind.LOCAL)
        assert record.ranked
        assert record.round_votes == (100, None, 150)

    def test_trailing_blank_rounds_dropped(self) -> None:
        record = parse_result_row(_row(ROW + ";100;150;;"), DistrictKind.LOCAL)
        assert record.round_votes == (100, 150)

    def test_trailing_delimiter_is_not_ranked(self) -> None:
        record = parse_result_row(_row(ROW + ";"), DistrictKind.COUNTY)
        assert record.round_votes == ()
        assert not record.ranked

    def test_blank_votes_are_absent_not_zero(self) -> None:
        record = parse_result_row(_row("27;27;;101;Office;;1;Jane;;;;;;;;"), DistrictKind.COUNTY)
        assert record.votes is None
        assert record.total_votes is None

    def test_short_row(self) -> None:
        with pytest.raises(ParseError, match="columns"):
            parse_result_row(["27", "27", "", "101"], DistrictKind.COUNTY)

    def test_missing_candidate(self) -> None:
        with pytest.raises(ParseError, match="candidate_name"):
            parse_result_row(_row("27;27;;101;Office;;1;;;;;;;5;;"), DistrictKind.COUNTY)

    def test_garbage_count(self) -> None:
        with pytest.raises(ParseError, match="votes"):
            parse_result_row(_row("27;27;;101;Office;;1;Jane;;;;;;lots;;"), DistrictKind.COUNTY)

    def test_missing_kind(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_result_row(_row(), None)


class TestResultsFetcherParse:
    """Tests for ResultsFetcher.parse()."""

    def test_drops_bad_rows(self, cache: FileCacheStore) -> None:
        fetcher = ResultsFetcher(cache)
        request = ResultsRequest(url="https://feeds.test/county.txt", kind=DistrictKind.COUNTY)
        payload = "\n".join([ROW, "27;27;;101", ROW.replace("Jane Smith", "Bob Jones")])
        outcome = fetcher.parse(payload, request)
        assert [r.candidate_name for r in outcome.records] == ["Jane Smith", "Bob Jones"]
        assert outcome.dropped == 1
        assert outcome.errors[0].row_number == 2
        assert outcome.records[0].source == "https://feeds.test/county.txt"

    def test_missing_kind(self, cache: FileCacheStore) -> None:
        fetcher = ResultsFetcher(cache)
        outcome = fetcher.parse(ROW, ResultsRequest(url="https://feeds.test/county.txt"))
        assert outcome.records == []
        assert outcome.errors[0].kind == RowErrorKind.CONFIGURATION
