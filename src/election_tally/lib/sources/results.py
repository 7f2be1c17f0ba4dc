"""Raw results fetcher and row parser.

Results are semicolon-delimited, one row per candidate per contest:

    state;county;precinct;office;office_name;district;candidate_code;
    candidate_name;suffix;incumbent;party;precincts_reporting;
    total_precincts;votes;percent;total_votes[;round_1;round_2;...]

Columns past ``total_votes`` are per-round ranked-choice tallies. Trailing
blank cells (a trailing delimiter) are ignored; any remaining round
column marks the contest as ranked.
"""

from election_tally.lib.identity import pad_left, parse_float, parse_int, raw_text
from election_tally.lib.sources.base import SourceFetcher, SourceRequest
from election_tally.lib.sources.metadata import split_rows
from election_tally.lib.sources.records import (
    ConfigurationError,
    ParseError,
    ParseOutcome,
    ResultRecord,
    RowError,
    RowErrorKind,
)
from election_tally.models.district import DistrictKind

MIN_RESULT_COLUMNS = 8
ROUND_COLUMNS_START = 16

_INCUMBENT_TRUE = {"1", "y", "yes", "i", "true", "t"}
_INCUMBENT_FALSE = {"0", "n", "no", "false", "f"}


class ResultsRequest(SourceRequest):
    """A results file request.

    Attributes:
        kind: District kind of the contests in this file (county races,
            school board races, ...).
        delimiter: Field delimiter.
    """

    kind: DistrictKind | None = None
    delimiter: str = ";"


def _cell(row: list[str], index: int) -> str | None:
    return raw_text(row[index]) if index < len(row) else None


def _count(row: list[str], index: int, field_name: str) -> int | None:
    """Parse an optional count column; garbage (not blank) is a row error."""
    text = _cell(row, index)
    if text is None:
        return None
    value = parse_int(text)
    if value is None:
        msg = f"Unparseable {field_name}: {text!r}"
        raise ParseError(msg)
    return value


def _incumbent(value: str | None) -> bool | None:
    if value is None:
        return None
    lowered = value.lower()
    if lowered in _INCUMBENT_TRUE:
        return True
    if lowered in _INCUMBENT_FALSE:
        return False
    return None


def parse_result_row(row: list[str], kind: DistrictKind | None, row_number: int = 0, source: str | None = None) -> ResultRecord:
    """Parse one results row.

    Raises:
        ConfigurationError: If the request did not name a district kind.
        ParseError: If the row is short, lacks an office or candidate, or
            carries an unparseable count.
    """
    if kind is None:
        msg = "District kind not provided for results row"
        raise ConfigurationError(msg)
    if len(row) < MIN_RESULT_COLUMNS:
        msg = f"Expected at least {MIN_RESULT_COLUMNS} columns, got {len(row)}"
        raise ParseError(msg, row_number)

    office = _cell(row, 3)
    if office is None:
        raise ParseError("Missing required field: office", row_number)
    candidate_name = _cell(row, 7)
    if candidate_name is None:
        raise ParseError("Missing required field: candidate_name", row_number)

    end = len(row)
    while end > ROUND_COLUMNS_START and _cell(row, end - 1) is None:
        end -= 1
    rounds = tuple(_count(row, i, f"round {i - ROUND_COLUMNS_START + 1} votes") for i in range(ROUND_COLUMNS_START, end))

    percent_text = _cell(row, 14)
    return ResultRecord(
        kind=kind,
        county=pad_left(_cell(row, 1), 2),
        precinct=pad_left(_cell(row, 2), 4),
        office=pad_left(office, 4) or office,
        office_name=_cell(row, 4),
        district=_cell(row, 5),
        candidate_code=_cell(row, 6),
        candidate_name=candidate_name,
        suffix=_cell(row, 8),
        incumbent=_incumbent(_cell(row, 9)),
        party=(_cell(row, 10) or "").upper() or None,
        precincts_reporting=_count(row, 11, "precincts_reporting"),
        total_precincts=_count(row, 12, "total_precincts"),
        votes=_count(row, 13, "votes"),
        reported_percent=parse_float(percent_text) if percent_text else None,
        total_votes=_count(row, 15, "total_votes"),
        round_votes=rounds,
        row_number=row_number,
        source=source,
    )


class ResultsFetcher(SourceFetcher[ResultRecord]):
    """Fetches raw results files."""

    @property
    def source_kind(self) -> str:
        return "results"

    def parse(self, payload: str, request: SourceRequest) -> ParseOutcome[ResultRecord]:
        kind = getattr(request, "kind", None)
        delimiter = getattr(request, "delimiter", ";")
        outcome: ParseOutcome[ResultRecord] = ParseOutcome()

        for row_number, row in enumerate(split_rows(payload, delimiter), start=1):
            try:
                outcome.records.append(parse_result_row(row, kind, row_number, request.cache_key))
            except ConfigurationError as exc:
                outcome.errors.append(RowError(row_number, str(exc), RowErrorKind.CONFIGURATION))
            except ParseError as exc:
                outcome.errors.append(RowError(row_number, str(exc)))

        return outcome
