"""District metadata fetcher and semicolon-delimited row parsers.

Each district kind has its own positional schema (see the state's
download-file-format documentation):

    county:   county;name;precincts
    school:   school;name;county;county_name
    local:    county;county_name;local(FIPS);name
    precinct: county;precinct;name;congress;state_house;county_commissioner;
              judicial;soil_water;local;school

The questions file carries ballot-question text:

    questions: county;contest;local;school;number;title;text
"""

import csv
import io
import re
from collections.abc import Callable
from typing import Literal

from election_tally.lib.identity import (
    STATEWIDE_COUNTY_CODE,
    normalize_text,
    pad_left,
    parse_int,
    raw_text,
)
from election_tally.lib.sources.base import SourceFetcher, SourceRequest
from election_tally.lib.sources.records import (
    ConfigurationError,
    DistrictRecord,
    ParseError,
    ParseOutcome,
    QuestionRecord,
    RowError,
    RowErrorKind,
)
from election_tally.models.district import DistrictKind

_SCHOOL_NAME_TAIL = re.compile(r"\b(area\s+)?school\s+district\b", re.IGNORECASE)
_QUESTION_BOILERPLATE = re.compile(r"(by\s+voting\s+|passage\s+of\s+this\s+ref).*$", re.IGNORECASE | re.DOTALL)


class MetadataRequest(SourceRequest):
    """A metadata file request.

    Attributes:
        dataset: "districts" or "questions".
        kind: District kind of every row in a districts file. Required for
            districts; rows of a districts file without it are rejected.
    """

    dataset: Literal["districts", "questions"] = "districts"
    kind: DistrictKind | None = None


def _cell(row: list[str], index: int) -> str | None:
    return raw_text(row[index]) if index < len(row) else None


def _require(value: str | None, field_name: str) -> str:
    if value is None:
        msg = f"Missing required field: {field_name}"
        raise ParseError(msg)
    return value


def _parse_county(row: list[str]) -> DistrictRecord:
    county = _require(pad_left(_cell(row, 0), 2), "county")
    return DistrictRecord(
        kind=DistrictKind.COUNTY,
        county=county,
        name=_require(normalize_text(_cell(row, 1)), "name"),
        precincts=parse_int(_cell(row, 2)),
    )


def _parse_school(row: list[str]) -> DistrictRecord:
    school = _require(pad_left(_cell(row, 0), 4), "school")
    raw_name = _require(_cell(row, 1), "name")
    name = normalize_text(_SCHOOL_NAME_TAIL.sub("", raw_name)) or normalize_text(raw_name)
    return DistrictRecord(
        kind=DistrictKind.SCHOOL,
        school=school,
        name=name,
        county=pad_left(_cell(row, 2), 2),
        county_name=normalize_text(_cell(row, 3)),
    )


def _parse_local(row: list[str]) -> DistrictRecord:
    return DistrictRecord(
        kind=DistrictKind.LOCAL,
        county=pad_left(_cell(row, 0), 2),
        county_name=normalize_text(_cell(row, 1)),
        local=_require(pad_left(_cell(row, 2), 5), "local"),
        name=_require(normalize_text(_cell(row, 3)), "name"),
    )


def _parse_precinct(row: list[str]) -> DistrictRecord:
    state_house = pad_left(_cell(row, 4), 3)
    attributes = {
        "congress": _cell(row, 3),
        "state_house": state_house,
        # Senate district is the house district without its letter.
        "state_senate": re.sub(r"[a-z]+", "", state_house, flags=re.IGNORECASE) if state_house else None,
        "county_commissioner": pad_left(_cell(row, 5), 2),
        "judicial": pad_left(_cell(row, 6), 2),
        "soil_water": pad_left(_cell(row, 7), 4),
    }
    return DistrictRecord(
        kind=DistrictKind.PRECINCT,
        county=_require(pad_left(_cell(row, 0), 2), "county"),
        precinct=_require(pad_left(_cell(row, 1), 4), "precinct"),
        name=normalize_text(_cell(row, 2)),
        local=pad_left(_cell(row, 8), 5),
        school=pad_left(_cell(row, 9), 4),
        attributes={k: v for k, v in attributes.items() if v},
    )


_DISTRICT_ROW_PARSERS: dict[DistrictKind, Callable[[list[str]], DistrictRecord]] = {
    DistrictKind.COUNTY: _parse_county,
    DistrictKind.SCHOOL: _parse_school,
    DistrictKind.LOCAL: _parse_local,
    DistrictKind.PRECINCT: _parse_precinct,
}

# The statewide district is synthesized by the resolver; every other kind
# needs a row parser.
assert set(_DISTRICT_ROW_PARSERS) == set(DistrictKind) - {DistrictKind.STATE}, (
    "_DISTRICT_ROW_PARSERS must cover every metadata-backed DistrictKind."
)


def parse_district_row(row: list[str], kind: DistrictKind | None) -> DistrictRecord:
    """Parse one districts-file row for the given kind.

    Raises:
        ConfigurationError: If no (or a non-metadata) kind is given.
        ParseError: If a required field is missing.
    """
    if kind is None:
        msg = "District kind not provided for districts row"
        raise ConfigurationError(msg)
    parser = _DISTRICT_ROW_PARSERS.get(kind)
    if parser is None:
        msg = f"No metadata schema for district kind '{kind}'"
        raise ConfigurationError(msg)
    return parser(row)


def clean_question_text(text: str | None) -> str | None:
    """Strip feed markup and the trailing "BY VOTING YES..." boilerplate."""
    if text is None:
        return None
    cleaned = re.sub(r"&bull\^", "", text, flags=re.IGNORECASE)
    cleaned = re.sub(r"\^\s", "; ", cleaned)
    cleaned = cleaned.replace("\n", "  ")
    cleaned = re.sub(r"\s{3,}", "  ", cleaned).strip()
    cleaned = _QUESTION_BOILERPLATE.sub("", cleaned).strip()
    return cleaned or None


def parse_question_row(row: list[str]) -> QuestionRecord:
    """Parse one questions-file row.

    The most specific code present decides the kind: statewide (county 88),
    then school, municipal, county.
    """
    county = pad_left(_cell(row, 0), 2)
    office = _require(pad_left(_cell(row, 1), 4), "contest")
    local = pad_left(_cell(row, 2), 5)
    school = pad_left(_cell(row, 3), 4)
    raw_title = _cell(row, 5)

    if county == STATEWIDE_COUNTY_CODE:
        kind, district = DistrictKind.STATE, None
    elif school:
        kind, district = DistrictKind.SCHOOL, school
    elif local:
        kind, district = DistrictKind.LOCAL, local
    elif county:
        kind, district = DistrictKind.COUNTY, county
    else:
        msg = "Question row has no county, school or local code"
        raise ParseError(msg)

    return QuestionRecord(
        kind=kind,
        county=county,
        district=district,
        office=office,
        number=_cell(row, 4),
        title=normalize_text(re.sub(r"[^\w\s]", " ", raw_title)) if raw_title else None,
        text=clean_question_text(_cell(row, 6)),
    )


def split_rows(payload: str, delimiter: str = ";") -> list[list[str]]:
    """Split a delimited payload into rows, skipping blank lines."""
    reader = csv.reader(io.StringIO(payload), delimiter=delimiter, quotechar='"')
    return [row for row in reader if any(cell.strip() for cell in row)]


class MetadataFetcher(SourceFetcher[DistrictRecord | QuestionRecord]):
    """Fetches district and ballot-question metadata files."""

    @property
    def source_kind(self) -> str:
        return "metadata"

    def parse(self, payload: str, request: SourceRequest) -> ParseOutcome[DistrictRecord | QuestionRecord]:
        dataset = getattr(request, "dataset", "districts")
        kind = getattr(request, "kind", None)
        outcome: ParseOutcome[DistrictRecord | QuestionRecord] = ParseOutcome()

        for row_number, row in enumerate(split_rows(payload), start=1):
            try:
                if dataset == "questions":
                    outcome.records.append(parse_question_row(row))
                else:
                    outcome.records.append(parse_district_row(row, kind))
            except ConfigurationError as exc:
                outcome.errors.append(RowError(row_number, str(exc), RowErrorKind.CONFIGURATION))
            except ParseError as exc:
                outcome.errors.append(RowError(row_number, str(exc)))

        return outcome
