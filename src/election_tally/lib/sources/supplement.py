"""Supplemental data fetcher.

The supplemental store exports delimited rows with a header. ``id`` and
``entity`` (``contest`` or ``candidate``) are required; every other
non-blank column is a display field to overlay onto the entity.
"""

import csv
import io

from election_tally.lib.identity import raw_text
from election_tally.lib.sources.base import SourceFetcher, SourceRequest
from election_tally.lib.sources.records import ParseError, ParseOutcome, RowError, SupplementRecord

SUPPLEMENT_ENTITIES = {"contest", "candidate"}


class SupplementRequest(SourceRequest):
    """A supplemental export request."""

    delimiter: str = ","


def parse_supplement_row(row: dict[str | None, str | list[str] | None]) -> SupplementRecord:
    """Parse one header-keyed supplemental row.

    Raises:
        ParseError: If ``id`` or a known ``entity`` is missing.
    """
    record_id = raw_text(row.get("id"))
    if record_id is None:
        raise ParseError("Missing required field: id")
    entity = (raw_text(row.get("entity")) or "").lower()
    if entity not in SUPPLEMENT_ENTITIES:
        msg = f"Unknown supplemental entity: {row.get('entity')!r}"
        raise ParseError(msg)

    fields = {}
    for column, value in row.items():
        # csv.DictReader puts overflow cells under a None key.
        if column is None or column in ("id", "entity") or isinstance(value, list):
            continue
        text = raw_text(value)
        if text is not None:
            fields[column.strip()] = text
    return SupplementRecord(entity=entity, id=record_id, fields=fields)


def parse_supplement_text(payload: str, delimiter: str = ",") -> ParseOutcome[SupplementRecord]:
    """Parse a header-keyed supplemental export, dropping bad rows."""
    outcome: ParseOutcome[SupplementRecord] = ParseOutcome()
    reader = csv.DictReader(io.StringIO(payload), delimiter=delimiter)

    for row_number, row in enumerate(reader, start=1):
        if not any(raw_text(v) for v in row.values() if not isinstance(v, list)):
            continue
        try:
            outcome.records.append(parse_supplement_row(row))
        except ParseError as exc:
            outcome.errors.append(RowError(row_number, str(exc)))

    return outcome


class SupplementFetcher(SourceFetcher[SupplementRecord]):
    """Fetches the supplemental store export."""

    @property
    def source_kind(self) -> str:
        return "supplement"

    def parse(self, payload: str, request: SourceRequest) -> ParseOutcome[SupplementRecord]:
        return parse_supplement_text(payload, getattr(request, "delimiter", ","))
