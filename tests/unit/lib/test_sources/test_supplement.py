"""Unit tests for supplemental record parsing."""

import pytest

from election_tally.lib.sources import ParseError, parse_supplement_text
from election_tally.lib.sources.supplement import parse_supplement_row


class TestParseSupplementRow:
    """Tests for parse_supplement_row()."""

    def test_display_fields(self) -> None:
        record = parse_supplement_row({"id": "c1", "entity": "Contest", "title": "Mayor", "seat_name": " "})
        assert record.entity == "contest"
        assert record.id == "c1"
        assert record.fields == {"title": "Mayor"}

    def test_missing_id(self) -> None:
        with pytest.raises(ParseError, match="id"):
            parse_supplement_row({"id": "", "entity": "contest"})

    def test_unknown_entity(self) -> None:
        with pytest.raises(ParseError, match="entity"):
            parse_supplement_row({"id": "c1", "entity": "widget"})


class TestParseSupplementText:
    """Tests for parse_supplement_text()."""

    def test_drops_invalid_rows(self) -> None:
        payload = "id,entity,title\nc1,contest,Mayor\n,contest,x\nc2,widget,y\n,,\n"
        outcome = parse_supplement_text(payload)
        assert [r.id for r in outcome.records] == ["c1"]
        assert outcome.dropped == 2

    def test_overflow_cells_ignored(self) -> None:
        outcome = parse_supplement_text("id,entity\nc1,contest,extra\n")
        assert outcome.records[0].fields == {}
