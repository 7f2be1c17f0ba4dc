"""Unit tests for canonical ID and match-key rules."""

from election_tally.lib.identity import (
    candidate_id,
    contest_id,
    contest_match_key,
    district_id,
    district_match_key,
)
from election_tally.models import DistrictKind


class TestDistrictKeys:
    """Tests for district_id() and district_match_key()."""

    def test_county(self) -> None:
        assert district_id("2024", DistrictKind.COUNTY, county="27") == "2024-county-27"
        assert district_match_key("2024", DistrictKind.COUNTY, county="27") == "2024-county-27"

    def test_school_match_key_drops_county(self) -> None:
        assert district_id("2024", DistrictKind.SCHOOL, county="27", school="0001") == "2024-school-27-0001"
        assert district_match_key("2024", DistrictKind.SCHOOL, county="27", school="0001") == "2024-school-0001"

    def test_state(self) -> None:
        assert district_id("2024", DistrictKind.STATE) == "2024-state"

    def test_precinct(self) -> None:
        assert district_id("2024", DistrictKind.PRECINCT, county="27", precinct="0005") == "2024-precinct-27-0005"

    def test_kind_always_in_id(self) -> None:
        """A school code equal to a county code yields a different district."""
        county = district_id("2024", DistrictKind.COUNTY, county="11")
        school = district_id("2024", DistrictKind.SCHOOL, school="11")
        assert county != school

    def test_irrelevant_fields_ignored(self) -> None:
        assert district_id("2024", DistrictKind.COUNTY, county="27", school="0001") == "2024-county-27"


class TestContestAndCandidateKeys:
    """Tests for contest_id(), contest_match_key() and candidate_id()."""

    def test_contest_id(self) -> None:
        assert contest_id("2024", DistrictKind.COUNTY, "27", "1", "0101") == "2024-county-27-1-0101"

    def test_contest_id_blank_district(self) -> None:
        assert contest_id("2024", DistrictKind.COUNTY, "27", None, "0101") == "2024-county-27-|-0101"

    def test_contest_match_key_omits_county(self) -> None:
        assert contest_match_key("2024", DistrictKind.SCHOOL, "0001", "0401") == "2024-school-0001-0401"

    def test_precinct_contests_carry_precinct(self) -> None:
        first = contest_id("2024", DistrictKind.PRECINCT, "27", None, "0101", "0001")
        second = contest_id("2024", DistrictKind.PRECINCT, "27", None, "0101", "0002")
        assert first == "2024-precinct-27-|-0101-0001"
        assert first != second
        assert contest_match_key("2024", DistrictKind.PRECINCT, None, "0101", "0001") == "2024-precinct-|-0101-0001"

    def test_precinct_ignored_for_other_kinds(self) -> None:
        assert contest_id("2024", DistrictKind.COUNTY, "27", None, "0101", "0001") == "2024-county-27-|-0101"

    def test_candidate_id_by_code(self) -> None:
        assert candidate_id("c1", "0101", "Jane Smith") == "c1-0101"

    def test_candidate_id_falls_back_to_name(self) -> None:
        assert candidate_id("c1", None, "Jane Smith") == "c1-jane-smith"
