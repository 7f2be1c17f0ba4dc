"""District entity: a geographic or administrative unit."""

from dataclasses import dataclass, field
from enum import StrEnum


class DistrictKind(StrEnum):
    """Closed set of district kinds; each has its own row schema and ID rule."""

    STATE = "state"
    COUNTY = "county"
    SCHOOL = "school"
    LOCAL = "local"
    PRECINCT = "precinct"


@dataclass
class District:
    """A county, school district, municipality, precinct or the whole state.

    Attributes:
        id: Canonical ID built from (election ID, kind, natural key).
        kind: District kind.
        contest_match: Looser join key for result rows that carry only a
            partial geographic key (a school code without its county).
        name: Normalized display name.
        county: Two-digit county code, when the district has one.
        school: Four-digit school district code.
        local: Five-digit municipal FIPS code.
        precinct: Four-digit precinct code.
        county_name: Display name of the containing county.
        parent_ids: Canonical IDs of containing/peer districts
            (a precinct's county, school district and municipality).
        precincts: Total precinct count, when known.
        attributes: Kind-specific extras (legislative/judicial codes).
    """

    id: str
    kind: DistrictKind
    contest_match: str | None = None
    name: str | None = None
    county: str | None = None
    school: str | None = None
    local: str | None = None
    precinct: str | None = None
    county_name: str | None = None
    parent_ids: list[str] = field(default_factory=list)
    precincts: int | None = None
    attributes: dict[str, str] = field(default_factory=dict)
