"""Canonical ID and contest-match key rules per district kind.

Both the metadata parser and the resolver build keys through these
helpers so that districts and the contests pointing at them agree on
one scheme. Kind is always a key component: a school code and a county
code can coincide.
"""

from election_tally.lib.identity.normalizer import make_id
from election_tally.models.district import DistrictKind

# Natural-key fields per kind: (canonical ID fields, contest-match fields).
# A school district or municipality can span counties, so its canonical ID
# carries the county while its contest-match key does not.
DISTRICT_KEY_FIELDS: dict[DistrictKind, tuple[tuple[str, ...], tuple[str, ...]]] = {
    DistrictKind.STATE: ((), ()),
    DistrictKind.COUNTY: (("county",), ("county",)),
    DistrictKind.SCHOOL: (("county", "school"), ("school",)),
    DistrictKind.LOCAL: (("county", "local"), ("local",)),
    DistrictKind.PRECINCT: (("county", "precinct"), ("county", "precinct")),
}

assert set(DISTRICT_KEY_FIELDS) == set(DistrictKind), "DISTRICT_KEY_FIELDS must cover every DistrictKind."

# Code used by the state feeds for statewide rows.
STATEWIDE_COUNTY_CODE = "88"


def district_id(election_id: str, kind: DistrictKind, **natural_key: str | None) -> str:
    """Canonical district ID for (election, kind, natural key)."""
    fields, _ = DISTRICT_KEY_FIELDS[kind]
    return make_id([election_id, kind.value, *(natural_key.get(f) for f in fields)])  # type: ignore[return-value]


def district_match_key(election_id: str, kind: DistrictKind, **natural_key: str | None) -> str:
    """Looser district key used when a row lacks full geographic qualification."""
    _, fields = DISTRICT_KEY_FIELDS[kind]
    return make_id([election_id, kind.value, *(natural_key.get(f) for f in fields)])  # type: ignore[return-value]


def contest_id(
    election_id: str,
    kind: DistrictKind,
    county: str | None,
    district: str | None,
    office: str | None,
    precinct: str | None = None,
) -> str:
    """Canonical contest ID.

    Precinct contests also carry the precinct code; the same office is
    reported once per precinct.
    """
    parts = [election_id, kind.value, county, district, office]
    if kind == DistrictKind.PRECINCT:
        parts.append(precinct)
    return make_id(parts)  # type: ignore[return-value]


def contest_match_key(
    election_id: str,
    kind: DistrictKind,
    district: str | None,
    office: str | None,
    precinct: str | None = None,
) -> str:
    """Contest key without the county, for rows that omit it."""
    parts = [election_id, kind.value, district, office]
    if kind == DistrictKind.PRECINCT:
        parts.append(precinct)
    return make_id(parts)  # type: ignore[return-value]


def candidate_id(contest: str, code: str | None, name: str | None = None) -> str:
    """Candidate ID scoped to its contest; falls back to the name without a code."""
    return make_id([contest, code if code is not None else name])  # type: ignore[return-value]
