"""Identity normalizer — canonical IDs, display names and numeric parsing.

Public API:
    - make_id: Deterministic composite identifier with blank placeholders
    - normalize_text: Idempotent display-name normalization
    - parse_int / parse_float: Numeric parsing with None for absent
    - district_id / district_match_key / contest_id / contest_match_key /
      candidate_id: Key rules shared by parsers and the resolver
    - split_name: Candidate full-name splitting
"""

from election_tally.lib.identity.keys import (
    STATEWIDE_COUNTY_CODE,
    candidate_id,
    contest_id,
    contest_match_key,
    district_id,
    district_match_key,
)
from election_tally.lib.identity.names import NameParts, is_write_in_name, split_name
from election_tally.lib.identity.normalizer import (
    BLANK_TOKEN,
    make_id,
    normalize_text,
    pad_left,
    parse_bool,
    parse_float,
    parse_int,
    raw_text,
    title_case,
)

__all__ = [
    "BLANK_TOKEN",
    "NameParts",
    "STATEWIDE_COUNTY_CODE",
    "candidate_id",
    "contest_id",
    "contest_match_key",
    "district_id",
    "district_match_key",
    "is_write_in_name",
    "make_id",
    "normalize_text",
    "pad_left",
    "parse_bool",
    "parse_float",
    "parse_int",
    "raw_text",
    "split_name",
    "title_case",
]
