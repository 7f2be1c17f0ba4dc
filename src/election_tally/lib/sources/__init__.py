"""Source fetchers — cached retrieval and parsing of the three input feeds.

Public API:
    - MetadataFetcher / MetadataRequest: District and ballot-question metadata
    - ResultsFetcher / ResultsRequest: Raw per-candidate result rows
    - SupplementFetcher / SupplementRequest: Supplemental display records
    - FetchPolicy: use_cache / check_for_change / use_cache_on_fail
    - FetchError, ParseError, ConfigurationError: Error types
"""

from election_tally.lib.sources.base import (
    FetchError,
    FetchPolicy,
    FetchResult,
    SourceBatch,
    SourceFetcher,
    SourceRequest,
)
from election_tally.lib.sources.metadata import MetadataFetcher, MetadataRequest
from election_tally.lib.sources.records import (
    ConfigurationError,
    DistrictRecord,
    MetadataBatch,
    ParseError,
    ParseOutcome,
    QuestionRecord,
    ResultRecord,
    RowError,
    RowErrorKind,
    SupplementRecord,
)
from election_tally.lib.sources.results import ResultsFetcher, ResultsRequest
from election_tally.lib.sources.supplement import SupplementFetcher, SupplementRequest, parse_supplement_text

__all__ = [
    "ConfigurationError",
    "DistrictRecord",
    "FetchError",
    "FetchPolicy",
    "FetchResult",
    "MetadataBatch",
    "MetadataFetcher",
    "MetadataRequest",
    "ParseError",
    "ParseOutcome",
    "QuestionRecord",
    "ResultRecord",
    "ResultsFetcher",
    "ResultsRequest",
    "RowError",
    "RowErrorKind",
    "SourceBatch",
    "SourceFetcher",
    "SourceRequest",
    "SupplementFetcher",
    "SupplementRecord",
    "SupplementRequest",
    "parse_supplement_text",
]
