"""One batch pass over an election definition.

Fetches every feed concurrently, resolves the graph, computes outcomes
and optionally verifies them. A results-feed failure aborts the pass;
metadata and supplemental failures are recorded on the graph and the
pass continues without them.
"""

import asyncio
from dataclasses import dataclass

import httpx
from loguru import logger

from election_tally.core.config import Settings
from election_tally.lib.cache import FileCacheStore
from election_tally.lib.resolver import resolve_election
from election_tally.lib.sources import (
    DistrictRecord,
    FetchError,
    FetchPolicy,
    MetadataBatch,
    MetadataFetcher,
    ResultRecord,
    ResultsFetcher,
    RowErrorKind,
    SourceBatch,
    SupplementFetcher,
    SupplementRecord,
)
from election_tally.lib.tabulator import compute_election
from election_tally.lib.verifier import HttpCountSource, IndependentCountSource, VerificationReport, verify
from election_tally.models import CacheConfig, Election, IssueKind
from election_tally.schemas.definition import ElectionDefinition


@dataclass
class PipelineResult:
    """The computed graph and, when requested, its verification report."""

    election: Election
    report: VerificationReport | None = None


def fetch_policy(settings: Settings) -> FetchPolicy:
    return FetchPolicy(
        use_cache=settings.use_cache,
        check_for_change=settings.check_for_change,
        use_cache_on_fail=settings.use_cache_on_fail,
    )


def new_election(definition: ElectionDefinition, settings: Settings) -> Election:
    """Create an empty graph root for a definition."""
    return Election(
        id=definition.id,
        title=definition.title,
        election_date=definition.election_date,
        primary=definition.primary,
        test=definition.test,
        notes=list(definition.notes),
        cache=CacheConfig(
            cache_dir=settings.cache_dir,
            use_cache=settings.use_cache,
            check_for_change=settings.check_for_change,
            use_cache_on_fail=settings.use_cache_on_fail,
        ),
    )


def _record_batch(election: Election, batch: SourceBatch) -> None:
    """Carry a batch's dropped rows and degradation onto the graph."""
    kind = batch.fetch.source_kind
    election.count_dropped(kind, batch.dropped)
    for error in batch.errors:
        issue_kind = (
            IssueKind.CONFIGURATION_ERROR if error.kind == RowErrorKind.CONFIGURATION else IssueKind.PARSE_ERROR
        )
        election.record_issue(issue_kind, f"Row {error.row_number}: {error.message}", source=kind, entity_id=batch.fetch.key)
    if batch.degraded and batch.fetch.key not in election.degraded_sources:
        election.degraded_sources.append(batch.fetch.key)


def _collect_optional(election: Election, source_kind: str, outcomes: list) -> list[SourceBatch]:
    """Keep successful batches; record failed fetches as issues."""
    batches = []
    for outcome in outcomes:
        if isinstance(outcome, FetchError):
            logger.warning("Continuing without {} source: {}", source_kind, outcome)
            election.record_issue(IssueKind.FETCH_ERROR, str(outcome), source=source_kind)
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        _record_batch(election, outcome)
        batches.append(outcome)
    return batches


async def run_pipeline(
    definition: ElectionDefinition,
    settings: Settings,
    *,
    client: httpx.AsyncClient | None = None,
    verify_source: IndependentCountSource | None = None,
    run_verification: bool = False,
) -> PipelineResult:
    """Fetch, resolve, compute and (optionally) verify one election.

    Args:
        definition: What to ingest.
        settings: Cache, HTTP and tabulation settings.
        client: Optional shared HTTP client.
        verify_source: Independent count source; when omitted and
            verification is requested, the definition's
            ``verification_url`` is used.
        run_verification: Verify computed results after tabulation.

    Returns:
        PipelineResult with the computed election and optional report.

    Raises:
        FetchError: If a results feed cannot be fetched and has no usable
            cache entry, or the independent source fails.
    """
    with logger.contextualize(election=definition.id):
        return await _run(definition, settings, client, verify_source, run_verification)


async def _run(
    definition: ElectionDefinition,
    settings: Settings,
    client: httpx.AsyncClient | None,
    verify_source: IndependentCountSource | None,
    run_verification: bool,
) -> PipelineResult:
    election = new_election(definition, settings)
    cache = FileCacheStore(settings.cache_dir)
    policy = fetch_policy(settings)
    options = {"client": client, "timeout": settings.http_timeout, "encoding": settings.feed_encoding}

    metadata_fetcher = MetadataFetcher(cache, **options)
    results_fetcher = ResultsFetcher(cache, **options)
    supplement_fetcher = SupplementFetcher(cache, **options)

    logger.info(
        "Fetching {} metadata, {} results and {} supplemental source(s) for {}",
        len(definition.metadata),
        len(definition.results),
        len(definition.supplement),
        definition.id,
    )
    metadata_outcomes, results_outcomes, supplement_outcomes = await asyncio.gather(
        asyncio.gather(*(metadata_fetcher.fetch(r, policy) for r in definition.metadata), return_exceptions=True),
        asyncio.gather(*(results_fetcher.fetch(r, policy) for r in definition.results), return_exceptions=True),
        asyncio.gather(*(supplement_fetcher.fetch(r, policy) for r in definition.supplement), return_exceptions=True),
    )

    for outcome in results_outcomes:
        if isinstance(outcome, BaseException):
            raise outcome

    metadata = MetadataBatch()
    for batch in _collect_optional(election, "metadata", list(metadata_outcomes)):
        for record in batch.records:
            if isinstance(record, DistrictRecord):
                metadata.districts.append(record)
            else:
                metadata.questions.append(record)

    supplements: list[SupplementRecord] = []
    for batch in _collect_optional(election, "supplement", list(supplement_outcomes)):
        supplements.extend(batch.records)

    results: list[ResultRecord] = []
    for batch in results_outcomes:
        _record_batch(election, batch)
        results.extend(batch.records)

    resolve_election(election, metadata, supplements, results, state_name=definition.state_name)
    compute_election(
        election,
        close_margin=settings.close_margin_percent,
        ranked_rounds=settings.ranked_rounds,
    )

    report = None
    if run_verification:
        source = verify_source
        if source is None and definition.verification_url is not None:
            source = HttpCountSource(str(definition.verification_url), client=client, timeout=settings.http_timeout)
        report = await verify(source, election)

    if election.issues:
        logger.warning("{} issue(s) recorded for {}", len(election.issues), election.id)
    return PipelineResult(election=election, report=report)
