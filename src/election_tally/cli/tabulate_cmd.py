"""CLI commands for tabulating, verifying and setting up an election."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger
from pydantic import ValidationError

from election_tally.lib.sources import FetchError


def _load(definition_path: Path):
    from election_tally.schemas.definition import load_definition

    try:
        return load_definition(definition_path)
    except FileNotFoundError:
        typer.echo(f"Definition file not found: {definition_path}", err=True)
        raise typer.Exit(code=1) from None
    except ValidationError as exc:
        typer.echo(f"Invalid election definition {definition_path}:\n{exc}", err=True)
        raise typer.Exit(code=1) from None


def _settings(use_cache: bool | None):
    from election_tally.core.config import get_settings

    settings = get_settings()
    if use_cache is not None:
        settings = settings.model_copy(update={"use_cache": use_cache})
    return settings


def _echo_summary(election) -> None:
    contests = list(election.contests.values())
    typer.echo(f"Election {election.id}: {election.title}{' (TEST)' if election.test else ''}")
    typer.echo(f"  Contests:    {len(contests)}")
    typer.echo(f"  Districts:   {len(election.districts)}")
    typer.echo(f"  Unmatched:   {len(election.unmatched_contests)}")
    typer.echo(f"  Uncontested: {sum(1 for c in contests if c.uncontested)}")
    typer.echo(f"  Close:       {sum(1 for c in contests if c.close)}")
    if election.dropped_rows:
        dropped = ", ".join(f"{k}={v}" for k, v in sorted(election.dropped_rows.items()))
        typer.echo(f"  Dropped rows: {dropped}")
    if election.degraded_sources:
        typer.echo(f"  Degraded (served from cache): {len(election.degraded_sources)}")
    if election.issues:
        typer.echo(f"  Issues:      {len(election.issues)}")


def _echo_report(report) -> None:
    typer.echo(f"Verification: {report.status}")
    for row in report.mismatches:
        typer.echo(f"  MISMATCH {row.contest_id}")
        for diff in row.diffs:
            details = ", ".join(f"{k}={v}" for k, v in diff.items() if k != "field")
            typer.echo(f"    {diff['field']}: {details}")
    if report.unverified:
        typer.echo(f"  No independent data for {len(report.unverified)} contest(s)")


def tabulate(
    definition: Annotated[Path, typer.Argument(help="Election definition JSON file")],
    output: Annotated[Path | None, typer.Option("--output", help="Export file path")] = None,
    verify: Annotated[bool, typer.Option("--verify", help="Verify against the independent count")] = False,
    use_cache: Annotated[
        bool | None,
        typer.Option("--use-cache/--no-cache", help="Serve cached feeds when unchanged"),
    ] = None,
) -> None:
    """Fetch, resolve and compute an election, then write the export JSON."""
    asyncio.run(_tabulate_impl(definition, output, verify, use_cache))


async def _tabulate_impl(definition_path: Path, output: Path | None, verify: bool, use_cache: bool | None) -> None:
    """Async implementation of the tabulate command."""
    from election_tally.schemas.election import export_election
    from election_tally.services.pipeline_service import run_pipeline

    definition = _load(definition_path)
    settings = _settings(use_cache)

    try:
        result = await run_pipeline(definition, settings, run_verification=verify)
    except FetchError as exc:
        logger.error("Tabulation of {} aborted: {}", definition.id, exc)
        typer.echo(f"Fetch failed: {exc}", err=True)
        raise typer.Exit(code=1) from None

    out = output or Path(settings.output_dir) / f"{definition.id}.json"
    export_election(result.election).write_export(out)
    _echo_summary(result.election)
    if result.report is not None:
        _echo_report(result.report)
    typer.echo(f"  Export:      {out}")


def verify_cmd(
    definition: Annotated[Path, typer.Argument(help="Election definition JSON file")],
    apply: Annotated[
        bool,
        typer.Option("--apply-corrections", help="Adopt independent counts for mismatched contests"),
    ] = False,
    output: Annotated[Path | None, typer.Option("--output", help="Export file path (with --apply-corrections)")] = None,
) -> None:
    """Verify computed results against the definition's independent count."""
    asyncio.run(_verify_impl(definition, apply, output))


async def _verify_impl(definition_path: Path, apply: bool, output: Path | None) -> None:
    """Async implementation of the verify command."""
    from election_tally.lib.verifier import VerificationStatus, apply_corrections
    from election_tally.schemas.election import export_election
    from election_tally.services.pipeline_service import run_pipeline

    definition = _load(definition_path)
    if definition.verification_url is None:
        typer.echo("Definition has no verification_url", err=True)
        raise typer.Exit(code=1)
    settings = _settings(None)

    try:
        result = await run_pipeline(definition, settings, run_verification=True)
    except FetchError as exc:
        typer.echo(f"Fetch failed: {exc}", err=True)
        raise typer.Exit(code=1) from None

    report = result.report
    _echo_report(report)

    if apply and report.mismatches:
        corrected = apply_corrections(
            result.election,
            report,
            close_margin=settings.close_margin_percent,
            ranked_rounds=settings.ranked_rounds,
        )
        out = output or Path(settings.output_dir) / f"{definition.id}.json"
        export_election(result.election).write_export(out)
        typer.echo(f"Corrected {len(corrected)} contest(s); export written to {out}")
        for row in report.mismatches:
            typer.echo(f"  STILL MISMATCHED {row.contest_id}")

    if report.status == VerificationStatus.MISMATCH:
        raise typer.Exit(code=2)


def setup(
    definition: Annotated[Path, typer.Argument(help="Election definition JSON file")],
    store: Annotated[Path, typer.Option("--store", help="Supplemental CSV store to seed")],
) -> None:
    """Seed the supplemental store with IDs for new contests and candidates."""
    asyncio.run(_setup_impl(definition, store))


async def _setup_impl(definition_path: Path, store_path: Path) -> None:
    """Async implementation of the setup command."""
    from election_tally.services.pipeline_service import run_pipeline
    from election_tally.services.setup_service import CsvSupplementStore, setup_supplement

    definition = _load(definition_path)
    settings = _settings(None)

    try:
        result = await run_pipeline(definition, settings)
    except FetchError as exc:
        typer.echo(f"Fetch failed: {exc}", err=True)
        raise typer.Exit(code=1) from None

    pushed = await setup_supplement(result.election, CsvSupplementStore(store_path))
    typer.echo(f"Pushed {pushed} new record(s) to {store_path}")
