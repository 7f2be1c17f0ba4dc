"""Typer CLI root application."""

import typer

from election_tally.core.config import get_settings
from election_tally.core.logging import setup_logging

app = typer.Typer(name="election-tally", help="Election results ingestion, tabulation and verification CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir, json_logs=settings.log_json)


def _register_commands() -> None:
    """Register all CLI commands."""
    from election_tally.cli.tabulate_cmd import setup, tabulate, verify_cmd

    app.command("tabulate")(tabulate)
    app.command("verify")(verify_cmd)
    app.command("setup")(setup)


_register_commands()
