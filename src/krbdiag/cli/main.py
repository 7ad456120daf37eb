"""
krbdiag Command Line

Entry point for the ``krbdiag`` console script.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console

from krbdiag.cli.render import ReportRenderer
from krbdiag.core.exceptions import SettingsError
from krbdiag.core.report import DiagnosticReport
from krbdiag.core.settings import load_settings
from krbdiag.diagnostics.runner import DiagnosticRunner

app = typer.Typer(
    add_completion=False,
    help="Diagnose Kerberos keytab authentication before wiring it into a service.",
)


def configure_logging(verbose: bool = False) -> None:
    """Send structlog output to stderr; DEBUG when verbose, else WARNING."""
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


@app.command()
def run(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Settings file (default: ./config.properties).",
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable ANSI colours."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log diagnostic events to stderr."),
) -> None:
    """Run every diagnostic check once and exit 1 if any check failed."""
    configure_logging(verbose)

    console = Console(highlight=False, no_color=no_color)
    renderer = ReportRenderer(console)
    renderer.banner()

    try:
        settings = load_settings(config)
    except SettingsError as e:
        console.print(e.message, markup=False)
        raise typer.Exit(code=1)

    report = DiagnosticReport(listener=renderer)
    DiagnosticRunner().run(settings, report)

    renderer.summary(report)
    raise typer.Exit(code=report.exit_code)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
