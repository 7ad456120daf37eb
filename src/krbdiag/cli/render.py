"""
krbdiag Terminal Rendering

Formats report events for a terminal with rich. The diagnostic core never
prints; it emits SectionMarker and CheckResult values and this adapter
turns them into text.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from rich.console import Console
from rich.text import Text

from krbdiag import __version__
from krbdiag.core.report import DiagnosticReport, Outcome, SectionMarker
from krbdiag.core.types import CheckResult, Status

# Status -> (glyph, style)
STATUS_STYLES: Dict[Status, Tuple[str, str]] = {
    Status.PASSED: ("✓", "green"),
    Status.FAILED: ("✗", "red"),
    Status.WARNING: ("⚠", "yellow"),
    Status.SKIPPED: ("○", "yellow"),
    Status.INFO: ("ℹ", "cyan"),
}

RULE = "━" * 64
BOX_WIDTH = 62


def _box(lines: Tuple[str, ...]) -> str:
    body = [f"║{line.center(BOX_WIDTH)}║" for line in lines]
    return "\n".join([f"╔{'═' * BOX_WIDTH}╗", *body, f"╚{'═' * BOX_WIDTH}╝"])


class ReportRenderer:
    """
    Streams a DiagnosticReport to a rich Console.

    Use an instance as the report's listener so each check is printed as
    soon as it is recorded.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False)

    def __call__(self, event: Any) -> None:
        if isinstance(event, SectionMarker):
            self.section(event.title)
        elif isinstance(event, CheckResult):
            self.check(event)

    def banner(self) -> None:
        self.console.print()
        self.console.print(
            Text(_box(("Kerberos Connectivity Diagnostic Tool", f"v{__version__}")), style="bold cyan")
        )

    def section(self, title: str) -> None:
        self.console.print()
        self.console.print(Text(RULE, style="bold cyan"))
        self.console.print(Text(f"  {title}", style="bold"))
        self.console.print(Text(RULE, style="cyan"))

    def check(self, result: CheckResult) -> None:
        glyph, style = STATUS_STYLES[result.status]
        self.console.print()
        self.console.print(Text(f"  {glyph} {result.name}", style=style))
        for line in result.detail_lines:
            self.console.print(Text(f"    {line}"), soft_wrap=True)

    def summary(self, report: DiagnosticReport) -> None:
        counts = report.counts()

        self.console.print()
        self.console.print(Text(_box(("DIAGNOSTIC SUMMARY",)), style="bold cyan"))
        self.console.print()
        for label, status in (
            ("Passed:  ", Status.PASSED),
            ("Failed:  ", Status.FAILED),
            ("Warnings:", Status.WARNING),
            ("Skipped: ", Status.SKIPPED),
            ("Info:    ", Status.INFO),
        ):
            glyph, style = STATUS_STYLES[status]
            self.console.print(Text(f"  {glyph} {label} {counts[status]}", style=style))
        self.console.print()

        outcome = report.outcome
        if outcome is Outcome.FAILED:
            self.console.print(Text("  RESULT: DIAGNOSTIC FAILED", style="bold red"))
            self.console.print()
            self.console.print("  Failed checks:")
            for name in report.failed_checks():
                self.console.print(Text(f"    • {name}", style="red"))
            self.console.print()
            self.console.print(
                "  Please address the failed checks above to resolve connectivity issues."
            )
        elif outcome is Outcome.PASSED_WITH_WARNINGS:
            self.console.print(Text("  RESULT: PASSED WITH WARNINGS", style="bold yellow"))
            self.console.print()
            self.console.print(
                "  Kerberos authentication should work, but consider addressing warnings."
            )
        else:
            self.console.print(Text("  RESULT: ALL CHECKS PASSED", style="bold green"))
            self.console.print()
            self.console.print("  Kerberos configuration appears to be correct.")
        self.console.print()
