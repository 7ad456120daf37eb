"""
krbdiag Diagnostic Report

Append-only log of check results plus the summary derived from it.

The report is owned by the orchestrator and passed into every step. Steps
may only append; nothing rewrites or removes an earlier entry, so the
order of ``results`` is the order in which checks ran.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Tuple

import attrs
import structlog

from krbdiag.core.types import CheckResult, Status

logger = structlog.get_logger()


class Outcome(Enum):
    """Overall verdict of a run."""

    PASSED = auto()
    PASSED_WITH_WARNINGS = auto()
    FAILED = auto()


@attrs.define(frozen=True, slots=True)
class SectionMarker:
    """Position in the log where a new report section starts."""

    title: str
    index: int


@attrs.define
class DiagnosticReport:
    """
    Ordered record of every check performed in one run.

    ``listener`` is called with each appended result and each section title
    as it happens, so a renderer can stream output without the report
    knowing anything about presentation.

    Example:
        report = DiagnosticReport()
        report.section("Step 1: krb5.conf Validation")
        report.add("krb5.conf exists", Status.PASSED, "File found: /etc/krb5.conf")
        if report.has_failures:
            print(report.failed_checks())
    """

    listener: Optional[Callable[[Any], None]] = None

    _results: List[CheckResult] = attrs.Factory(list)
    _sections: List[SectionMarker] = attrs.Factory(list)

    def section(self, title: str) -> None:
        """Start a new section; the next results belong to it."""
        marker = SectionMarker(title=title, index=len(self._results))
        self._sections.append(marker)
        if self.listener is not None:
            self.listener(marker)

    def append(self, result: CheckResult) -> CheckResult:
        """Append a result. Returns it for convenience."""
        self._results.append(result)
        logger.debug(
            "check_recorded",
            check=result.name,
            status=result.status.name,
        )
        if self.listener is not None:
            self.listener(result)
        return result

    def add(self, name: str, status: Status, detail: str = "") -> CheckResult:
        """Build a CheckResult and append it."""
        return self.append(CheckResult(name=name, status=status, detail=detail))

    @property
    def results(self) -> Tuple[CheckResult, ...]:
        return tuple(self._results)

    @property
    def sections(self) -> Tuple[SectionMarker, ...]:
        return tuple(self._sections)

    def __len__(self) -> int:
        return len(self._results)

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def count(self, status: Status) -> int:
        return sum(1 for r in self._results if r.status is status)

    def counts(self) -> Dict[Status, int]:
        """Number of results per status, every status present."""
        return {status: self.count(status) for status in Status}

    @property
    def has_failures(self) -> bool:
        return any(r.status is Status.FAILED for r in self._results)

    @property
    def has_warnings(self) -> bool:
        return any(r.status is Status.WARNING for r in self._results)

    @property
    def outcome(self) -> Outcome:
        """
        Overall verdict.

        Any FAILED result fails the run; otherwise any WARNING gives a pass
        with warnings; otherwise the run is clean.
        """
        if self.has_failures:
            return Outcome.FAILED
        if self.has_warnings:
            return Outcome.PASSED_WITH_WARNINGS
        return Outcome.PASSED

    @property
    def exit_code(self) -> int:
        """Process exit status: 1 if anything FAILED, else 0."""
        return 1 if self.has_failures else 0

    def failed_checks(self) -> List[str]:
        """Names of FAILED checks in execution order."""
        return [r.name for r in self._results if r.status is Status.FAILED]
