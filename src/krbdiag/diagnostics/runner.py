"""
krbdiag Diagnostic Runner

Orchestrates the diagnostic pipeline:

1. Settings validation (required keys present)
2. krb5.conf validation
3. KDC reachability (needs a parsed krb5.conf)
4. Keytab validation (independent of 2 and 3)
5. Kerberos authentication (needs both a parsed krb5.conf and a valid keytab)
6. HMS reachability (optional, independent)

Steps run one after another on a single thread. Every step appends to the
same DiagnosticReport. A step that raises unexpectedly is recorded as a
FAILED check and its dependants are skipped; the run itself continues.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

import attrs
import structlog

from krbdiag.core.report import DiagnosticReport
from krbdiag.core.settings import REQUIRED_KEYS, ToolSettings
from krbdiag.core.types import RealmConfig, Status
from krbdiag.diagnostics.auth import AuthenticationTester
from krbdiag.krb5.conf import validate_krb5_conf
from krbdiag.krb5.keytab import validate_keytab
from krbdiag.transport.probe import ReachabilityProber

logger = structlog.get_logger()

T = TypeVar("T")


def validate_settings(settings: ToolSettings, report: DiagnosticReport) -> bool:
    """
    Check that every required setting is present.

    Returns:
        True if no required key is missing or empty
    """
    report.section("Configuration Validation")
    valid = True
    source = settings.source or "config.properties"

    for key in REQUIRED_KEYS:
        value = settings.value_of(key)
        if value:
            report.add(key, Status.PASSED, f"Configured: {value}")
        else:
            report.add(key, Status.FAILED, f"{key} is not configured in {source}")
            valid = False

    return valid


@attrs.define
class DiagnosticRunner:
    """
    Runs every diagnostic step for one set of settings.

    Example:
        report = DiagnosticReport()
        DiagnosticRunner().run(load_settings(), report)
        sys.exit(report.exit_code)
    """

    prober: ReachabilityProber = attrs.Factory(ReachabilityProber)
    tester: AuthenticationTester = attrs.Factory(AuthenticationTester)

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def run(self, settings: ToolSettings, report: DiagnosticReport) -> DiagnosticReport:
        """Run the pipeline, appending every result to ``report``."""
        if not validate_settings(settings, report):
            self._logger.warning("required_settings_missing", missing=settings.missing_keys())
            return report

        config: Optional[RealmConfig] = self._guarded(
            "krb5.conf validation",
            report,
            None,
            validate_krb5_conf,
            settings.krb5_conf_path,
            report,
        )

        if config is not None:
            self._guarded("KDC reachability", report, None, self.prober.check_kdcs, config, report)

        keytab_valid: bool = self._guarded(
            "Keytab validation",
            report,
            False,
            validate_keytab,
            settings.keytab_path,
            settings.principal,
            report,
        )

        if keytab_valid and config is not None:
            self._guarded(
                "Kerberos authentication",
                report,
                False,
                self.tester.run,
                settings.krb5_conf_path,
                settings.keytab_path,
                settings.principal,
                report,
            )
        else:
            report.section("Step 4: Kerberos Authentication Test")
            blockers = []
            if config is None:
                blockers.append("krb5.conf")
            if not keytab_valid:
                blockers.append("keytab")
            report.add(
                "Kerberos authentication",
                Status.SKIPPED,
                f"Skipped because {' and '.join(blockers)} validation failed",
            )

        self._guarded("HMS connectivity", report, None, self.prober.check_hms, settings, report)

        self._logger.info(
            "diagnostics_completed",
            outcome=report.outcome.name,
            failed=report.failed_checks(),
        )
        return report

    def _guarded(
        self,
        step: str,
        report: DiagnosticReport,
        default: T,
        func: Callable[..., T],
        *args: Any,
    ) -> T:
        """Run one step; an unexpected exception becomes a FAILED check."""
        self._logger.debug("diagnostic_step_started", step=step)
        try:
            return func(*args)
        except Exception as e:
            self._logger.exception("diagnostic_step_crashed", step=step)
            report.add(
                f"{step} (unexpected error)",
                Status.FAILED,
                f"{type(e).__name__}: {e}\n"
                "   Dependent checks were skipped. Rerun with --verbose for details.",
            )
            return default
