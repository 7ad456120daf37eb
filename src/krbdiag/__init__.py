"""
krbdiag - Kerberos Connectivity Diagnostics

Finds out why a keytab-based Kerberos setup fails before it is wired into
a service. One run checks, in order:

- krb5.conf structure and settings
- KDC DNS resolution and TCP reachability
- Keytab contents and the expected principal
- An actual keytab login (GSSAPI), with failure classification

Example Usage:
    from krbdiag import DiagnosticReport, DiagnosticRunner, load_settings

    report = DiagnosticReport()
    DiagnosticRunner().run(load_settings("config.properties"), report)
    for name in report.failed_checks():
        print(f"fix: {name}")
"""

__version__ = "1.0.0"

from krbdiag.core.types import CheckResult, RealmConfig, Status
from krbdiag.core.report import DiagnosticReport, Outcome
from krbdiag.core.settings import ToolSettings, load_settings
from krbdiag.diagnostics.runner import DiagnosticRunner

__all__ = [
    # Main API
    "DiagnosticRunner",
    "DiagnosticReport",
    "load_settings",
    # Types
    "CheckResult",
    "Outcome",
    "RealmConfig",
    "Status",
    "ToolSettings",
    # Metadata
    "__version__",
]
