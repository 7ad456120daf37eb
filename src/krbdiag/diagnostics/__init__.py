"""krbdiag diagnostic pipeline."""

from krbdiag.diagnostics.auth import AuthenticationTester
from krbdiag.diagnostics.runner import DiagnosticRunner, validate_settings

__all__ = ["AuthenticationTester", "DiagnosticRunner", "validate_settings"]
