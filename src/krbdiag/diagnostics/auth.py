"""
krbdiag Authentication Test

Performs one keytab login and reports the outcome. A failed login is
classified into a root cause with remediation steps. The handshake is
never retried.
"""

from __future__ import annotations

from typing import Any, Optional

import attrs
import structlog

from krbdiag.core.exceptions import LoginError
from krbdiag.core.report import DiagnosticReport
from krbdiag.core.types import Classification, Status
from krbdiag.krb5.classifier import classify_failure, describe_failure
from krbdiag.transport.gssapi_backend import (
    AuthenticationBackend,
    GSSAPIBackend,
    LoginOptions,
)


@attrs.define
class AuthenticationTester:
    """
    Runs the Kerberos authentication step against a backend.

    Attributes:
        backend: Login backend; GSSAPI by default, replaceable in tests
        last_classification: Root cause of the most recent failed login
    """

    backend: AuthenticationBackend = attrs.Factory(GSSAPIBackend)
    last_classification: Optional[Classification] = None

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def run(
        self,
        krb5_conf_path: str,
        keytab_path: str,
        principal: str,
        report: DiagnosticReport,
    ) -> bool:
        """
        Log in once, then log out.

        Returns:
            True if the login succeeded
        """
        report.section("Step 4: Kerberos Authentication Test")

        options = LoginOptions.for_keytab(krb5_conf_path, keytab_path, principal)
        self._logger.info("kerberos_login_started", principal=principal)

        try:
            session = self.backend.login(options)
        except LoginError as e:
            self._record_failure(principal, e.message, e.cause, report)
            return False
        except Exception as e:
            # Any other backend error is classified like a login failure.
            self._logger.exception("kerberos_login_crashed", principal=principal)
            self._record_failure(principal, str(e) or type(e).__name__, type(e).__name__, report)
            return False

        report.add(
            "Kerberos authentication",
            Status.PASSED,
            f"Successfully authenticated as: {principal}\n"
            f"   Subject principals: [{', '.join(session.principals)}]",
        )

        try:
            session.logout()
        except LoginError as e:
            report.add(
                "Kerberos logout",
                Status.FAILED,
                f"Failed to release credentials\n   Error: {e.message}",
            )
            return True

        report.add("Kerberos logout", Status.PASSED, "Successfully logged out")
        return True

    def _record_failure(
        self,
        principal: str,
        message: str,
        cause: Optional[str],
        report: DiagnosticReport,
    ) -> None:
        self.last_classification = classify_failure(message, cause)
        self._logger.warning(
            "kerberos_login_failed",
            principal=principal,
            category=self.last_classification.category.value,
        )
        report.add("Kerberos authentication", Status.FAILED, describe_failure(message, cause))
