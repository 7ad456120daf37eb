"""
krbdiag Core Module

Foundational types shared by every diagnostic step.

Components:
- types: Value types (CheckResult, RealmConfig, CredentialEntry, ...)
- report: Append-only DiagnosticReport and its summary
- settings: Tool settings loaded from config.properties
- exceptions: Custom exception types
"""

from krbdiag.core.types import (
    CheckResult,
    Classification,
    CredentialEntry,
    EncryptionType,
    FailureCategory,
    KdcAddress,
    KeytabIdentity,
    RealmConfig,
    Status,
)
from krbdiag.core.report import DiagnosticReport, Outcome, SectionMarker
from krbdiag.core.exceptions import (
    KrbDiagError,
    SettingsError,
    Krb5ConfError,
    KeytabError,
    KeytabFormatError,
    ProbeError,
    LoginError,
)

__all__ = [
    # Types
    "CheckResult",
    "Classification",
    "CredentialEntry",
    "EncryptionType",
    "FailureCategory",
    "KdcAddress",
    "KeytabIdentity",
    "RealmConfig",
    "Status",
    # Report
    "DiagnosticReport",
    "Outcome",
    "SectionMarker",
    # Exceptions
    "KrbDiagError",
    "SettingsError",
    "Krb5ConfError",
    "KeytabError",
    "KeytabFormatError",
    "ProbeError",
    "LoginError",
]
