"""
krbdiag Failure Classifier

Maps raw authentication failure text to a root cause and remediation steps.

Failure text frequently matches more than one rule (a KDC reply can mention
both clock skew and the client), so rules are tried in a fixed priority
order and the first match wins. Matching is case-insensitive.

The classifier is a pure function and has no side effects.
"""

from __future__ import annotations

import re
from typing import Optional, Pattern, Sequence, Tuple

import attrs

from krbdiag.core.types import Classification, FailureCategory


@attrs.define(frozen=True, slots=True)
class _Rule:
    category: FailureCategory
    patterns: Tuple[Pattern[str], ...]
    title: str
    remediation: Tuple[str, ...]
    explanation: Optional[str] = None

    def matches(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns)


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


RULES: Sequence[_Rule] = (
    _Rule(
        category=FailureCategory.CLOCK_SKEW,
        patterns=_compile(r"clock skew"),
        title="TIME SYNCHRONIZATION ERROR",
        explanation="The time difference between your machine and KDC is too large (>5 minutes)",
        remediation=(
            "Sync your system clock: sudo ntpdate <ntp-server>",
            "Or use: timedatectl set-ntp true",
            "Check KDC server time as well",
        ),
    ),
    _Rule(
        category=FailureCategory.PREAUTH_FAILED,
        patterns=_compile(r"pre-?authentication"),
        title="PRE-AUTHENTICATION FAILED",
        remediation=(
            "Verify the keytab was generated with the correct password",
            "Check if the principal exists in KDC: kadmin -q 'getprinc <principal>'",
            "Regenerate keytab: kadmin -q 'ktadd -k <keytab> <principal>'",
        ),
    ),
    _Rule(
        category=FailureCategory.ENCRYPTION_MISMATCH,
        patterns=_compile(r"cannot find key", r"no key"),
        title="ENCRYPTION TYPE MISMATCH",
        explanation="The encryption types in keytab don't match KDC requirements",
        remediation=(
            "List keytab encryption types: klist -kte <keytab>",
            "Regenerate keytab with matching encryption types",
            "Check permitted_enctypes in krb5.conf",
        ),
    ),
    _Rule(
        category=FailureCategory.KDC_UNREACHABLE,
        patterns=_compile(r"cannot contact", r"connection refused", r"unknown host"),
        title="KDC CONNECTIVITY ISSUE",
        remediation=(
            "Verify KDC address in krb5.conf",
            "Check network connectivity and firewall rules",
            "Ensure KDC service is running",
        ),
    ),
    _Rule(
        category=FailureCategory.PRINCIPAL_NOT_FOUND,
        # MIT quotes the name: "Client 'x@R' not found in Kerberos database"
        patterns=_compile(r"client not found", r"unknown client", r"client '[^']*' not found"),
        title="PRINCIPAL NOT FOUND IN KDC",
        remediation=(
            "Verify principal exists: kadmin -q 'getprinc <principal>'",
            "Check for typos in principal name",
            "Ensure the realm is correct",
        ),
    ),
    _Rule(
        category=FailureCategory.REALM_MISCONFIGURED,
        patterns=_compile(r"realm not found", r"cannot find realm", r"cannot find kdc for realm"),
        title="REALM CONFIGURATION ERROR",
        remediation=(
            "Verify realm is defined in krb5.conf [realms] section",
            "Check default_realm in [libdefaults]",
            "Ensure realm name matches exactly (case-sensitive)",
        ),
    ),
)

GENERIC = Classification(
    category=FailureCategory.GENERIC,
    title="UNCLASSIFIED AUTHENTICATION FAILURE",
    remediation=(
        "Enable library tracing: export KRB5_TRACE=/dev/stderr and rerun",
        "Check /var/log/krb5kdc.log on KDC server",
        "Verify all configuration files are correct",
    ),
)


def classify_failure(message: Optional[str], cause: Optional[str] = None) -> Classification:
    """
    Classify a login failure.

    Args:
        message: Top-level failure message
        cause: Underlying cause text, if any

    Returns:
        Classification of the first matching rule, or the generic checklist
    """
    text = f"{message or ''} {cause or ''}"
    for rule in RULES:
        if rule.matches(text):
            return Classification(
                category=rule.category,
                title=rule.title,
                remediation=rule.remediation,
                explanation=rule.explanation,
            )
    return GENERIC


def describe_failure(message: Optional[str], cause: Optional[str] = None) -> str:
    """
    Multi-line report text for a login failure.

    Includes the error, root cause (when classified), numbered suggestions
    and the underlying cause line when a cause exists.
    """
    classification = classify_failure(message, cause)

    lines = ["Authentication failed", f"   Error: {message or ''}"]
    if classification.category is not FailureCategory.GENERIC:
        lines.append(f"   Root Cause: {classification.title}")
    if classification.explanation:
        lines.append(f"   {classification.explanation}")
    lines.append("   Suggestions:")
    for number, step in enumerate(classification.remediation, start=1):
        lines.append(f"     {number}. {step}")
    if cause:
        lines.append(f"   Underlying cause: {cause}")
    return "\n".join(lines)
