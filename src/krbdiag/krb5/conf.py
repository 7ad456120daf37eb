"""
krbdiag krb5.conf Parser

Tolerant, line-oriented parser for the realm configuration file and the
diagnostic step that validates it.

The parser is deliberately forgiving: it never rejects a file for its
syntax. It picks out the handful of settings that matter for
connectivity and lets the validation step report what is missing.

Known limitation: ``kdc`` lines are not scoped to the realm block they
appear in. Every ``kdc`` line anywhere under ``[realms]`` lands in one
list, and every ``admin_server`` line overwrites the previous one.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

import structlog
from returns.result import Failure, Result, Success

from krbdiag.core.exceptions import Krb5ConfError
from krbdiag.core.report import DiagnosticReport
from krbdiag.core.types import UDP_LIMIT_UNSET, RealmConfig, Status

logger = structlog.get_logger()

_STRIP_CHARS = re.compile(r"[\"'{}]")


# =============================================================================
# PARSING
# =============================================================================


def extract_value(line: str) -> str:
    """
    Return the text after the first ``=``, without quotes or braces.

    Examples:
        'default_realm = "EXAMPLE.COM"' -> 'EXAMPLE.COM'
        'kdc = {kdc1:88}'               -> 'kdc1:88'
        'kdc ='                         -> ''
    """
    equals = line.find("=")
    if equals > 0 and equals < len(line) - 1:
        return _STRIP_CHARS.sub("", line[equals + 1 :].strip()).strip()
    return ""


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return UDP_LIMIT_UNSET


def parse_krb5_conf_lines(lines: Iterable[str]) -> RealmConfig:
    """
    Build a RealmConfig from krb5.conf lines.

    Section names are matched case-insensitively. Inside ``[libdefaults]``
    the first matching key on a line wins (default_realm, then
    udp_preference_limit, then renewable, then forwardable).
    """
    default_realm: Optional[str] = None
    kdc_addresses: List[str] = []
    admin_server: Optional[str] = None
    udp_limit: Optional[int] = UDP_LIMIT_UNSET
    renewable = False
    forwardable = False
    realm_blocks: List[str] = []

    section = ""
    for raw in lines:
        line = raw.strip()

        if not line or line.startswith("#") or line.startswith(";"):
            continue

        if line.startswith("[") and line.endswith("]"):
            section = line[1:-1].strip().lower()
            continue

        if section == "libdefaults":
            if "default_realm" in line:
                default_realm = extract_value(line)
            elif "udp_preference_limit" in line:
                udp_limit = _parse_int(extract_value(line))
            elif "renewable" in line and "true" in line:
                renewable = True
            elif "forwardable" in line and "true" in line:
                forwardable = True

        elif section == "realms":
            lowered = line.lower()
            if "=" in line and "{" in line:
                # Recorded for reporting only; does not scope the kdc list.
                realm_blocks.append(line.split("=", 1)[0].strip())
            elif "kdc" in lowered:
                kdc = extract_value(line)
                if kdc:
                    kdc_addresses.append(kdc)
            elif "admin_server" in lowered:
                admin_server = extract_value(line)

    return RealmConfig(
        default_realm=default_realm,
        kdc_addresses=kdc_addresses,
        admin_server=admin_server,
        udp_preference_limit=udp_limit,
        renewable=renewable,
        forwardable=forwardable,
        realm_blocks=realm_blocks,
    )


def read_krb5_conf(path: Union[str, Path]) -> Result[RealmConfig, Krb5ConfError]:
    """
    Read and parse a krb5.conf file.

    Returns:
        Success(RealmConfig) or Failure(Krb5ConfError) whose ``reason`` is
        one of NOT_FOUND, NOT_READABLE, PARSE_ERROR
    """
    conf_path = Path(path)

    if not conf_path.exists():
        return Failure(Krb5ConfError(f"File not found: {conf_path}", Krb5ConfError.NOT_FOUND))

    if not os.access(conf_path, os.R_OK) or conf_path.is_dir():
        return Failure(
            Krb5ConfError(f"Cannot read file: {conf_path}", Krb5ConfError.NOT_READABLE)
        )

    try:
        with open(conf_path, "r", encoding="utf-8") as handle:
            config = parse_krb5_conf_lines(handle)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("krb5_conf_read_failed", path=str(conf_path), error=str(e))
        return Failure(Krb5ConfError(str(e), Krb5ConfError.PARSE_ERROR))

    logger.debug(
        "krb5_conf_parsed",
        path=str(conf_path),
        default_realm=config.default_realm,
        kdc_count=len(config.kdc_addresses),
    )
    return Success(config)


# =============================================================================
# VALIDATION STEP
# =============================================================================


def validate_krb5_conf(path: str, report: DiagnosticReport) -> Optional[RealmConfig]:
    """
    Validate the realm configuration file.

    Appends existence, readability and parse checks, then checks on the
    parsed settings. Missing default_realm or KDC list fail the check but
    the parsed config is still returned so the KDC step can report on it.

    Returns:
        RealmConfig, or None when the file could not be read
    """
    report.section("Step 1: krb5.conf Validation")

    result = read_krb5_conf(path)

    if isinstance(result, Failure):
        error = result.failure()
        if error.reason == Krb5ConfError.NOT_FOUND:
            report.add(
                "krb5.conf exists",
                Status.FAILED,
                f"File not found: {path}\n"
                "   Suggestion: Verify the file path and ensure the file exists",
            )
            return None
        report.add("krb5.conf exists", Status.PASSED, f"File found: {path}")
        if error.reason == Krb5ConfError.NOT_READABLE:
            report.add(
                "krb5.conf readable",
                Status.FAILED,
                f"Cannot read file: {path}\n"
                "   Suggestion: Check file permissions (chmod 644)",
            )
            return None
        report.add("krb5.conf readable", Status.PASSED, "File is readable")
        report.add(
            "krb5.conf parsing",
            Status.FAILED,
            f"Failed to parse file: {error.message}\n"
            "   Suggestion: Check if the file is valid and properly formatted",
        )
        return None

    config = result.unwrap()
    report.add("krb5.conf exists", Status.PASSED, f"File found: {path}")
    report.add("krb5.conf readable", Status.PASSED, "File is readable")
    report.add("krb5.conf parsing", Status.PASSED, "File parsed successfully")

    _check_settings(config, report)
    return config


def _check_settings(config: RealmConfig, report: DiagnosticReport) -> None:
    if not config.default_realm:
        report.add(
            "default_realm",
            Status.FAILED,
            "default_realm not found in [libdefaults] section\n"
            "   Suggestion: Add 'default_realm = YOUR.REALM' in [libdefaults]",
        )
    else:
        report.add("default_realm", Status.PASSED, f"Value: {config.default_realm}")

    if not config.kdc_addresses:
        report.add(
            "KDC configuration",
            Status.FAILED,
            "No KDC servers found in [realms] section\n"
            f"   Suggestion: Add KDC configuration under [realms] -> "
            f"{config.default_realm or 'YOUR.REALM'}",
        )
    else:
        report.add(
            "KDC configuration",
            Status.PASSED,
            f"Found {len(config.kdc_addresses)} KDC server(s): "
            f"{', '.join(config.kdc_addresses)}",
        )

    if len(config.realm_blocks) > 1:
        report.add(
            "Realm blocks",
            Status.INFO,
            f"Realms declared: {', '.join(config.realm_blocks)}\n"
            "   KDC entries from all realm blocks are checked together",
        )

    if not config.udp_limit_is_set:
        report.add("udp_preference_limit", Status.INFO, "Using default value (UDP preferred)")
    elif config.udp_preference_limit > 1:
        report.add(
            "udp_preference_limit",
            Status.WARNING,
            f"Current value: {config.udp_preference_limit}\n"
            "   Recommendation: set 'udp_preference_limit = 1' in [libdefaults]\n"
            "   to force TCP connections to KDC for better reliability",
        )
    elif config.udp_preference_limit == 1:
        report.add("udp_preference_limit", Status.PASSED, "Correctly set to 1 (TCP forced)")
    else:
        report.add(
            "udp_preference_limit",
            Status.INFO,
            f"Current value: {config.udp_preference_limit} (UDP preferred)",
        )

    if not config.renewable:
        report.add(
            "renewable",
            Status.INFO,
            "Ticket renewal not enabled. Consider adding 'renewable = true'",
        )
