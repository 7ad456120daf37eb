"""
krbdiag Core Types

Value types shared by every diagnostic step.

Design Principles:
- Immutable: all types use frozen attrs; a result handed to the report
  is never changed afterwards
- Logic only: display concerns (glyphs, colours) live in the renderer
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum, auto
from typing import Optional, Tuple

import attrs
from attrs import field, validators


# =============================================================================
# ENUMS
# =============================================================================


class Status(Enum):
    """Outcome of a single diagnostic check."""

    PASSED = auto()
    FAILED = auto()
    WARNING = auto()
    INFO = auto()
    SKIPPED = auto()


class EncryptionType(Enum):
    """
    Kerberos encryption types.

    Values match the IANA Kerberos encryption type registry (RFC 3961,
    RFC 3962, RFC 4757, RFC 6803, RFC 8009).
    """

    DES_CBC_CRC = 1
    DES_CBC_MD4 = 2
    DES_CBC_MD5 = 3
    DES_CBC_RAW = 4
    DES3_CBC_RAW = 6
    DES3_CBC_SHA1 = 16
    AES128_CTS_HMAC_SHA1_96 = 17
    AES256_CTS_HMAC_SHA1_96 = 18
    AES128_CTS_HMAC_SHA256_128 = 19
    AES256_CTS_HMAC_SHA384_192 = 20
    RC4_HMAC = 23
    RC4_HMAC_EXP = 24
    CAMELLIA128_CTS_CMAC = 25
    CAMELLIA256_CTS_CMAC = 26

    @property
    def display_name(self) -> str:
        """Return the name krb5 tools print for this type."""
        return _ENCTYPE_NAMES[self]

    @property
    def is_deprecated(self) -> bool:
        """Return True if this encryption type is deprecated/insecure."""
        return self in (
            EncryptionType.DES_CBC_CRC,
            EncryptionType.DES_CBC_MD4,
            EncryptionType.DES_CBC_MD5,
            EncryptionType.DES_CBC_RAW,
            EncryptionType.DES3_CBC_RAW,
            EncryptionType.RC4_HMAC_EXP,
        )

    @classmethod
    def describe(cls, number: int) -> str:
        """Display name for a raw enctype number, known or not."""
        try:
            return cls(number).display_name
        except ValueError:
            return f"enctype-{number}"


_ENCTYPE_NAMES = {
    EncryptionType.DES_CBC_CRC: "des-cbc-crc",
    EncryptionType.DES_CBC_MD4: "des-cbc-md4",
    EncryptionType.DES_CBC_MD5: "des-cbc-md5",
    EncryptionType.DES_CBC_RAW: "des-cbc-raw",
    EncryptionType.DES3_CBC_RAW: "des3-cbc-raw",
    EncryptionType.DES3_CBC_SHA1: "des3-cbc-sha1",
    EncryptionType.AES128_CTS_HMAC_SHA1_96: "aes128-cts-hmac-sha1-96",
    EncryptionType.AES256_CTS_HMAC_SHA1_96: "aes256-cts-hmac-sha1-96",
    EncryptionType.AES128_CTS_HMAC_SHA256_128: "aes128-cts-hmac-sha256-128",
    EncryptionType.AES256_CTS_HMAC_SHA384_192: "aes256-cts-hmac-sha384-192",
    EncryptionType.RC4_HMAC: "arcfour-hmac",
    EncryptionType.RC4_HMAC_EXP: "arcfour-hmac-exp",
    EncryptionType.CAMELLIA128_CTS_CMAC: "camellia128-cts-cmac",
    EncryptionType.CAMELLIA256_CTS_CMAC: "camellia256-cts-cmac",
}


class FailureCategory(Enum):
    """Root cause of an authentication failure, in match priority order."""

    CLOCK_SKEW = "clock-skew"
    PREAUTH_FAILED = "pre-authentication-failed"
    ENCRYPTION_MISMATCH = "encryption-mismatch"
    KDC_UNREACHABLE = "kdc-unreachable"
    PRINCIPAL_NOT_FOUND = "principal-not-found"
    REALM_MISCONFIGURED = "realm-misconfigured"
    GENERIC = "generic"


# =============================================================================
# CHECK RESULTS
# =============================================================================


@attrs.define(frozen=True, slots=True)
class CheckResult:
    """
    Result of one diagnostic check.

    ``detail`` is free text and may span several lines; the renderer
    indents each line under the check name.
    """

    name: str = field(validator=[validators.instance_of(str), validators.min_len(1)])
    status: Status = field(validator=validators.instance_of(Status))
    detail: str = field(default="", validator=validators.instance_of(str))

    @property
    def detail_lines(self) -> Tuple[str, ...]:
        return tuple(self.detail.split("\n")) if self.detail else ()


# =============================================================================
# REALM CONFIGURATION
# =============================================================================


UDP_LIMIT_UNSET: Optional[int] = None


@attrs.define(frozen=True, slots=True)
class RealmConfig:
    """
    Parsed realm configuration (krb5.conf).

    INVARIANT: kdc_addresses keeps file order and duplicates. Addresses
    from every realm block are merged into this single list.
    """

    default_realm: Optional[str] = None
    kdc_addresses: Tuple[str, ...] = field(default=(), converter=tuple)
    admin_server: Optional[str] = None
    udp_preference_limit: Optional[int] = UDP_LIMIT_UNSET
    renewable: bool = False
    forwardable: bool = False
    realm_blocks: Tuple[str, ...] = field(default=(), converter=tuple)

    @property
    def udp_limit_is_set(self) -> bool:
        return self.udp_preference_limit is not UDP_LIMIT_UNSET


@attrs.define(frozen=True, slots=True)
class KdcAddress:
    """A KDC host/port pair parsed from a ``kdc`` line."""

    host: str
    port: int = 88
    raw: str = ""

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


# =============================================================================
# KEYTAB TYPES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class CredentialEntry:
    """
    One key record from a keytab.

    Key material is intentionally not retained.
    """

    principal_name: str
    enctype_number: int
    key_version_number: int
    timestamp: Optional[datetime] = None

    @property
    def encryption_type(self) -> str:
        return EncryptionType.describe(self.enctype_number)

    @property
    def is_deprecated(self) -> bool:
        try:
            return EncryptionType(self.enctype_number).is_deprecated
        except ValueError:
            return False


@attrs.define(frozen=True, slots=True)
class KeytabIdentity:
    """A principal and its key records, in keytab order."""

    principal_name: str
    entries: Tuple[CredentialEntry, ...] = field(default=(), converter=tuple)


# =============================================================================
# CLASSIFICATION
# =============================================================================


@attrs.define(frozen=True, slots=True)
class Classification:
    """Root cause and ordered remediation steps for a login failure."""

    category: FailureCategory
    title: str
    remediation: Tuple[str, ...] = field(converter=tuple)
    explanation: Optional[str] = None
