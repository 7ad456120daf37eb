"""
krbdiag Keytab Reader

Parser for the MIT keytab binary format and the diagnostic step that
validates a keytab against the expected principal.

Format (version 0x0502, big-endian; 0x0501 uses native byte order):
    uint8   0x05
    uint8   version (1 or 2)
    entries:
        int32   record size (negative = hole of that many bytes)
        uint16  component count (v1 counts the realm too)
        data    realm
        data    component * count
        uint32  name type (v2 only)
        uint32  timestamp
        uint8   key version
        uint16  enctype
        data    key
        uint32  32-bit key version (optional, overrides the 8-bit one)
    data = uint16 length + bytes
"""

from __future__ import annotations

import os
import struct
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Union

import structlog
from returns.result import Failure, Result, Success

from krbdiag.core.exceptions import KeytabError, KeytabFormatError
from krbdiag.core.report import DiagnosticReport
from krbdiag.core.types import CredentialEntry, KeytabIdentity, Status

logger = structlog.get_logger()

KEYTAB_MAGIC = 0x05
KEYTAB_V1 = 0x01
KEYTAB_V2 = 0x02


# =============================================================================
# BINARY PARSING
# =============================================================================


class _RecordReader:
    """Cursor over one keytab record."""

    def __init__(self, data: bytes, order: str) -> None:
        self._data = data
        self._order = order
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def _unpack(self, fmt: str) -> int:
        size = struct.calcsize(fmt)
        if self.remaining < size:
            raise KeytabFormatError("Truncated keytab record")
        (value,) = struct.unpack_from(self._order + fmt, self._data, self._pos)
        self._pos += size
        return value

    def u8(self) -> int:
        return self._unpack("B")

    def u16(self) -> int:
        return self._unpack("H")

    def u32(self) -> int:
        return self._unpack("I")

    def counted_bytes(self) -> bytes:
        length = self.u16()
        if self.remaining < length:
            raise KeytabFormatError("Truncated keytab record")
        value = self._data[self._pos : self._pos + length]
        self._pos += length
        return value

    def counted_string(self) -> str:
        try:
            return self.counted_bytes().decode("utf-8")
        except UnicodeDecodeError as e:
            raise KeytabFormatError(f"Invalid principal encoding: {e}") from e


def _parse_entry(record: bytes, version: int, order: str) -> CredentialEntry:
    reader = _RecordReader(record, order)

    count = reader.u16()
    if version == KEYTAB_V1:
        count -= 1

    realm = reader.counted_string()
    components = [reader.counted_string() for _ in range(count)]
    if version == KEYTAB_V2:
        reader.u32()  # name type

    timestamp = reader.u32()
    kvno = reader.u8()
    enctype = reader.u16()
    reader.counted_bytes()  # key material, not retained

    if reader.remaining >= 4:
        kvno32 = reader.u32()
        if kvno32 != 0:
            kvno = kvno32

    return CredentialEntry(
        principal_name=f"{'/'.join(components)}@{realm}",
        enctype_number=enctype,
        key_version_number=kvno,
        timestamp=datetime.fromtimestamp(timestamp, tz=timezone.utc),
    )


def parse_keytab(data: bytes) -> List[KeytabIdentity]:
    """
    Parse keytab bytes into identities.

    Identities keep first-seen order and each holds its entries in file
    order. An empty file or a header with no records yields an empty list.

    Raises:
        KeytabFormatError: bad header or truncated record
    """
    if not data:
        return []
    if len(data) < 2 or data[0] != KEYTAB_MAGIC or data[1] not in (KEYTAB_V1, KEYTAB_V2):
        raise KeytabFormatError(f"Unsupported keytab header: {data[:2].hex()}")

    version = data[1]
    order = ">" if version == KEYTAB_V2 else ("<" if sys.byteorder == "little" else ">")

    grouped: Dict[str, List[CredentialEntry]] = {}
    pos = 2
    while len(data) - pos >= 4:
        (size,) = struct.unpack_from(order + "i", data, pos)
        pos += 4
        if size == 0:
            break
        if size < 0:
            pos += -size
            continue
        if len(data) - pos < size:
            raise KeytabFormatError("Truncated keytab record")

        entry = _parse_entry(data[pos : pos + size], version, order)
        grouped.setdefault(entry.principal_name, []).append(entry)
        pos += size

    return [
        KeytabIdentity(principal_name=name, entries=entries)
        for name, entries in grouped.items()
    ]


def read_keytab(path: Union[str, Path]) -> Result[List[KeytabIdentity], KeytabError]:
    """
    Read and parse a keytab file.

    Returns:
        Success(list of KeytabIdentity) or Failure(KeytabError)
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        return Failure(KeytabError(str(e)))

    try:
        identities = parse_keytab(data)
    except KeytabFormatError as e:
        logger.warning("keytab_parse_failed", path=str(path), error=e.message)
        return Failure(e)

    logger.debug(
        "keytab_parsed",
        path=str(path),
        principals=[i.principal_name for i in identities],
    )
    return Success(identities)


# =============================================================================
# VALIDATION STEP
# =============================================================================


def format_listing(identities: List[KeytabIdentity], expected_principal: str) -> str:
    """Human readable listing of principals and keys, marking the match."""
    lines = ["Principals in keytab:"]
    for identity in identities:
        marker = " [MATCH]" if identity.principal_name == expected_principal else ""
        lines.append(f"   - {identity.principal_name}{marker}")
        for entry in identity.entries:
            lines.append(
                f"      EncType: {entry.encryption_type}, KVNO: {entry.key_version_number}"
            )
    return "\n".join(lines)


def validate_keytab(path: str, expected_principal: str, report: DiagnosticReport) -> bool:
    """
    Validate the keytab file and look for the expected principal.

    Parsing and principal match are separate gates; both must pass.
    Principal names are compared exactly (case-sensitive).

    Returns:
        True if the keytab parsed, is non-empty and holds the principal
    """
    report.section("Step 3: Keytab File Validation")

    keytab_file = Path(path)
    if not keytab_file.exists():
        report.add(
            "Keytab exists",
            Status.FAILED,
            f"File not found: {path}\n"
            "   Suggestion: Verify the keytab file path in config.properties",
        )
        return False
    report.add("Keytab exists", Status.PASSED, f"File found: {path}")

    if not os.access(keytab_file, os.R_OK) or keytab_file.is_dir():
        report.add(
            "Keytab readable",
            Status.FAILED,
            f"Cannot read file: {path}\n"
            "   Suggestion: Check file permissions (chmod 400 or 600)",
        )
        return False
    report.add("Keytab readable", Status.PASSED, "File is readable")

    result = read_keytab(keytab_file)
    if isinstance(result, Failure):
        report.add(
            "Keytab parsing",
            Status.FAILED,
            "Failed to parse keytab file\n"
            f"   Error: {result.failure().message}\n"
            "   Suggestion: The keytab file may be corrupted. Try regenerating it.",
        )
        return False

    identities = result.unwrap()
    if not identities:
        report.add(
            "Keytab content",
            Status.FAILED,
            "Keytab file is empty or corrupted\n"
            "   Suggestion: Regenerate the keytab file using kadmin or ktutil",
        )
        return False

    report.add("Keytab content", Status.PASSED, format_listing(identities, expected_principal))

    matched = [i for i in identities if i.principal_name == expected_principal]
    if not matched:
        report.add(
            "Principal match",
            Status.FAILED,
            "Expected principal NOT found in keytab!\n"
            f"   Expected: {expected_principal}\n"
            "   Suggestion: Verify the principal name or regenerate keytab with correct principal\n"
            "   Common issues:\n"
            "     - Case sensitivity mismatch\n"
            "     - Missing realm suffix (@REALM.COM)\n"
            "     - Hostname mismatch in service principal",
        )
        return False

    report.add("Principal match", Status.PASSED, f"Expected principal found: {expected_principal}")

    entries = matched[0].entries
    if entries and all(entry.is_deprecated for entry in entries):
        names = sorted({entry.encryption_type for entry in entries})
        report.add(
            "Keytab encryption types",
            Status.WARNING,
            f"Only weak encryption types for {expected_principal}: {', '.join(names)}\n"
            "   Recommendation: Regenerate the keytab with aes256-cts-hmac-sha1-96\n"
            "   Many KDCs reject DES and export-grade RC4 keys",
        )

    return True
