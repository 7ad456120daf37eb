"""
krbdiag Exception Types

Custom exceptions for diagnostic failures. Expected failure modes are
converted into check results by the step that owns them; these types carry
the detail across module boundaries until that happens.
"""

from typing import Optional


class KrbDiagError(Exception):
    """Base exception for all krbdiag errors."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class SettingsError(KrbDiagError):
    """
    Tool settings could not be loaded.

    Raised when the properties file is missing or unreadable. This is the
    only fatal condition: no diagnostic step can run without settings.
    """

    pass


class Krb5ConfError(KrbDiagError):
    """
    Realm configuration file could not be read.

    Distinguishes the three access failures via ``reason``.
    """

    NOT_FOUND = "not_found"
    NOT_READABLE = "not_readable"
    PARSE_ERROR = "parse_error"

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class KeytabError(KrbDiagError):
    """Keytab file could not be accessed."""

    pass


class KeytabFormatError(KeytabError):
    """
    Keytab content is malformed.

    The file was readable but its binary structure does not follow the
    keytab layout (bad version header, truncated record, etc).
    """

    pass


class ProbeError(KrbDiagError):
    """
    Network probe failed.

    Raised by resolvers and connectors; ``host`` and ``port`` identify the
    target so the report can name it.
    """

    def __init__(self, message: str, host: str, port: Optional[int] = None) -> None:
        super().__init__(message)
        self.host = host
        self.port = port


class LoginError(KrbDiagError):
    """
    Authentication handshake failed.

    ``cause`` holds the underlying library/protocol text, which is often
    more specific than the top-level message.
    """

    def __init__(self, message: str, cause: str = "") -> None:
        super().__init__(message)
        self.cause = cause
