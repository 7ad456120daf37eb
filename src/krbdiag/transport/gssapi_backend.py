"""
krbdiag GSSAPI Login Backend

Keytab login through the GSSAPI library, configured entirely in memory.

No external login configuration file is read. The realm configuration is
selected with KRB5_CONFIG and the credential store is built per login:
- client_keytab: the keytab under test
- ccache: a fresh MEMORY cache, so existing tickets are never reused

Requirements:
- gssapi Python package (pip install gssapi)
- MIT Kerberos or Heimdal libraries installed
"""

from __future__ import annotations

import os
import uuid
from typing import Any, Dict, Optional, Protocol, Tuple

import attrs
import structlog

from krbdiag.core.exceptions import LoginError

# Check if GSSAPI is available
try:
    import gssapi
    from gssapi import raw as gssapi_raw
    _gssapi_available = True
    _gssapi_error = None
except ImportError as e:
    gssapi = None  # type: ignore
    gssapi_raw = None  # type: ignore
    _gssapi_available = False
    _gssapi_error = str(e)
except OSError as e:
    # Package installed but the native Kerberos library is missing
    gssapi = None  # type: ignore
    gssapi_raw = None  # type: ignore
    _gssapi_available = False
    _gssapi_error = str(e)


def gssapi_available() -> bool:
    """Check if GSSAPI is available."""
    return _gssapi_available


# =============================================================================
# LOGIN CONFIGURATION
# =============================================================================


@attrs.define(frozen=True, slots=True)
class LoginOptions:
    """
    Credential configuration for a single keytab login.

    Attributes:
        krb5_conf: Realm configuration file for this process
        keytab: Keytab holding the principal's long-term keys
        principal: Identity to log in as
        use_keytab: Take keys from the keytab
        store_key: Keep the derived key with the credentials
        do_not_prompt: Never ask for a password
        use_ticket_cache: Reuse tickets from an existing cache
        refresh_krb5_config: Reload the realm configuration before login
        is_initiator: Acquire initiator (client) credentials
    """

    krb5_conf: str
    keytab: str
    principal: str
    use_keytab: bool = True
    store_key: bool = True
    do_not_prompt: bool = True
    use_ticket_cache: bool = False
    refresh_krb5_config: bool = True
    is_initiator: bool = True

    @classmethod
    def for_keytab(cls, krb5_conf: str, keytab: str, principal: str) -> "LoginOptions":
        return cls(krb5_conf=krb5_conf, keytab=keytab, principal=principal)


class LoginSession(Protocol):
    """Credentials obtained by a successful login."""

    @property
    def principal(self) -> str:
        ...

    @property
    def principals(self) -> Tuple[str, ...]:
        ...

    def logout(self) -> None:
        """Invalidate the credentials. Raises LoginError on failure."""
        ...


class AuthenticationBackend(Protocol):
    """Performs exactly one login attempt."""

    def login(self, options: LoginOptions) -> LoginSession:
        """
        Log in with the given options.

        Raises:
            LoginError: handshake failed; ``cause`` carries the underlying text
        """
        ...


# =============================================================================
# GSSAPI IMPLEMENTATION
# =============================================================================


def _gss_error_texts(error: Exception) -> Tuple[str, str]:
    """Split a GSSError into (major, minor) status text."""
    major = ""
    minor = ""
    if isinstance(error, gssapi.exceptions.GSSError):
        major = "; ".join(error.get_all_statuses(error.maj_code, True))
        minor = "; ".join(error.get_all_statuses(error.min_code, False))
    return (major or str(error)), minor


@attrs.define
class GSSAPISession:
    """Initiator credentials held in a private memory cache."""

    _principal: str
    _principals: Tuple[str, ...]
    _creds: Any
    lifetime: Optional[int] = None

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    @property
    def principal(self) -> str:
        return self._principal

    @property
    def principals(self) -> Tuple[str, ...]:
        return self._principals

    def logout(self) -> None:
        if self._creds is None:
            return
        try:
            gssapi_raw.release_cred(self._creds)
        except gssapi.exceptions.GSSError as e:
            message, cause = _gss_error_texts(e)
            raise LoginError(message, cause) from e
        finally:
            self._creds = None
        self._logger.debug("gssapi_credentials_released", principal=self._principal)


@attrs.define
class GSSAPIBackend:
    """
    Login backend using the system Kerberos library via GSSAPI.

    Example:
        backend = GSSAPIBackend()
        session = backend.login(
            LoginOptions.for_keytab("/etc/krb5.conf", "/etc/hive.keytab", "hive@EXAMPLE.COM")
        )
        print(session.principals)
        session.logout()
    """

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def login(self, options: LoginOptions) -> GSSAPISession:
        if not _gssapi_available:
            raise LoginError(
                "GSSAPI library not available. Install with: pip install gssapi",
                _gssapi_error or "",
            )

        if options.refresh_krb5_config:
            # Process-scoped: every later library call uses this realm config.
            os.environ["KRB5_CONFIG"] = options.krb5_conf

        store: Dict[str, str] = {}
        if not options.use_ticket_cache:
            store["ccache"] = f"MEMORY:krbdiag-{uuid.uuid4().hex}"
        if options.use_keytab:
            store["client_keytab"] = options.keytab
        usage = "initiate" if options.is_initiator else "accept"

        self._logger.debug(
            "gssapi_login_attempt",
            principal=options.principal,
            keytab=options.keytab,
            krb5_conf=options.krb5_conf,
            store=sorted(store),
            store_key=options.store_key,
            do_not_prompt=options.do_not_prompt,
        )

        try:
            name = gssapi.Name(options.principal, gssapi.NameType.kerberos_principal)
            acquired = gssapi_raw.acquire_cred_from(store, name=name, usage=usage)
            creds = gssapi.Credentials(base=acquired.creds)
            # Resolving the credentials performs the initial ticket exchange.
            info = creds.inquire()
        except gssapi.exceptions.GSSError as e:
            message, cause = _gss_error_texts(e)
            self._logger.warning("gssapi_login_failed", principal=options.principal, error=message)
            raise LoginError(message, cause) from e

        resolved = str(info.name) if info.name is not None else options.principal
        self._logger.info("gssapi_login_succeeded", principal=resolved, lifetime=info.lifetime)

        return GSSAPISession(
            principal=options.principal,
            principals=(resolved,),
            creds=creds,
            lifetime=info.lifetime,
        )
