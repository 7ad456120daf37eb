"""
krbdiag Transport Layer

Network probes and the login backend.
"""

from krbdiag.transport.probe import ReachabilityProber, parse_kdc_address
from krbdiag.transport.gssapi_backend import (
    AuthenticationBackend,
    GSSAPIBackend,
    LoginOptions,
    LoginSession,
    gssapi_available,
)

__all__ = [
    "ReachabilityProber",
    "parse_kdc_address",
    "AuthenticationBackend",
    "GSSAPIBackend",
    "LoginOptions",
    "LoginSession",
    "gssapi_available",
]
