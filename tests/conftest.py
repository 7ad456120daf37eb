"""
Pytest configuration and shared fixtures for krbdiag tests.
"""

import struct
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
import structlog

from krbdiag.core.exceptions import LoginError, ProbeError
from krbdiag.core.report import DiagnosticReport
from krbdiag.core.settings import ToolSettings
from krbdiag.transport.gssapi_backend import LoginOptions
from krbdiag.transport.probe import ReachabilityProber


# =============================================================================
# KEYTAB BUILDING
# =============================================================================


def _data(value: bytes) -> bytes:
    return struct.pack(">H", len(value)) + value


def keytab_record(
    principal: str,
    enctype: int = 18,
    kvno: int = 2,
    key: bytes = b"\x00" * 32,
    timestamp: int = 1700000000,
    kvno32: Optional[int] = None,
) -> bytes:
    """One v2 keytab record (size prefix included)."""
    name, realm = principal.rsplit("@", 1)
    components = name.split("/")

    body = struct.pack(">H", len(components))
    body += _data(realm.encode())
    for component in components:
        body += _data(component.encode())
    body += struct.pack(">I", 1)  # KRB5_NT_PRINCIPAL
    body += struct.pack(">I", timestamp)
    body += struct.pack(">B", kvno & 0xFF)
    body += struct.pack(">H", enctype)
    body += _data(key)
    if kvno32 is not None:
        body += struct.pack(">I", kvno32)

    return struct.pack(">i", len(body)) + body


def build_keytab(records: Sequence[bytes]) -> bytes:
    """A v0x0502 keytab containing the given records."""
    return b"\x05\x02" + b"".join(records)


# =============================================================================
# FILE FIXTURES
# =============================================================================


KRB5_CONF = """\
[libdefaults]
    default_realm = TEST.REALM
    udp_preference_limit = 1
    renewable = true

[realms]
    TEST.REALM = {
        kdc = kdc1:88
        admin_server = admin1
    }
"""


@pytest.fixture
def krb5_conf_file(tmp_path):
    """A well-formed krb5.conf."""
    path = tmp_path / "krb5.conf"
    path.write_text(KRB5_CONF)
    return path


@pytest.fixture
def keytab_file(tmp_path):
    """A keytab holding hive/host@TEST.REALM with an AES256 key."""
    path = tmp_path / "hive.keytab"
    path.write_bytes(build_keytab([keytab_record("hive/host@TEST.REALM")]))
    return path


@pytest.fixture
def settings(krb5_conf_file, keytab_file) -> ToolSettings:
    """Settings pointing at the well-formed files."""
    return ToolSettings(
        keytab_path=str(keytab_file),
        principal="hive/host@TEST.REALM",
        krb5_conf_path=str(krb5_conf_file),
    )


@pytest.fixture
def report() -> DiagnosticReport:
    return DiagnosticReport()


# =============================================================================
# NETWORK FAKES
# =============================================================================


class FakeNetwork:
    """Resolver and connector backed by dicts; records every call."""

    def __init__(
        self,
        hosts: Optional[Dict[str, str]] = None,
        open_ports: Sequence[Tuple[str, int]] = (),
    ) -> None:
        self.hosts = hosts or {}
        self.open_ports = set(open_ports)
        self.resolved: List[str] = []
        self.connected: List[Tuple[str, int]] = []

    def resolve(self, host: str, timeout: float) -> str:
        self.resolved.append(host)
        if host not in self.hosts:
            raise ProbeError(f"Unknown host: {host}", host)
        return self.hosts[host]

    def connect(self, address: str, port: int, timeout: float) -> None:
        self.connected.append((address, port))
        if (address, port) not in self.open_ports:
            raise ProbeError("[Errno 111] Connection refused", address, port)

    def prober(self) -> ReachabilityProber:
        return ReachabilityProber(resolver=self.resolve, connector=self.connect)


@pytest.fixture
def network() -> FakeNetwork:
    """KDC kdc1 resolves and listens on 88."""
    return FakeNetwork(hosts={"kdc1": "10.0.0.1"}, open_ports=[("10.0.0.1", 88)])


# =============================================================================
# LOGIN FAKES
# =============================================================================


class FakeSession:
    def __init__(self, principal: str, fail_logout: bool = False) -> None:
        self._principal = principal
        self.fail_logout = fail_logout
        self.logged_out = False

    @property
    def principal(self) -> str:
        return self._principal

    @property
    def principals(self) -> Tuple[str, ...]:
        return (self._principal,)

    def logout(self) -> None:
        if self.fail_logout:
            raise LoginError("Credential release failed")
        self.logged_out = True


class FakeBackend:
    """Records login attempts; fails with ``error`` when set."""

    def __init__(self, error: Optional[LoginError] = None, fail_logout: bool = False) -> None:
        self.error = error
        self.fail_logout = fail_logout
        self.attempts: List[LoginOptions] = []
        self.session: Optional[FakeSession] = None

    def login(self, options: LoginOptions) -> FakeSession:
        self.attempts.append(options)
        if self.error is not None:
            raise self.error
        self.session = FakeSession(options.principal, fail_logout=self.fail_logout)
        return self.session


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo any structlog configuration a test (or the CLI) installed."""
    yield
    structlog.reset_defaults()


# =============================================================================
# PYTEST MARKERS
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "native: marks tests requiring native GSSAPI libraries"
    )
