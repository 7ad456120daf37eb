"""
krbdiag Network Probes

DNS resolution and TCP reachability checks for KDC servers and the
auxiliary Hive Metastore (HMS) endpoint.

Addresses are probed one after another. Each address is independent: a
resolution or connection failure is reported for that address and the
next one is still checked.

Bounds:
- DNS resolution: dnspython lifetime (default 5 s)
- TCP connect: 5 s
"""

from __future__ import annotations

import ipaddress
import socket
from typing import Any, Callable, Optional

import attrs
import structlog

from krbdiag.core.exceptions import ProbeError
from krbdiag.core.report import DiagnosticReport
from krbdiag.core.settings import ToolSettings
from krbdiag.core.types import KdcAddress, RealmConfig, Status

logger = structlog.get_logger()

DEFAULT_KDC_PORT = 88
CONNECT_TIMEOUT = 5.0
RESOLVE_TIMEOUT = 5.0

Resolver = Callable[[str, float], str]
Connector = Callable[[str, int, float], None]


# =============================================================================
# ADDRESS PARSING
# =============================================================================


def _port_or_default(text: str) -> int:
    try:
        port = int(text)
    except ValueError:
        return DEFAULT_KDC_PORT
    return port if 0 < port < 65536 else DEFAULT_KDC_PORT


def parse_kdc_address(raw: str) -> KdcAddress:
    """
    Split a ``kdc`` value into host and port.

    Accepted forms:
        [H]:P or [H]   bracketed literal (IPv6)
        H:P            exactly one colon
        H              anything else, port 88

    Examples:
        "[::1]:750" -> ("::1", 750)
        "host1:89"  -> ("host1", 89)
        "host2"     -> ("host2", 88)
    """
    value = raw.strip()

    if value.startswith("["):
        end = value.find("]")
        if end < 0:
            return KdcAddress(host=value[1:], port=DEFAULT_KDC_PORT, raw=raw)
        host = value[1:end]
        rest = value[end + 1 :]
        port = _port_or_default(rest[1:]) if rest.startswith(":") and len(rest) > 1 else DEFAULT_KDC_PORT
        return KdcAddress(host=host, port=port, raw=raw)

    if value.count(":") == 1:
        host, port_text = value.split(":")
        return KdcAddress(host=host.strip(), port=_port_or_default(port_text.strip()), raw=raw)

    return KdcAddress(host=value, port=DEFAULT_KDC_PORT, raw=raw)


# =============================================================================
# RESOLUTION AND CONNECTION
# =============================================================================


def dns_resolve(host: str, timeout: float = RESOLVE_TIMEOUT) -> str:
    """
    Resolve a hostname to its first address.

    IP literals are returned unchanged. Names unknown to DNS fall back to
    the system resolver once, so hosts-file entries still resolve.

    Raises:
        ProbeError: name could not be resolved
    """
    import dns.exception
    import dns.resolver

    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        pass

    try:
        answer = dns.resolver.resolve_name(host, lifetime=timeout)
        for address in answer.addresses():
            return address
    except dns.resolver.LifetimeTimeout as e:
        raise ProbeError(f"DNS lookup timed out after {timeout:.0f}s", host) from e
    except (
        dns.resolver.NXDOMAIN,
        dns.resolver.NoAnswer,
        dns.resolver.NoNameservers,
        dns.resolver.NoResolverConfiguration,
    ) as e:
        logger.debug("dns_lookup_fallback", host=host, error=str(e))
    except dns.exception.DNSException as e:
        raise ProbeError(str(e), host) from e

    try:
        infos = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        raise ProbeError(f"Unknown host: {e}", host) from e
    return infos[0][4][0]


def tcp_connect(address: str, port: int, timeout: float = CONNECT_TIMEOUT) -> None:
    """
    Open and close a TCP connection.

    Raises:
        ProbeError: refused, timed out or unreachable
    """
    try:
        with socket.create_connection((address, port), timeout=timeout):
            pass
    except socket.timeout as e:
        raise ProbeError(f"Connect timed out after {timeout:.0f}s", address, port) from e
    except OSError as e:
        raise ProbeError(str(e), address, port) from e


# =============================================================================
# PROBER
# =============================================================================


@attrs.define
class ReachabilityProber:
    """
    Resolves and connects to network endpoints, recording each outcome.

    The resolver and connector are injectable so the prober can be driven
    without network access.
    """

    resolver: Resolver = dns_resolve
    connector: Connector = tcp_connect
    resolve_timeout: float = RESOLVE_TIMEOUT
    connect_timeout: float = CONNECT_TIMEOUT

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def check_kdcs(self, config: RealmConfig, report: DiagnosticReport) -> None:
        """Probe every configured KDC address in file order."""
        report.section("Step 2: KDC Network Reachability")

        if not config.kdc_addresses:
            report.add("KDC reachability", Status.SKIPPED, "No KDC addresses to check")
            return

        for raw in config.kdc_addresses:
            self.check_kdc(parse_kdc_address(raw), report)

    def check_kdc(self, kdc: KdcAddress, report: DiagnosticReport) -> bool:
        """Resolve and connect to one KDC. Returns True if reachable."""
        resolved = self._resolve(
            kdc.host,
            f"DNS resolution [{kdc.host}]",
            report,
            failure_detail=(
                f"Cannot resolve hostname: {kdc.host}\n"
                "   Suggestion: Check DNS configuration or use IP address directly"
            ),
        )
        if resolved is None:
            return False

        name = f"TCP connection [{kdc}]"
        try:
            self.connector(resolved, kdc.port, self.connect_timeout)
        except ProbeError as e:
            self._logger.warning("kdc_unreachable", host=kdc.host, port=kdc.port, error=e.message)
            report.add(
                name,
                Status.FAILED,
                f"Cannot connect to KDC at {kdc}\n"
                f"   Suggestion: Check firewall rules, ensure port {kdc.port} is open\n"
                f"   Error: {e.message}",
            )
            return False

        self._logger.debug("kdc_reachable", host=kdc.host, port=kdc.port)
        report.add(name, Status.PASSED, f"KDC is reachable on port {kdc.port}")
        return True

    def check_hms(self, settings: ToolSettings, report: DiagnosticReport) -> None:
        """Probe the optional Hive Metastore endpoint."""
        report.section("Step 5: HMS (Hive Metastore) Connectivity")

        if not settings.hms_host:
            report.add(
                "HMS connectivity",
                Status.SKIPPED,
                "HMS host not configured. Add hms.host and hms.port to "
                "config.properties for full test",
            )
            return

        host = settings.hms_host
        port = settings.hms_port_number

        resolved = self._resolve(
            host,
            "HMS DNS resolution",
            report,
            failure_detail=f"Cannot resolve HMS host: {host}",
        )
        if resolved is None:
            return

        try:
            self.connector(resolved, port, self.connect_timeout)
        except ProbeError as e:
            report.add(
                "HMS TCP connection",
                Status.FAILED,
                f"Cannot connect to HMS at {host}:{port}\n"
                f"   Error: {e.message}\n"
                "   Suggestions:\n"
                "     1. Verify HMS service is running\n"
                f"     2. Check firewall rules for port {port}\n"
                "     3. Ensure correct hostname/IP",
            )
            return

        report.add("HMS TCP connection", Status.PASSED, f"HMS is reachable at {host}:{port}")

    def _resolve(
        self,
        host: str,
        name: str,
        report: DiagnosticReport,
        failure_detail: str,
    ) -> Optional[str]:
        try:
            resolved = self.resolver(host, self.resolve_timeout)
        except ProbeError as e:
            self._logger.warning("dns_resolution_failed", host=host, error=e.message)
            report.add(name, Status.FAILED, f"{failure_detail}\n   Error: {e.message}")
            return None

        report.add(name, Status.PASSED, f"Resolved to: {resolved}")
        return resolved
