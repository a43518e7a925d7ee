import logging
import socket
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Tuple

logger = logging.getLogger(__name__)

DEFAULT_PORT = 443


@dataclass(frozen=True)
class ProbeResult:
    dns_time: timedelta
    tcp_time: timedelta
    reachable: bool


def ensure_port(host: str) -> str:
    """Append the default HTTPS port when the host has none."""
    host = host.strip()
    if host.startswith("["):
        # IPv6 literal, with or without port
        return host if "]:" in host else f"{host}:{DEFAULT_PORT}"
    if ":" not in host:
        return f"{host}:{DEFAULT_PORT}"
    if host.count(":") > 1:
        # Bare IPv6 address
        return f"[{host}]:{DEFAULT_PORT}"
    return host


def split_host_port(host_with_port: str) -> Tuple[str, int]:
    """
    Split "host:port" into its parts, defaulting to port 443.

    Raises:
        ValueError: if the port is not a number between 0 and 65535
    """
    host_with_port = host_with_port.strip()
    if host_with_port.startswith("["):
        host, _, rest = host_with_port[1:].partition("]")
        port = rest.lstrip(":")
    elif host_with_port.count(":") == 1:
        host, _, port = host_with_port.partition(":")
    else:
        host, port = host_with_port, ""

    if not port:
        return host, DEFAULT_PORT
    if not port.isdigit() or int(port) > 65535:
        raise ValueError(f"Invalid port '{port}' in '{host_with_port}'")
    return host, int(port)


def probe_host(host_with_port: str, timeout: float = 5.0) -> ProbeResult:
    """
    Resolve the host, then open a TCP connection to the first address.

    Never raises: any resolution or connection failure is reported as
    reachable=False. dns_time and tcp_time are measured separately, so
    tcp_time never includes resolver time.
    """
    try:
        host, port = split_host_port(host_with_port)
    except ValueError as e:
        logger.info(f"❌ {e}")
        return ProbeResult(timedelta(0), timedelta(0), False)

    start = time.perf_counter()
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError, OSError) as e:
        dns_time = timedelta(seconds=time.perf_counter() - start)
        logger.info(f"❌ DNS Error for {host}: {e}")
        return ProbeResult(dns_time, timedelta(0), False)
    dns_time = timedelta(seconds=time.perf_counter() - start)

    if not infos:
        return ProbeResult(dns_time, timedelta(0), False)

    family, socktype, proto, _, address = infos[0]
    connect_start = time.perf_counter()
    try:
        with socket.socket(family, socktype, proto) as sock:
            sock.settimeout(timeout)
            sock.connect(address)
    except (socket.timeout, OSError) as e:
        tcp_time = timedelta(seconds=time.perf_counter() - connect_start)
        logger.info(f"❌ Connection to {host}:{port} failed: {e}")
        return ProbeResult(dns_time, tcp_time, False)

    tcp_time = timedelta(seconds=time.perf_counter() - connect_start)
    return ProbeResult(dns_time, tcp_time, True)


def format_duration(value: timedelta) -> str:
    """Render a probe timing in milliseconds, e.g. '12.345ms'."""
    return f"{value.total_seconds() * 1000:.3f}ms"
