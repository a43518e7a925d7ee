import ssl
import socket
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import List, Optional
import OpenSSL

from .probe_service import split_host_port

logger = logging.getLogger(__name__)


class CertificateFetchError(Exception):
    """Raised when the TLS handshake or certificate parsing fails."""


@dataclass
class CertInfo:
    issuer: str
    subject: str
    expiration: str  # RFC 3339
    valid: bool

    def to_dict(self) -> dict:
        return asdict(self)


def _format_name(name: OpenSSL.crypto.X509Name) -> str:
    # Most specific component first, e.g. "CN=example.com,O=Example,C=US"
    components = name.get_components()
    return ",".join(
        f"{key.decode('utf-8', 'replace')}={value.decode('utf-8', 'replace')}"
        for key, value in reversed(components)
    )


def expiry_date(cert: OpenSSL.crypto.X509) -> datetime:
    not_after = cert.get_notAfter().decode('ascii')
    return datetime.strptime(not_after, '%Y%m%d%H%M%SZ').replace(tzinfo=timezone.utc)


def parse_certificate(cert_der: bytes, now: Optional[datetime] = None) -> CertInfo:
    """Convert a DER encoded certificate into a CertInfo."""
    now = now or datetime.now(timezone.utc)
    cert = OpenSSL.crypto.load_certificate(OpenSSL.crypto.FILETYPE_ASN1, cert_der)
    expires = expiry_date(cert)
    return CertInfo(
        issuer=_format_name(cert.get_issuer()),
        subject=_format_name(cert.get_subject()),
        expiration=expires.isoformat().replace('+00:00', 'Z'),
        valid=expires > now,
    )


def days_until_expiry(info: CertInfo, now: Optional[datetime] = None) -> int:
    now = now or datetime.now(timezone.utc)
    expires = datetime.fromisoformat(info.expiration.replace('Z', '+00:00'))
    return (expires - now).days


def _peer_chain(secure_sock: ssl.SSLSocket) -> List[bytes]:
    # Full verified chain is only exposed on Python 3.13+, otherwise the leaf
    get_chain = getattr(secure_sock, "get_verified_chain", None)
    if get_chain is not None:
        chain = get_chain()
        if chain:
            return list(chain)
    leaf = secure_sock.getpeercert(binary_form=True)
    return [leaf] if leaf else []


def fetch_cert_info(host_with_port: str, timeout: float = 10.0) -> List[CertInfo]:
    """
    Perform a verified TLS handshake and describe every certificate the
    peer presented.

    Raises:
        CertificateFetchError: on DNS, socket, timeout or TLS failures
    """
    try:
        hostname, port = split_host_port(host_with_port)
    except ValueError as e:
        raise CertificateFetchError(str(e)) from e

    context = ssl.create_default_context()
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED

    try:
        with socket.create_connection((hostname, port), timeout=timeout) as sock:
            with context.wrap_socket(sock, server_hostname=hostname) as secure_sock:
                chain = _peer_chain(secure_sock)
    except ssl.SSLError as e:
        logger.warning(f"❌ SSL Error for {hostname}: {e}")
        raise CertificateFetchError(f"SSL Error: {e}") from e
    except socket.gaierror as e:
        logger.warning(f"❌ DNS Error for {hostname}: {e}")
        raise CertificateFetchError(f"DNS Error: {e}") from e
    except socket.timeout as e:
        logger.warning(f"❌ Timeout checking SSL for {hostname}")
        raise CertificateFetchError("Connection timeout") from e
    except OSError as e:
        logger.warning(f"❌ Connection error checking SSL for {hostname}: {e}")
        raise CertificateFetchError(str(e)) from e

    if not chain:
        raise CertificateFetchError("Peer presented no certificate")

    now = datetime.now(timezone.utc)
    try:
        infos = [parse_certificate(der, now) for der in chain]
    except OpenSSL.crypto.Error as e:
        raise CertificateFetchError(f"Could not parse certificate: {e}") from e

    logger.info(f"✅ SSL check successful for {hostname}: {len(infos)} certificate(s)")
    return infos
