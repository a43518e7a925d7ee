"""Tests for certificate inspection."""

from __future__ import annotations

import socket
import ssl
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from app.services.ssl_service import (
    CertificateFetchError,
    CertInfo,
    days_until_expiry,
    fetch_cert_info,
    parse_certificate,
)

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_cert_der(not_after: datetime) -> bytes:
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Example Org"),
        x509.NameAttribute(NameOID.COMMON_NAME, "example.com"),
    ])
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_after - timedelta(days=365))
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.DER)


class TestParseCertificate:
    def test_valid_certificate(self) -> None:
        expires = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
        info = parse_certificate(make_cert_der(expires), now=NOW)

        assert info.subject == "CN=example.com,O=Example Org,C=US"
        assert info.issuer == info.subject
        assert info.expiration == "2026-03-01T12:00:00Z"
        assert info.valid is True

    def test_expired_certificate(self) -> None:
        expires = NOW - timedelta(days=1)
        info = parse_certificate(make_cert_der(expires), now=NOW)
        assert info.valid is False

    def test_days_until_expiry(self) -> None:
        info = CertInfo(issuer="x", subject="y", expiration="2026-01-31T00:00:00Z", valid=True)
        assert days_until_expiry(info, now=NOW) == 30


class TestFetchCertInfo:
    @patch("app.services.ssl_service.socket.create_connection")
    def test_bad_port(self, mock_connect) -> None:
        with pytest.raises(CertificateFetchError, match="Invalid port"):
            fetch_cert_info("example.com:abc", timeout=1.0)
        mock_connect.assert_not_called()

    @patch("app.services.ssl_service.socket.create_connection")
    def test_dns_error(self, mock_connect) -> None:
        mock_connect.side_effect = socket.gaierror(-2, "Name or service not known")
        with pytest.raises(CertificateFetchError, match="DNS Error"):
            fetch_cert_info("nope.invalid:443", timeout=1.0)

    @patch("app.services.ssl_service.socket.create_connection")
    def test_timeout(self, mock_connect) -> None:
        mock_connect.side_effect = socket.timeout("timed out")
        with pytest.raises(CertificateFetchError, match="Connection timeout"):
            fetch_cert_info("example.com:443", timeout=1.0)

    @patch("app.services.ssl_service.socket.create_connection")
    def test_ssl_error(self, mock_connect) -> None:
        mock_connect.side_effect = ssl.SSLError("certificate verify failed")
        with pytest.raises(CertificateFetchError, match="SSL Error"):
            fetch_cert_info("example.com:443", timeout=1.0)

    @patch("app.services.ssl_service.socket.create_connection")
    def test_connection_refused(self, mock_connect) -> None:
        mock_connect.side_effect = ConnectionRefusedError("refused")
        with pytest.raises(CertificateFetchError):
            fetch_cert_info("example.com:443", timeout=1.0)
