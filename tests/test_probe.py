"""Tests for the DNS + TCP reachability probe."""

from __future__ import annotations

import socket
from datetime import timedelta
from unittest.mock import patch

import pytest

from app.services.probe_service import (
    ensure_port,
    format_duration,
    probe_host,
    split_host_port,
)


class TestHostParsing:
    @pytest.mark.parametrize(
        "host, expected",
        [
            ("example.com", "example.com:443"),
            ("example.com:8080", "example.com:8080"),
            (" example.com ", "example.com:443"),
            ("[::1]", "[::1]:443"),
            ("[::1]:8443", "[::1]:8443"),
            ("::1", "[::1]:443"),
        ],
    )
    def test_ensure_port(self, host, expected) -> None:
        assert ensure_port(host) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("example.com:8080", ("example.com", 8080)),
            ("example.com", ("example.com", 443)),
            ("[::1]:8443", ("::1", 8443)),
        ],
    )
    def test_split_host_port(self, value, expected) -> None:
        assert split_host_port(value) == expected

    @pytest.mark.parametrize("value", ["example.com:abc", "example.com:-1", "example.com:70000", "[::1]:x"])
    def test_split_host_port_rejects_bad_port(self, value) -> None:
        with pytest.raises(ValueError, match="Invalid port"):
            split_host_port(value)


class TestProbe:
    @patch("app.services.probe_service.socket.getaddrinfo")
    def test_bad_port_is_unreachable(self, mock_getaddrinfo) -> None:
        result = probe_host("127.0.0.1:abc")
        assert result.reachable is False
        assert result.dns_time == result.tcp_time == timedelta(0)
        mock_getaddrinfo.assert_not_called()

    def test_reachable_local_listener(self) -> None:
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        port = server.getsockname()[1]
        try:
            result = probe_host(f"127.0.0.1:{port}", timeout=2.0)
        finally:
            server.close()

        assert result.reachable is True
        assert result.dns_time >= timedelta(0)
        assert result.tcp_time >= timedelta(0)

    def test_refused_connection(self) -> None:
        s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
        s.close()

        result = probe_host(f"127.0.0.1:{port}", timeout=2.0)
        assert result.reachable is False

    @patch("app.services.probe_service.socket.getaddrinfo")
    def test_dns_failure(self, mock_getaddrinfo) -> None:
        mock_getaddrinfo.side_effect = socket.gaierror(-2, "Name or service not known")
        result = probe_host("does-not-exist.invalid:443")
        assert result.reachable is False
        assert result.tcp_time == timedelta(0)

    @patch("app.services.probe_service.socket.getaddrinfo", return_value=[])
    def test_no_addresses(self, _mock) -> None:
        assert probe_host("example.com:443").reachable is False


def test_format_duration() -> None:
    assert format_duration(timedelta(milliseconds=12.5)) == "12.500ms"
    assert format_duration(timedelta(0)) == "0.000ms"
