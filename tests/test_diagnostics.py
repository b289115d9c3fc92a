"""Tests for logging helper and reachability diagnostics."""

import socket

from amzwp_core import diagnostics
from amzwp_core.diagnostics import diagnose_url_issue, get_logger


def test_get_logger_is_cached_with_one_handler():
    first = get_logger("amzwp_core.test_logger")
    second = get_logger("amzwp_core.test_logger")
    assert first is second
    assert len(first.handlers) == 1


def test_diagnose_without_host():
    out = diagnose_url_issue("https://")
    assert out["diagnostic_error"] == "URL has no host"


def test_diagnose_reports_dns_failure(monkeypatch):
    def no_dns(host, port):
        raise socket.gaierror("Name or service not known")

    monkeypatch.setattr(diagnostics.socket, "getaddrinfo", no_dns)

    out = diagnose_url_issue("blog.example.com")

    assert out["url"] == "https://blog.example.com"
    assert out["host"] == "blog.example.com"
    assert out["dns_resolves"] is False
    assert "not known" in out["dns_error"]
