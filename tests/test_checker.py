import subprocess
from unittest.mock import MagicMock

import pytest
import requests

import onion_monitor.network.checker as checker_mod
from onion_monitor.network import (
    CheckAttempt,
    CurlChecker,
    ProxyEndpoint,
    RequestsChecker,
    build_checker,
    parse_status_code,
)

PROXY = ProxyEndpoint("127.0.0.1", 9150)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("socks5://127.0.0.1:9150", ProxyEndpoint("127.0.0.1", 9150)),
        ("socks5h://arti:9050", ProxyEndpoint("arti", 9050)),
        ("tor:9050", ProxyEndpoint("tor", 9050)),
        ("socks5://arti", ProxyEndpoint("arti", 9150)),
        ("socks5://arti:notaport", ProxyEndpoint("arti", 9150)),
        ("", ProxyEndpoint("127.0.0.1", 9150)),
    ],
)
def test_proxy_endpoint_parse(value, expected):
    assert ProxyEndpoint.parse(value) == expected


def test_proxy_endpoint_uses_remote_resolution_scheme():
    assert PROXY.as_url() == "socks5h://127.0.0.1:9150"


@pytest.mark.parametrize("text,expected", [("200", 200), (" 404\n", 404), ("000", 0), ("", 0), ("abc", 0), (None, 0)])
def test_parse_status_code(text, expected):
    assert parse_status_code(text) == expected


def test_curl_checker_builds_socks5_hostname_command():
    command = CurlChecker(PROXY, timeout_seconds=60).build_command("http://abc.onion")

    assert command[:4] == ["curl", "--socks5-hostname", "127.0.0.1:9150", "http://abc.onion"]
    assert command[command.index("--max-time") + 1] == "60"
    assert command[command.index("--write-out") + 1] == "%{http_code}"
    assert "--insecure" in command


def test_curl_checker_success(monkeypatch):
    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="403", stderr="")
    run = MagicMock(return_value=completed)
    monkeypatch.setattr(checker_mod.subprocess, "run", run)

    attempt = CurlChecker(PROXY).check("http://abc.onion")

    assert attempt == CheckAttempt.succeeded(403)
    assert run.call_args.kwargs["timeout"] == 60.0 + checker_mod.SUBPROCESS_GRACE_SECONDS


def test_curl_checker_nonzero_exit(monkeypatch):
    completed = subprocess.CompletedProcess(args=[], returncode=28, stdout="000", stderr="")
    monkeypatch.setattr(checker_mod.subprocess, "run", MagicMock(return_value=completed))

    attempt = CurlChecker(PROXY).check("http://abc.onion")

    assert attempt.kind == checker_mod.EXITED_NONZERO
    assert "28" in attempt.error


def test_curl_checker_missing_binary(monkeypatch):
    monkeypatch.setattr(
        checker_mod.subprocess, "run", MagicMock(side_effect=FileNotFoundError("curl"))
    )

    attempt = CurlChecker(PROXY).check("http://abc.onion")

    assert attempt.kind == checker_mod.LAUNCH_FAILED


def test_curl_checker_process_timeout(monkeypatch):
    monkeypatch.setattr(
        checker_mod.subprocess,
        "run",
        MagicMock(side_effect=subprocess.TimeoutExpired(cmd="curl", timeout=70)),
    )

    attempt = CurlChecker(PROXY).check("http://abc.onion")

    assert attempt.kind == checker_mod.EXITED_NONZERO


def test_requests_checker_routes_through_socks5h():
    session = MagicMock()
    response = MagicMock()
    response.status_code = 502
    session.get.return_value = response

    attempt = RequestsChecker(PROXY, timeout_seconds=5, session=session).check("http://abc.onion")

    assert attempt == CheckAttempt.succeeded(502)
    _, kwargs = session.get.call_args
    assert kwargs["proxies"] == {
        "http": "socks5h://127.0.0.1:9150",
        "https": "socks5h://127.0.0.1:9150",
    }
    assert kwargs["timeout"] == 5
    assert kwargs["verify"] is False
    response.close.assert_called_once()


def test_requests_checker_transport_error_is_nonzero_exit():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("general SOCKS server failure")

    attempt = RequestsChecker(PROXY, session=session).check("http://abc.onion")

    assert attempt.kind == checker_mod.EXITED_NONZERO
    assert "SOCKS" in attempt.error


def test_build_checker_selects_implementation():
    assert isinstance(build_checker("curl", PROXY), CurlChecker)
    assert isinstance(build_checker("requests", PROXY), RequestsChecker)
    with pytest.raises(ValueError):
        build_checker("nc", PROXY)
