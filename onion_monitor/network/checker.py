"""Proxy-mediated liveness checks for onion addresses.

A checker performs exactly one request through a local SOCKS5 proxy and
reports how the attempt went, without deciding what that means for the
service. Two implementations are provided:

1) ``CurlChecker`` shells out to ``curl --socks5-hostname`` and reads the
   response code from ``--write-out``.
2) ``RequestsChecker`` uses a ``requests`` session with a ``socks5h://``
   proxies mapping (needs the ``requests[socks]`` extra).

Notes:
- Both delegate name resolution to the proxy; ``.onion`` names cannot be
  resolved locally.
- The per-request ceiling is enforced here, not by the caller.
"""

import logging
import subprocess
import warnings
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol
from urllib.parse import urlsplit

import requests
from urllib3.exceptions import InsecureRequestWarning

LOGGER = logging.getLogger(__name__)

DEFAULT_PROXY_HOST = "127.0.0.1"
DEFAULT_PROXY_PORT = 9150
DEFAULT_TIMEOUT_SECONDS = 60.0
# Extra wall time granted to the curl process beyond its own --max-time.
SUBPROCESS_GRACE_SECONDS = 10.0
USER_AGENT = "onion-monitoring-tool"

LAUNCH_FAILED = "launch_failed"
EXITED_NONZERO = "exited_nonzero"
SUCCEEDED = "succeeded"


def parse_status_code(text: Optional[str]) -> int:
    """Parse curl's ``%{http_code}`` output; unparsable output yields 0."""
    try:
        code = int((text or "").strip())
    except ValueError:
        return 0
    return code if code >= 0 else 0


@dataclass(frozen=True)
class ProxyEndpoint:
    """Represents a SOCKS5 proxy endpoint.

    Args:
        host: Proxy host or IP.
        port: Proxy TCP port.
    """

    host: str
    port: int

    def as_url(self) -> str:
        """Return a ``socks5h`` URL so the proxy performs name resolution."""
        return f"socks5h://{self.host}:{self.port}"

    def as_host_port(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def parse(cls, value: str) -> "ProxyEndpoint":
        """Parse ``socks5://host:port``, ``socks5h://host:port`` or ``host:port``.

        Missing parts fall back to ``127.0.0.1`` and ``9150``.
        """
        raw = (value or "").strip()
        if "://" not in raw:
            raw = f"socks5://{raw}"
        parts = urlsplit(raw)
        host = parts.hostname or DEFAULT_PROXY_HOST
        try:
            port = parts.port or DEFAULT_PROXY_PORT
        except ValueError:
            port = DEFAULT_PROXY_PORT
        return cls(host=host, port=port)


@dataclass(frozen=True)
class CheckAttempt:
    """Raw result of one check.

    Attributes:
        kind: ``launch_failed``, ``exited_nonzero`` or ``succeeded``.
        status_code: HTTP status for ``succeeded`` attempts (0 when unparsable).
        error: Optional error text for failed attempts.
    """

    kind: str
    status_code: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def launch_failed(cls, error: str) -> "CheckAttempt":
        return cls(kind=LAUNCH_FAILED, error=error)

    @classmethod
    def exited_nonzero(cls, error: Optional[str] = None) -> "CheckAttempt":
        return cls(kind=EXITED_NONZERO, error=error)

    @classmethod
    def succeeded(cls, status_code: int) -> "CheckAttempt":
        return cls(kind=SUCCEEDED, status_code=status_code)


class Checker(Protocol):
    """Anything that can check one address through the proxy."""

    def check(self, address: str) -> CheckAttempt:  # pragma: no cover - interface only
        ...


class CurlChecker:
    """Run ``curl`` through the SOCKS proxy and report the response code."""

    def __init__(
        self,
        proxy: ProxyEndpoint,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        executable: str = "curl",
    ) -> None:
        self._proxy = proxy
        self._timeout = timeout_seconds
        self._executable = executable

    def build_command(self, address: str) -> List[str]:
        return [
            self._executable,
            "--socks5-hostname",
            self._proxy.as_host_port(),
            address,
            "--max-time",
            str(int(self._timeout)),
            "--write-out",
            "%{http_code}",
            "--silent",
            "--output",
            "/dev/null",
            "--insecure",  # onion services commonly use self-signed certs
        ]

    def check(self, address: str) -> CheckAttempt:
        command = self.build_command(address)
        LOGGER.debug("checker.curl via=%s address=%s", self._proxy.as_host_port(), address)
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self._timeout + SUBPROCESS_GRACE_SECONDS,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return CheckAttempt.exited_nonzero(f"curl exceeded {self._timeout:.0f}s")
        except OSError as exc:
            return CheckAttempt.launch_failed(str(exc))

        if completed.returncode != 0:
            return CheckAttempt.exited_nonzero(f"curl exit code {completed.returncode}")
        return CheckAttempt.succeeded(parse_status_code(completed.stdout))


class RequestsChecker:
    """Issue one GET via ``requests`` routed through a ``socks5h`` proxy."""

    def __init__(
        self,
        proxy: ProxyEndpoint,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._proxy = proxy
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    def _proxies_mapping(self) -> Dict[str, str]:
        url = self._proxy.as_url()
        return {"http": url, "https": url}

    def check(self, address: str) -> CheckAttempt:
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", InsecureRequestWarning)
                response = self._session.get(
                    address,
                    headers={"User-Agent": USER_AGENT},
                    proxies=self._proxies_mapping(),
                    timeout=self._timeout,
                    verify=False,
                    allow_redirects=False,
                    stream=True,
                )
        except requests.RequestException as exc:
            return CheckAttempt.exited_nonzero(str(exc))

        try:
            return CheckAttempt.succeeded(response.status_code)
        finally:
            response.close()

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "RequestsChecker":
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()


def build_checker(name: str, proxy: ProxyEndpoint, *, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
    """Return the checker implementation registered under ``name``."""
    if name == "curl":
        return CurlChecker(proxy, timeout_seconds=timeout_seconds)
    if name == "requests":
        return RequestsChecker(proxy, timeout_seconds=timeout_seconds)
    raise ValueError(f"Unknown checker {name!r}")
