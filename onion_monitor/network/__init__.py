"""Network utilities for proxy-routed liveness checks.

Exports:
- ``ProxyEndpoint``: SOCKS5 proxy host/port with URL helpers.
- ``CheckAttempt``: raw outcome of one check (launch failure, non-zero exit, or a response code).
- ``CurlChecker``: checker that shells out to ``curl --socks5-hostname``.
- ``RequestsChecker``: checker built on ``requests`` with a ``socks5h`` proxy.
- ``build_checker``: select an implementation by name.
"""

from onion_monitor.network.checker import (
    Checker,
    CheckAttempt,
    CurlChecker,
    ProxyEndpoint,
    RequestsChecker,
    build_checker,
    parse_status_code,
)

__all__ = [
    "Checker",
    "CheckAttempt",
    "CurlChecker",
    "ProxyEndpoint",
    "RequestsChecker",
    "build_checker",
    "parse_status_code",
]
