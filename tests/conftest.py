"""Shared pytest fixtures for the onion_monitor package tests.

Provides reusable fakes and configuration objects that keep tests
deterministic and isolated from the network and the real proxy.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from onion_monitor.config import AppConfig
from onion_monitor.models import ServiceRecord
from onion_monitor.network import CheckAttempt, ProxyEndpoint

FIXED_NOW = datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc)


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Application config fixture.

    Points the registry, report and logs at a temporary directory.
    """
    return AppConfig(
        proxy=ProxyEndpoint("127.0.0.1", 9150),
        registry_path=tmp_path / "onions.json",
        report_path=tmp_path / "docs" / "index.html",
        log_directory=tmp_path / "logs",
        log_level="INFO",
    )


@pytest.fixture(autouse=True)
def _reset_root_handlers():
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()


class FakeChecker:
    """Checker returning canned attempts keyed by address."""

    def __init__(self, attempts: Dict[str, CheckAttempt], default: Optional[CheckAttempt] = None) -> None:
        self.attempts = attempts
        self.default = default or CheckAttempt.exited_nonzero("no canned attempt")
        self.calls: List[str] = []

    def check(self, address: str) -> CheckAttempt:
        self.calls.append(address)
        return self.attempts.get(address, self.default)


def _build_site(title: str, address: str = "http://example.onion", **kwargs) -> ServiceRecord:
    key = kwargs.pop("key", title.lower().replace(" ", "-").replace("_", "-"))
    return ServiceRecord(title=title, key=key, address=address, **kwargs)


@pytest.fixture
def make_site() -> Callable[..., ServiceRecord]:
    """Builder for registry records; the key is derived from the title unless given."""
    return _build_site


@pytest.fixture
def fake_checker():
    """The ``FakeChecker`` class, called as ``fake_checker(attempts, default=...)``."""
    return FakeChecker


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fixed_clock(fixed_now: datetime) -> Callable[[], datetime]:
    """Clock that always reports ``fixed_now``."""
    return lambda: fixed_now
