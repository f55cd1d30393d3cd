"""Fixtures for integration tests that need a live SOCKS proxy (Tor or Arti)."""

import socket

import pytest

from onion_monitor.config import AppConfig, load_config
from onion_monitor.network import ProxyEndpoint


@pytest.fixture(scope="session")
def app_config() -> AppConfig:
    return load_config()


@pytest.fixture(scope="session")
def live_proxy(app_config: AppConfig) -> ProxyEndpoint:
    proxy = app_config.proxy
    try:
        with socket.create_connection((proxy.host, proxy.port), timeout=2.0):
            pass
    except OSError:
        pytest.skip(f"SOCKS proxy {proxy.as_host_port()} is not reachable.")
    return proxy
