"""Configuration utilities for onion-monitor runs.

This module reads environment variables (optionally from an `.env` file) and
produces an application configuration object consumed across the project.

See `.env.example` for supported keys, including `SOCKS_PROXY`,
`GITHUB_TOKEN`, `REGISTRY_PATH`, `REPORT_PATH`, `LOG_DIR`, `LOG_LEVEL`,
`CHECKER`, and optional `APP_NAME`.

Usage example:

    from onion_monitor.config import load_config

    config = load_config()
    checker = CurlChecker(config.proxy)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional

from onion_monitor.network.checker import ProxyEndpoint

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_ENV_FILE = REPO_ROOT / ".env"

DEFAULT_SOCKS_PROXY = "socks5://127.0.0.1:9150"
DEFAULT_DIRECTORY_URL = (
    "https://api.github.com/repos/igor53627/tor-ethereum-ecosystem/contents/src/data"
)
CHECKER_CHOICES = ("curl", "requests")


def _load_env_file(path: Path) -> Dict[str, str]:
    """Parse a dotenv-style file into a dictionary."""
    if not path.exists():
        return {}

    data: Dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = value.strip().strip("\"'")
    return data


def _merge_envs(dotenv_values: Mapping[str, str], env: MutableMapping[str, str]) -> Dict[str, str]:
    """Merge dotenv values with the current environment, preferring os.environ."""
    merged = dict(dotenv_values)
    merged.update(env)  # os.environ wins
    return merged


def load_environment(env_file: Optional[Path] = None) -> Dict[str, str]:
    """Return the dotenv file values overlaid with ``os.environ``."""
    target_file = env_file or DEFAULT_ENV_FILE
    return _merge_envs(_load_env_file(target_file), os.environ)


def _resolve_path(value: Optional[str], default: Path) -> Path:
    if not value:
        return default
    path = Path(value)
    if not path.is_absolute():
        path = REPO_ROOT / path
    return path


@dataclass(frozen=True)
class AppConfig:
    """Application-level configuration values."""

    proxy: ProxyEndpoint
    registry_path: Path
    report_path: Path
    log_directory: Path
    log_level: str
    directory_url: str = DEFAULT_DIRECTORY_URL
    directory_token: Optional[str] = None
    checker: str = "curl"
    app_name: str = "onion-monitor"


def load_config(env_file: Optional[Path] = None) -> AppConfig:
    """Load configuration values using environment defaults."""
    merged = load_environment(env_file)

    checker = merged.get("CHECKER", "curl").strip().lower() or "curl"
    if checker not in CHECKER_CHOICES:
        raise ValueError(
            f"CHECKER must be one of {', '.join(CHECKER_CHOICES)} (got {checker!r})."
        )

    return AppConfig(
        proxy=ProxyEndpoint.parse(merged.get("SOCKS_PROXY") or DEFAULT_SOCKS_PROXY),
        registry_path=_resolve_path(merged.get("REGISTRY_PATH"), REPO_ROOT / "onions.json"),
        report_path=_resolve_path(merged.get("REPORT_PATH"), REPO_ROOT / "docs" / "index.html"),
        log_directory=_resolve_path(merged.get("LOG_DIR"), REPO_ROOT / "logs"),
        log_level=merged.get("LOG_LEVEL", "INFO").upper(),
        directory_url=merged.get("DIRECTORY_URL") or DEFAULT_DIRECTORY_URL,
        directory_token=merged.get("GITHUB_TOKEN") or None,
        checker=checker,
        app_name=merged.get("APP_NAME", "onion-monitor"),
    )


__all__ = ["AppConfig", "load_config", "load_environment", "REPO_ROOT"]
