"""Per-run logging setup and timing helpers for onion-monitor.

Every run writes to ``<log_dir>/<app_name>-<run_id>.log`` and, by default,
to stdout. Each line carries the run id so interleaved runs can be told
apart.

Timing:
    ``perf_span`` times a block (a probe loop, a directory fetch) and emits one
    ``event=perf`` line; ``perf`` applies the same span to a whole function.
"""

import functools
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from onion_monitor.config import AppConfig

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [run=%(run_id)s] %(message)s"

# HTTP and SOCKS client loggers; their per-connection chatter is only useful
# when debugging a single probe.
QUIET_LOGGERS = ("urllib3", "requests", "socks")


class _RunContextFilter(logging.Filter):
    """Stamp ``run_id`` onto every record passing through a handler."""

    def __init__(self, run_id: str) -> None:
        super().__init__()
        self._run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self._run_id
        return True


def _sanitize_run_id(run_id: str) -> str:
    return "".join(ch if ch.isalnum() or ch in ("-", "_") else "-" for ch in run_id)


def generate_run_id() -> str:
    """Return a run id from the current UTC time, e.g. ``20250304T050607Z``."""
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def log_file_path(config: AppConfig, run_id: str) -> Path:
    return config.log_directory / f"{config.app_name}-{_sanitize_run_id(run_id)}.log"


def configure_logging(
    config: AppConfig,
    run_id: Optional[str] = None,
    include_console: bool = True,
    fmt: str = DEFAULT_LOG_FORMAT,
) -> Path:
    """Replace the root handlers with this run's file (and console) handlers.

    Returns:
        Path of the log file for this run.
    """
    resolved_run_id = run_id or generate_run_id()
    log_path = log_file_path(config, resolved_run_id)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers = [logging.FileHandler(log_path, encoding="utf-8")]
    if include_console:
        handlers.append(logging.StreamHandler(sys.stdout))

    formatter = logging.Formatter(fmt)
    run_filter = _RunContextFilter(resolved_run_id)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(run_filter)
        root_logger.addHandler(handler)

    level = getattr(logging, config.log_level.upper(), logging.INFO)
    root_logger.setLevel(level)
    quiet_level = level if level <= logging.DEBUG else max(level, logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    return log_path


def _format_tags(tags: Optional[Mapping[str, Any]]) -> str:
    if not tags:
        return "{}"
    return "{" + ", ".join(f"{key}={tags[key]!r}" for key in sorted(tags)) + "}"


class perf_span:
    """Time a block and log ``event=perf name=... duration_ms=... success=...``.

    Example:
        with perf_span("jobs.probe_loop", tags={"sites": 12}):
            probe_sites(...)

    Exceptions are logged as ``success=false`` and re-raised.
    """

    def __init__(
        self,
        name: str,
        *,
        tags: Optional[Mapping[str, Any]] = None,
        level: int = logging.INFO,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.name = name
        self.tags = dict(tags or {})
        self.level = level
        self.logger = logger or logging.getLogger(__name__)
        self.duration_ms: Optional[float] = None
        self._start_ns = 0

    def __enter__(self) -> "perf_span":
        self._start_ns = time.monotonic_ns()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.duration_ms = (time.monotonic_ns() - self._start_ns) / 1_000_000.0
        self.logger.log(
            self.level,
            "event=perf name=%s duration_ms=%.3f success=%s tags=%s",
            self.name,
            self.duration_ms,
            "true" if exc_type is None else "false",
            _format_tags(self.tags),
        )
        return False


def perf(
    name: Optional[str] = None,
    *,
    tags: Optional[Mapping[str, Any]] = None,
    level: int = logging.INFO,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate a function so each call runs inside a ``perf_span``.

    The span defaults to ``<module>.<qualname>`` and logs through the
    decorated function's module logger.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        span_name = name or f"{func.__module__}.{func.__qualname__}"
        logger = logging.getLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with perf_span(span_name, tags=tags, level=level, logger=logger):
                return func(*args, **kwargs)

        return wrapper

    return decorator


__all__ = [
    "DEFAULT_LOG_FORMAT",
    "QUIET_LOGGERS",
    "configure_logging",
    "generate_run_id",
    "log_file_path",
    "perf",
    "perf_span",
]
