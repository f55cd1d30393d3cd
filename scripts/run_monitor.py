#!/usr/bin/env python3
"""Command-line entrypoint for one onion monitor run."""

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from onion_monitor.config import AppConfig, REPO_ROOT, load_config
from onion_monitor.directory import DirectoryClient
from onion_monitor.jobs import RunConfig, run_monitor
from onion_monitor.logging_utils import configure_logging, perf_span
from onion_monitor.network import ProxyEndpoint, build_checker
from onion_monitor.persistence import PersistenceError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile the onion service registry and probe every service once."
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Optional dotenv file (defaults to .env at the repo root).",
    )
    parser.add_argument(
        "--registry",
        type=Path,
        default=None,
        help="Registry snapshot path (overrides REGISTRY_PATH).",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="HTML report path (overrides REPORT_PATH).",
    )
    parser.add_argument(
        "--checker",
        choices=("curl", "requests"),
        default=None,
        help="Liveness checker implementation (overrides CHECKER; default: curl).",
    )
    parser.add_argument(
        "--skip-fetch",
        action="store_true",
        help="Probe the existing registry without contacting the directory.",
    )
    return parser.parse_args(argv)


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    overrides = {}
    if args.registry is not None:
        overrides["registry_path"] = args.registry
    if args.report is not None:
        overrides["report_path"] = args.report
    if args.checker is not None:
        overrides["checker"] = args.checker
    return replace(config, **overrides) if overrides else config


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(args.env_file)
    except Exception as exc:  # noqa: BLE001 - log and exit gracefully with a file
        # Fall back to a default log location so failures are still captured per run.
        fallback = AppConfig(
            proxy=ProxyEndpoint.parse(""),
            registry_path=REPO_ROOT / "onions.json",
            report_path=REPO_ROOT / "docs" / "index.html",
            log_directory=REPO_ROOT / "logs",
            log_level="INFO",
        )
        configure_logging(fallback)
        logging.getLogger(__name__).error("Failed to load configuration: %s", exc)
        return 1

    config = _apply_overrides(config, args)
    configure_logging(config)
    logger = logging.getLogger(__name__)
    logger.info("Using SOCKS5h proxy: %s", config.proxy.as_host_port())

    run_config = RunConfig(skip_fetch=args.skip_fetch)
    checker = build_checker(
        config.checker,
        config.proxy,
        timeout_seconds=run_config.probe_timeout_seconds,
    )
    directory = DirectoryClient(config.directory_url, token=config.directory_token)

    try:
        with perf_span("job.total", tags={"app": config.app_name}):
            summary = run_monitor(config, directory, checker, run_config)
    except PersistenceError as exc:
        logger.error("Fatal: %s", exc)
        return 1
    finally:
        directory.close()
        close = getattr(checker, "close", None)
        if close is not None:
            close()

    counts = summary.counts
    logger.info("Summary:")
    logger.info("   Online:  %s", counts.online)
    logger.info("   Offline: %s", counts.offline)
    logger.info("   Total:   %s", counts.total)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
