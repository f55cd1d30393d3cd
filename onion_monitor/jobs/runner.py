"""Job runner orchestrating directory fetch, reconcile, probing, and persistence."""

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from onion_monitor.classify import apply_verdict
from onion_monitor.config import AppConfig
from onion_monitor.directory import DirectoryClient, DirectoryError
from onion_monitor.logging_utils import perf, perf_span
from onion_monitor.models import STATUS_ONLINE, ProbeOutcome, ServiceRecord, is_error_status
from onion_monitor.network.checker import LAUNCH_FAILED, SUCCEEDED, Checker, CheckAttempt
from onion_monitor.persistence import load_registry, save_registry
from onion_monitor.reconcile import merge_sites
from onion_monitor.report import StatusCounts, render_report, summarize, write_report

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RunConfig:
    probe_timeout_seconds: float = 60.0
    probe_delay_seconds: float = 2.0
    skip_fetch: bool = False


@dataclass(frozen=True)
class RunSummary:
    run_id: str
    counts: StatusCounts
    outcomes: List[ProbeOutcome]


def _log_verdict(site: ServiceRecord, attempt: CheckAttempt, elapsed_ms: int) -> None:
    if attempt.kind == LAUNCH_FAILED:
        LOGGER.warning("  ✗ %s - Failed to launch checker: %s", site.title, attempt.error)
    elif attempt.kind != SUCCEEDED:
        LOGGER.info("  ✗ %s - Offline (checker error: %s)", site.title, attempt.error)
    elif site.status == STATUS_ONLINE:
        LOGGER.info("  ✓ %s - Online HTTP %s (%sms)", site.title, attempt.status_code, elapsed_ms)
    elif is_error_status(site.status):
        LOGGER.info("  ⚠ %s - Server Error HTTP %s (%sms)", site.title, attempt.status_code, elapsed_ms)
    else:
        LOGGER.info("  ✗ %s - Connection failed (%sms)", site.title, elapsed_ms)


def probe_site(site: ServiceRecord, checker: Checker, *, clock: Clock = utc_now) -> ProbeOutcome:
    """Check one site and return its updated record.

    Latency is recorded only when the checker completed a request and
    returned a parsable response code. Exceptions raised by the checker are
    logged and classified as offline.
    """
    LOGGER.info("Checking: %s (%s)", site.title, site.address)
    start_ns = time.monotonic_ns()
    try:
        attempt = checker.check(site.address)
    except Exception as exc:  # noqa: BLE001 - a broken checker must not abort the run
        LOGGER.warning("  ✗ %s - Failed to execute checker: %s", site.title, exc)
        failed = CheckAttempt.launch_failed(str(exc))
        return ProbeOutcome(site=apply_verdict(site, failed, clock()), response_time_ms=None)
    elapsed_ms = (time.monotonic_ns() - start_ns) // 1_000_000

    updated = apply_verdict(site, attempt, clock())
    _log_verdict(updated, attempt, elapsed_ms)
    # An unparsable code (0) counts as a probe failure
    completed = attempt.kind == SUCCEEDED and bool(attempt.status_code)
    response_time = elapsed_ms if completed else None
    return ProbeOutcome(site=updated, response_time_ms=response_time)


def probe_sites(
    sites: Sequence[ServiceRecord],
    checker: Checker,
    *,
    delay_seconds: float,
    clock: Clock = utc_now,
    sleep: Callable[[float], None] = time.sleep,
) -> List[ProbeOutcome]:
    """Probe ``sites`` one at a time, pausing ``delay_seconds`` after each probe."""
    outcomes: List[ProbeOutcome] = []
    for site in sites:
        outcomes.append(probe_site(site, checker, clock=clock))
        # Throttle between probes; all checks share one proxy circuit
        if delay_seconds > 0:
            LOGGER.debug("Sleeping %.1fs before next probe", delay_seconds)
            sleep(delay_seconds)
    return outcomes


def fetch_candidates(directory: Optional[DirectoryClient]) -> List[ServiceRecord]:
    """Fetch candidates, degrading to an empty list when the listing fails."""
    if directory is None:
        LOGGER.info("Directory fetch skipped")
        return []
    try:
        return directory.fetch_candidates()
    except DirectoryError as exc:
        LOGGER.warning("Directory fetch failed; continuing with existing registry: %s", exc)
        return []


@perf("jobs.run_monitor", tags={"component": "jobs"})
def run_monitor(
    config: AppConfig,
    directory: Optional[DirectoryClient],
    checker: Checker,
    run_config: RunConfig,
    *,
    clock: Clock = utc_now,
    sleep: Callable[[float], None] = time.sleep,
) -> RunSummary:
    """Run one reconcile-and-probe pass.

    The registry is saved twice: right after the merge and again after every
    site has been probed. ``PersistenceError`` from either save or from the
    report write propagates to the caller.
    """
    run_id = str(uuid.uuid4())
    LOGGER.info("%s run %s started (proxy=%s)", config.app_name, run_id, config.proxy.as_url())

    candidates = fetch_candidates(None if run_config.skip_fetch else directory)
    existing = load_registry(config.registry_path)

    sites = merge_sites(candidates, existing)
    save_registry(config.registry_path, sites)
    LOGGER.info("Updated %s with %d sites", config.registry_path.name, len(sites))

    with perf_span("jobs.probe_loop", tags={"sites": len(sites)}, logger=LOGGER):
        outcomes = probe_sites(
            sites,
            checker,
            delay_seconds=run_config.probe_delay_seconds,
            clock=clock,
            sleep=sleep,
        )
    LOGGER.info("Check complete!")

    save_registry(config.registry_path, [outcome.site for outcome in outcomes])
    write_report(config.report_path, render_report(outcomes, clock()))

    counts = summarize(outcomes)
    LOGGER.info(
        "Run summary: online=%s offline=%s error=%s total=%s",
        counts.online,
        counts.offline,
        counts.error,
        counts.total,
    )
    LOGGER.info("%s run %s completed", config.app_name, run_id)
    return RunSummary(run_id=run_id, counts=counts, outcomes=outcomes)


__all__ = ["RunConfig", "RunSummary", "probe_site", "probe_sites", "run_monitor"]
