"""Run orchestration for the onion monitor."""

from onion_monitor.jobs.runner import RunConfig, RunSummary, probe_site, probe_sites, run_monitor

__all__ = ["RunConfig", "RunSummary", "probe_site", "probe_sites", "run_monitor"]
