"""Domain records shared by the reconcile, probe, persistence and report stages."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

STATUS_ONLINE = "online"
STATUS_OFFLINE = "offline"
STATUS_UNKNOWN = "unknown"
ERROR_STATUS_PREFIX = "error-"


def error_status(status_code: int) -> str:
    """Return the status label for a server-side failure code (``error-503``)."""
    return f"{ERROR_STATUS_PREFIX}{status_code}"


def is_error_status(status: str) -> bool:
    return status.startswith(ERROR_STATUS_PREFIX)


@dataclass
class ServiceRecord:
    """One monitored onion service.

    Attributes:
        title: Display name as published by the directory.
        key: Merge identifier derived from ``title``.
        address: Probe target, always carrying an ``http(s)://`` scheme.
        status: Classification from the most recent probe.
        previous_status: Classification from the probe before that.
        last_checked: UTC time of the most recent probe attempt, if any.
        category, description, official_website, github, tags: Optional
            directory metadata carried through untouched.
    """

    title: str
    key: str
    address: str
    status: str = STATUS_UNKNOWN
    previous_status: str = STATUS_UNKNOWN
    last_checked: Optional[datetime] = None
    category: Optional[str] = None
    description: Optional[str] = None
    official_website: Optional[str] = None
    github: Optional[str] = None
    tags: Optional[List[str]] = field(default=None)


@dataclass
class ProbeOutcome:
    """Post-probe record snapshot plus the observed latency (None when unreachable)."""

    site: ServiceRecord
    response_time_ms: Optional[int] = None


__all__ = [
    "STATUS_ONLINE",
    "STATUS_OFFLINE",
    "STATUS_UNKNOWN",
    "ERROR_STATUS_PREFIX",
    "ServiceRecord",
    "ProbeOutcome",
    "error_status",
    "is_error_status",
]
