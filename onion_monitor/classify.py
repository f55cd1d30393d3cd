"""Map raw check attempts onto the service status taxonomy.

Any response from the remote service, including 4xx client errors, counts as
``online``: the signal of interest is transport reachability through the
overlay network, not application correctness.

Functions:
    classify(attempt): Return the status label for one check attempt.
    apply_verdict(site, attempt, checked_at): Return the post-probe record.
"""

from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple

from onion_monitor.models import STATUS_OFFLINE, STATUS_ONLINE, ServiceRecord, error_status
from onion_monitor.network.checker import SUCCEEDED, CheckAttempt

# (low, high, verdict): high is exclusive, None means unbounded.
StatusRule = Tuple[int, Optional[int], Callable[[int], str]]

STATUS_RULES: Sequence[StatusRule] = (
    (0, 200, lambda code: STATUS_OFFLINE),
    (200, 500, lambda code: STATUS_ONLINE),
    (500, None, error_status),
)


def classify_status_code(status_code: int, rules: Sequence[StatusRule] = STATUS_RULES) -> str:
    """Return the verdict of the first rule whose range contains ``status_code``."""
    for low, high, verdict in rules:
        if status_code >= low and (high is None or status_code < high):
            return verdict(status_code)
    return STATUS_OFFLINE


def classify(attempt: CheckAttempt) -> str:
    """Return the status label for ``attempt``.

    Launch failures and non-zero exits are ``offline``; completed checks are
    classified by response code via ``STATUS_RULES``.
    """
    if attempt.kind != SUCCEEDED:
        return STATUS_OFFLINE
    return classify_status_code(attempt.status_code or 0)


def apply_verdict(site: ServiceRecord, attempt: CheckAttempt, checked_at: datetime) -> ServiceRecord:
    """Return a copy of ``site`` updated with the verdict for ``attempt``.

    ``previous_status`` always takes the pre-probe status and ``last_checked``
    is set even when the service could not be reached.
    """
    return replace(
        site,
        status=classify(attempt),
        previous_status=site.status,
        last_checked=checked_at,
    )


__all__ = ["STATUS_RULES", "apply_verdict", "classify", "classify_status_code"]
