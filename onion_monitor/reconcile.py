"""Merge freshly fetched candidates into the persisted registry.

Functions:
    merge_sites(candidates, existing): Return the merged registry sorted by
        title.
"""

from typing import Dict, Iterable, List

from onion_monitor.logging_utils import perf
from onion_monitor.models import ServiceRecord


@perf("reconcile.merge_sites", tags={"component": "reconcile"})
def merge_sites(
    candidates: Iterable[ServiceRecord],
    existing: Iterable[ServiceRecord],
) -> List[ServiceRecord]:
    """Return ``existing`` plus every candidate whose key is not yet known.

    Args:
        candidates: Normalized records from the directory fetch.
        existing: Records loaded from the registry snapshot.

    Returns:
        Records sorted by ``title`` (code-point order). Known records are
        returned unchanged even when a candidate with the same key carries a
        different title or address; records missing from ``candidates`` are
        kept. A later duplicate key within ``existing`` replaces an earlier one.
    """
    site_map: Dict[str, ServiceRecord] = {}
    for site in existing:
        site_map[site.key] = site

    for candidate in candidates:
        site_map.setdefault(candidate.key, candidate)

    return sorted(site_map.values(), key=lambda site: site.title)


__all__ = ["merge_sites"]
