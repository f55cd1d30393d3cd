"""Registry snapshot persistence (``onions.json``).

The snapshot is a pretty-printed JSON array. Field names follow the file
format consumed by the status page and earlier tooling:

    title, name (merge key), onion_address, status, prev_status,
    last_checked (ISO-8601 UTC with a ``Z`` suffix, or null)

Optional directory metadata (category, description, official_website,
github, tags) is written only when present.
"""

import json
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from onion_monitor.logging_utils import perf
from onion_monitor.models import STATUS_UNKNOWN, ServiceRecord

LOGGER = logging.getLogger(__name__)

OPTIONAL_FIELDS = ("category", "description", "official_website", "github", "tags")
_FRACTION_RE = re.compile(r"\.(\d+)")


class PersistenceError(RuntimeError):
    """A snapshot or report could not be written."""

    def __init__(self, operation: str, path: Path, cause: BaseException) -> None:
        super().__init__(f"{operation} {path}: {cause}")
        self.operation = operation
        self.path = path
        self.cause = cause


class MalformedSnapshotError(ValueError):
    """An entry in the snapshot does not describe a service record."""


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp written by this module or by older writers.

    Accepts a ``Z`` suffix and fractional seconds of any precision (extra
    digits beyond microseconds are truncated). Naive values are taken as UTC.
    """
    if value is None:
        return None
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def site_to_dict(site: ServiceRecord) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "title": site.title,
        "name": site.key,
        "onion_address": site.address,
        "status": site.status,
        "prev_status": site.previous_status,
        "last_checked": format_timestamp(site.last_checked),
    }
    for field_name in OPTIONAL_FIELDS:
        value = getattr(site, field_name)
        if value is not None:
            data[field_name] = value
    return data


def _require_str(entry: Mapping[str, Any], field_name: str) -> str:
    value = entry.get(field_name)
    if not isinstance(value, str):
        raise MalformedSnapshotError(f"field {field_name!r} must be a string")
    return value


def _optional_str(entry: Mapping[str, Any], field_name: str) -> Optional[str]:
    value = entry.get(field_name)
    if value is not None and not isinstance(value, str):
        raise MalformedSnapshotError(f"field {field_name!r} must be a string or null")
    return value


def _optional_tags(entry: Mapping[str, Any]) -> Optional[List[str]]:
    tags = entry.get("tags")
    if tags is None:
        return None
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise MalformedSnapshotError("field 'tags' must be a list of strings or null")
    return list(tags)


def site_from_dict(entry: Any) -> ServiceRecord:
    """Build a record from one snapshot entry.

    Raises:
        MalformedSnapshotError: If required fields are missing or mistyped.
    """
    if not isinstance(entry, Mapping):
        raise MalformedSnapshotError("snapshot entries must be objects")

    last_checked_raw = entry.get("last_checked")
    if last_checked_raw is not None and not isinstance(last_checked_raw, str):
        raise MalformedSnapshotError("field 'last_checked' must be a string or null")
    try:
        last_checked = parse_timestamp(last_checked_raw)
    except ValueError as exc:
        raise MalformedSnapshotError(f"invalid last_checked: {exc}") from exc

    return ServiceRecord(
        title=_require_str(entry, "title"),
        key=_require_str(entry, "name"),
        address=_require_str(entry, "onion_address"),
        status=_optional_str(entry, "status") or STATUS_UNKNOWN,
        previous_status=_optional_str(entry, "prev_status") or STATUS_UNKNOWN,
        last_checked=last_checked,
        category=_optional_str(entry, "category"),
        description=_optional_str(entry, "description"),
        official_website=_optional_str(entry, "official_website"),
        github=_optional_str(entry, "github"),
        tags=_optional_tags(entry),
    )


def dumps_registry(sites: Iterable[ServiceRecord]) -> str:
    return json.dumps([site_to_dict(site) for site in sites], indent=2, ensure_ascii=False)


def loads_registry(text: str) -> List[ServiceRecord]:
    """Parse a snapshot document.

    Raises:
        ValueError: If the document is not valid JSON, is not a list, or
            contains a malformed entry.
    """
    data = json.loads(text)
    if not isinstance(data, list):
        raise MalformedSnapshotError("snapshot must be a JSON array")
    return [site_from_dict(entry) for entry in data]


@perf("persistence.load_registry", tags={"component": "persistence"})
def load_registry(path: Path) -> List[ServiceRecord]:
    """Load the registry snapshot, treating a missing or malformed file as empty."""
    if not path.exists():
        LOGGER.info("No registry snapshot at %s; starting empty", path)
        return []

    try:
        sites = loads_registry(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        LOGGER.warning("Ignoring unreadable registry snapshot %s: %s", path, exc)
        return []

    LOGGER.info("Loaded %d sites from %s", len(sites), path)
    return sites


def write_text_atomic(path: Path, text: str, *, operation: str) -> None:
    """Replace ``path`` with ``text`` in one step.

    Raises:
        PersistenceError: If the directory, temp file or rename fails.
    """
    tmp_name: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        raise PersistenceError(operation, path, exc) from exc
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)


@perf("persistence.save_registry", tags={"component": "persistence"})
def save_registry(path: Path, sites: Iterable[ServiceRecord]) -> None:
    """Overwrite the snapshot with the complete ordered list of ``sites``."""
    site_list = list(sites)
    write_text_atomic(path, dumps_registry(site_list), operation="write registry")
    LOGGER.info("Saved %d sites to %s", len(site_list), path)


__all__ = [
    "MalformedSnapshotError",
    "PersistenceError",
    "dumps_registry",
    "load_registry",
    "loads_registry",
    "save_registry",
    "write_text_atomic",
]
