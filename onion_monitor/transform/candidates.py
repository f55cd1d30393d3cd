"""Transform directory project entries into candidate service records."""

from typing import Any, Iterable, List, Mapping, Optional

from onion_monitor.models import ServiceRecord

# Directory entries use a bare ".onion" while an address is still being assigned.
PLACEHOLDER_ADDRESS = ".onion"
DEFAULT_SCHEME = "http://"


def derive_key(title: str) -> str:
    """Return the merge key for ``title``.

    Lowercases, then replaces spaces and underscores with hyphens. Repeated
    separators are kept, and distinct titles may map to the same key.
    """
    return title.lower().replace(" ", "-").replace("_", "-")


def normalize_address(raw: str) -> str:
    """Prefix ``http://`` unless the address already carries an http(s) scheme."""
    if raw.startswith("http://") or raw.startswith("https://"):
        return raw
    return f"{DEFAULT_SCHEME}{raw}"


def _to_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text or None


def _to_optional_tags(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    tags = [str(tag) for tag in value if tag is not None]
    return tags or None


def build_candidate(project: Mapping[str, Any]) -> Optional[ServiceRecord]:
    """Return a fresh record for one directory entry, or None when it has no usable address."""
    onion = project.get("onion")
    if not isinstance(onion, str) or not onion or onion == PLACEHOLDER_ADDRESS:
        return None

    title = project.get("name")
    title = title if isinstance(title, str) else ""

    return ServiceRecord(
        title=title,
        key=derive_key(title),
        address=normalize_address(onion),
        category=_to_optional_str(project.get("category")),
        description=_to_optional_str(project.get("description")),
        official_website=_to_optional_str(project.get("official_website")),
        github=_to_optional_str(project.get("github")),
        tags=_to_optional_tags(project.get("tags")),
    )


def extract_candidates(projects: Iterable[Any]) -> List[ServiceRecord]:
    """Convert a parsed directory resource into candidate records.

    Entries that are not objects, or whose ``onion`` is missing, empty or the
    placeholder value, are skipped.
    """
    candidates: List[ServiceRecord] = []
    for project in projects:
        if not isinstance(project, Mapping):
            continue
        record = build_candidate(project)
        if record is not None:
            candidates.append(record)
    return candidates


__all__ = [
    "PLACEHOLDER_ADDRESS",
    "build_candidate",
    "derive_key",
    "extract_candidates",
    "normalize_address",
]
