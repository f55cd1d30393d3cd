"""Client for the GitHub contents API listing of onion service directories.

The directory is a repository folder of JSON files, each holding a list of
``{"name": ..., "onion": ...}`` projects. Listing failures raise
``DirectoryError``; a failure on one file is logged and that file skipped.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from onion_monitor.logging_utils import perf
from onion_monitor.models import ServiceRecord
from onion_monitor.transform import extract_candidates

LOGGER = logging.getLogger(__name__)

USER_AGENT = "onion-monitoring-tool"


class DirectoryError(RuntimeError):
    """The directory listing could not be fetched or parsed."""


@dataclass(frozen=True)
class DirectoryResource:
    """One downloadable JSON file from the directory listing."""

    name: str
    download_url: str


class DirectoryClient:
    """Simple wrapper around the GitHub contents API for one directory."""

    def __init__(
        self,
        listing_url: str,
        *,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the directory client.

        Args:
            listing_url: Contents API URL of the directory to list.
            token: Optional bearer token; authenticated requests get a higher
                rate limit.
            session: Optional pre-configured Requests session.
            timeout: Per-request timeout in seconds.
        """
        self._listing_url = listing_url
        self._token = token
        self._session = session or requests.Session()
        self._timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"User-Agent": USER_AGENT}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def list_resources(self) -> List[DirectoryResource]:
        """Return the JSON files in the directory listing.

        Raises:
            DirectoryError: If the listing request or its JSON payload fails.
        """
        LOGGER.info("Fetching directory listing from %s", self._listing_url)
        if self._token:
            LOGGER.info("Using GitHub token for authentication")
        try:
            response = self._session.get(
                self._listing_url,
                headers=self._headers(),
                timeout=self._timeout,
            )
            response.raise_for_status()
            entries = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise DirectoryError(f"Failed to fetch directory listing: {exc}") from exc

        if not isinstance(entries, list):
            raise DirectoryError("Failed to parse directory listing: expected a JSON array")

        resources: List[DirectoryResource] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name")
            download_url = entry.get("download_url")
            if not isinstance(name, str) or not isinstance(download_url, str):
                continue
            if entry.get("type") == "file" and name.endswith(".json") and download_url:
                resources.append(DirectoryResource(name=name, download_url=download_url))

        LOGGER.info("Found %d JSON files in directory", len(resources))
        return resources

    def fetch_projects(self, resource: DirectoryResource) -> List[Any]:
        """Download and parse one directory file into its list of projects."""
        response = self._session.get(
            resource.download_url,
            headers=self._headers(),
            timeout=self._timeout,
        )
        response.raise_for_status()
        projects = response.json()
        if not isinstance(projects, list):
            raise ValueError(f"{resource.name} does not contain a JSON array")
        return projects

    @perf("directory.fetch_candidates", tags={"component": "directory"})
    def fetch_candidates(self) -> List[ServiceRecord]:
        """Return normalized candidates from every file in the directory.

        Raises:
            DirectoryError: If the listing itself cannot be fetched.
        """
        candidates: List[ServiceRecord] = []
        for resource in self.list_resources():
            LOGGER.info("Fetching %s...", resource.name)
            try:
                projects = self.fetch_projects(resource)
            except (requests.RequestException, ValueError) as exc:
                LOGGER.warning("Failed to fetch %s: %s", resource.name, exc)
                continue
            candidates.extend(extract_candidates(projects))

        LOGGER.info("Found %d onion addresses in directory", len(candidates))
        return candidates

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "DirectoryClient":
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()


__all__ = ["DirectoryClient", "DirectoryError", "DirectoryResource"]
