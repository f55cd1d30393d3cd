"""Candidate source: the remote onion service directory."""

from onion_monitor.directory.github import DirectoryClient, DirectoryError, DirectoryResource

__all__ = ["DirectoryClient", "DirectoryError", "DirectoryResource"]
