"""Transformation helpers for directory candidates."""

from onion_monitor.transform.candidates import (
    derive_key,
    extract_candidates,
    normalize_address,
)

__all__ = ["derive_key", "extract_candidates", "normalize_address"]
