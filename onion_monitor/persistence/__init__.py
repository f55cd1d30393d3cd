"""Persistence helpers for the registry snapshot."""

from onion_monitor.persistence.registry import (
    PersistenceError,
    load_registry,
    save_registry,
    write_text_atomic,
)

__all__ = ["PersistenceError", "load_registry", "save_registry", "write_text_atomic"]
