"""Onion service registry reconciliation and liveness monitoring."""
