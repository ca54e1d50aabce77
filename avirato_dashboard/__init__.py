"""Avirato reservation dashboard: retrieval, reconciliation and enrichment of PMS reservations."""

__version__ = "0.1.0"
