"""Declarative DNS zone reconciliation against capability-limited providers."""

__version__ = "0.1.0"
