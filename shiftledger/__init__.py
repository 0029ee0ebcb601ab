"""Shift ledger - till shifts reconciled against a chart of accounts."""

__version__ = "0.1.0"
