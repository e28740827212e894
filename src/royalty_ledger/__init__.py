"""Royalty ledger: quarterly balance ledger and batch reconciliation."""

__version__ = "0.1.0"
