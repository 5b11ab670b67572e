"""Rental ledger and charge settlement engine."""

__version__ = "0.1.0"
