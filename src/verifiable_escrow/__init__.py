"""Verifiable escrow: condition-gated custody of value between two accounts."""

__version__ = "0.1.0"
