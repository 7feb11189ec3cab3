"""Coin ledger and task escrow engine for a micro-task marketplace."""

__version__ = "0.1.0"
