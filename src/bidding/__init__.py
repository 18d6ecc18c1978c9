"""Bid-preparation outline management."""

__version__ = "0.1.0"
