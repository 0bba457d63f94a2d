"""Scheduled snapshot publisher: discovery, delivery and publish bookkeeping."""

__version__ = "0.1.0"
