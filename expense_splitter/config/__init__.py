"""Configuration for the expense splitter (settings, logging, Firestore)."""

from expense_splitter.config.settings import configure_logging

__all__ = ["configure_logging"]
