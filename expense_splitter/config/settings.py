"""
Settings Module

Centralizes configuration values for the expense splitter. Every value can be
overridden with an environment variable; defaults suit a single-user local
install that keeps its data in ./data.

Environment variables:
    SPLITTER_STORAGE_BACKEND: "json" (default) or "firestore"
    SPLITTER_DATA_DIR: directory for JSON ledger files
    SPLITTER_DEFAULT_LEDGER: ledger id used by the HTML UI
    SPLITTER_DEFAULT_CURRENCY: currency code for new ledgers
    SPLITTER_LOG_LEVEL: logging level name
    SPLITTER_SECRET_KEY: Flask session key (flash messages)
    FIREBASE_CREDENTIALS: path to a service account JSON file

Functions:
    configure_logging: Configure the root logger once.
"""

import logging
import os
from pathlib import Path


STORAGE_BACKEND = os.getenv("SPLITTER_STORAGE_BACKEND", "json").strip().lower()
DATA_DIR = Path(os.getenv("SPLITTER_DATA_DIR", Path.cwd() / "data"))
DEFAULT_LEDGER_ID = os.getenv("SPLITTER_DEFAULT_LEDGER", "default")
DEFAULT_CURRENCY = os.getenv("SPLITTER_DEFAULT_CURRENCY", "USD").strip().upper()
LOG_LEVEL = os.getenv("SPLITTER_LOG_LEVEL", "INFO").strip().upper()
SECRET_KEY = os.getenv("SPLITTER_SECRET_KEY", "dev-secret-key")
FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_logging_configured = False


def configure_logging(level: str = None) -> None:
    """
    Configure the root logger with the project format.

    Safe to call more than once; only the first call installs a handler.

    Args:
        level: Logging level name. Defaults to SPLITTER_LOG_LEVEL.
    """
    global _logging_configured
    if _logging_configured:
        return

    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
    _logging_configured = True
