"""
Store Module

This module persists ledgers for the expense splitter. Only the ledger
itself (participants, expenses, currency) is stored; balances and
settlements are always recomputed from it.

Backends:
    JsonFileStore: One JSON file per ledger under a data directory.
        {data_dir}/{ledger_id}.json

    FirestoreStore: One document per ledger.
        ledgers/{ledger_id}
            - participants, expenses, currencyCode, schemaVersion
            - updated_at: timestamp

Both use the export file format from import_export, so a stored ledger can
be downloaded or re-imported as is.

Functions:
    get_store: Build the store selected by configuration.
    load_or_create: Load a ledger, creating an empty one if it is missing.
"""

import json
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from expense_splitter.config import settings
from expense_splitter.config.firebase_config import get_db
from expense_splitter.import_export import (
    LedgerImportError,
    export_ledger,
    ledger_from_wire,
    ledger_to_wire,
)
from expense_splitter.ledger import Ledger, empty_ledger


logger = logging.getLogger(__name__)

_LEDGER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def _get_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.

    Returns:
        str: ISO formatted timestamp.
    """
    return datetime.now(timezone.utc).isoformat()


def _validate_ledger_id(ledger_id: str) -> None:
    """
    Validate that ledger_id is a short name made of safe characters.

    Args:
        ledger_id: The ledger ID to validate.

    Raises:
        ValueError: If ledger_id is invalid.
    """
    if not isinstance(ledger_id, str) or not _LEDGER_ID_PATTERN.match(ledger_id):
        raise ValueError(
            "ledger_id must be 1-64 characters of letters, digits, '_' or '-'"
        )


class JsonFileStore:
    """
    Keeps each ledger in its own JSON file.

    Attributes:
        data_dir (Path): Directory holding the ledger files.
    """

    def __init__(self, data_dir=None):
        self.data_dir = Path(data_dir or settings.DATA_DIR)

    def _path(self, ledger_id: str) -> Path:
        _validate_ledger_id(ledger_id)
        return self.data_dir / f"{ledger_id}.json"

    def exists(self, ledger_id: str) -> bool:
        """Check whether a ledger has been saved."""
        return self._path(ledger_id).is_file()

    def load(self, ledger_id: str) -> Ledger:
        """
        Load a saved ledger.

        Raises:
            KeyError: If the ledger does not exist.
            RuntimeError: If the file cannot be read or is not a valid ledger.
        """
        path = self._path(ledger_id)
        if not path.is_file():
            raise KeyError(f"ledger '{ledger_id}' not found")

        try:
            return ledger_from_wire(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            raise RuntimeError(f"ledger '{ledger_id}' could not be read: {e}") from e

    def save(self, ledger_id: str, ledger: Ledger) -> None:
        """Write a ledger, replacing any previous version atomically."""
        path = self._path(ledger_id)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{ledger_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(export_ledger(ledger))
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.debug("Saved ledger %s to %s", ledger_id, path)

    def delete(self, ledger_id: str) -> None:
        """
        Delete a saved ledger.

        Raises:
            KeyError: If the ledger does not exist.
        """
        path = self._path(ledger_id)
        if not path.is_file():
            raise KeyError(f"ledger '{ledger_id}' not found")
        path.unlink()
        logger.info("Deleted ledger %s", ledger_id)

    def list_ids(self) -> list[str]:
        """IDs of all saved ledgers, sorted."""
        if not self.data_dir.is_dir():
            return []
        return sorted(p.stem for p in self.data_dir.glob("*.json"))


class FirestoreStore:
    """
    Keeps each ledger as a Firestore document in the "ledgers" collection.

    Attributes:
        db: Firestore client (or any object with the same collection API).
    """

    COLLECTION = "ledgers"

    def __init__(self, db=None):
        if db is None:
            db = get_db()
        if db is None:
            raise RuntimeError("Firestore is not available")
        self.db = db

    def _doc(self, ledger_id: str):
        _validate_ledger_id(ledger_id)
        return self.db.collection(self.COLLECTION).document(ledger_id)

    def exists(self, ledger_id: str) -> bool:
        """Check whether a ledger has been saved."""
        return self._doc(ledger_id).get().exists

    def load(self, ledger_id: str) -> Ledger:
        """
        Load a saved ledger.

        Raises:
            KeyError: If the ledger does not exist.
            RuntimeError: If the document is not a valid ledger.
        """
        doc = self._doc(ledger_id).get()
        if not doc.exists:
            raise KeyError(f"ledger '{ledger_id}' not found")

        try:
            return ledger_from_wire(doc.to_dict())
        except LedgerImportError as e:
            raise RuntimeError(f"ledger '{ledger_id}' could not be read: {e}") from e

    def save(self, ledger_id: str, ledger: Ledger) -> None:
        """Write a ledger document, overwriting the previous one (idempotent)."""
        doc_data = ledger_to_wire(ledger)
        doc_data["updated_at"] = _get_timestamp()
        self._doc(ledger_id).set(doc_data)
        logger.debug("Saved ledger %s to Firestore", ledger_id)

    def delete(self, ledger_id: str) -> None:
        """
        Delete a saved ledger.

        Raises:
            KeyError: If the ledger does not exist.
        """
        doc_ref = self._doc(ledger_id)
        if not doc_ref.get().exists:
            raise KeyError(f"ledger '{ledger_id}' not found")
        doc_ref.delete()
        logger.info("Deleted ledger %s", ledger_id)

    def list_ids(self) -> list[str]:
        """IDs of all saved ledgers, sorted."""
        return sorted(doc.id for doc in self.db.collection(self.COLLECTION).stream())


def get_store(backend: str = None):
    """
    Build the store selected by SPLITTER_STORAGE_BACKEND.

    Args:
        backend: "json" or "firestore". Defaults to the configured backend.

    Returns:
        JsonFileStore | FirestoreStore: The store.

    Raises:
        ValueError: If the backend name is unknown.
        RuntimeError: If Firestore is selected but not available.
    """
    backend = (backend or settings.STORAGE_BACKEND).lower()
    if backend == "json":
        return JsonFileStore()
    if backend == "firestore":
        return FirestoreStore()
    raise ValueError(f"Unknown storage backend: {backend}")


def load_or_create(store, ledger_id: str) -> Ledger:
    """
    Load a ledger, creating and saving an empty one if it does not exist.

    Args:
        store: A JsonFileStore or FirestoreStore.
        ledger_id: The ID of the ledger.

    Returns:
        Ledger: The stored ledger.
    """
    try:
        return store.load(ledger_id)
    except KeyError:
        ledger = empty_ledger()
        store.save(ledger_id, ledger)
        logger.info("Created ledger %s", ledger_id)
        return ledger
