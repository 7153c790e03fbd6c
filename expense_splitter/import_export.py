"""
Import/Export Module

This module converts ledgers to and from the JSON file format shared by
exports, imports and the stores.

File format:
    {
        "participants": [{"id": "P001", "name": "Ana"}],
        "expenses": [{"id": "E001", "description": "Taxi", "amount": 18.0,
                      "payerId": "P001", "participantIds": ["P001"],
                      "date": "2024-05-01"}],
        "currencyCode": "EUR",
        "schemaVersion": 1
    }

Imports are checked against this shape with pydantic. Anything malformed is
rejected as a whole with a LedgerImportError; nothing is partially applied.
Expenses with non-positive amounts or empty participant lists are accepted,
the balance calculation skips them.

Functions:
    ledger_to_wire: Convert a Ledger to a JSON-ready dict.
    ledger_from_wire: Validate a decoded dict and build a Ledger.
    export_ledger: Serialize a Ledger to JSON text.
    import_ledger: Parse JSON text into a Ledger.
"""

import json
import logging
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from expense_splitter.expenses import Expense
from expense_splitter.ledger import SCHEMA_VERSION, SUPPORTED_CURRENCIES, Ledger
from expense_splitter.participants import Participant
from expense_splitter.utils import validate_date


logger = logging.getLogger(__name__)


class LedgerImportError(ValueError):
    """Raised when imported data does not describe a valid ledger."""


class ParticipantRecord(BaseModel):
    """A participant as written in a ledger file."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class ExpenseRecord(BaseModel):
    """An expense as written in a ledger file."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    description: str = ""
    amount: float = Field(..., allow_inf_nan=False)
    payer_id: str = Field(..., min_length=1, alias="payerId")
    participant_ids: list[str] = Field(default_factory=list, alias="participantIds")
    date: str = Field(default_factory=lambda: date.today().isoformat())

    @field_validator("amount", mode="before")
    @classmethod
    def _reject_bool_amount(cls, value):
        if isinstance(value, bool):
            raise ValueError("amount must be a number, not true/false")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, value):
        return "" if value is None else value

    @field_validator("participant_ids", mode="before")
    @classmethod
    def _default_participants(cls, value):
        return [] if value is None else value

    @field_validator("date", mode="before")
    @classmethod
    def _default_date(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return date.today().isoformat()
        return value

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        validate_date(value, "date")
        return value


class LedgerRecord(BaseModel):
    """A complete ledger file."""
    model_config = ConfigDict(populate_by_name=True)

    participants: list[ParticipantRecord]
    expenses: list[ExpenseRecord]
    currency_code: str = Field("USD", alias="currencyCode")
    schema_version: Literal[1] = Field(SCHEMA_VERSION, alias="schemaVersion")

    @field_validator("currency_code", mode="before")
    @classmethod
    def _check_currency(cls, value):
        if value is None or value == "":
            return "USD"
        if not isinstance(value, str) or value.strip().upper() not in SUPPORTED_CURRENCIES:
            raise ValueError(f"must be one of {sorted(SUPPORTED_CURRENCIES)}")
        return value.strip().upper()

    @field_validator("participants")
    @classmethod
    def _unique_participants(cls, value: list[ParticipantRecord]) -> list[ParticipantRecord]:
        seen = set()
        for record in value:
            if record.id in seen:
                raise ValueError(f"duplicate participant id '{record.id}'")
            seen.add(record.id)
        return value

    @field_validator("expenses")
    @classmethod
    def _unique_expenses(cls, value: list[ExpenseRecord]) -> list[ExpenseRecord]:
        seen = set()
        for record in value:
            if record.id in seen:
                raise ValueError(f"duplicate expense id '{record.id}'")
            seen.add(record.id)
        return value


def _format_errors(error: ValidationError) -> str:
    """Turn pydantic errors into one readable line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "file"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def ledger_to_wire(ledger: Ledger) -> dict:
    """
    Convert a Ledger to the file format.

    Args:
        ledger: Ledger to convert.

    Returns:
        dict: JSON-ready dict with camelCase keys.
    """
    record = LedgerRecord(
        participants=[
            ParticipantRecord(id=p.participant_id, name=p.name)
            for p in ledger.participants
        ],
        expenses=[
            ExpenseRecord(
                id=e.expense_id,
                description=e.description,
                amount=e.amount,
                payer_id=e.payer_id,
                participant_ids=e.participant_ids,
                date=e.date
            )
            for e in ledger.expenses
        ],
        currency_code=ledger.currency_code,
        schema_version=ledger.schema_version
    )
    return record.model_dump(by_alias=True)


def ledger_from_wire(data) -> Ledger:
    """
    Validate decoded ledger data and build a Ledger.

    Args:
        data: Decoded JSON value.

    Returns:
        Ledger: The imported ledger.

    Raises:
        LedgerImportError: If the data does not match the file format.
    """
    try:
        record = LedgerRecord.model_validate(data)
    except ValidationError as e:
        raise LedgerImportError(f"Invalid ledger file: {_format_errors(e)}") from e

    return Ledger(
        participants=[Participant(r.id, r.name) for r in record.participants],
        expenses=[
            Expense(
                expense_id=r.id,
                description=r.description,
                amount=r.amount,
                payer_id=r.payer_id,
                participant_ids=r.participant_ids,
                date=r.date
            )
            for r in record.expenses
        ],
        currency_code=record.currency_code,
        schema_version=record.schema_version
    )


def export_ledger(ledger: Ledger) -> str:
    """Serialize a Ledger to indented JSON text."""
    return json.dumps(ledger_to_wire(ledger), indent=2, ensure_ascii=False)


def import_ledger(text, source: Optional[str] = None) -> Ledger:
    """
    Parse JSON text (or bytes) into a Ledger.

    Args:
        text: File contents.
        source: Optional name of where the text came from, for logging.

    Returns:
        Ledger: The imported ledger.

    Raises:
        LedgerImportError: If the text is not JSON or not a valid ledger.
    """
    try:
        data = json.loads(text)
    except (TypeError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Rejected import from %s: not JSON", source or "upload")
        raise LedgerImportError(f"Invalid ledger file: not valid JSON ({e})") from e

    try:
        ledger = ledger_from_wire(data)
    except LedgerImportError as e:
        logger.warning("Rejected import from %s: %s", source or "upload", e)
        raise

    logger.info(
        "Imported ledger from %s: %d participant(s), %d expense(s)",
        source or "upload", len(ledger.participants), len(ledger.expenses)
    )
    return ledger
