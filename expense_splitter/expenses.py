"""
Expenses Module

This module handles all expense-related operations for the expense splitter.

Features:
    - Add/delete expenses
    - Track who paid and who shares the cost
    - Support for partial participant lists (payer may be left out)

Data Model:
    Expense fields:
        - expense_id: string (E001, E002, ... format)
        - description: string
        - amount: float (must be > 0 when added through add_expense)
        - payer_id: string (participant_id who paid)
        - participant_ids: list of participant_ids sharing the cost
        - date: string (YYYY-MM-DD)

Functions:
    add_expense: Return a ledger with a new expense.
    delete_expense: Return a ledger without an expense.
    get_expense: Find an expense by id.
"""

import logging
import math
from datetime import date as date_cls
from typing import Optional

from expense_splitter.utils import (
    next_sequential_id,
    validate_date,
    validate_non_empty_string,
)


logger = logging.getLogger(__name__)


class Expense:
    """
    Represents a single shared expense.

    Attributes:
        expense_id (str): Unique identifier in E### format.
        description (str): What the money was spent on.
        amount (float): Amount of the expense.
        payer_id (str): Participant ID of who paid.
        participant_ids (list[str]): Participant IDs sharing the cost.
        date (str): Date of expense (YYYY-MM-DD).
    """

    def __init__(
        self,
        expense_id: str,
        description: str,
        amount: float,
        payer_id: str,
        participant_ids: list[str],
        date: str
    ):
        self.expense_id = expense_id
        self.description = description
        self.amount = amount
        self.payer_id = payer_id
        self.participant_ids = list(participant_ids)
        self.date = date

    def to_dict(self) -> dict:
        """Convert expense to dictionary for the balance calculation."""
        return {
            "expense_id": self.expense_id,
            "description": self.description,
            "amount": self.amount,
            "payer_id": self.payer_id,
            "participant_ids": list(self.participant_ids),
            "date": self.date
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Expense":
        """Create an Expense instance from a dictionary."""
        return cls(
            expense_id=data.get("expense_id"),
            description=data.get("description", ""),
            amount=data.get("amount"),
            payer_id=data.get("payer_id"),
            participant_ids=data.get("participant_ids", []),
            date=data.get("date")
        )

    def replace(self, **changes) -> "Expense":
        """Return a copy of this expense with some fields changed."""
        data = self.to_dict()
        data.update(changes)
        return Expense.from_dict(data)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Expense):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        """Return string representation of expense."""
        return f"Expense(id='{self.expense_id}', payer='{self.payer_id}', amount={self.amount}, description='{self.description}')"


def get_expense(ledger, expense_id: str) -> Optional[Expense]:
    """
    Find an expense in a ledger.

    Args:
        ledger: The Ledger to search.
        expense_id: The ID of the expense.

    Returns:
        Expense | None: The expense, or None if not found.
    """
    for expense in ledger.expenses:
        if expense.expense_id == expense_id:
            return expense
    return None


def add_expense(
    ledger,
    description: str,
    amount: float,
    payer_id: str,
    participant_ids: list[str],
    date: Optional[str] = None
):
    """
    Add a new expense to a ledger.

    Args:
        ledger: The current Ledger.
        description: What the money was spent on.
        amount: Amount of the expense (must be a finite number > 0).
        payer_id: Participant ID of who paid the expense.
        participant_ids: Participant IDs sharing the cost.
        date: Date of the expense (YYYY-MM-DD). Defaults to today.

    Returns:
        tuple[Ledger, Expense]: The new ledger and the created expense.

    Raises:
        ValueError: If input validation fails.

    Notes:
        - Payer does NOT have to be in participant_ids
        - New expenses are placed first (newest first)
    """
    validate_non_empty_string(description, "description")
    validate_non_empty_string(payer_id, "payer_id")

    if date is None or not str(date).strip():
        date = date_cls.today().isoformat()
    validate_date(date, "date")

    if isinstance(amount, bool) or not isinstance(amount, (int, float)) \
            or not math.isfinite(amount) or amount <= 0:
        raise ValueError(f"amount must be a positive number, got: {amount}")

    if not isinstance(participant_ids, list) or len(participant_ids) == 0:
        raise ValueError("participant_ids must be a non-empty list of participant IDs")

    existing_participants = {p.participant_id for p in ledger.participants}

    if payer_id not in existing_participants:
        raise ValueError(f"payer_id '{payer_id}' does not exist in this ledger")

    for participant_id in participant_ids:
        if participant_id not in existing_participants:
            raise ValueError(f"participant '{participant_id}' does not exist in this ledger")

    expense_id = next_sequential_id([e.expense_id for e in ledger.expenses], "E")

    expense = Expense(
        expense_id=expense_id,
        description=description.strip(),
        amount=float(amount),
        payer_id=payer_id,
        # Keep the caller's order, drop repeats
        participant_ids=list(dict.fromkeys(participant_ids)),
        date=date
    )

    logger.info("Added expense %s (%.2f paid by %s)", expense_id, expense.amount, payer_id)
    return ledger.replace(expenses=[expense] + ledger.expenses), expense


def delete_expense(ledger, expense_id: str):
    """
    Delete an expense from a ledger.

    Args:
        ledger: The current Ledger.
        expense_id: The ID of the expense to delete.

    Returns:
        Ledger: The new ledger.

    Raises:
        KeyError: If the expense does not exist.
    """
    if get_expense(ledger, expense_id) is None:
        raise KeyError(f"expense '{expense_id}' not found")

    logger.info("Deleted expense %s", expense_id)
    return ledger.replace(
        expenses=[e for e in ledger.expenses if e.expense_id != expense_id]
    )
