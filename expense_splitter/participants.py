"""
Participants Module

This module handles all participant-related operations for the expense
splitter.

Features:
    - Add participants to a ledger
    - Remove participants, cascading into the expense list
    - Look up participant details

Data Model:
    Participant fields:
        - participant_id: string (P001, P002, ... format)
        - name: string

Functions:
    add_participant: Return a ledger with a new participant.
    remove_participant: Return a ledger without a participant and its expenses.
    get_participant: Find a participant by id.
"""

import logging
from typing import Optional

from expense_splitter.utils import next_sequential_id, validate_non_empty_string


logger = logging.getLogger(__name__)


class Participant:
    """
    Represents a person who pays for or shares expenses.

    Attributes:
        participant_id (str): Unique identifier for the participant.
        name (str): Display name of the participant.
    """

    def __init__(self, participant_id: str, name: str):
        self.participant_id = participant_id
        self.name = name

    def to_dict(self) -> dict:
        """Convert participant to dictionary for the balance calculation."""
        return {
            "participant_id": self.participant_id,
            "name": self.name
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Participant":
        """Create a Participant instance from a dictionary."""
        return cls(
            participant_id=data.get("participant_id"),
            name=data.get("name")
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Participant):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        """Return string representation of participant."""
        return f"Participant(id='{self.participant_id}', name='{self.name}')"


def get_participant(ledger, participant_id: str) -> Optional[Participant]:
    """
    Find a participant in a ledger.

    Args:
        ledger: The Ledger to search.
        participant_id: The ID of the participant.

    Returns:
        Participant | None: The participant, or None if not found.
    """
    for participant in ledger.participants:
        if participant.participant_id == participant_id:
            return participant
    return None


def add_participant(ledger, name: str):
    """
    Add a new participant to a ledger.

    Args:
        ledger: The current Ledger.
        name: Name of the participant (surrounding whitespace is removed).

    Returns:
        tuple[Ledger, Participant]: The new ledger and the created participant.

    Raises:
        ValueError: If the name is empty or already used (case-insensitive).
    """
    validate_non_empty_string(name, "name")
    name = name.strip()

    if any(p.name.lower() == name.lower() for p in ledger.participants):
        raise ValueError(f"participant '{name}' already exists")

    participant_id = next_sequential_id(
        [p.participant_id for p in ledger.participants], "P"
    )
    participant = Participant(participant_id=participant_id, name=name)

    logger.info("Added participant %s (%s)", participant_id, name)
    return ledger.replace(participants=ledger.participants + [participant]), participant


def remove_participant(ledger, participant_id: str):
    """
    Remove a participant from a ledger.

    The removal cascades:
        - The participant is dropped from every expense's participant list
        - Every expense the participant paid for is deleted

    Args:
        ledger: The current Ledger.
        participant_id: The ID of the participant to remove.

    Returns:
        Ledger: The new ledger.

    Raises:
        KeyError: If the participant does not exist.
    """
    if get_participant(ledger, participant_id) is None:
        raise KeyError(f"participant '{participant_id}' not found")

    participants = [p for p in ledger.participants if p.participant_id != participant_id]

    expenses = []
    for expense in ledger.expenses:
        if expense.payer_id == participant_id:
            continue
        expenses.append(expense.replace(
            participant_ids=[pid for pid in expense.participant_ids if pid != participant_id]
        ))

    removed = len(ledger.expenses) - len(expenses)
    logger.info(
        "Removed participant %s and %d expense(s) they paid", participant_id, removed
    )
    return ledger.replace(participants=participants, expenses=expenses)
