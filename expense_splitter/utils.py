"""
Utilities Module

This module provides utility functions and helpers for the expense splitter.

Features:
    - Transparency of how each participant's balance was reached
    - Input validation helpers shared by participants and expenses
    - Sequential id generation
    - Currency formatting

Data Model:
    Input - participants: list of dicts with:
        - participant_id: string
        - name: string

    Input - expenses: list of dicts with:
        - expense_id: string
        - description: string
        - payer_id: string
        - amount: float
        - participant_ids: list of participant_ids
        - date: string (YYYY-MM-DD)

    Input - balances: dict from calculate_balances(), participant_id -> float

Functions:
    explain_participant_share: Get detailed breakdown for one participant.
    explain_all_participants: Get detailed breakdown for all participants.
    format_currency: Format amount with a currency code.
    validate_amount: Validate if input is a valid monetary amount.
    validate_date: Validate a YYYY-MM-DD date string.
    validate_non_empty_string: Validate a required text field.
    generate_id: Generate a formatted identifier.
    next_sequential_id: Next free identifier for a prefix.
"""

import math
import re
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from expense_splitter.splitter import eligible_participants, is_splittable


def _round_decimal(value: float) -> float:
    """
    Round a value to 2 decimal places.

    Args:
        value: Value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def validate_date(date_str: str, field_name: str) -> bool:
    """
    Validate date string format (YYYY-MM-DD).

    Args:
        date_str: Date string to validate.
        field_name: Name of the field for error messages.

    Returns:
        bool: True if valid.

    Raises:
        ValueError: If date format is invalid.
    """
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
        return True
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be in YYYY-MM-DD format, got: {date_str}")


def validate_non_empty_string(value: str, field_name: str) -> bool:
    """
    Validate that a string is non-empty.

    Args:
        value: String to validate.
        field_name: Name of the field for error messages.

    Returns:
        bool: True if valid.

    Raises:
        ValueError: If string is empty or not a string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return True


def generate_id(prefix: str = "ID", number: int = 1) -> str:
    """
    Generate a formatted identifier.

    Args:
        prefix: Prefix for the ID (e.g., "P", "E").
        number: Numeric value to format.

    Returns:
        str: Formatted ID like "P001", "E042".
    """
    return f"{prefix}{number:03d}"


def next_sequential_id(existing_ids, prefix: str) -> str:
    """
    Generate the next sequential ID for a prefix.

    Logic:
        1. Extract the numeric suffix from IDs matching <prefix>### (P001 -> 1)
        2. Find the highest existing number
        3. Generate the next ID with a zero-padded 3-digit suffix
        4. If no matching IDs exist, start from 1

    IDs in other formats (e.g. imported UUIDs) are ignored.

    Args:
        existing_ids: IDs already in use.
        prefix: ID prefix such as "P" or "E".

    Returns:
        str: Next ID (e.g., P004).
    """
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")

    max_num = 0
    for existing_id in existing_ids:
        match = pattern.match(str(existing_id))
        if match:
            max_num = max(max_num, int(match.group(1)))

    return generate_id(prefix, max_num + 1)


def explain_participant_share(
    participant_id: str,
    participants: list[dict],
    expenses: list[dict],
    balances: dict
) -> dict:
    """
    Generate detailed explanation of how a participant's balance was reached.

    For each expense the participant paid for or shares:
        - Shows expense details (id, description, date, total amount)
        - Shows how many people share it
        - Shows the participant's share and whether they paid

    Args:
        participant_id: ID of the participant to explain.
        participants: List of participant dicts.
        expenses: List of expense dicts.
        balances: Output from calculate_balances().

    Returns:
        dict: Explanation containing:
            - participant_id, name
            - expense_contributions: list of dicts with expense breakdown
            - total_paid: float
            - total_share: float
            - net_balance: float (from balances)

    Notes:
        - Only expenses used by calculate_balances() are listed
        - Amounts rounded to 2 decimal places
    """
    participant_map = {p["participant_id"]: p for p in participants}

    if participant_id not in participant_map:
        return {
            "participant_id": participant_id,
            "name": None,
            "expense_contributions": [],
            "total_paid": 0.0,
            "total_share": 0.0,
            "net_balance": 0.0,
            "error": f"Participant {participant_id} not found"
        }

    expense_contributions = []
    total_paid = 0.0
    total_share = 0.0

    for expense in expenses:
        if not is_splittable(expense, participant_map):
            continue

        sharers = eligible_participants(expense, participant_map)
        paid = expense["payer_id"] == participant_id
        if not paid and participant_id not in sharers:
            continue

        amount = float(expense["amount"])
        share = amount / len(sharers) if participant_id in sharers else 0.0

        if paid:
            total_paid += amount
        total_share += share

        expense_contributions.append({
            "expense_id": expense.get("expense_id", "N/A"),
            "description": expense.get("description", ""),
            "date": expense.get("date"),
            "total_expense_amount": _round_decimal(amount),
            "num_participants": len(sharers),
            "participant_share": _round_decimal(share),
            "paid": paid
        })

    return {
        "participant_id": participant_id,
        "name": participant_map[participant_id].get("name"),
        "expense_contributions": expense_contributions,
        "total_paid": _round_decimal(total_paid),
        "total_share": _round_decimal(total_share),
        "net_balance": _round_decimal(balances.get(participant_id, 0.0))
    }


def explain_all_participants(
    participants: list[dict],
    expenses: list[dict],
    balances: dict
) -> list[dict]:
    """
    Generate detailed explanations for all participants.

    Returns:
        list[dict]: One explanation per participant, in participant order.
    """
    return [
        explain_participant_share(
            participant_id=p["participant_id"],
            participants=participants,
            expenses=expenses,
            balances=balances
        )
        for p in participants
    ]


def format_currency(amount: float, currency_code: str = "USD") -> str:
    """
    Format a monetary amount with its currency code.

    Args:
        amount: The amount to format.
        currency_code: ISO currency code (default: USD).

    Returns:
        str: Formatted string like "EUR 1,234.56" or "EUR -3.20".
    """
    # Tiny negative noise would otherwise render as "-0.00"
    if abs(amount) < 0.005:
        amount = 0.0
    return f"{currency_code} {amount:,.2f}"


def validate_amount(value) -> bool:
    """
    Validate if the input is a valid monetary amount.

    Args:
        value: Value to validate.

    Returns:
        bool: True if valid finite positive number.
    """
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(amount) and amount > 0
