"""
Splitter Module

This module computes per-participant balances for the expense splitter.

Features:
    - Equal splitting among an expense's participants
    - Payer may or may not share the cost
    - Silent skip of expenses that cannot be split

Data Model:
    Input - participants (list of dicts):
        - participant_id: string
        - name: string

    Input - expenses (list of dicts):
        - payer_id: string
        - amount: float
        - participant_ids: list of participant_ids
        - date: string (YYYY-MM-DD)

    Output - balances (dict keyed by participant_id):
        - float net balance (positive = is owed money, negative = owes money)

Functions:
    calculate_balances: Calculate the net balance of every participant.
    is_splittable: Tell whether an expense contributes to balances.
    eligible_participants: Known, de-duplicated participant ids of an expense.
"""

import math


def _as_amount(value) -> float:
    """
    Convert an expense amount to float.

    Args:
        value: Raw amount from the expense dict.

    Returns:
        float: The amount, or NaN if it is not a number.
    """
    if isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def eligible_participants(expense: dict, known_ids) -> list[str]:
    """
    Get the participant ids an expense is split between.

    Unknown ids are dropped and duplicates count once, so the share is
    computed over people who actually exist in the ledger.

    Args:
        expense: Expense dict with participant_ids.
        known_ids: Collection of participant ids in the ledger.

    Returns:
        list[str]: Eligible ids in their original order.
    """
    eligible = []
    for participant_id in expense.get("participant_ids") or []:
        if participant_id in known_ids and participant_id not in eligible:
            eligible.append(participant_id)
    return eligible


def is_splittable(expense: dict, known_ids) -> bool:
    """
    Check whether an expense contributes anything to the balances.

    An expense is skipped when its amount is not a finite positive number,
    its payer is not a known participant, or none of its participants are
    known.

    Args:
        expense: Expense dict.
        known_ids: Collection of participant ids in the ledger.

    Returns:
        bool: True if calculate_balances() uses this expense.
    """
    amount = _as_amount(expense.get("amount"))
    if not math.isfinite(amount) or amount <= 0:
        return False
    if expense.get("payer_id") not in known_ids:
        return False
    return len(eligible_participants(expense, known_ids)) > 0


def calculate_balances(participants: list[dict], expenses: list[dict]) -> dict:
    """
    Calculate the net balance of every participant from the expense list.

    For each splittable expense:
        1. share = amount / number of participants in the expense
        2. Each participant who is not the payer is debited the share
        3. The payer is credited amount - share when they are in the set,
           or the full amount when they are not

    Args:
        participants: List of participant dicts with participant_id.
        expenses: List of expense dicts with payer_id, amount and
            participant_ids.

    Returns:
        dict: participant_id -> net balance (float). Every participant is
        present, with 0.0 when no expense touches them.

    Notes:
        - Expenses with amount <= 0 or no participants are skipped, not rejected
        - No rounding; formatting is the caller's concern
        - Sum of all balances is zero up to floating-point noise
    """
    balances = {p["participant_id"]: 0.0 for p in participants}

    for expense in expenses:
        if not is_splittable(expense, balances):
            continue

        amount = _as_amount(expense["amount"])
        payer_id = expense["payer_id"]
        sharers = eligible_participants(expense, balances)
        share = amount / len(sharers)

        for participant_id in sharers:
            if participant_id == payer_id:
                balances[participant_id] += amount - share
            else:
                balances[participant_id] -= share

        # Payer fronted money they do not owe a share of
        if payer_id not in sharers:
            balances[payer_id] += amount

    return balances
