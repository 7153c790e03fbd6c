"""
Analytics Module

This module provides the summary and reporting features for the expense
splitter.

Features:
    - Total amount spent
    - Daily spending analysis
    - Highest spending day identification
    - Per-participant payer totals
    - Warnings for skipped expenses and spending imbalances

Data Model:
    Input - participants: list of dicts with:
        - participant_id: string
        - name: string (optional)

    Input - expenses: list of dicts with:
        - expense_id: string
        - payer_id: string
        - amount: float
        - participant_ids: list of participant_ids
        - date: string (YYYY-MM-DD)

    Output - dict containing:
        - analytics: dict with total_spent, expense_count, daily_spending, etc.
        - warnings: list of warning strings

Functions:
    generate_analytics: Generate analytics and warnings from expense data.
"""

import logging
import math
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP

from expense_splitter.splitter import eligible_participants, is_splittable


logger = logging.getLogger(__name__)


def _round_decimal(value: Decimal) -> float:
    """
    Round a Decimal to 2 decimal places and convert to float.

    Args:
        value: Decimal value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _skip_reason(expense: dict, known_ids) -> str:
    """Describe why calculate_balances() ignores an expense."""
    try:
        amount = float(expense.get("amount"))
    except (TypeError, ValueError):
        return "amount is not a number"
    if not math.isfinite(amount):
        return "amount is not a finite number"
    if amount <= 0:
        return "amount is not positive"
    if expense.get("payer_id") not in known_ids:
        return "payer is not a participant"
    if not eligible_participants(expense, known_ids):
        return "nobody shares it"
    return "unknown reason"


def generate_analytics(participants: list[dict], expenses: list[dict]) -> dict:
    """
    Generate analytics and smart warnings from expense data.

    Analytics computed:
        - total_spent: Sum of every finite expense amount
        - expense_count: Number of expenses
        - daily_spending: Total amount spent per date
        - highest_spending_day: Date and amount of maximum daily spend
        - payer_totals: Total amount paid by each participant

    Warnings generated (rule-based):
        - An expense is left out of the balances (bad amount, unknown payer,
          nobody sharing it)
        - One participant paid > 40% of the total with three or more people
        - A day's spend > 2x average daily spend

    Args:
        participants: List of participant dicts with participant_id (name optional).
        expenses: List of expense dicts.

    Returns:
        dict: Contains two keys:
            - analytics: dict with total_spent, expense_count, daily_spending,
                         highest_spending_day, payer_totals
            - warnings: list of warning strings

    Notes:
        - All amounts rounded to 2 decimal places
        - daily_spending, highest_spending_day and payer_totals only count
          expenses that take part in the balances
    """
    names = {p["participant_id"]: p.get("name") or p["participant_id"] for p in participants}

    daily_totals = defaultdict(Decimal)
    payer_totals = defaultdict(Decimal)
    total_spent = Decimal("0")
    counted_total = Decimal("0")
    warnings = []

    for expense in expenses:
        try:
            raw_amount = float(expense.get("amount"))
        except (TypeError, ValueError):
            raw_amount = math.nan
        if math.isfinite(raw_amount):
            total_spent += Decimal(str(raw_amount))

        if not is_splittable(expense, names):
            label = expense.get("description") or expense.get("expense_id", "N/A")
            reason = _skip_reason(expense, names)
            warnings.append(f"Warning: '{label}' is not included in the balances ({reason})")
            logger.warning("Expense %s skipped: %s", expense.get("expense_id"), reason)
            continue

        amount = Decimal(str(raw_amount))
        daily_totals[expense.get("date")] += amount
        payer_totals[expense["payer_id"]] += amount
        counted_total += amount

    daily_spending = {
        date: _round_decimal(amount)
        for date, amount in sorted(daily_totals.items(), key=lambda item: str(item[0]))
    }

    highest_spending_day = {"date": None, "amount": 0.0}
    if daily_totals:
        max_date = max(daily_totals, key=daily_totals.get)
        highest_spending_day = {
            "date": max_date,
            "amount": _round_decimal(daily_totals[max_date])
        }

    payer_totals_rounded = {
        payer_id: _round_decimal(amount)
        for payer_id, amount in payer_totals.items()
    }

    analytics = {
        "total_spent": _round_decimal(total_spent),
        "expense_count": len(expenses),
        "daily_spending": daily_spending,
        "highest_spending_day": highest_spending_day,
        "payer_totals": payer_totals_rounded
    }

    # Rule: one participant carries most of the group's spending
    if counted_total > 0 and len(participants) >= 3:
        for payer_id, amount in payer_totals.items():
            percentage = (amount / counted_total) * 100
            if percentage > 40:
                warnings.append(
                    f"Warning: {names[payer_id]} paid {_round_decimal(percentage)}% of total expenses "
                    f"({_round_decimal(amount)} of {_round_decimal(counted_total)})"
                )

    # Rule: a day's spend > 2x average daily spend
    if len(daily_totals) > 1:
        avg_daily = counted_total / Decimal(len(daily_totals))
        threshold = avg_daily * 2

        for date, amount in daily_totals.items():
            if amount > threshold:
                warnings.append(
                    f"Warning: Spending on {date} ({_round_decimal(amount)}) "
                    f"exceeds 2x average daily spend ({_round_decimal(avg_daily)})"
                )

    return {
        "analytics": analytics,
        "warnings": warnings
    }
