"""
Ledger Module

A ledger is the complete dataset of one group: its participants, its
expenses and the single currency they are recorded in. Ledgers are treated
as values: every operation returns a new Ledger and leaves the old one alone.

Functions:
    empty_ledger: Create a ledger with no participants or expenses.
    default_currency: Configured currency for new ledgers.
    example_ledger: Create a small sample ledger.
    set_currency: Return a ledger recorded in another currency.
    calculate_results: Balances and settlements for a ledger.
"""

import logging
from datetime import date
from typing import Optional

from expense_splitter.config import settings
from expense_splitter.expenses import Expense
from expense_splitter.participants import Participant
from expense_splitter.settlement import optimize_settlements
from expense_splitter.splitter import calculate_balances


SCHEMA_VERSION = 1

SUPPORTED_CURRENCIES = {
    "USD": "US Dollar",
    "EUR": "Euro",
    "MXN": "Mexican Peso",
    "ARS": "Argentine Peso",
    "COP": "Colombian Peso",
    "CLP": "Chilean Peso",
    "PEN": "Peruvian Sol",
}

FALLBACK_CURRENCY = "USD"

logger = logging.getLogger(__name__)


def default_currency() -> str:
    """
    Currency for new ledgers, from SPLITTER_DEFAULT_CURRENCY.

    An unsupported configured code is logged and replaced by USD.

    Returns:
        str: A code from SUPPORTED_CURRENCIES.
    """
    code = (settings.DEFAULT_CURRENCY or "").strip().upper()
    if code in SUPPORTED_CURRENCIES:
        return code
    logger.warning(
        "SPLITTER_DEFAULT_CURRENCY %r is not supported; using %s",
        settings.DEFAULT_CURRENCY, FALLBACK_CURRENCY
    )
    return FALLBACK_CURRENCY


class Ledger:
    """
    Snapshot of one group's participants and expenses.

    Attributes:
        participants (list[Participant]): In the order they were added.
        expenses (list[Expense]): Newest first.
        currency_code (str): Currency all amounts are recorded in.
        schema_version (int): Version of the stored data format.
    """

    def __init__(
        self,
        participants: Optional[list] = None,
        expenses: Optional[list] = None,
        currency_code: Optional[str] = None,
        schema_version: int = SCHEMA_VERSION
    ):
        self.participants = list(participants or [])
        self.expenses = list(expenses or [])
        self.currency_code = currency_code or default_currency()
        self.schema_version = schema_version

    def replace(self, **changes) -> "Ledger":
        """Return a copy of this ledger with some fields changed."""
        fields = {
            "participants": self.participants,
            "expenses": self.expenses,
            "currency_code": self.currency_code,
            "schema_version": self.schema_version
        }
        fields.update(changes)
        return Ledger(**fields)

    def participant_dicts(self) -> list[dict]:
        """Participants as dicts, the shape calculate_balances() expects."""
        return [p.to_dict() for p in self.participants]

    def expense_dicts(self) -> list[dict]:
        """Expenses as dicts, the shape calculate_balances() expects."""
        return [e.to_dict() for e in self.expenses]

    def names(self) -> dict:
        """Map participant_id to display name."""
        return {p.participant_id: p.name for p in self.participants}

    def __eq__(self, other) -> bool:
        if not isinstance(other, Ledger):
            return NotImplemented
        return (
            self.participants == other.participants
            and self.expenses == other.expenses
            and self.currency_code == other.currency_code
            and self.schema_version == other.schema_version
        )

    def __repr__(self) -> str:
        return (
            f"Ledger(participants={len(self.participants)}, "
            f"expenses={len(self.expenses)}, currency='{self.currency_code}')"
        )


def empty_ledger(currency_code: Optional[str] = None) -> Ledger:
    """Create a ledger with no participants or expenses."""
    return Ledger(currency_code=currency_code)


def example_ledger() -> Ledger:
    """
    Create a sample ledger with three people and three expenses.

    Returns:
        Ledger: Ana, Luis and You sharing groceries, coffee and a taxi, in EUR.
    """
    today = date.today().isoformat()
    ana = Participant("P001", "Ana")
    luis = Participant("P002", "Luis")
    you = Participant("P003", "You")

    expenses = [
        Expense("E003", "Taxi", 18.0, you.participant_id,
                [ana.participant_id, you.participant_id], today),
        Expense("E002", "Coffee", 9.6, luis.participant_id,
                [luis.participant_id, you.participant_id], today),
        Expense("E001", "Groceries", 54.2, ana.participant_id,
                [ana.participant_id, luis.participant_id, you.participant_id], today),
    ]
    return Ledger(participants=[ana, luis, you], expenses=expenses, currency_code="EUR")


def set_currency(ledger: Ledger, currency_code: str) -> Ledger:
    """
    Change the currency a ledger is recorded in.

    Amounts are not converted; the ledger simply reports them in the new code.

    Raises:
        ValueError: If the currency code is not supported.
    """
    code = (currency_code or "").strip().upper()
    if code not in SUPPORTED_CURRENCIES:
        raise ValueError(
            f"currency_code must be one of {sorted(SUPPORTED_CURRENCIES)}, got: {currency_code}"
        )
    return ledger.replace(currency_code=code)


def calculate_results(ledger: Ledger) -> tuple[dict, list[dict]]:
    """
    Compute balances and settlements for a ledger.

    Returns:
        tuple[dict, list[dict]]: (balances, settlements), recomputed from
        scratch on every call.
    """
    balances = calculate_balances(ledger.participant_dicts(), ledger.expense_dicts())
    return balances, optimize_settlements(balances)
