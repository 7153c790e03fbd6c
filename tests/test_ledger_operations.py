import math
from datetime import date

import pytest

from expense_splitter.config import settings
from expense_splitter.expenses import add_expense, delete_expense, get_expense
from expense_splitter.ledger import (
    calculate_results,
    empty_ledger,
    example_ledger,
    set_currency,
)
from expense_splitter.participants import add_participant, get_participant, remove_participant
from expense_splitter.utils import next_sequential_id


def test_add_participant_assigns_sequential_ids():
    ledger, ana = add_participant(empty_ledger(), "  Ana ")
    ledger, luis = add_participant(ledger, "Luis")

    assert ana.participant_id == "P001"
    assert ana.name == "Ana"
    assert luis.participant_id == "P002"
    assert [p.name for p in ledger.participants] == ["Ana", "Luis"]


def test_add_participant_leaves_original_ledger_alone():
    original = empty_ledger()

    add_participant(original, "Ana")

    assert original.participants == []


def test_duplicate_names_rejected_case_insensitively():
    ledger, _ = add_participant(empty_ledger(), "Ana")

    with pytest.raises(ValueError, match="already exists"):
        add_participant(ledger, "ana")


@pytest.mark.parametrize("name", ["", "   ", None])
def test_empty_name_rejected(name):
    with pytest.raises(ValueError, match="name"):
        add_participant(empty_ledger(), name)


def test_remove_participant_cascades(trio_ledger):
    ana = trio_ledger.participants[0]

    ledger = remove_participant(trio_ledger, ana.participant_id)

    assert get_participant(ledger, ana.participant_id) is None
    # Groceries was paid by Ana and disappears; Taxi no longer includes her
    assert [e.description for e in ledger.expenses] == ["Taxi", "Coffee"]
    assert all(ana.participant_id not in e.participant_ids for e in ledger.expenses)
    assert len(trio_ledger.expenses) == 3


def test_remove_unknown_participant():
    with pytest.raises(KeyError):
        remove_participant(empty_ledger(), "P999")


def test_add_expense_newest_first(trio_ledger):
    assert [e.expense_id for e in trio_ledger.expenses] == ["E003", "E002", "E001"]
    assert trio_ledger.expenses[0].description == "Taxi"


def test_add_expense_defaults_date_to_today():
    ledger, ana = add_participant(empty_ledger(), "Ana")

    ledger, expense = add_expense(ledger, "Lunch", 12, ana.participant_id, [ana.participant_id])

    assert expense.date == date.today().isoformat()
    assert expense.amount == 12.0


def test_add_expense_drops_repeated_participants():
    ledger, ana = add_participant(empty_ledger(), "Ana")
    ledger, bob = add_participant(ledger, "Bob")

    ledger, expense = add_expense(
        ledger, "Lunch", 12, ana.participant_id,
        [bob.participant_id, ana.participant_id, bob.participant_id], "2024-01-01"
    )

    assert expense.participant_ids == [bob.participant_id, ana.participant_id]


@pytest.mark.parametrize("kwargs, message", [
    ({"amount": 0}, "amount"),
    ({"amount": -3}, "amount"),
    ({"amount": math.nan}, "amount"),
    ({"amount": math.inf}, "amount"),
    ({"amount": True}, "amount"),
    ({"amount": "12"}, "amount"),
    ({"participant_ids": []}, "participant_ids"),
    ({"payer_id": "P999"}, "payer_id"),
    ({"participant_ids": ["P001", "P999"]}, "P999"),
    ({"date": "01/05/2024"}, "date"),
    ({"description": "  "}, "description"),
])
def test_add_expense_validation(kwargs, message):
    ledger, ana = add_participant(empty_ledger(), "Ana")
    args = {
        "description": "Lunch",
        "amount": 10,
        "payer_id": ana.participant_id,
        "participant_ids": [ana.participant_id],
        "date": "2024-05-01",
    }
    args.update(kwargs)

    with pytest.raises(ValueError, match=message):
        add_expense(ledger, **args)


def test_delete_expense(trio_ledger):
    ledger = delete_expense(trio_ledger, "E002")

    assert get_expense(ledger, "E002") is None
    assert len(ledger.expenses) == 2

    with pytest.raises(KeyError):
        delete_expense(ledger, "E002")


def test_next_id_after_gaps_and_foreign_ids():
    assert next_sequential_id(["P001", "3f2a-uuid", "P010"], "P") == "P011"
    assert next_sequential_id([], "E") == "E001"
    ledger, _ = add_participant(empty_ledger(), "Ana")
    ledger = remove_participant(ledger, "P001")
    ledger, again = add_participant(ledger, "Bob")
    assert again.participant_id == "P001"


def test_set_currency():
    ledger = set_currency(empty_ledger(), "eur")

    assert ledger.currency_code == "EUR"
    with pytest.raises(ValueError, match="currency_code"):
        set_currency(ledger, "XYZ")


def test_example_ledger_results():
    ledger = example_ledger()
    names = ledger.names()

    balances, settlements = calculate_results(ledger)
    by_name = {names[pid]: value for pid, value in balances.items()}

    assert ledger.currency_code == "EUR"
    assert by_name["Ana"] == pytest.approx(27.1333, abs=1e-4)
    assert by_name["Luis"] == pytest.approx(-13.2667, abs=1e-4)
    assert by_name["You"] == pytest.approx(-13.8667, abs=1e-4)
    assert [(names[s["from_participant"]], names[s["to_participant"]]) for s in settlements] == [
        ("You", "Ana"),
        ("Luis", "Ana"),
    ]


def test_unsupported_default_currency_falls_back_to_usd(monkeypatch, json_store):
    monkeypatch.setattr(settings, "DEFAULT_CURRENCY", "GBP")

    ledger = empty_ledger()
    json_store.save("fresh", ledger)

    assert ledger.currency_code == "USD"
    assert json_store.load("fresh").currency_code == "USD"


def test_configured_default_currency(monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_CURRENCY", "mxn")

    assert empty_ledger().currency_code == "MXN"
