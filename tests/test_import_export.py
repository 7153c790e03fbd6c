import json
from datetime import date

import pytest

from expense_splitter.import_export import (
    LedgerImportError,
    export_ledger,
    import_ledger,
    ledger_from_wire,
    ledger_to_wire,
)


def minimal_file(**overrides):
    data = {
        "participants": [{"id": "a1", "name": "Ana"}, {"id": "b2", "name": "Bea"}],
        "expenses": [
            {
                "id": "x1",
                "description": "Dinner",
                "amount": 40,
                "payerId": "a1",
                "participantIds": ["a1", "b2"],
                "date": "2024-03-09",
            }
        ],
        "currencyCode": "MXN",
        "schemaVersion": 1,
    }
    data.update(overrides)
    return data


def test_export_then_import_keeps_the_ledger(trio_ledger):
    assert import_ledger(export_ledger(trio_ledger)) == trio_ledger


def test_export_uses_file_format_keys(trio_ledger):
    data = json.loads(export_ledger(trio_ledger))

    assert set(data) == {"participants", "expenses", "currencyCode", "schemaVersion"}
    assert data["schemaVersion"] == 1
    assert data["currencyCode"] == "EUR"
    assert set(data["expenses"][0]) == {"id", "description", "amount", "payerId", "participantIds", "date"}
    assert data["participants"][0] == {"id": "P001", "name": "Ana"}


def test_import_builds_ledger():
    ledger = ledger_from_wire(minimal_file())

    assert ledger.currency_code == "MXN"
    assert [p.participant_id for p in ledger.participants] == ["a1", "b2"]
    expense = ledger.expenses[0]
    assert expense.expense_id == "x1"
    assert expense.payer_id == "a1"
    assert expense.participant_ids == ["a1", "b2"]
    assert expense.amount == 40.0


def test_import_fills_optional_fields():
    data = {
        "participants": [{"id": "a1", "name": "Ana"}],
        "expenses": [{"id": "x1", "amount": "12.5", "payerId": "a1"}],
    }

    ledger = ledger_from_wire(data)

    expense = ledger.expenses[0]
    assert expense.amount == 12.5
    assert expense.participant_ids == []
    assert expense.description == ""
    assert expense.date == date.today().isoformat()
    assert ledger.currency_code == "USD"


def test_import_accepts_expenses_the_balances_skip():
    data = minimal_file()
    data["expenses"][0]["amount"] = 0
    data["expenses"][0]["participantIds"] = []

    ledger = ledger_from_wire(data)

    assert ledger.expenses[0].amount == 0.0


@pytest.mark.parametrize("text", [
    "not json at all",
    "",
    "[]",
    '{"participants": []}',
    '{"participants": "Ana", "expenses": []}',
])
def test_import_rejects_wrong_shape(text):
    with pytest.raises(LedgerImportError):
        import_ledger(text)


@pytest.mark.parametrize("mutate", [
    lambda d: d["participants"][0].pop("name"),
    lambda d: d["participants"][0].update(id=""),
    lambda d: d["participants"].append({"id": "a1", "name": "Again"}),
    lambda d: d["expenses"][0].update(amount="abc"),
    lambda d: d["expenses"][0].update(amount=float("nan")),
    lambda d: d["expenses"][0].update(amount=True),
    lambda d: d["expenses"][0].update(amount=False),
    lambda d: d["expenses"][0].pop("payerId"),
    lambda d: d["expenses"][0].update(date="2024-13-40"),
    lambda d: d["expenses"].append(dict(d["expenses"][0])),
    lambda d: d.update(schemaVersion=2),
    lambda d: d.update(currencyCode="XYZ"),
])
def test_import_rejects_invalid_records(mutate):
    data = minimal_file()
    mutate(data)

    with pytest.raises(LedgerImportError, match="Invalid ledger file"):
        ledger_from_wire(data)


def test_import_error_is_a_value_error():
    with pytest.raises(ValueError):
        import_ledger(b"{")


def test_ledger_to_wire_round_trip_through_json(trio_ledger):
    wire = json.loads(json.dumps(ledger_to_wire(trio_ledger)))

    assert ledger_from_wire(wire) == trio_ledger


def test_import_rejects_boolean_amount_in_text():
    text = json.dumps({
        "participants": [{"id": "A", "name": "Ana"}],
        "expenses": [{"id": "E", "amount": True, "payerId": "A", "participantIds": ["A"]}],
    })

    with pytest.raises(LedgerImportError, match="amount"):
        import_ledger(text)
