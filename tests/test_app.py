import io

import pytest

from expense_splitter.app import app
from expense_splitter.import_export import export_ledger


@pytest.fixture
def client(json_store):
    saved = dict(app.config)
    app.config.update(TESTING=True, LEDGER_STORE=json_store, LEDGER_ID="test")
    yield app.test_client()
    app.config.clear()
    app.config.update(saved)


def _add_people(client, *names):
    for name in names:
        client.post("/add-participant", data={"name": name})


def test_index_starts_empty(client, json_store):
    response = client.get("/")

    assert response.status_code == 200
    assert b"No participants yet" in response.data
    assert b"Everyone is settled up." in response.data
    assert json_store.exists("test")


def test_add_participant(client, json_store):
    _add_people(client, "Ana", "Luis")

    response = client.post("/add-participant", data={"name": "ana"}, follow_redirects=True)

    assert b"already exists" in response.data
    assert [p.name for p in json_store.load("test").participants] == ["Ana", "Luis"]


def test_add_expense_and_settle(client, json_store):
    _add_people(client, "Ana", "Luis")

    response = client.post("/add-expense", data={
        "description": "Dinner",
        "amount": "40",
        "payer": "P001",
        "participants": ["P001", "P002"],
        "expense_date": "2024-05-01",
    }, follow_redirects=True)

    assert response.status_code == 200
    assert b"<strong>Luis</strong> pays <strong>Ana</strong>" in response.data
    assert b"USD 20.00" in response.data
    assert json_store.load("test").expenses[0].description == "Dinner"


@pytest.mark.parametrize("amount", ["", "0", "-4", "abc"])
def test_add_expense_rejects_bad_amount(client, json_store, amount):
    _add_people(client, "Ana")

    response = client.post("/add-expense", data={
        "description": "Dinner", "amount": amount, "payer": "P001", "participants": ["P001"],
    }, follow_redirects=True)

    assert b"Amount must be a positive number" in response.data
    assert json_store.load("test").expenses == []


def test_add_expense_without_participants(client, json_store):
    _add_people(client, "Ana")

    response = client.post("/add-expense", data={
        "description": "Dinner", "amount": "10", "payer": "P001",
    }, follow_redirects=True)

    assert b"participant_ids must be a non-empty list" in response.data
    assert json_store.load("test").expenses == []


def test_remove_participant_and_delete_expense(client, json_store):
    _add_people(client, "Ana", "Luis")
    client.post("/add-expense", data={
        "description": "Dinner", "amount": "40", "payer": "P002", "participants": ["P001", "P002"],
    })

    client.post("/remove-participant/P001")
    ledger = json_store.load("test")
    assert [p.name for p in ledger.participants] == ["Luis"]
    assert ledger.expenses[0].participant_ids == ["P002"]

    client.post("/delete-expense/E001")
    assert json_store.load("test").expenses == []

    response = client.post("/delete-expense/E001", follow_redirects=True)
    assert b"Expense E001 not found" in response.data


def test_set_currency(client, json_store):
    client.post("/set-currency", data={"currency_code": "ARS"})

    assert json_store.load("test").currency_code == "ARS"


def test_load_example_and_reset(client, json_store):
    response = client.post("/load-example", follow_redirects=True)

    assert b"pays" in response.data
    assert b"Groceries" in response.data
    assert [p.name for p in json_store.load("test").participants] == ["Ana", "Luis", "You"]

    client.post("/reset")

    ledger = json_store.load("test")
    assert ledger.participants == []
    assert ledger.currency_code == "USD"


def test_export_json(client, trio_ledger, json_store):
    json_store.save("test", trio_ledger)

    response = client.get("/export-json")

    assert response.mimetype == "application/json"
    assert "expenses.json" in response.headers["Content-Disposition"]
    assert response.get_data(as_text=True) == export_ledger(trio_ledger)


def test_import_json(client, trio_ledger, json_store):
    response = client.post("/import-json", data={
        "file": (io.BytesIO(export_ledger(trio_ledger).encode("utf-8")), "trip.json"),
    }, content_type="multipart/form-data", follow_redirects=True)

    assert b"Imported 3 participant(s) and 3 expense(s)" in response.data
    assert json_store.load("test") == trio_ledger


def test_import_json_rejects_bad_file(client, json_store):
    _add_people(client, "Ana")

    response = client.post("/import-json", data={
        "file": (io.BytesIO(b'{"participants": 1}'), "broken.json"),
    }, content_type="multipart/form-data", follow_redirects=True)

    assert b"Could not import the file." in response.data
    assert [p.name for p in json_store.load("test").participants] == ["Ana"]


def test_import_json_without_file(client):
    response = client.post("/import-json", data={}, follow_redirects=True)

    assert b"Choose a file to import" in response.data


def test_export_pdf(client, trio_ledger, json_store):
    json_store.save("test", trio_ledger)

    response = client.get("/export-pdf")

    assert response.status_code == 200
    assert response.mimetype == "application/pdf"
    assert response.data.startswith(b"%PDF")


def test_unreadable_ledger_file_starts_fresh(client, json_store):
    json_store.data_dir.mkdir(parents=True)
    (json_store.data_dir / "test.json").write_text("{not json", encoding="utf-8")

    response = client.get("/")

    assert response.status_code == 200
    assert b"Stored data could not be read; starting fresh" in response.data
    assert b"No participants yet" in response.data

    client.post("/add-participant", data={"name": "Ana"})

    assert [p.name for p in json_store.load("test").participants] == ["Ana"]
