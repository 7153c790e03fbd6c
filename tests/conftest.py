import copy

import pytest

from expense_splitter.expenses import add_expense
from expense_splitter.ledger import empty_ledger
from expense_splitter.participants import add_participant
from expense_splitter.store import JsonFileStore


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocumentRef:
    def __init__(self, collection, doc_id):
        self._collection = collection
        self.id = doc_id

    def get(self):
        return FakeSnapshot(self.id, self._collection.docs.get(self.id))

    def set(self, data):
        self._collection.docs[self.id] = copy.deepcopy(data)

    def delete(self):
        self._collection.docs.pop(self.id, None)


class FakeCollection:
    def __init__(self):
        self.docs = {}

    def document(self, doc_id):
        return FakeDocumentRef(self, doc_id)

    def stream(self):
        return [FakeSnapshot(doc_id, data) for doc_id, data in self.docs.items()]


class FakeFirestore:
    """In-memory stand-in for the handful of Firestore calls the store makes."""

    def __init__(self):
        self.collections = {}

    def collection(self, name):
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def json_store(tmp_path):
    return JsonFileStore(tmp_path / "ledgers")


@pytest.fixture
def trio_ledger():
    """Ana, Luis and Tom with the groceries / coffee / taxi expenses."""
    ledger = empty_ledger("EUR")
    ledger, ana = add_participant(ledger, "Ana")
    ledger, luis = add_participant(ledger, "Luis")
    ledger, tom = add_participant(ledger, "Tom")

    ledger, _ = add_expense(
        ledger, "Groceries", 54.20, ana.participant_id,
        [ana.participant_id, luis.participant_id, tom.participant_id], "2024-05-01"
    )
    ledger, _ = add_expense(
        ledger, "Coffee", 9.60, luis.participant_id,
        [luis.participant_id, tom.participant_id], "2024-05-01"
    )
    ledger, _ = add_expense(
        ledger, "Taxi", 18.00, tom.participant_id,
        [ana.participant_id, tom.participant_id], "2024-05-02"
    )
    return ledger
