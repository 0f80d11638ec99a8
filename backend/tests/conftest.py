import sys
from unittest.mock import MagicMock

import pytest

# Mock pyodbc so tests can run without ODBC drivers installed
if "pyodbc" not in sys.modules:
    sys.modules["pyodbc"] = MagicMock()

from loanlens.db.store import MemoryRecordStore  # noqa: E402
from loanlens.errors import StoreError  # noqa: E402
from loanlens.models.extraction import BorrowerInfo, ExtractedFacts  # noqa: E402
from loanlens.models.notification import SendResult  # noqa: E402


def make_facts(**overrides) -> ExtractedFacts:
    defaults = dict(
        borrower_info=BorrowerInfo(first_name="Jane", last_name="Doe", email="jane@example.com"),
        property_address=None,
        loan_amount=300_000.0,
        interest_rate=6.5,
        loan_term=30,
        monthly_debt_payments=1_200.0,
        monthly_income=8_000.0,
        credit_score=720,
    )
    defaults.update(overrides)
    return ExtractedFacts(**defaults)


class FakeExtractor:
    def __init__(self, facts=None, error=None):
        self.facts = facts or make_facts()
        self.error = error
        self.calls = []

    def extract(self, document):
        self.calls.append(document)
        if self.error:
            raise self.error
        return self.facts


class FakeValuation:
    def __init__(self, value=None, history=None, error=None):
        self.value = value
        self.history = history or []
        self.error = error
        self.addresses = []

    def get_value(self, address):
        self.addresses.append(address)
        if self.error:
            raise self.error
        return self.value

    def get_history(self, address):
        return self.history


class FakeNotifier:
    def __init__(self, result=None, error=None):
        self.result = result or SendResult(success=True, message_id="msg-1")
        self.error = error
        self.approvals = []
        self.conditionals = []

    def send_approval(self, recipient, borrower_name, details):
        self.approvals.append((recipient, borrower_name, details))
        if self.error:
            raise self.error
        return self.result

    def send_conditional(self, recipient, borrower_name, conditions):
        self.conditionals.append((recipient, borrower_name, conditions))
        if self.error:
            raise self.error
        return self.result


class FakeDispatcher:
    def __init__(self, result=None):
        self.result = result or SendResult(success=True, message_id="msg-1")
        self.sent = []

    def send(self, template, recipient, content):
        self.sent.append((template, recipient, content))
        return self.result


class FailingStore:
    backend = "failing"

    def set_latest(self, key, record):
        raise StoreError("store down")

    def get_latest(self, key):
        raise StoreError("store down")

    def append_history(self, key, record):
        raise StoreError("store down")

    def list_history(self, key, start=0, stop=-1):
        raise StoreError("store down")


@pytest.fixture
def memory_store():
    return MemoryRecordStore()
