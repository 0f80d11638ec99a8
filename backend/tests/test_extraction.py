"""Tests for extraction normalization and the OpenAI-backed extractor."""
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from loanlens.errors import ExtractionError
from loanlens.models.extraction import DEFAULT_BORROWER_EMAIL
from loanlens.services.extraction import (
    OpenAIDocumentExtractor,
    normalize_extracted_facts,
    parse_json_object,
    resolve_credit_score,
)

_RAW = {
    "borrower_info": {"first_name": "Jane", "last_name": "Doe", "email": "jane@example.com"},
    "property_address": "12 Elm St, Springfield, IL",
    "zip_code": "62701",
    "loan_amount": "$300,000",
    "interest_rate": "6.5%",
    "loan_term": 30,
    "monthly_debt_payments": 1200,
    "monthly_income": "8,000.00",
    "credit_score": 745,
}


# --- Credit score defaulting ---


@pytest.mark.parametrize("raw,expected", [
    (None, 720),
    (0, 720),
    (-15, 720),
    ("n/a", 720),
    (900, 850),
    (100, 300),
    ("740", 740),
    (699.6, 700),
])
def test_resolve_credit_score(raw, expected):
    assert resolve_credit_score(raw) == expected


# --- Normalization ---


def test_normalize_parses_currency_strings():
    facts = normalize_extracted_facts(_RAW)
    assert facts.loan_amount == 300_000
    assert facts.interest_rate == 6.5
    assert facts.monthly_income == 8_000
    assert facts.credit_score == 745
    assert facts.borrower_info.first_name == "Jane"
    assert facts.property_address == "12 Elm St, Springfield, IL"


def test_normalize_empty_payload_uses_defaults():
    facts = normalize_extracted_facts({})
    assert facts.loan_amount == 0
    assert facts.interest_rate == 0
    assert facts.loan_term == 30
    assert facts.credit_score == 720
    assert facts.borrower_info.email == DEFAULT_BORROWER_EMAIL
    assert facts.property_address is None


def test_blank_email_falls_back_to_sentinel():
    facts = normalize_extracted_facts({"borrower_info": {"first_name": "Al", "email": "   "}})
    assert facts.borrower_info.email == DEFAULT_BORROWER_EMAIL


def test_top_level_borrower_email_accepted():
    facts = normalize_extracted_facts({"borrower_email": "al@example.com"})
    assert facts.borrower_info.email == "al@example.com"


def test_negative_amounts_floor_at_zero():
    facts = normalize_extracted_facts({"loan_amount": -5000, "monthly_income": "abc"})
    assert facts.loan_amount == 0
    assert facts.monthly_income == 0


def test_parse_json_object_slices_prose():
    assert parse_json_object('Sure! {"loan_amount": 5} Hope this helps') == {"loan_amount": 5}
    assert parse_json_object("no json here") == {}
    assert parse_json_object(None) == {}
    assert parse_json_object("[1, 2]") == {}


# --- OpenAI extractor ---


def _client(output_text: str) -> MagicMock:
    client = MagicMock()
    client.responses.create.return_value = SimpleNamespace(output_text=output_text)
    client.files.create.return_value = SimpleNamespace(id="file-123")
    return client


def test_extract_from_url_passes_file_url():
    client = _client('{"loan_amount": 250000, "credit_score": 0}')
    facts = OpenAIDocumentExtractor(client=client, model="test-model").extract("https://x/doc.pdf")

    kwargs = client.responses.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["input"][0]["content"][1] == {"type": "input_file", "file_url": "https://x/doc.pdf"}
    client.files.create.assert_not_called()
    assert facts.loan_amount == 250_000
    assert facts.credit_score == 720


def test_extract_from_bytes_uploads_file_first():
    client = _client('{"loan_amount": 100000}')
    OpenAIDocumentExtractor(client=client).extract(b"%PDF-1.4 data")

    client.files.create.assert_called_once()
    kwargs = client.responses.create.call_args.kwargs
    assert kwargs["input"][0]["content"][1] == {"type": "input_file", "file_id": "file-123"}


def test_extract_empty_bytes_raises():
    with pytest.raises(ExtractionError):
        OpenAIDocumentExtractor(client=_client("{}")).extract(b"")


def test_api_failure_raises_extraction_error():
    client = MagicMock()
    client.responses.create.side_effect = openai.APIConnectionError(
        request=httpx.Request("POST", "https://api.openai.com/v1/responses")
    )
    with pytest.raises(ExtractionError):
        OpenAIDocumentExtractor(client=client).extract("https://x/doc.pdf")


def test_missing_api_key_raises_extraction_error(monkeypatch):
    from loanlens.config import settings

    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    with pytest.raises(ExtractionError, match="OPENAI_API_KEY"):
        OpenAIDocumentExtractor().extract("https://x/doc.pdf")
