"""Document extraction: mortgage PDF (URL or bytes) to ExtractedFacts.

The OpenAI Responses API reads the document and answers with a JSON object;
normalize_extracted_facts() then applies the defaulting every caller relies
on (credit score 720 clamped to [300, 850], email sentinel, numeric fallbacks).
"""
from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Protocol, Union

from openai import OpenAI, OpenAIError

from loanlens.config import settings
from loanlens.errors import ExtractionError
from loanlens.models.extraction import (
    DEFAULT_BORROWER_EMAIL,
    DEFAULT_CREDIT_SCORE,
    MAX_CREDIT_SCORE,
    MIN_CREDIT_SCORE,
    BorrowerInfo,
    ExtractedFacts,
)

logger = logging.getLogger(__name__)

# A document is either a fetchable URL or the raw file bytes
DocumentRef = Union[str, bytes]

_NON_NUMERIC = re.compile(r"[^0-9.\-]")

EXTRACTION_PROMPT = (
    "Extract the following structured JSON fields from the attached mortgage document. "
    "Respond with ONLY a valid JSON object (no prose). Fields: {\n"
    "  borrower_info: { first_name: string, last_name: string, email?: string },\n"
    "  property_address?: string, zip_code?: string,\n"
    "  loan_amount: number, interest_rate: number, loan_term?: number,\n"
    "  monthly_debt_payments: number, monthly_income: number,\n"
    "  principal_and_interest: number, property_tax: number, insurance: number,\n"
    "  credit_score?: number\n"
    "}. Assume missing values as best as possible based on the document."
)


class Extractor(Protocol):
    def extract(self, document: DocumentRef) -> ExtractedFacts: ...


def _to_number(value: Any, default: float) -> float:
    """Parse a number, tolerating currency strings like '$1,200.50'."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = _NON_NUMERIC.sub("", value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _non_negative(value: Any, default: float = 0.0) -> float:
    return max(0.0, _to_number(value, default))


def resolve_credit_score(raw: Any) -> int:
    """720 when missing, non-numeric or non-positive; else clamped to [300, 850]."""
    score = _to_number(raw, DEFAULT_CREDIT_SCORE)
    if score <= 0:
        score = DEFAULT_CREDIT_SCORE
    score = min(max(score, MIN_CREDIT_SCORE), MAX_CREDIT_SCORE)
    return int(math.floor(score + 0.5))


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def normalize_extracted_facts(raw: dict[str, Any]) -> ExtractedFacts:
    borrower = raw.get("borrower_info")
    if not isinstance(borrower, dict):
        borrower = {}

    email = _optional_text(borrower.get("email")) or _optional_text(raw.get("borrower_email"))

    return ExtractedFacts(
        borrower_info=BorrowerInfo(
            first_name=_optional_text(borrower.get("first_name")) or "",
            last_name=_optional_text(borrower.get("last_name")) or "",
            email=email or DEFAULT_BORROWER_EMAIL,
        ),
        property_address=_optional_text(raw.get("property_address")),
        zip_code=_optional_text(raw.get("zip_code")),
        loan_amount=_non_negative(raw.get("loan_amount")),
        interest_rate=_non_negative(raw.get("interest_rate")),
        loan_term=_to_number(raw.get("loan_term"), 30.0) or 30.0,
        monthly_debt_payments=_non_negative(raw.get("monthly_debt_payments")),
        monthly_income=_non_negative(raw.get("monthly_income")),
        principal_and_interest=_non_negative(raw.get("principal_and_interest")),
        property_tax=_non_negative(raw.get("property_tax")),
        insurance=_non_negative(raw.get("insurance")),
        credit_score=resolve_credit_score(raw.get("credit_score")),
    )


def parse_json_object(text: str | None) -> dict[str, Any]:
    """Pull the outermost {...} out of model output; {} when there is none."""
    if not text:
        return {}
    start, end = text.find("{"), text.rfind("}")
    sliced = text[start:end + 1] if start >= 0 and end > start else text
    try:
        data = json.loads(sliced)
    except json.JSONDecodeError:
        logger.warning("Extraction output was not valid JSON; using defaults")
        return {}
    return data if isinstance(data, dict) else {}


class OpenAIDocumentExtractor:
    """Extractor backed by the OpenAI Responses API."""

    def __init__(self, client: Any = None, model: str | None = None):
        self._client = client
        self._model = model or settings.OPENAI_MODEL

    @property
    def client(self):
        if self._client is None:
            if not settings.OPENAI_API_KEY:
                raise ExtractionError("OPENAI_API_KEY is not set")
            self._client = OpenAI(
                api_key=settings.OPENAI_API_KEY, timeout=settings.HTTP_TIMEOUT_SECONDS * 4
            )
        return self._client

    def extract(self, document: DocumentRef) -> ExtractedFacts:
        try:
            file_part = self._file_part(document)
            response = self.client.responses.create(
                model=self._model,
                input=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "input_text", "text": EXTRACTION_PROMPT},
                            file_part,
                        ],
                    }
                ],
            )
        except OpenAIError as e:
            raise ExtractionError(f"Document extraction failed: {e}") from e

        facts = normalize_extracted_facts(parse_json_object(response.output_text))
        logger.info(
            "Extracted loan_amount=%s rate=%s credit=%s",
            facts.loan_amount, facts.interest_rate, facts.credit_score,
        )
        return facts

    def _file_part(self, document: DocumentRef) -> dict[str, str]:
        if isinstance(document, str):
            return {"type": "input_file", "file_url": document}
        if not document:
            raise ExtractionError("Document is empty")
        uploaded = self.client.files.create(
            file=("document.pdf", document), purpose="assistants"
        )
        return {"type": "input_file", "file_id": uploaded.id}
