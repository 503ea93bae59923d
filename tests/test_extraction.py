"""
Tests for AI invoice extraction.

Gemini is replaced by a fake model; no API calls are made.
"""

import asyncio
import json
from datetime import date
from decimal import Decimal

import pytest

from invoice_studio.agents import (
    EXTRACTION_PROMPT,
    INVOICE_RESPONSE_SCHEMA,
    ExtractionError,
    InvoiceExtractionAgent,
    parse_extraction,
    strip_fences,
)
from invoice_studio.models.invoice import InvoiceCategory


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """Records the request and returns a canned answer (or raises)."""

    def __init__(self, text=None, error=None):
        self._text = text
        self._error = error
        self.calls = []

    async def generate_content_async(self, contents):
        self.calls.append(contents)
        if self._error:
            raise self._error
        return FakeResponse(self._text)


def answer(*entries) -> str:
    return json.dumps({"invoices": list(entries)})


ENTRY = {
    "supplier": "ACME",
    "invoiceNumber": "INV-7",
    "date": "2024-03-15",
    "amount": 123.45,
    "description": "Bricks",
    "category": "Materials",
}


class TestStripFences:
    """Tests for markdown fence removal."""

    def test_json_fence(self):
        """Test a ```json fence is removed."""
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_fence(self):
        """Test a bare ``` fence is removed."""
        assert strip_fences('```\n{"a": 1}```') == '{"a": 1}'

    def test_no_fence(self):
        """Test unfenced text is only trimmed."""
        assert strip_fences('  {"a": 1} ') == '{"a": 1}'


class TestParseExtraction:
    """Tests for turning the model answer into invoices."""

    def test_valid_entry(self):
        """Test a complete entry becomes an ImportedInvoice."""
        invoices = parse_extraction(answer(ENTRY))
        assert len(invoices) == 1
        invoice = invoices[0]
        assert invoice.supplier == "ACME"
        assert invoice.invoice_number == "INV-7"
        assert invoice.date == date(2024, 3, 15)
        assert invoice.amount == Decimal("123.45")
        assert invoice.category == InvoiceCategory.MATERIALS

    def test_fenced_answer(self):
        """Test fenced JSON is accepted."""
        assert len(parse_extraction(f"```json\n{answer(ENTRY)}\n```")) == 1

    def test_unknown_category_coerced(self):
        """Test categories outside the fixed list become General."""
        invoices = parse_extraction(answer({**ENTRY, "category": "Stationery"}))
        assert invoices[0].category == InvoiceCategory.GENERAL

    def test_invalid_entries_skipped(self):
        """Test entries missing required data are dropped, valid ones kept."""
        invoices = parse_extraction(answer(
            ENTRY,
            {**ENTRY, "supplier": ""},
            {**ENTRY, "amount": 0},
            {**ENTRY, "date": "15/03/2024"},
            "not an object",
        ))
        assert [i.invoice_number for i in invoices] == ["INV-7"]

    def test_missing_invoices_list(self):
        """Test an answer without an invoices array is a generic failure."""
        with pytest.raises(ExtractionError):
            parse_extraction(json.dumps({"items": []}))
        with pytest.raises(ExtractionError):
            parse_extraction(json.dumps({"invoices": {"supplier": "ACME"}}))

    def test_empty_or_malformed(self):
        """Test empty and non-JSON answers fail."""
        for text in (None, "", "   ", "I could not read this document"):
            with pytest.raises(ExtractionError):
                parse_extraction(text)


class TestInvoiceExtractionAgent:
    """Tests for the agent with a fake model."""

    def test_sends_pdf_inline_with_prompt(self):
        """Test the request carries the PDF bytes and the extraction prompt."""
        model = FakeModel(text=answer(ENTRY))
        agent = InvoiceExtractionAgent(model=model)

        invoices = asyncio.run(agent.extract(b"%PDF-1.4 fake"))

        assert len(invoices) == 1
        (contents,) = model.calls
        assert contents[0] == {"mime_type": "application/pdf", "data": b"%PDF-1.4 fake"}
        assert contents[1] == EXTRACTION_PROMPT

    def test_api_failure_is_generic(self):
        """Test any API error becomes ExtractionError."""
        agent = InvoiceExtractionAgent(model=FakeModel(error=RuntimeError("503 unavailable")))
        with pytest.raises(ExtractionError) as excinfo:
            asyncio.run(agent.extract(b"%PDF"))
        assert "503" not in str(excinfo.value)

    def test_response_schema_requires_core_fields(self):
        """Test the declared schema requires supplier, number, date and amount."""
        item = INVOICE_RESPONSE_SCHEMA["properties"]["invoices"]["items"]
        assert item["required"] == ["supplier", "invoiceNumber", "date", "amount"]
        assert item["properties"]["amount"]["type"] == "NUMBER"
