"""
AI Invoice Extraction

Sends a PDF to Gemini and turns the structured answer into importable
invoices.

BOUNDARIES:
- The model only reads the document. It never writes to the store; the
  import flow decides what gets inserted.
- Whatever the model returns is validated like any other import. Entries
  that do not form a valid invoice are dropped, never repaired.
- Any failure (API error, empty answer, malformed JSON, missing invoice
  list) surfaces as one generic ExtractionError.
"""

import json
import re
from typing import Any, Optional

import google.generativeai as genai
from pydantic import ValidationError

from invoice_studio.config import get_settings
from invoice_studio.logs import get_logger
from invoice_studio.models.invoice import ImportedInvoice


logger = get_logger(__name__)


EXTRACTION_PROMPT = (
    "Analyze the provided invoice PDF. Extract all relevant invoice details for every "
    "invoice in the document. The total amount must be the final amount, including any "
    "taxes or VAT. Return the data as a JSON object that strictly follows the provided "
    "schema. Ensure the date is in YYYY-MM-DD format."
)

INVOICE_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "invoices": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "supplier": {"type": "STRING"},
                    "invoiceNumber": {"type": "STRING"},
                    "date": {"type": "STRING"},
                    "amount": {"type": "NUMBER"},
                    "description": {"type": "STRING"},
                    "category": {"type": "STRING"},
                },
                "required": ["supplier", "invoiceNumber", "date", "amount"],
            },
        },
    },
    "required": ["invoices"],
}

GENERIC_FAILURE_MESSAGE = (
    "Failed to process PDF with AI. Please check the document and try again."
)

_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


class ExtractionError(Exception):
    """The document could not be turned into invoices."""

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE):
        super().__init__(message)


def strip_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    return _FENCE.sub("", text.strip()).strip()


def _entry_to_invoice(entry: Any) -> Optional[ImportedInvoice]:
    if not isinstance(entry, dict):
        return None
    try:
        return ImportedInvoice(
            supplier=entry.get("supplier") or "",
            invoice_number=str(entry.get("invoiceNumber") or ""),
            date=entry.get("date"),
            amount=entry.get("amount"),
            description=entry.get("description") or "",
            category=entry.get("category"),
        )
    except (ValidationError, TypeError):
        return None


def parse_extraction(text: Optional[str]) -> list[ImportedInvoice]:
    """
    Parse the model's JSON answer.

    Raises:
        ExtractionError: If the answer is empty, not JSON, or has no
                         "invoices" list
    """
    if not text or not text.strip():
        raise ExtractionError()

    try:
        payload = json.loads(strip_fences(text))
    except json.JSONDecodeError as e:
        logger.error("extraction_invalid_json", error=str(e))
        raise ExtractionError() from e

    entries = payload.get("invoices") if isinstance(payload, dict) else None
    if not isinstance(entries, list):
        logger.error("extraction_missing_invoices", payload_type=type(payload).__name__)
        raise ExtractionError()

    invoices = []
    for position, entry in enumerate(entries):
        invoice = _entry_to_invoice(entry)
        if invoice is None:
            logger.warning("extraction_entry_skipped", position=position)
            continue
        invoices.append(invoice)
    return invoices


class InvoiceExtractionAgent:
    """
    Gemini-backed PDF invoice reader.

    A model object can be injected; it only needs an async
    generate_content_async(contents) returning something with .text.
    """

    def __init__(self, model=None):
        if model is None:
            model = self._build_model()
        self._model = model

    @staticmethod
    def _build_model():
        """Configure Google Generative AI for JSON output."""
        settings = get_settings().gemini
        genai.configure(api_key=settings.api_key)
        return genai.GenerativeModel(
            model_name=settings.model_name,
            generation_config={
                "temperature": settings.temperature,
                "max_output_tokens": settings.max_tokens,
                "response_mime_type": "application/json",
                "response_schema": INVOICE_RESPONSE_SCHEMA,
            },
        )

    async def extract(self, pdf_bytes: bytes) -> list[ImportedInvoice]:
        """
        Extract every invoice found in a PDF document.

        Raises:
            ExtractionError: On any API or parsing failure
        """
        try:
            response = await self._model.generate_content_async([
                {"mime_type": "application/pdf", "data": pdf_bytes},
                EXTRACTION_PROMPT,
            ])
            text = response.text
        except Exception as e:
            logger.error("extraction_request_failed", error=str(e))
            raise ExtractionError() from e

        invoices = parse_extraction(text)
        logger.info("extraction_completed", invoice_count=len(invoices))
        return invoices
