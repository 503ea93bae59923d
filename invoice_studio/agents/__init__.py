"""AI Agents package."""

from invoice_studio.agents.extraction import (
    EXTRACTION_PROMPT,
    INVOICE_RESPONSE_SCHEMA,
    ExtractionError,
    InvoiceExtractionAgent,
    parse_extraction,
    strip_fences,
)

__all__ = [
    "EXTRACTION_PROMPT",
    "INVOICE_RESPONSE_SCHEMA",
    "ExtractionError",
    "InvoiceExtractionAgent",
    "parse_extraction",
    "strip_fences",
]
