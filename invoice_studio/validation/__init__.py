"""Invoice form validation and duplicate detection."""

from invoice_studio.validation.validator import (
    InvoiceValidationError,
    InvoiceValidator,
    find_duplicate,
)

__all__ = ["InvoiceValidationError", "InvoiceValidator", "find_duplicate"]
