"""
Invoice Form Validation

Checks an invoice draft before it is submitted:
- Required fields (supplier, invoice number)
- Amount must be greater than zero
- Invoice number must not already exist in the workspace

IMPORTANT: The duplicate check is advisory. It only sees the invoices
currently loaded in this session, so two people editing the same
workspace can still create duplicates. The store never enforces
uniqueness.
"""

from typing import Iterable, Optional

from invoice_studio.models.invoice import (
    Invoice,
    InvoiceDraft,
    ValidationIssue,
    ValidationResult,
    normalize_invoice_number,
)


class InvoiceValidationError(Exception):
    """Raised when a draft with error-level issues is submitted."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(issue.message for issue in result.issues if issue.severity == "error")
        super().__init__(messages or "Invoice is not valid")


def find_duplicate(
    invoice_number: Optional[str],
    invoices: Iterable[Invoice],
    editing_id: Optional[str] = None,
) -> Optional[Invoice]:
    """
    First invoice (other than the one being edited) sharing this number.

    Numbers are compared trimmed and case-insensitively. A blank number
    never matches.
    """
    key = normalize_invoice_number(invoice_number)
    if not key:
        return None

    for invoice in invoices:
        if invoice.id == editing_id:
            continue
        if normalize_invoice_number(invoice.invoice_number) == key:
            return invoice
    return None


class InvoiceValidator:
    """Validates invoice drafts against the locally loaded invoice list."""

    def validate(
        self,
        draft: InvoiceDraft,
        existing: Iterable[Invoice] = (),
        editing_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        Run all checks.

        Args:
            draft: Form data to check
            existing: Invoices currently loaded for the workspace
            editing_id: Id of the invoice being edited, excluded from
                        the duplicate check

        Returns:
            ValidationResult; duplicate_id is set when a duplicate was found
        """
        issues = []

        if not draft.supplier:
            issues.append(ValidationIssue(
                field="supplier",
                issue_type="missing",
                message="Supplier is required",
                severity="error",
            ))

        if not draft.invoice_number:
            issues.append(ValidationIssue(
                field="invoice_number",
                issue_type="missing",
                message="Invoice number is required",
                severity="error",
            ))

        if draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

        duplicate = find_duplicate(draft.invoice_number, existing, editing_id)
        if duplicate is not None:
            issues.append(ValidationIssue(
                field="invoice_number",
                issue_type="duplicate",
                message=f"Invoice number {duplicate.invoice_number} already exists",
                severity="error",
            ))

        return ValidationResult(
            issues=issues,
            duplicate_id=duplicate.id if duplicate else None,
        )
