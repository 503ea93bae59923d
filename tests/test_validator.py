"""Tests for invoice form validation and duplicate detection."""

from decimal import Decimal

from invoice_studio.models.invoice import InvoiceDraft
from invoice_studio.validation import InvoiceValidationError, InvoiceValidator, find_duplicate


class TestFindDuplicate:
    """Tests for the advisory duplicate detector."""

    def test_case_insensitive_trimmed_match(self, make_invoice):
        """Test numbers match regardless of case and surrounding spaces."""
        existing = make_invoice(invoice_number="INV-001")
        assert find_duplicate("  inv-001 ", [existing]) is existing

    def test_flags_exactly_the_other_record(self, make_invoice):
        """Test the match is the record sharing the number, not another one."""
        invoices = [
            make_invoice(id="a", invoice_number="X-1"),
            make_invoice(id="b", invoice_number="X-2"),
        ]
        assert find_duplicate("x-2", invoices).id == "b"

    def test_editing_excludes_self(self, make_invoice):
        """Test the invoice being edited does not clash with itself."""
        invoice = make_invoice(id="a", invoice_number="X-1")
        assert find_duplicate("X-1", [invoice], editing_id="a") is None

    def test_blank_number_never_matches(self, make_invoice):
        """Test an empty number is not reported as a duplicate."""
        assert find_duplicate("   ", [make_invoice()]) is None
        assert find_duplicate(None, [make_invoice()]) is None


class TestInvoiceValidator:
    """Tests for InvoiceValidator."""

    def test_valid_draft(self):
        """Test a complete draft passes."""
        draft = InvoiceDraft(supplier="ACME", invoice_number="1", amount=Decimal("9.99"))
        result = InvoiceValidator().validate(draft)
        assert result.is_valid
        assert result.duplicate_id is None

    def test_missing_fields_and_zero_amount(self):
        """Test each missing requirement is reported."""
        result = InvoiceValidator().validate(InvoiceDraft())
        fields = {issue.field for issue in result.issues}
        assert fields == {"supplier", "invoice_number", "amount"}
        assert result.error_count == 3

    def test_duplicate_reported(self, make_invoice):
        """Test a clashing number is an error carrying the other id."""
        existing = make_invoice(id="dup", invoice_number="A-9")
        draft = InvoiceDraft(supplier="ACME", invoice_number="a-9", amount=Decimal("1"))

        result = InvoiceValidator().validate(draft, [existing])

        assert result.has_errors
        assert result.duplicate_id == "dup"
        assert [i.message for i in result.issues if i.field == "invoice_number"] == [
            "Invoice number A-9 already exists"
        ]

    def test_editing_same_number_allowed(self, make_invoice):
        """Test saving an edit without changing the number is fine."""
        existing = make_invoice(id="me", invoice_number="A-9")
        result = InvoiceValidator().validate(existing.to_draft(), [existing], editing_id="me")
        assert result.is_valid

    def test_error_message(self):
        """Test the exception joins the error messages."""
        result = InvoiceValidator().validate(InvoiceDraft(supplier="ACME", invoice_number="1"))
        error = InvoiceValidationError(result)
        assert str(error) == "Amount must be greater than zero"
        assert error.result is result
