"""
Tests for InvoiceStudio

Test strategy:
1. Unit tests for individual components (models, validators, codecs)
2. Integration tests for flows (with the in-memory store)
3. No real API calls in tests (use fakes)
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from invoice_studio.models.invoice import (
    ImportedInvoice,
    Invoice,
    InvoiceCategory,
    InvoiceDraft,
    InvoiceStatus,
    SortOption,
    ValidationIssue,
    ValidationResult,
    Workspace,
    normalize_invoice_number,
)
from invoice_studio.models.stats import GlobalStats


class TestInvoiceModels:
    """Tests for invoice-related Pydantic models."""

    def test_draft_defaults(self):
        """Test a blank form starts with Materials, Pending and today's date."""
        draft = InvoiceDraft()
        assert draft.category == InvoiceCategory.MATERIALS
        assert draft.status == InvoiceStatus.PENDING
        assert draft.amount == Decimal("0")
        assert draft.date == date.today()

    def test_draft_strips_whitespace(self):
        """Test that whitespace is stripped from text fields."""
        draft = InvoiceDraft(supplier="  ACME  ", invoice_number=" INV-1 ")
        assert draft.supplier == "ACME"
        assert draft.invoice_number == "INV-1"

    def test_draft_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            InvoiceDraft(amount=Decimal("-1"))

    def test_invoice_requires_supplier(self):
        """Test that a stored invoice needs a supplier."""
        with pytest.raises(ValueError):
            Invoice(
                id="a",
                workspace_id="ws",
                supplier="",
                invoice_number="INV-1",
                date=date(2024, 1, 1),
                amount=Decimal("10"),
                created_at=datetime(2024, 1, 1),
            )

    def test_invoice_apply_draft(self, make_invoice):
        """Test editing keeps id, workspace and created_at."""
        invoice = make_invoice(supplier="Old", amount=Decimal("5"))
        draft = invoice.to_draft().model_copy(update={"supplier": "New", "amount": Decimal("7.50")})

        updated = invoice.apply(draft)

        assert updated.id == invoice.id
        assert updated.workspace_id == invoice.workspace_id
        assert updated.created_at == invoice.created_at
        assert updated.supplier == "New"
        assert updated.amount == Decimal("7.50")

    def test_to_draft_round_trip(self, make_invoice):
        """Test an invoice's form representation carries every editable field."""
        invoice = make_invoice(description="Cement", status=InvoiceStatus.PAID)
        draft = invoice.to_draft()
        assert draft.description == "Cement"
        assert draft.status == InvoiceStatus.PAID
        assert draft.invoice_number == invoice.invoice_number

    def test_workspace_name_required(self):
        """Test workspaces need a name."""
        with pytest.raises(ValueError):
            Workspace(id="ws", name="   ", created_at=datetime(2024, 1, 1))


class TestCategoryCoercion:
    """Tests for mapping free text onto the fixed category list."""

    def test_exact_value(self):
        """Test a known label maps to its category."""
        assert InvoiceCategory.coerce("Fixed Expenses") == InvoiceCategory.FIXED_EXPENSES

    def test_case_insensitive(self):
        """Test matching ignores case and surrounding spaces."""
        assert InvoiceCategory.coerce("  software ") == InvoiceCategory.SOFTWARE

    def test_unknown_falls_back_to_general(self):
        """Test unknown categories become General."""
        assert InvoiceCategory.coerce("Snacks") == InvoiceCategory.GENERAL
        assert InvoiceCategory.coerce(None) == InvoiceCategory.GENERAL


class TestImportedInvoice:
    """Tests for the import row model."""

    def test_missing_category_is_general(self):
        """Test imports without a category default to General."""
        imported = ImportedInvoice(
            supplier="ACME",
            invoice_number="1",
            date=date(2024, 1, 1),
            amount=Decimal("3"),
            category=None,
        )
        assert imported.category == InvoiceCategory.GENERAL

    def test_zero_amount_rejected(self):
        """Test imports need a positive amount."""
        with pytest.raises(ValueError):
            ImportedInvoice(
                supplier="ACME",
                invoice_number="1",
                date=date(2024, 1, 1),
                amount=Decimal("0"),
            )

    def test_to_draft_is_pending(self):
        """Test imported invoices always start as Pending."""
        imported = ImportedInvoice(
            supplier="ACME",
            invoice_number="1",
            date=date(2024, 1, 1),
            amount=Decimal("3"),
            description=None,
        )
        draft = imported.to_draft()
        assert draft.status == InvoiceStatus.PENDING
        assert draft.description == ""


class TestSmallHelpers:
    """Tests for enum labels and normalization helpers."""

    def test_normalize_invoice_number(self):
        """Test numbers are trimmed and lower-cased."""
        assert normalize_invoice_number("  INV-001 ") == "inv-001"
        assert normalize_invoice_number(None) == ""

    def test_sort_option_labels(self):
        """Test every sort option has a label."""
        assert SortOption.DATE_DESC.label == "Date (newest first)"
        assert all(option.label for option in SortOption)

    def test_validation_result_properties(self):
        """Test error counting ignores warnings."""
        result = ValidationResult(issues=[
            ValidationIssue(field="amount", issue_type="invalid_value", message="bad", severity="error"),
            ValidationIssue(field="supplier", issue_type="hint", message="hmm", severity="warning"),
        ])
        assert result.has_errors
        assert not result.is_valid
        assert result.error_count == 1

    def test_health_labels(self):
        """Test health score thresholds."""
        assert GlobalStats(health_score=20).health_label == "critical"
        assert GlobalStats(health_score=50).health_label == "fair"
        assert GlobalStats(health_score=90).health_label == "good"
