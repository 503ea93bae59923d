"""
Core Data Models for InvoiceStudio

These models define the schemas for all data flowing through the system:
invoices and workspaces as stored, drafts as typed into the form, rows
coming out of CSV/PDF import, and the ephemeral view state.

DESIGN DECISION: We use Pydantic v2. Drafts are permissive (the form may
be half filled in and the validator reports what is missing); stored
invoices are strict.
"""

import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class InvoiceStatus(str, Enum):
    """Payment status of an invoice."""
    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"


class InvoiceCategory(str, Enum):
    """
    Fixed set of invoice categories.

    GENERAL is the fallback for imports whose category is missing or
    not one of these.
    """
    MATERIALS = "Materials"
    LABOR = "Labor"
    GENERAL = "General"
    FIXED_EXPENSES = "Fixed Expenses"
    SERVICES = "Services"
    SOFTWARE = "Software"
    TRAVEL = "Travel"

    @classmethod
    def coerce(cls, value: Optional[str]) -> "InvoiceCategory":
        """Map free text to a category, falling back to GENERAL."""
        if value:
            cleaned = str(value).strip().lower()
            for category in cls:
                if category.value.lower() == cleaned or category.name.lower() == cleaned:
                    return category
        return cls.GENERAL


class SortOption(str, Enum):
    """Orderings offered by the invoice list."""
    DATE_DESC = "DATE_DESC"
    DATE_ASC = "DATE_ASC"
    AMOUNT_DESC = "AMOUNT_DESC"
    AMOUNT_ASC = "AMOUNT_ASC"

    @property
    def label(self) -> str:
        return {
            "DATE_DESC": "Date (newest first)",
            "DATE_ASC": "Date (oldest first)",
            "AMOUNT_DESC": "Amount (highest first)",
            "AMOUNT_ASC": "Amount (lowest first)",
        }[self.value]


DEFAULT_FORM_CATEGORY = InvoiceCategory.MATERIALS
DEFAULT_IMPORT_CATEGORY = InvoiceCategory.GENERAL


def normalize_invoice_number(value: Optional[str]) -> str:
    """Key used for advisory uniqueness checks: trimmed and lower-cased."""
    return (value or "").strip().lower()


# =============================================================================
# WORKSPACES
# =============================================================================

class Workspace(BaseModel):
    """
    A named partition of invoices (shown to users as a "database").

    At least one workspace always exists; the store creates a default one
    when the collection is empty.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Store-assigned identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the workspace was created"
    )


# =============================================================================
# INVOICES
# =============================================================================

class InvoiceDraft(BaseModel):
    """
    Invoice data as entered in the form, before it has an id.

    Intentionally permissive: empty supplier or invoice number and a zero
    amount are allowed here so the form can be validated field by field.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    supplier: str = Field(default="", max_length=200)
    invoice_number: str = Field(default="", max_length=100)
    date: dt.date = Field(default_factory=dt.date.today)
    amount: Annotated[
        Decimal,
        Field(ge=0, description="Total amount including taxes")
    ] = Decimal("0")
    description: str = Field(default="", max_length=1000)
    category: InvoiceCategory = DEFAULT_FORM_CATEGORY
    status: InvoiceStatus = InvoiceStatus.PENDING


class Invoice(BaseModel):
    """
    A stored invoice.

    invoice_number is meant to be unique within a workspace
    (case-insensitive), but the store does not enforce it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: str = Field(
        ...,
        min_length=1,
        description="Store-assigned identifier"
    )
    workspace_id: str = Field(
        ...,
        min_length=1,
        description="Workspace this invoice belongs to"
    )

    supplier: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    invoice_number: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    date: dt.date
    amount: Annotated[
        Decimal,
        Field(ge=0, description="Total amount including taxes")
    ]
    description: str = Field(default="", max_length=1000)
    category: InvoiceCategory = DEFAULT_IMPORT_CATEGORY
    status: InvoiceStatus = InvoiceStatus.PENDING

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the invoice was first stored"
    )

    def to_draft(self) -> InvoiceDraft:
        """Form representation of this invoice, used when editing."""
        return InvoiceDraft(
            supplier=self.supplier,
            invoice_number=self.invoice_number,
            date=self.date,
            amount=self.amount,
            description=self.description,
            category=self.category,
            status=self.status,
        )

    def apply(self, draft: InvoiceDraft) -> "Invoice":
        """Return a copy of this invoice with the draft's fields applied."""
        return self.model_copy(update=draft.model_dump())


class ImportedInvoice(BaseModel):
    """
    One invoice read from a CSV file or extracted from a PDF.

    Imports never carry a status; every imported invoice starts as Pending.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    supplier: str = Field(..., min_length=1, max_length=200)
    invoice_number: str = Field(..., min_length=1, max_length=100)
    date: dt.date
    amount: Annotated[Decimal, Field(gt=0)]
    description: str = Field(default="", max_length=1000)
    category: InvoiceCategory = DEFAULT_IMPORT_CATEGORY

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v):
        """Unknown or missing categories become GENERAL."""
        if isinstance(v, InvoiceCategory):
            return v
        return InvoiceCategory.coerce(v)

    @field_validator("description", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or ""

    def to_draft(self) -> InvoiceDraft:
        return InvoiceDraft(
            supplier=self.supplier,
            invoice_number=self.invoice_number,
            date=self.date,
            amount=self.amount,
            description=self.description,
            category=self.category,
            status=InvoiceStatus.PENDING,
        )


class ImportSummary(BaseModel):
    """How many imported invoices were added vs skipped as duplicates."""

    added: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)


# =============================================================================
# DERIVED VIEW MODELS
# =============================================================================

class ViewFilters(BaseModel):
    """
    Filter and sort state of the invoice list.

    Ephemeral: lives in the UI session, never persisted. Empty values mean
    "no filter".
    """

    search_term: str = ""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    category: Optional[InvoiceCategory] = None
    status: Optional[InvoiceStatus] = None
    sort: SortOption = SortOption.DATE_DESC


class InvoiceTotals(BaseModel):
    """Aggregates over a list of invoices, partitioned by status."""

    total_amount: Decimal = Decimal("0")
    total_count: int = 0

    pending_count: int = 0
    paid_count: int = 0
    overdue_count: int = 0

    pending_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    overdue_amount: Decimal = Decimal("0")

    def count_for(self, status: InvoiceStatus) -> int:
        return {
            InvoiceStatus.PENDING: self.pending_count,
            InvoiceStatus.PAID: self.paid_count,
            InvoiceStatus.OVERDUE: self.overdue_count,
        }[status]

    def amount_for(self, status: InvoiceStatus) -> Decimal:
        return {
            InvoiceStatus.PENDING: self.pending_amount,
            InvoiceStatus.PAID: self.paid_amount,
            InvoiceStatus.OVERDUE: self.overdue_amount,
        }[status]


class InvoiceView(BaseModel):
    """The filtered, sorted list on display plus its totals."""

    invoices: list[Invoice] = Field(default_factory=list)
    totals: InvoiceTotals = Field(default_factory=InvoiceTotals)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in an invoice draft."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating an invoice draft before submit."""

    issues: list[ValidationIssue] = Field(default_factory=list)
    duplicate_id: Optional[str] = Field(
        default=None,
        description="Id of the existing invoice sharing this invoice number"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


# =============================================================================
# TRANSFER MODELS
# =============================================================================

class ExportedFile(BaseModel):
    """A file ready to be offered as a download."""

    filename: str
    mime_type: str
    data: bytes
