"""
Data Models Package

This package contains all Pydantic models used in InvoiceStudio.
All data flowing through the system must conform to these schemas.
"""

from invoice_studio.models.invoice import (
    DEFAULT_FORM_CATEGORY,
    DEFAULT_IMPORT_CATEGORY,
    ExportedFile,
    ImportedInvoice,
    ImportSummary,
    Invoice,
    InvoiceCategory,
    InvoiceDraft,
    InvoiceStatus,
    InvoiceTotals,
    InvoiceView,
    SortOption,
    ValidationIssue,
    ValidationResult,
    ViewFilters,
    Workspace,
    normalize_invoice_number,
)
from invoice_studio.models.stats import (
    CategoryShare,
    GlobalStats,
    SupplierShare,
    SupplierStats,
)

__all__ = [
    # Invoice models
    "DEFAULT_FORM_CATEGORY",
    "DEFAULT_IMPORT_CATEGORY",
    "ExportedFile",
    "ImportedInvoice",
    "ImportSummary",
    "Invoice",
    "InvoiceCategory",
    "InvoiceDraft",
    "InvoiceStatus",
    "InvoiceTotals",
    "InvoiceView",
    "SortOption",
    "ValidationIssue",
    "ValidationResult",
    "ViewFilters",
    "Workspace",
    "normalize_invoice_number",
    # Statistics models
    "CategoryShare",
    "GlobalStats",
    "SupplierShare",
    "SupplierStats",
]
