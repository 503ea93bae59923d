"""
Storage Services Package

Provides the abstract store interface and its implementations.
Google Sheets is the hosted backend; the in-memory store backs demo mode
and the tests.
"""

from invoice_studio.services.storage.interface import (
    DEFAULT_WORKSPACE_NAME,
    ConnectionError,
    InvoiceStoreInterface,
    NotFoundError,
    StorageError,
)
from invoice_studio.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsInvoiceStore,
)
from invoice_studio.services.storage.memory import (
    InMemoryInvoiceStore,
    generate_demo_drafts,
)

__all__ = [
    # Interface
    "DEFAULT_WORKSPACE_NAME",
    "InvoiceStoreInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsInvoiceStore",
    # In-memory implementation
    "InMemoryInvoiceStore",
    "generate_demo_drafts",
]
