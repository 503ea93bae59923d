"""Services package."""

from invoice_studio.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsInvoiceStore,
    InMemoryInvoiceStore,
    InvoiceStoreInterface,
    NotFoundError,
    StorageError,
)
from invoice_studio.services.transfer import (
    CsvImportError,
    export_csv,
    export_filename,
    import_csv,
    render_pdf,
)

__all__ = [
    # Storage services
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsInvoiceStore",
    "InMemoryInvoiceStore",
    "InvoiceStoreInterface",
    "NotFoundError",
    "StorageError",
    # Transfer services
    "CsvImportError",
    "export_csv",
    "export_filename",
    "import_csv",
    "render_pdf",
]
