"""CSV and PDF transfer of invoice lists."""

from invoice_studio.services.transfer.csv_codec import (
    CSV_COLUMNS,
    CSV_MIME_TYPE,
    REQUIRED_COLUMNS,
    CsvImportError,
    export_csv,
    import_csv,
)
from invoice_studio.services.transfer.filenames import export_filename, safe_workspace_name
from invoice_studio.services.transfer.pdf_report import PDF_MIME_TYPE, render_pdf

__all__ = [
    "CSV_COLUMNS",
    "CSV_MIME_TYPE",
    "REQUIRED_COLUMNS",
    "CsvImportError",
    "export_csv",
    "import_csv",
    "export_filename",
    "safe_workspace_name",
    "PDF_MIME_TYPE",
    "render_pdf",
]
