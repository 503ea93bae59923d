"""
Main Orchestrator for InvoiceStudio

This module ties the services together and defines the flows the UI
calls into:
1. Workspaces (list, create, delete with cascade)
2. Invoices (load, validate and save, delete)
3. Transfer (CSV/PDF import with dedupe, CSV/PDF export)

The flows enforce the rules the store does not:
- At least one workspace always exists
- Nothing is written unless the validator accepts it
- Imports never insert an invoice number that is already loaded

There is no retry here. A failed remote call is logged and surfaces to
the caller as the layer's own exception.
"""

from datetime import date, datetime
from pathlib import PurePath
from typing import Optional

from invoice_studio.agents import ExtractionError, InvoiceExtractionAgent
from invoice_studio.config import get_settings
from invoice_studio.logs import get_logger
from invoice_studio.models.invoice import (
    ExportedFile,
    ImportedInvoice,
    ImportSummary,
    Invoice,
    InvoiceDraft,
    Workspace,
    normalize_invoice_number,
)
from invoice_studio.services.storage import (
    DEFAULT_WORKSPACE_NAME,
    GoogleSheetsClient,
    GoogleSheetsInvoiceStore,
    InMemoryInvoiceStore,
    InvoiceStoreInterface,
)
from invoice_studio.services.transfer import (
    CSV_MIME_TYPE,
    PDF_MIME_TYPE,
    CsvImportError,
    export_csv,
    export_filename,
    import_csv,
    render_pdf,
)
from invoice_studio.validation import InvoiceValidationError, InvoiceValidator


logger = get_logger(__name__)


class LastWorkspaceError(Exception):
    """The only remaining workspace cannot be deleted."""
    pass


class UnsupportedFileError(Exception):
    """Import was given something other than a CSV or PDF file."""
    pass


class WorkspaceFlow:
    """Workspace selector operations."""

    def __init__(self, store: InvoiceStoreInterface):
        self._store = store

    async def list_workspaces(self) -> list[Workspace]:
        """All workspaces, oldest first. Creates the default one if none exist."""
        return await self._store.list_workspaces()

    async def create_workspace(self, name: str) -> Workspace:
        name = (name or "").strip()
        if not name:
            raise ValueError("Workspace name is required")

        workspace = await self._store.create_workspace(name)
        logger.info("workspace_created", workspace_id=workspace.id, name=name)
        return workspace

    async def delete_workspace(self, workspace_id: str) -> list[Workspace]:
        """
        Delete a workspace and all of its invoices.

        Returns:
            The remaining workspaces; the UI selects the first one

        Raises:
            LastWorkspaceError: If it is the only workspace left
        """
        workspaces = await self._store.list_workspaces()
        if len(workspaces) <= 1:
            raise LastWorkspaceError("You cannot delete the last database.")

        await self._store.delete_workspace(workspace_id)
        logger.info("workspace_deleted", workspace_id=workspace_id)
        return [w for w in workspaces if w.id != workspace_id]


class InvoiceFlow:
    """
    Invoice CRUD for one workspace.

    The UI keeps its own copy of the loaded list. After each mutation it
    updates that copy with upsert_local / remove_local instead of
    reloading.
    """

    def __init__(
        self,
        store: InvoiceStoreInterface,
        validator: Optional[InvoiceValidator] = None,
    ):
        self._store = store
        self._validator = validator or InvoiceValidator()

    async def load(self, workspace_id: str) -> list[Invoice]:
        return await self._store.list_invoices(workspace_id)

    async def save(
        self,
        workspace_id: str,
        draft: InvoiceDraft,
        existing: list[Invoice],
        editing: Optional[Invoice] = None,
    ) -> Invoice:
        """
        Validate the draft, then add it or update the invoice being edited.

        Raises:
            InvoiceValidationError: If the draft has error-level issues
        """
        result = self._validator.validate(
            draft,
            existing,
            editing_id=editing.id if editing else None,
        )
        if result.has_errors:
            raise InvoiceValidationError(result)

        if editing is not None:
            invoice = await self._store.update_invoice(editing.apply(draft))
            logger.info("invoice_updated", invoice_id=invoice.id)
        else:
            invoice = await self._store.add_invoice(workspace_id, draft)
            logger.info("invoice_added", invoice_id=invoice.id, workspace_id=workspace_id)
        return invoice

    async def delete(self, invoice_id: str) -> bool:
        deleted = await self._store.delete_invoice(invoice_id)
        logger.info("invoice_deleted", invoice_id=invoice_id, deleted=deleted)
        return deleted

    @staticmethod
    def upsert_local(invoices: list[Invoice], invoice: Invoice) -> list[Invoice]:
        """Replace the invoice with the same id, or put it first."""
        for index, current in enumerate(invoices):
            if current.id == invoice.id:
                return invoices[:index] + [invoice] + invoices[index + 1:]
        return [invoice] + invoices

    @staticmethod
    def remove_local(invoices: list[Invoice], invoice_id: str) -> list[Invoice]:
        return [invoice for invoice in invoices if invoice.id != invoice_id]


class TransferFlow:
    """
    CSV/PDF import and export.

    Import reads the file, drops invoice numbers that are already loaded,
    writes the rest in one batch (status Pending) and reloads the list.
    Numbers repeated inside the same file are not deduplicated against
    each other.
    """

    def __init__(
        self,
        store: InvoiceStoreInterface,
        extraction_agent: Optional[InvoiceExtractionAgent] = None,
        pdf_font_path: Optional[str] = None,
        max_upload_bytes: Optional[int] = None,
    ):
        self._store = store
        self._extraction_agent = extraction_agent
        self._pdf_font_path = pdf_font_path
        self._max_upload_bytes = max_upload_bytes

    def _get_extraction_agent(self) -> InvoiceExtractionAgent:
        # Built on first PDF import so a missing Gemini key only affects PDFs
        if self._extraction_agent is None:
            try:
                self._extraction_agent = InvoiceExtractionAgent()
            except Exception as e:
                logger.error("extraction_agent_unavailable", error=str(e))
                raise ExtractionError("AI extraction is not configured.") from e
        return self._extraction_agent

    @staticmethod
    def detect_kind(filename: str, mime_type: Optional[str] = None) -> str:
        """
        "csv" or "pdf", from the MIME type or else the file extension.

        Raises:
            UnsupportedFileError: For anything else
        """
        if mime_type == CSV_MIME_TYPE:
            return "csv"
        if mime_type == PDF_MIME_TYPE:
            return "pdf"

        suffix = PurePath(filename or "").suffix.lower()
        if suffix == ".csv":
            return "csv"
        if suffix == ".pdf":
            return "pdf"
        raise UnsupportedFileError("Unsupported file type. Please upload a CSV or PDF file.")

    async def read_file(
        self,
        filename: str,
        data: bytes,
        mime_type: Optional[str] = None,
    ) -> list[ImportedInvoice]:
        """
        Parse an uploaded file into importable invoices.

        Raises:
            UnsupportedFileError: Wrong type or too large
            CsvImportError: Unreadable CSV
            ExtractionError: PDF extraction failed
        """
        kind = self.detect_kind(filename, mime_type)

        if self._max_upload_bytes is not None and len(data) > self._max_upload_bytes:
            raise UnsupportedFileError(
                f"File is too large (limit {self._max_upload_bytes // (1024 * 1024)} MB)."
            )

        if kind == "csv":
            try:
                text = data.decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise CsvImportError("CSV file must be UTF-8 encoded.") from e
            return import_csv(text)

        return await self._get_extraction_agent().extract(data)

    async def import_file(
        self,
        workspace_id: str,
        filename: str,
        data: bytes,
        existing: list[Invoice],
        mime_type: Optional[str] = None,
    ) -> tuple[ImportSummary, list[Invoice]]:
        """
        Import a CSV or PDF file into a workspace.

        Args:
            workspace_id: Target workspace
            filename: Uploaded file name (used for type detection)
            data: File content
            existing: Invoices currently loaded for the workspace
            mime_type: Uploaded MIME type, if known

        Returns:
            (summary, invoices) where invoices is the reloaded list, or
            `existing` unchanged when nothing was added
        """
        candidates = await self.read_file(filename, data, mime_type)

        known = {normalize_invoice_number(invoice.invoice_number) for invoice in existing}
        fresh = [
            candidate
            for candidate in candidates
            if normalize_invoice_number(candidate.invoice_number) not in known
        ]
        summary = ImportSummary(added=len(fresh), skipped=len(candidates) - len(fresh))

        if not fresh:
            logger.info("import_nothing_new", workspace_id=workspace_id, skipped=summary.skipped)
            return summary, existing

        await self._store.batch_add_invoices(
            workspace_id,
            [candidate.to_draft() for candidate in fresh],
        )
        reloaded = await self._store.list_invoices(workspace_id)

        logger.info(
            "import_completed",
            workspace_id=workspace_id,
            filename=filename,
            added=summary.added,
            skipped=summary.skipped,
        )
        return summary, reloaded

    def export_csv(
        self,
        workspace_name: str,
        invoices: list[Invoice],
        today: Optional[date] = None,
    ) -> ExportedFile:
        return ExportedFile(
            filename=export_filename(workspace_name, "csv", today),
            mime_type=CSV_MIME_TYPE,
            data=export_csv(invoices).encode("utf-8"),
        )

    def export_pdf(
        self,
        workspace_name: str,
        invoices: list[Invoice],
        generated_at: Optional[datetime] = None,
    ) -> ExportedFile:
        generated_at = generated_at or datetime.now()
        return ExportedFile(
            filename=export_filename(workspace_name, "pdf", generated_at.date()),
            mime_type=PDF_MIME_TYPE,
            data=render_pdf(invoices, workspace_name, generated_at, self._pdf_font_path),
        )


def create_app_components(
    use_storage: bool = True,
) -> tuple[WorkspaceFlow, InvoiceFlow, TransferFlow, InvoiceStoreInterface]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use Google Sheets. With False, or in demo
                     mode, an in-memory store is used instead.

    Returns:
        (workspace_flow, invoice_flow, transfer_flow, store)
    """
    try:
        app_settings = get_settings().app
        default_name = app_settings.default_workspace_name
        demo_mode = app_settings.demo_mode
        font_path = app_settings.pdf_font_path
        max_upload_bytes = app_settings.max_upload_size_bytes
    except Exception as e:
        logger.warning("app_settings_unavailable", error=str(e))
        default_name = DEFAULT_WORKSPACE_NAME
        demo_mode = False
        font_path = None
        max_upload_bytes = None

    if use_storage and not demo_mode:
        store = GoogleSheetsInvoiceStore(
            GoogleSheetsClient(),
            default_workspace_name=default_name,
        )
    else:
        store = InMemoryInvoiceStore(default_workspace_name=default_name)

    return (
        WorkspaceFlow(store),
        InvoiceFlow(store),
        TransferFlow(store, pdf_font_path=font_path, max_upload_bytes=max_upload_bytes),
        store,
    )
