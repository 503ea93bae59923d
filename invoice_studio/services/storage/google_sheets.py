"""
Google Sheets Storage Implementation

DESIGN DECISION: A Google Sheets spreadsheet is used as the hosted
document store:
1. No database server to run
2. Bookkeepers can look at the raw data directly
3. Built-in backup and sharing (Google's infrastructure)

Each worksheet plays the role of one collection:
- "Databases": workspace metadata (id, name, created_at)
- "Invoices": invoices, each carrying the id of its workspace

TRADEOFFS:
- Equality filters on workspace id are evaluated in Python
- Only multi-row writes that fit in one API call are atomic
  (append_rows for batch insert, batch_update for cascading delete)
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from invoice_studio.config import get_settings
from invoice_studio.logs import get_logger
from invoice_studio.models.invoice import (
    Invoice,
    InvoiceCategory,
    InvoiceDraft,
    InvoiceStatus,
    Workspace,
)
from invoice_studio.services.storage.interface import (
    DEFAULT_WORKSPACE_NAME,
    ConnectionError,
    InvoiceStoreInterface,
    NotFoundError,
    StorageError,
)


logger = get_logger(__name__)


# Column mappings for the Databases sheet
WORKSPACE_COLUMNS = [
    "id",
    "name",
    "created_at",
]

# Column mappings for the Invoices sheet
INVOICE_COLUMNS = [
    "id",
    "database_id",
    "supplier",
    "invoice_number",
    "date",
    "amount",
    "description",
    "category",
    "status",
    "created_at",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and creates the two worksheets on first use.
    Only connecting is retried; reads and writes are not.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_databases_sheet(self) -> gspread.Worksheet:
        """Get or create the workspace metadata worksheet."""
        return self._get_or_create_sheet(
            self._settings.databases_sheet_name,
            WORKSPACE_COLUMNS,
            rows=100,
        )

    def get_invoices_sheet(self) -> gspread.Worksheet:
        """Get or create the invoices worksheet."""
        return self._get_or_create_sheet(
            self._settings.invoices_sheet_name,
            INVOICE_COLUMNS,
            rows=2000,
        )


def _delete_rows_request(sheet: gspread.Worksheet, row_number: int) -> dict:
    """deleteDimension request for one 1-based row number."""
    return {
        "deleteDimension": {
            "range": {
                "sheetId": sheet.id,
                "dimension": "ROWS",
                "startIndex": row_number - 1,
                "endIndex": row_number,
            }
        }
    }


class GoogleSheetsInvoiceStore(InvoiceStoreInterface):
    """
    Google Sheets implementation of workspace and invoice storage.

    One row per workspace / invoice. Ids are random hex strings assigned
    here, standing in for the document ids a hosted store would assign.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        default_workspace_name: str = DEFAULT_WORKSPACE_NAME,
    ):
        self._client = client or GoogleSheetsClient()
        self._default_workspace_name = default_workspace_name

    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------

    def _workspace_to_row(self, workspace: Workspace) -> list:
        return [
            workspace.id,
            workspace.name,
            workspace.created_at.isoformat(),
        ]

    def _row_to_workspace(self, row: list) -> Workspace:
        return Workspace(
            id=row[0],
            name=row[1],
            created_at=datetime.fromisoformat(row[2]),
        )

    def _invoice_to_row(self, invoice: Invoice) -> list:
        """Convert an Invoice to a spreadsheet row."""
        return [
            invoice.id,
            invoice.workspace_id,
            invoice.supplier,
            invoice.invoice_number,
            invoice.date.isoformat(),
            str(invoice.amount),
            invoice.description,
            invoice.category.value,
            invoice.status.value,
            invoice.created_at.isoformat(),
        ]

    def _row_to_invoice(self, row: list) -> Invoice:
        """Convert a spreadsheet row to an Invoice."""
        # Handle missing trailing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return Invoice(
            id=safe_get(0),
            workspace_id=safe_get(1),
            supplier=safe_get(2),
            invoice_number=safe_get(3),
            date=date.fromisoformat(safe_get(4)),
            amount=Decimal(safe_get(5, "0")),
            description=safe_get(6),
            category=InvoiceCategory.coerce(safe_get(7)),
            status=InvoiceStatus(safe_get(8, InvoiceStatus.PENDING.value)),
            created_at=datetime.fromisoformat(safe_get(9)),
        )

    def _new_invoice(self, workspace_id: str, draft: InvoiceDraft) -> Invoice:
        return Invoice(
            id=uuid4().hex,
            workspace_id=workspace_id,
            created_at=datetime.utcnow(),
            **draft.model_dump(),
        )

    # -------------------------------------------------------------------------
    # Workspaces
    # -------------------------------------------------------------------------

    async def list_workspaces(self) -> list[Workspace]:
        """List workspaces oldest first, creating the default if none exist."""
        try:
            sheet = self._client.get_databases_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header

            workspaces = [
                self._row_to_workspace(row)
                for row in all_rows
                if row and row[0]
            ]
        except StorageError:
            raise
        except Exception as e:
            logger.error("workspace_list_failed", error=str(e))
            raise StorageError(f"Failed to list databases: {e}")

        if not workspaces:
            logger.info("creating_default_workspace", name=self._default_workspace_name)
            return [await self.create_workspace(self._default_workspace_name)]

        workspaces.sort(key=lambda w: w.created_at)
        return workspaces

    async def create_workspace(self, name: str) -> Workspace:
        """Append a workspace row."""
        workspace = Workspace(id=uuid4().hex, name=name, created_at=datetime.utcnow())
        try:
            sheet = self._client.get_databases_sheet()
            sheet.append_row(self._workspace_to_row(workspace), value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            logger.error("workspace_create_failed", name=name, error=str(e))
            raise StorageError(f"Failed to create database: {e}")

        logger.info("workspace_created", workspace_id=workspace.id, name=workspace.name)
        return workspace

    async def delete_workspace(self, workspace_id: str) -> None:
        """
        Delete the workspace row and all its invoice rows.

        Both sheets are cleaned up in a single batch_update. Rows are
        deleted bottom-up so earlier deletions don't shift later indices.
        """
        try:
            spreadsheet = self._client.get_spreadsheet()
            databases_sheet = self._client.get_databases_sheet()
            invoices_sheet = self._client.get_invoices_sheet()

            workspace_rows = [
                idx
                for idx, row in enumerate(databases_sheet.get_all_values()[1:], start=2)
                if row and row[0] == workspace_id
            ]
            invoice_rows = [
                idx
                for idx, row in enumerate(invoices_sheet.get_all_values()[1:], start=2)
                if len(row) > 1 and row[1] == workspace_id
            ]

            requests = [
                _delete_rows_request(databases_sheet, idx)
                for idx in sorted(workspace_rows, reverse=True)
            ] + [
                _delete_rows_request(invoices_sheet, idx)
                for idx in sorted(invoice_rows, reverse=True)
            ]

            if requests:
                spreadsheet.batch_update({"requests": requests})
        except StorageError:
            raise
        except Exception as e:
            logger.error("workspace_delete_failed", workspace_id=workspace_id, error=str(e))
            raise StorageError(f"Failed to delete database: {e}")

        logger.info(
            "workspace_deleted",
            workspace_id=workspace_id,
            invoices_deleted=len(invoice_rows),
        )

    # -------------------------------------------------------------------------
    # Invoices
    # -------------------------------------------------------------------------

    async def list_invoices(self, workspace_id: str) -> list[Invoice]:
        """List a workspace's invoices, newest date first."""
        try:
            sheet = self._client.get_invoices_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            logger.error("invoice_list_failed", workspace_id=workspace_id, error=str(e))
            raise StorageError(f"Failed to list invoices: {e}")

        invoices = []
        for row in all_rows:
            if len(row) < 2 or row[1] != workspace_id:
                continue
            try:
                invoices.append(self._row_to_invoice(row))
            except ValueError as e:
                # pydantic.ValidationError is a ValueError
                logger.warning("invoice_row_skipped", invoice_id=row[0], error=str(e))

        invoices.sort(key=lambda i: i.date, reverse=True)
        return invoices

    async def add_invoice(self, workspace_id: str, draft: InvoiceDraft) -> Invoice:
        """Append one invoice row."""
        invoice = self._new_invoice(workspace_id, draft)
        try:
            sheet = self._client.get_invoices_sheet()
            sheet.append_row(self._invoice_to_row(invoice), value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            logger.error("invoice_add_failed", workspace_id=workspace_id, error=str(e))
            raise StorageError(f"Failed to add invoice: {e}")
        return invoice

    async def batch_add_invoices(
        self,
        workspace_id: str,
        drafts: list[InvoiceDraft],
    ) -> list[Invoice]:
        """Append all invoice rows with a single append_rows call."""
        invoices = [self._new_invoice(workspace_id, draft) for draft in drafts]
        if not invoices:
            return []

        try:
            sheet = self._client.get_invoices_sheet()
            sheet.append_rows(
                [self._invoice_to_row(invoice) for invoice in invoices],
                value_input_option="RAW",
            )
        except StorageError:
            raise
        except Exception as e:
            logger.error(
                "invoice_batch_add_failed",
                workspace_id=workspace_id,
                count=len(invoices),
                error=str(e),
            )
            raise StorageError(f"Failed to import invoices: {e}")

        logger.info("invoices_batch_added", workspace_id=workspace_id, count=len(invoices))
        return invoices

    async def update_invoice(self, invoice: Invoice) -> Invoice:
        """Rewrite the invoice's row in place."""
        try:
            sheet = self._client.get_invoices_sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is header
                if row and row[0] == invoice.id:
                    sheet.update(
                        values=[self._invoice_to_row(invoice)],
                        range_name=f"A{idx}",
                        value_input_option="RAW",
                    )
                    return invoice

            raise NotFoundError(f"Invoice not found: {invoice.id}")
        except StorageError:
            raise
        except Exception as e:
            logger.error("invoice_update_failed", invoice_id=invoice.id, error=str(e))
            raise StorageError(f"Failed to update invoice: {e}")

    async def delete_invoice(self, invoice_id: str) -> bool:
        """Delete an invoice's row."""
        try:
            sheet = self._client.get_invoices_sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == invoice_id:
                    sheet.delete_rows(idx)
                    return True

            return False
        except StorageError:
            raise
        except Exception as e:
            logger.error("invoice_delete_failed", invoice_id=invoice_id, error=str(e))
            raise StorageError(f"Failed to delete invoice: {e}")
