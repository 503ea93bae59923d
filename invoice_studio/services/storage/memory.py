"""
In-Memory Storage Implementation

Used when no spreadsheet is configured (demo mode) and by the tests.
Same semantics as the Google Sheets store, held in plain dicts for the
lifetime of the process.
"""

import random
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional
from uuid import uuid4

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
    InvoiceStoreInterface,
    NotFoundError,
)


logger = get_logger(__name__)


DEMO_SUPPLIERS = [
    "Web Supplies Co.",
    "Service Pro",
    "Creative Designs",
    "Tech Solutions",
    "Office Supplies Inc.",
    "Logistics Hellas",
    "Digital Marketing Experts",
    "Cloud Services Ltd.",
]

DEMO_DESCRIPTIONS = [
    "Software subscription renewal",
    "Office equipment purchase",
    "Website maintenance services",
    "Travel expenses for client meeting",
    "Advertising campaign payment",
    "Consumables purchase",
    "Logo and brand identity design",
    "Monthly cloud hosting charge",
]


def generate_demo_drafts(
    count: int = 20,
    seed: Optional[int] = None,
    today: Optional[date] = None,
) -> list[InvoiceDraft]:
    """
    Generate plausible invoices for demo mode.

    The first suppliers are repeated on purpose so the supplier
    statistics have something to group. Invoices from the last 30 days
    are Pending; older ones are mostly Paid, sometimes Overdue.
    """
    rng = random.Random(seed)
    today = today or date.today()
    start = date(today.year - 1, 10, 1)
    span_days = max((today - start).days, 1)
    thirty_days_ago = today - timedelta(days=30)

    suppliers = [DEMO_SUPPLIERS[i] for i in (0, 0, 1, 1, 1, 2, 3, 3)]
    while len(suppliers) < count:
        suppliers.append(rng.choice(DEMO_SUPPLIERS))
    rng.shuffle(suppliers)

    drafts = []
    for i in range(count):
        invoice_date = start + timedelta(days=rng.randint(0, span_days))
        if invoice_date > thirty_days_ago:
            status = InvoiceStatus.PENDING
        elif rng.random() > 0.2:
            status = InvoiceStatus.PAID
        else:
            status = InvoiceStatus.OVERDUE

        drafts.append(InvoiceDraft(
            supplier=suppliers[i],
            invoice_number=f"INV-{invoice_date.year}-{1001 + i}",
            date=invoice_date,
            amount=Decimal(str(round(rng.uniform(50, 1500), 2))),
            description=rng.choice(DEMO_DESCRIPTIONS),
            category=rng.choice(list(InvoiceCategory)),
            status=status,
        ))
    return drafts


class InMemoryInvoiceStore(InvoiceStoreInterface):
    """Dict-backed store. Not shared between processes."""

    def __init__(self, default_workspace_name: str = DEFAULT_WORKSPACE_NAME):
        self._default_workspace_name = default_workspace_name
        self._workspaces: dict[str, Workspace] = {}
        self._invoices: dict[str, Invoice] = {}

    async def seed_demo_data(self, count: int = 20, seed: Optional[int] = None) -> Workspace:
        """Fill the first workspace with generated invoices."""
        workspace = (await self.list_workspaces())[0]
        await self.batch_add_invoices(workspace.id, generate_demo_drafts(count, seed))
        logger.info("demo_data_seeded", workspace_id=workspace.id, count=count)
        return workspace

    # -------------------------------------------------------------------------
    # Workspaces
    # -------------------------------------------------------------------------

    async def list_workspaces(self) -> list[Workspace]:
        if not self._workspaces:
            return [await self.create_workspace(self._default_workspace_name)]
        return sorted(self._workspaces.values(), key=lambda w: w.created_at)

    async def create_workspace(self, name: str) -> Workspace:
        workspace = Workspace(id=uuid4().hex, name=name, created_at=datetime.utcnow())
        self._workspaces[workspace.id] = workspace
        return workspace

    async def delete_workspace(self, workspace_id: str) -> None:
        self._workspaces.pop(workspace_id, None)
        doomed = [
            invoice_id
            for invoice_id, invoice in self._invoices.items()
            if invoice.workspace_id == workspace_id
        ]
        for invoice_id in doomed:
            del self._invoices[invoice_id]

    # -------------------------------------------------------------------------
    # Invoices
    # -------------------------------------------------------------------------

    async def list_invoices(self, workspace_id: str) -> list[Invoice]:
        invoices = [
            invoice.model_copy()
            for invoice in self._invoices.values()
            if invoice.workspace_id == workspace_id
        ]
        invoices.sort(key=lambda i: i.date, reverse=True)
        return invoices

    async def add_invoice(self, workspace_id: str, draft: InvoiceDraft) -> Invoice:
        invoice = Invoice(
            id=uuid4().hex,
            workspace_id=workspace_id,
            created_at=datetime.utcnow(),
            **draft.model_dump(),
        )
        self._invoices[invoice.id] = invoice
        return invoice.model_copy()

    async def batch_add_invoices(
        self,
        workspace_id: str,
        drafts: list[InvoiceDraft],
    ) -> list[Invoice]:
        # Build everything first so a bad draft leaves the store untouched
        invoices = [
            Invoice(
                id=uuid4().hex,
                workspace_id=workspace_id,
                created_at=datetime.utcnow(),
                **draft.model_dump(),
            )
            for draft in drafts
        ]
        for invoice in invoices:
            self._invoices[invoice.id] = invoice
        return [invoice.model_copy() for invoice in invoices]

    async def update_invoice(self, invoice: Invoice) -> Invoice:
        if invoice.id not in self._invoices:
            raise NotFoundError(f"Invoice not found: {invoice.id}")
        self._invoices[invoice.id] = invoice.model_copy()
        return invoice

    async def delete_invoice(self, invoice_id: str) -> bool:
        return self._invoices.pop(invoice_id, None) is not None
