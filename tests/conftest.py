"""Shared fixtures for InvoiceStudio tests."""

from datetime import date, datetime
from decimal import Decimal
from itertools import count

import pytest

from invoice_studio.models.invoice import (
    Invoice,
    InvoiceCategory,
    InvoiceStatus,
)


@pytest.fixture
def make_invoice():
    """Factory for Invoice objects with sensible defaults."""
    ids = count(1)

    def _make(**overrides) -> Invoice:
        n = next(ids)
        values = {
            "id": f"inv-{n}",
            "workspace_id": "ws-1",
            "supplier": "ACME Supplies",
            "invoice_number": f"INV-{n:03d}",
            "date": date(2024, 3, n % 28 + 1),
            "amount": Decimal("100.00"),
            "description": "",
            "category": InvoiceCategory.MATERIALS,
            "status": InvoiceStatus.PENDING,
            "created_at": datetime(2024, 3, 1, 12, 0, 0),
        }
        values.update(overrides)
        return Invoice(**values)

    return _make
