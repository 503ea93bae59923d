"""
Statistics Models

Read-only figures shown by the global and per-supplier statistics
dialogs. All percentages are on a 0-100 scale and are 0 whenever their
divisor is 0.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from invoice_studio.models.invoice import InvoiceCategory


class SupplierShare(BaseModel):
    """One supplier's share of the total spend."""

    name: str
    amount: Decimal = Decimal("0")
    percent_of_total: float = Field(default=0.0, ge=0.0)
    percent_of_max: float = Field(default=0.0, ge=0.0)


class CategoryShare(BaseModel):
    """One category's share of the total spend."""

    category: InvoiceCategory
    amount: Decimal = Decimal("0")
    percent: float = Field(default=0.0, ge=0.0)


class GlobalStats(BaseModel):
    """
    Workspace-wide statistics.

    health_score starts at 50 and moves up with the paid share of the
    total and down with the overdue share, clamped to [0, 100].
    """

    total_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    pending_amount: Decimal = Decimal("0")
    overdue_amount: Decimal = Decimal("0")

    paid_ratio: float = 0.0
    overdue_ratio: float = 0.0
    health_score: float = Field(default=50.0, ge=0.0, le=100.0)

    suppliers: list[SupplierShare] = Field(default_factory=list)
    categories: list[CategoryShare] = Field(default_factory=list)

    @property
    def health_label(self) -> str:
        if self.health_score < 40:
            return "critical"
        if self.health_score < 70:
            return "fair"
        return "good"


class SupplierStats(BaseModel):
    """Figures for a single supplier."""

    supplier: str
    total_amount: Decimal = Decimal("0")
    count: int = 0
    average_amount: Decimal = Decimal("0")

    paid_count: int = 0
    pending_count: int = 0
    overdue_count: int = 0

    paid_amount: Decimal = Decimal("0")
    pending_amount: Decimal = Decimal("0")
    overdue_amount: Decimal = Decimal("0")

    top_categories: list[CategoryShare] = Field(default_factory=list)
