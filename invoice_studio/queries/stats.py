"""
Presentation Statistics

Figures for the global statistics dialog and the per-supplier dialog.
Deterministic, read-only, computed from the invoices already loaded.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from invoice_studio.models.invoice import Invoice, InvoiceCategory, InvoiceStatus
from invoice_studio.models.stats import (
    CategoryShare,
    GlobalStats,
    SupplierShare,
    SupplierStats,
)
from invoice_studio.queries.engine import summarize


TOP_CATEGORY_LIMIT = 3


def _percent(part: Decimal, whole: Decimal) -> float:
    """part / whole on a 0-100 scale, 0 when whole is 0."""
    if whole <= 0:
        return 0.0
    return float(part / whole * 100)


def _ratio(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    return float(part / whole)


def category_shares(invoices: Iterable[Invoice], total: Decimal) -> list[CategoryShare]:
    """Amount per category, largest first."""
    amounts: dict[InvoiceCategory, Decimal] = defaultdict(Decimal)
    for invoice in invoices:
        amounts[invoice.category] += invoice.amount

    ordered = sorted(amounts.items(), key=lambda item: item[1], reverse=True)
    return [
        CategoryShare(category=category, amount=amount, percent=_percent(amount, total))
        for category, amount in ordered
    ]


def supplier_shares(invoices: Iterable[Invoice], total: Decimal) -> list[SupplierShare]:
    """
    Amount per supplier, largest first.

    Suppliers are grouped by trimmed, lower-cased name so "ACME " and
    "acme" count as one; the first spelling seen is the one displayed.
    """
    names: dict[str, str] = {}
    amounts: dict[str, Decimal] = defaultdict(Decimal)

    for invoice in invoices:
        key = invoice.supplier.strip().lower()
        if not key:
            continue
        names.setdefault(key, invoice.supplier.strip())
        amounts[key] += invoice.amount

    ordered = sorted(amounts.items(), key=lambda item: item[1], reverse=True)
    largest = ordered[0][1] if ordered else Decimal("0")

    return [
        SupplierShare(
            name=names[key],
            amount=amount,
            percent_of_total=_percent(amount, total),
            percent_of_max=_percent(amount, largest),
        )
        for key, amount in ordered
    ]


def health_score(paid_ratio: float, overdue_ratio: float) -> float:
    """50 baseline, +50 for fully paid, -50 for fully overdue, clamped."""
    score = 50 + paid_ratio * 50 - overdue_ratio * 50
    return max(0.0, min(100.0, score))


def global_stats(invoices: Iterable[Invoice]) -> GlobalStats:
    """Workspace-wide statistics."""
    invoices = list(invoices)
    totals = summarize(invoices)

    paid_ratio = _ratio(totals.paid_amount, totals.total_amount)
    overdue_ratio = _ratio(totals.overdue_amount, totals.total_amount)

    return GlobalStats(
        total_amount=totals.total_amount,
        paid_amount=totals.paid_amount,
        pending_amount=totals.pending_amount,
        overdue_amount=totals.overdue_amount,
        paid_ratio=paid_ratio,
        overdue_ratio=overdue_ratio,
        health_score=health_score(paid_ratio, overdue_ratio),
        suppliers=supplier_shares(invoices, totals.total_amount),
        categories=category_shares(invoices, totals.total_amount),
    )


def supplier_stats(invoices: Iterable[Invoice], supplier: str) -> SupplierStats:
    """Figures for one supplier, matched by exact name."""
    own = [invoice for invoice in invoices if invoice.supplier == supplier]
    totals = summarize(own)

    average = totals.total_amount / totals.total_count if totals.total_count else Decimal("0")

    return SupplierStats(
        supplier=supplier,
        total_amount=totals.total_amount,
        count=totals.total_count,
        average_amount=average,
        paid_count=totals.count_for(InvoiceStatus.PAID),
        pending_count=totals.count_for(InvoiceStatus.PENDING),
        overdue_count=totals.count_for(InvoiceStatus.OVERDUE),
        paid_amount=totals.amount_for(InvoiceStatus.PAID),
        pending_amount=totals.amount_for(InvoiceStatus.PENDING),
        overdue_amount=totals.amount_for(InvoiceStatus.OVERDUE),
        top_categories=category_shares(own, totals.total_amount)[:TOP_CATEGORY_LIMIT],
    )
