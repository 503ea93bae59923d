"""
Filter / Sort / Aggregate Engine

Builds the derived view of the invoice list: the subset matching the
current filters, in the chosen order, plus totals.

Everything here is a pure function of (invoices, filters). Nothing is
cached and nothing is mutated; the UI simply calls build_view on every
rerun.
"""

from decimal import Decimal
from typing import Iterable

from invoice_studio.models.invoice import (
    Invoice,
    InvoiceStatus,
    InvoiceTotals,
    InvoiceView,
    SortOption,
    ViewFilters,
)


def matches_search(invoice: Invoice, term: str) -> bool:
    """Case-insensitive substring match on supplier, number, description or category."""
    needle = term.lower()
    return (
        needle in invoice.supplier.lower()
        or needle in invoice.invoice_number.lower()
        or needle in invoice.description.lower()
        or needle in invoice.category.value.lower()
    )


def filter_invoices(invoices: Iterable[Invoice], filters: ViewFilters) -> list[Invoice]:
    """
    Apply every active filter. Filters combine with AND; unset filters
    pass everything through.
    """
    result = list(invoices)

    if filters.date_from:
        result = [inv for inv in result if inv.date >= filters.date_from]
    if filters.date_to:
        result = [inv for inv in result if inv.date <= filters.date_to]

    if filters.category:
        result = [inv for inv in result if inv.category == filters.category]

    if filters.status:
        result = [inv for inv in result if inv.status == filters.status]

    if filters.search_term:
        result = [inv for inv in result if matches_search(inv, filters.search_term)]

    return result


def sort_invoices(invoices: Iterable[Invoice], sort: SortOption) -> list[Invoice]:
    """
    Return a new list in the requested order.

    Python's sort is stable (also with reverse=True), so invoices with
    equal keys keep their input order.
    """
    if sort in (SortOption.DATE_DESC, SortOption.DATE_ASC):
        key = lambda inv: inv.date
    else:
        key = lambda inv: inv.amount

    reverse = sort in (SortOption.DATE_DESC, SortOption.AMOUNT_DESC)
    return sorted(invoices, key=key, reverse=reverse)


def summarize(invoices: Iterable[Invoice]) -> InvoiceTotals:
    """Total amount and per-status counts/amounts."""
    counts = {status: 0 for status in InvoiceStatus}
    amounts = {status: Decimal("0") for status in InvoiceStatus}

    for invoice in invoices:
        counts[invoice.status] += 1
        amounts[invoice.status] += invoice.amount

    return InvoiceTotals(
        total_amount=sum(amounts.values(), Decimal("0")),
        total_count=sum(counts.values()),
        pending_count=counts[InvoiceStatus.PENDING],
        paid_count=counts[InvoiceStatus.PAID],
        overdue_count=counts[InvoiceStatus.OVERDUE],
        pending_amount=amounts[InvoiceStatus.PENDING],
        paid_amount=amounts[InvoiceStatus.PAID],
        overdue_amount=amounts[InvoiceStatus.OVERDUE],
    )


def status_percentage(count: int, total: int) -> int:
    """Share of count in total rounded half up, 0 when total is 0."""
    if total <= 0:
        return 0
    return int(count * 100 / total + 0.5)


def build_view(invoices: Iterable[Invoice], filters: ViewFilters) -> InvoiceView:
    """Filter, sort and summarize in one go."""
    visible = sort_invoices(filter_invoices(invoices, filters), filters.sort)
    return InvoiceView(invoices=visible, totals=summarize(visible))
