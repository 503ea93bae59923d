"""Derived views and statistics over the loaded invoice list."""

from invoice_studio.queries.engine import (
    build_view,
    filter_invoices,
    matches_search,
    sort_invoices,
    status_percentage,
    summarize,
)
from invoice_studio.queries.stats import (
    global_stats,
    health_score,
    supplier_stats,
)

__all__ = [
    "build_view",
    "filter_invoices",
    "matches_search",
    "sort_invoices",
    "status_percentage",
    "summarize",
    "global_stats",
    "health_score",
    "supplier_stats",
]
