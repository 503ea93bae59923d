"""Tests for the filter / sort / aggregate engine."""

from datetime import date
from decimal import Decimal

import pytest

from invoice_studio.models.invoice import (
    InvoiceCategory,
    InvoiceStatus,
    SortOption,
    ViewFilters,
)
from invoice_studio.queries.engine import (
    build_view,
    filter_invoices,
    matches_search,
    sort_invoices,
    status_percentage,
    summarize,
)


@pytest.fixture
def invoices(make_invoice):
    return [
        make_invoice(
            supplier="ACME Supplies", invoice_number="A-1", date=date(2024, 1, 10),
            amount=Decimal("100"), status=InvoiceStatus.PAID,
        ),
        make_invoice(
            supplier="Bolt & Nut", invoice_number="B-7", date=date(2024, 2, 5),
            amount=Decimal("250.50"), category=InvoiceCategory.LABOR,
            description="Scaffolding crew",
        ),
        make_invoice(
            supplier="Cloud Co", invoice_number="C-3", date=date(2024, 3, 1),
            amount=Decimal("40"), category=InvoiceCategory.SOFTWARE,
            status=InvoiceStatus.OVERDUE,
        ),
        make_invoice(
            supplier="acme supplies", invoice_number="A-2", date=date(2024, 2, 5),
            amount=Decimal("75"),
        ),
    ]


class TestFilters:
    """Tests for filter_invoices."""

    def test_no_filters_passes_everything(self, invoices):
        """Test an empty filter state keeps every invoice."""
        assert filter_invoices(invoices, ViewFilters()) == invoices

    def test_search_is_case_insensitive(self, invoices):
        """Test search matches supplier text regardless of case."""
        result = filter_invoices(invoices, ViewFilters(search_term="ACME"))
        assert [inv.invoice_number for inv in result] == ["A-1", "A-2"]

    def test_search_matches_number_and_description(self, invoices):
        """Test search also looks at invoice number and description."""
        assert [i.invoice_number for i in filter_invoices(invoices, ViewFilters(search_term="c-3"))] == ["C-3"]
        assert [i.invoice_number for i in filter_invoices(invoices, ViewFilters(search_term="crew"))] == ["B-7"]

    def test_date_range_is_inclusive(self, invoices):
        """Test both date bounds are inclusive."""
        result = filter_invoices(
            invoices,
            ViewFilters(date_from=date(2024, 2, 5), date_to=date(2024, 3, 1)),
        )
        assert {inv.invoice_number for inv in result} == {"B-7", "C-3", "A-2"}

    def test_filters_combine_with_and(self, invoices):
        """Test category and status must both match."""
        result = filter_invoices(
            invoices,
            ViewFilters(category=InvoiceCategory.MATERIALS, status=InvoiceStatus.PENDING),
        )
        assert [inv.invoice_number for inv in result] == ["A-2"]

    def test_result_is_subset(self, invoices):
        """Test every filtered invoice comes from the input."""
        for filters in [
            ViewFilters(search_term="a"),
            ViewFilters(status=InvoiceStatus.OVERDUE),
            ViewFilters(date_to=date(2024, 1, 31)),
        ]:
            result = filter_invoices(invoices, filters)
            assert all(inv in invoices for inv in result)

    def test_matches_search_on_category(self, make_invoice):
        """Test the category label is searchable too."""
        assert matches_search(make_invoice(category=InvoiceCategory.TRAVEL), "trav")


class TestSorting:
    """Tests for sort_invoices."""

    @pytest.mark.parametrize("option, expected", [
        (SortOption.DATE_DESC, ["C-3", "B-7", "A-2", "A-1"]),
        (SortOption.DATE_ASC, ["A-1", "B-7", "A-2", "C-3"]),
        (SortOption.AMOUNT_DESC, ["B-7", "A-1", "A-2", "C-3"]),
        (SortOption.AMOUNT_ASC, ["C-3", "A-2", "A-1", "B-7"]),
    ])
    def test_every_sort_option(self, invoices, option, expected):
        """Test each ordering offered by the list."""
        assert [inv.invoice_number for inv in sort_invoices(invoices, option)] == expected

    def test_ties_keep_input_order(self, invoices):
        """Test equal dates keep their relative order in both directions."""
        for option in (SortOption.DATE_ASC, SortOption.DATE_DESC):
            same_day = [
                inv.invoice_number
                for inv in sort_invoices(invoices, option)
                if inv.date == date(2024, 2, 5)
            ]
            assert same_day == ["B-7", "A-2"]

    def test_does_not_mutate_input(self, invoices):
        """Test sorting returns a new list."""
        before = list(invoices)
        sort_invoices(invoices, SortOption.AMOUNT_DESC)
        assert invoices == before


class TestAggregation:
    """Tests for summarize and build_view."""

    def test_summarize(self, invoices):
        """Test totals per status."""
        totals = summarize(invoices)
        assert totals.total_count == 4
        assert totals.total_amount == Decimal("465.50")
        assert totals.paid_count == 1
        assert totals.pending_count == 2
        assert totals.overdue_count == 1
        assert totals.pending_amount == Decimal("325.50")

    def test_status_amounts_add_up(self, invoices):
        """Test per-status amounts sum to the total for any filter."""
        for filters in [ViewFilters(), ViewFilters(search_term="acme"), ViewFilters(status=InvoiceStatus.PAID)]:
            totals = build_view(invoices, filters).totals
            assert (
                totals.paid_amount + totals.pending_amount + totals.overdue_amount
                == totals.total_amount
            )

    def test_empty_summary(self):
        """Test an empty list has zero totals."""
        totals = summarize([])
        assert totals.total_count == 0
        assert totals.total_amount == Decimal("0")

    def test_build_view_totals_follow_filters(self, invoices):
        """Test totals are computed over the filtered list only."""
        view = build_view(invoices, ViewFilters(status=InvoiceStatus.PENDING, sort=SortOption.AMOUNT_DESC))
        assert [inv.invoice_number for inv in view.invoices] == ["B-7", "A-2"]
        assert view.totals.total_count == 2

    def test_status_percentage(self):
        """Test percentages are rounded and safe for empty lists."""
        assert status_percentage(1, 3) == 33
        assert status_percentage(2, 3) == 67
        assert status_percentage(1, 8) == 13
        assert status_percentage(0, 0) == 0
