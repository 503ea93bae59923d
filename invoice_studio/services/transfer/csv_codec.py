"""
CSV Import / Export

Export writes a fixed column order with every value double-quoted
(embedded quotes doubled), comma separated, CRLF after every record.

Import is deliberately naive: lines are split on commas without honouring
quotes, so a value that itself contains a comma will shift the columns
after it. A surrounding quote pair is removed and doubled quotes inside
it become single quotes. Files written by
export_csv import cleanly as long as no value contains a comma.
"""

import csv
import io
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from pydantic import ValidationError

from invoice_studio.logs import get_logger
from invoice_studio.models.invoice import ImportedInvoice, Invoice


logger = get_logger(__name__)


CSV_COLUMNS = [
    "supplier",
    "invoiceNumber",
    "date",
    "amount",
    "category",
    "status",
    "description",
]

REQUIRED_COLUMNS = ["supplier", "invoiceNumber", "date", "amount"]

CSV_MIME_TYPE = "text/csv"

_LINE_BREAK = re.compile(r"\r\n|\n")


class CsvImportError(Exception):
    """The CSV file cannot be imported at all."""
    pass


def _invoice_to_record(invoice: Invoice) -> list[str]:
    return [
        invoice.supplier,
        invoice.invoice_number,
        invoice.date.isoformat(),
        str(invoice.amount),
        invoice.category.value,
        invoice.status.value,
        invoice.description,
    ]


def export_csv(invoices: Iterable[Invoice]) -> str:
    """Serialize invoices with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\r\n")
    writer.writerow(CSV_COLUMNS)
    for invoice in invoices:
        writer.writerow(_invoice_to_record(invoice))
    return buffer.getvalue()


def _clean(value: str) -> str:
    """Trim, drop one surrounding quote pair and un-double embedded quotes."""
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    return value.replace('""', '"').strip()


def _parse_date(value: str) -> Optional[date]:
    # Accept plain ISO dates and ISO timestamps
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _parse_amount(value: str) -> Optional[Decimal]:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def _entry_to_invoice(entry: dict[str, str]) -> Optional[ImportedInvoice]:
    """Build an ImportedInvoice, or None if the row must be rejected."""
    invoice_date = _parse_date(entry.get("date", ""))
    amount = _parse_amount(entry.get("amount", ""))
    if invoice_date is None or amount is None:
        return None

    try:
        return ImportedInvoice(
            supplier=entry.get("supplier", ""),
            invoice_number=entry.get("invoiceNumber", ""),
            date=invoice_date,
            amount=amount,
            description=entry.get("description", ""),
            category=entry.get("category") or None,
        )
    except ValidationError:
        return None


def import_csv(text: str) -> list[ImportedInvoice]:
    """
    Parse CSV text into importable invoices.

    Rows missing supplier, invoice number or a parseable date, or with an
    amount that is not a positive number, are dropped. Missing or unknown
    categories become General. Status columns are ignored.

    Raises:
        CsvImportError: If a required header is missing
    """
    lines = [line for line in _LINE_BREAK.split(text.lstrip("\ufeff")) if line.strip()]
    if len(lines) < 2:
        return []

    headers = [_clean(header) for header in lines[0].split(",")]
    missing = [column for column in REQUIRED_COLUMNS if column not in headers]
    if missing:
        raise CsvImportError(
            "CSV file is missing required headers "
            f"({', '.join(REQUIRED_COLUMNS)}): missing {', '.join(missing)}"
        )

    invoices = []
    rejected = 0
    for line in lines[1:]:
        values = line.split(",")
        entry = {
            header: _clean(values[index]) if index < len(values) else ""
            for index, header in enumerate(headers)
        }
        invoice = _entry_to_invoice(entry)
        if invoice is None:
            rejected += 1
            continue
        invoices.append(invoice)

    if rejected:
        logger.warning("csv_rows_rejected", rejected=rejected, accepted=len(invoices))
    return invoices
