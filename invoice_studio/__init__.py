"""
InvoiceStudio - Source Package

Browser-based invoice bookkeeping: named workspaces ("databases") of
invoices kept in a hosted spreadsheet, with CSV/PDF export, CSV import and
AI-assisted PDF extraction.

DESIGN PRINCIPLES:
1. The UI only talks to flows; flows only talk to services
2. Derived views are pure functions of (invoices, filters)
3. Remote failures surface loudly; only connecting is retried
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "InvoiceStudio Team"
