"""Download file naming."""

import re
from datetime import date
from typing import Optional


_UNSAFE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def safe_workspace_name(name: str) -> str:
    """Replace everything but ASCII letters/digits with '_' and lower-case."""
    return _UNSAFE.sub("_", name).lower()


def export_filename(workspace_name: str, extension: str, today: Optional[date] = None) -> str:
    """invoices_<workspace>_<YYYY-MM-DD>.<extension>"""
    today = today or date.today()
    return f"invoices_{safe_workspace_name(workspace_name)}_{today.isoformat()}.{extension}"
