"""
Structured Logging

Every remote call failure is logged here before it is raised or shown to
the user. Logs are JSON lines rendered by structlog on top of the standard
library logging machinery, so level filtering follows LOG_LEVEL.
"""

import logging
import sys
from typing import Optional

import structlog


structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Attach a stdout handler to the root logger.

    Safe to call on every Streamlit rerun: basicConfig is a no-op once
    the root logger has handlers.
    """
    if level is None:
        try:
            from invoice_studio.config import get_settings
            level = get_settings().app.log_level
        except Exception:
            level = "INFO"

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to the given module name."""
    return structlog.get_logger(name)
