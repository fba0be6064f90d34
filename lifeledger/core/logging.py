"""
Centralized logging configuration.
Modules obtain their logger with ``logging.getLogger(__name__)``; the
application entry points call ``configure_logging()`` once.
"""
import logging
import sys

from lifeledger.core.config import settings

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_configured = False


def configure_logging(level: str | None = None) -> None:
    """Attach a stdout handler to the package logger once."""
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root = logging.getLogger("lifeledger")
    root.setLevel(level or settings.LOG_LEVEL)
    root.addHandler(handler)
    _configured = True
