"""
Logging configuration.

Pipeline errors are logged with ``extra={"error_context": exc.to_dict()}``;
ContextFormatter renders that dictionary after the message so failed
flushes, uploads and block entries show their table, file and cause.
"""

import json
import logging
import sys
from core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ContextFormatter(logging.Formatter):
    """Append a record's error_context, if any, as compact JSON"""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, "error_context", None)
        if context:
            message += f" | context={json.dumps(context, default=str, sort_keys=True)}"
        return message


def setup_logging(level: str = None):
    """Configure application logging"""
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.setLevel(log_level)
    # Replace handlers so repeated calls (app + scripts) do not duplicate lines
    for existing in list(root.handlers):
        if isinstance(existing.formatter, ContextFormatter):
            root.removeHandler(existing)
    root.addHandler(handler)

    # Third-party loggers are chatty at INFO
    for name in ("sqlalchemy.engine", "sqlalchemy.pool", "apscheduler", "httpx", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"Logging configured at {logging.getLevelName(log_level)} level")
