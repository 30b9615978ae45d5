import logging

from core.exceptions import CheckpointDisabledError, FlushError, UploadError
from core.logging import ContextFormatter, LOG_FORMAT, setup_logging


def make_record(**extra):
    record = logging.LogRecord("ingestion.flush", logging.ERROR, __file__, 1, "Flush failed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_error_context():
    error = FlushError("Failed to flush transactions", context={"table_name": "transactions", "rows": 3})
    formatter = ContextFormatter(LOG_FORMAT)

    line = formatter.format(make_record(error_context=error.to_dict()))

    assert "Flush failed" in line
    assert '"table_name": "transactions"' in line
    assert '"error_type": "FlushError"' in line


def test_formatter_without_context():
    line = ContextFormatter(LOG_FORMAT).format(make_record())

    assert "context=" not in line


def test_setup_logging_is_idempotent():
    setup_logging("DEBUG")
    setup_logging("INFO")

    handlers = [h for h in logging.getLogger().handlers if isinstance(h.formatter, ContextFormatter)]
    assert len(handlers) == 1
    assert logging.getLogger().level == logging.INFO


def test_error_context_marks_retryable_errors():
    assert UploadError("Failed to upload catalog").to_dict()["retryable"] is True
    assert CheckpointDisabledError("No wallet").to_dict()["retryable"] is False
