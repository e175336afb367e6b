"""
Structured logging tests.
"""

import logging

import pytest

from embedindex.util.logging import StructuredLogger, logger


def test_log_operation_format(caplog):
    """Operations are logged as 'Operation: x, Status: y, Details: {...}'."""
    test_logger = StructuredLogger("embedindex.test")
    with caplog.at_level(logging.INFO, logger="embedindex.test"):
        test_logger.log_operation("records.add", "success", {"count": 1})

    assert "Operation: records.add, Status: success, Details: {'count': 1}" in caplog.text


def test_record_operation_truncates_embeddings(caplog):
    """Filters with embeddings are summarised instead of dumped."""
    test_logger = StructuredLogger("embedindex.test")
    with caplog.at_level(logging.INFO, logger="embedindex.test"):
        test_logger.log_record_operation("remove", {"embedding": [0.1] * 100}, status="not_found")

    assert "<100 dims>" in caplog.text
    assert caplog.records[-1].levelno == logging.WARNING


def test_storage_failure_logged_as_error(caplog):
    """Failed storage operations log at ERROR."""
    test_logger = StructuredLogger("embedindex.test")
    with caplog.at_level(logging.INFO, logger="embedindex.test"):
        test_logger.log_storage_operation("preload", "db", "items", status="failed")

    assert caplog.records[-1].levelno == logging.ERROR
    assert "storage.preload" in caplog.text


def test_search_logs_duration(caplog):
    """Search logs carry the elapsed time in milliseconds."""
    with caplog.at_level(logging.INFO, logger="embedindex"):
        logger.log_search("local", 1.0, 1.5, candidates=10, results=3)

    assert "'duration_ms': 500.0" in caplog.text


def test_debug_flag_enables_debug_messages(monkeypatch, caplog):
    """DEBUG=true lowers the level so debug messages are emitted."""
    monkeypatch.setenv("DEBUG", "true")
    debug_logger = StructuredLogger("embedindex.debug_on")
    assert debug_logger.logger.level == logging.DEBUG

    debug_logger.debug("zero-norm embedding skipped")
    assert "zero-norm embedding skipped" in caplog.text


def test_debug_messages_hidden_by_default(monkeypatch, caplog):
    """Without DEBUG the logger stays at INFO."""
    monkeypatch.delenv("DEBUG", raising=False)
    quiet_logger = StructuredLogger("embedindex.debug_off")
    assert quiet_logger.logger.level == logging.INFO

    quiet_logger.debug("not shown")
    assert "not shown" not in caplog.text


def test_single_handler():
    """Creating the logger twice does not duplicate handlers."""
    StructuredLogger("embedindex.handlers")
    second = StructuredLogger("embedindex.handlers")
    assert len(second.logger.handlers) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
