import io
import logging

from statement_ingest.logging_setup import (
    LEVEL_ENV,
    PACKAGE_LOGGER,
    configure_logging,
    get_logger,
    resolve_level,
)


def test_resolve_level_precedence(monkeypatch):
    assert resolve_level() == logging.WARNING
    assert resolve_level(verbosity=1) == logging.INFO
    assert resolve_level(verbosity=5) == logging.DEBUG

    monkeypatch.setenv(LEVEL_ENV, "error")
    assert resolve_level(verbosity=2) == logging.ERROR
    assert resolve_level("DEBUG") == logging.DEBUG

    monkeypatch.setenv(LEVEL_ENV, "LOUD")
    assert resolve_level(verbosity=1) == logging.INFO
    assert resolve_level("15") == 15


def test_configure_logging_writes_event_messages_to_stream():
    stream = io.StringIO()
    configure_logging(verbosity=1, fmt="%(levelname)s %(message)s", stream=stream)
    get_logger("statement_ingest.registry").info("detect:matched bank=%s", "revolut")
    get_logger("statement_ingest.registry").debug("detect:hidden")
    assert stream.getvalue() == "INFO detect:matched bank=revolut\n"


def test_reconfiguring_replaces_the_handler():
    first, second = io.StringIO(), io.StringIO()
    configure_logging(verbosity=2, stream=first)
    logger = configure_logging(verbosity=2, stream=second)
    assert len(logger.handlers) == 1
    get_logger("statement_ingest.sections").debug("sections:drop_pending label=%r", "x")
    assert first.getvalue() == ""
    assert "sections:drop_pending" in second.getvalue()


def test_pdf_extraction_loggers_stay_quiet_at_debug():
    configure_logging(verbosity=2, stream=io.StringIO())
    assert logging.getLogger("pdfminer").level == logging.WARNING
    assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG


def test_unconfigured_package_is_silent():
    get_logger("statement_ingest.api")
    handlers = logging.getLogger(PACKAGE_LOGGER).handlers
    assert handlers
    assert all(isinstance(h, logging.NullHandler) for h in handlers)
