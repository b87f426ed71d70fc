"""Pytest configuration for test isolation.

Database tests bootstrap a fresh SQLite file per test, and ``ingest_db``
caches one engine per URL. Engines are disposed after every test so file
handles never leak between temporary directories, and ``DATABASE_URL`` is
cleared so nothing falls back to a developer's real database.

CLI invocations configure package logging against the runner's captured
stderr; the handler is dropped afterwards so later tests never write to a
closed stream.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture(autouse=True)
def _isolate_database(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    yield
    from ingest_db.client import dispose_engines

    dispose_engines()


@pytest.fixture(autouse=True)
def _isolate_logging(monkeypatch: pytest.MonkeyPatch):
    from statement_ingest.logging_setup import LEVEL_ENV, PACKAGE_LOGGER

    monkeypatch.delenv(LEVEL_ENV, raising=False)
    yield
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR
