"""Pytest configuration for test isolation.

The ledger resolves its data and backup files against the working directory
(or ``PERSONAL_LEDGER_DATA_DIR``), and the CLI loads a ``.env`` from the
working directory. Tests that shared those locations would read each other's
saved state, so every test gets its own temporary data directory and cwd.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from personal_ledger.classifier import CategoryClassifier
from personal_ledger.ledger import Ledger


@pytest.fixture(autouse=True)
def _isolate_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the data directory at the test's own temporary directory."""

    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PERSONAL_LEDGER_DATA_DIR", os.fspath(data_dir))
    for name in (
        "PERSONAL_LEDGER_DATA_FILE",
        "PERSONAL_LEDGER_BACKUP_FILE",
        "PERSONAL_LEDGER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return data_dir


@pytest.fixture
def data_dir(_isolate_data_dir: Path) -> Path:
    return _isolate_data_dir


@pytest.fixture
def classifier() -> CategoryClassifier:
    c = CategoryClassifier()
    c.seed_defaults()
    return c


@pytest.fixture
def ledger(classifier: CategoryClassifier) -> Ledger:
    return Ledger(classifier)
