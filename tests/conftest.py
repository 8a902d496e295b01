"""Pytest configuration for test isolation.

The CLI resolves its data file from ``WEALTHFLOW_DATA_PATH`` (or a
``wealthflow.json`` in the working directory) and configures the package
logger for the process. Both are global state that would leak between tests,
so two autouse fixtures reset them:

- every test gets its own data file under ``tmp_path``;
- the ``wealthflow`` logger is returned to its unconfigured, propagating state
  so ``caplog`` sees records even after a CLI test ran.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from wealthflow.logging_setup import reset_logging


@pytest.fixture(autouse=True)
def _isolate_data_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``WEALTHFLOW_DATA_PATH`` at a per-test file and run from ``tmp_path``."""

    data_file = tmp_path / "data" / "wealthflow.json"
    monkeypatch.setenv("WEALTHFLOW_DATA_PATH", os.fspath(data_file))
    monkeypatch.delenv("WEALTHFLOW_LOG_LEVEL", raising=False)
    # Keep any developer .env out of CLI tests.
    monkeypatch.chdir(tmp_path)
    return data_file


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_logging()


@pytest.fixture
def data_file(_isolate_data_path: Path) -> Path:
    return _isolate_data_path
