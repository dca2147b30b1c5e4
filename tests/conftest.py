"""Pytest configuration for test isolation.

The package lives under ``packages/`` and is importable without installation
once that directory is on ``sys.path``; this file arranges that before any
test module is collected.

The CLI reads ``LEDGER_SYNC_PAD`` and ``LEDGER_SYNC_LOG_LEVEL`` from the
environment (and from a ``.env`` in the working directory) and installs a
stream handler on the ``ledger_sync`` logger. To keep tests hermetic we clear
both variables, run each test from its own temporary directory, and remove
any handler a test installed via an autouse fixture.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Workspace `packages/` for `ledger_sync`, the repo root for `tests.helpers`.
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop ledger-sync settings and chdir into the test's temporary directory."""

    monkeypatch.delenv("LEDGER_SYNC_PAD", raising=False)
    monkeypatch.delenv("LEDGER_SYNC_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)
    yield

    # CliRunner closes the streams a handler may have been bound to.
    pkg_logger = logging.getLogger("ledger_sync")
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True
