"""Pytest configuration for test isolation.

The CLI reads its configuration from ``ALA_*`` environment variables (and a
``.env`` file in the working directory). Tests must not pick up settings from
the developer's shell or checkout, so an autouse fixture clears those
variables and runs each test from its own temporary directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

import audit_log_analytics.logging_setup as logging_setup

_ENV_VARS = (
    "ALA_RULES_PATH",
    "ALA_FETCH_TIMEOUT",
    "ALA_EXPORT_DIR",
    "AUDIT_LOG_ANALYTICS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch: pytest.MonkeyPatch):
    """Let each test configure package logging from scratch."""

    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    yield
    pkg_logger = logging.getLogger("audit_log_analytics")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.propagate = True
