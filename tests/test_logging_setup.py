import io
import logging

import pytest

from audit_log_analytics.logging_setup import configure_logging, get_logger


def test_unconfigured_package_logger_is_silent():
    get_logger("audit_log_analytics.api")
    handlers = logging.getLogger("audit_log_analytics").handlers
    assert handlers and all(isinstance(h, logging.NullHandler) for h in handlers)


def test_configure_once_with_explicit_level():
    buf = io.StringIO()
    configure_logging("warning", stream=buf)
    configure_logging("DEBUG", stream=io.StringIO())

    log = get_logger("audit_log_analytics.export")
    log.info("hidden")
    log.warning("shown")
    assert "hidden" not in buf.getvalue()
    assert "WARNING audit_log_analytics.export: shown" in buf.getvalue()
    assert len(logging.getLogger("audit_log_analytics").handlers) == 1


@pytest.mark.parametrize(("env", "expected"), [("DEBUG", logging.DEBUG), ("15", 15), ("nope", logging.INFO)])
def test_level_from_environment(monkeypatch: pytest.MonkeyPatch, env, expected):
    monkeypatch.setenv("AUDIT_LOG_ANALYTICS_LOG_LEVEL", env)
    configure_logging(stream=io.StringIO())
    assert logging.getLogger("audit_log_analytics").level == expected
