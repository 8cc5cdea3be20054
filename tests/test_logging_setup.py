import io
import logging

import pytest

from business_reports import logging_setup
from business_reports.logging_setup import configure_logging, get_logger


@pytest.fixture
def fresh_logging(monkeypatch: pytest.MonkeyPatch):
    pkg = logging.getLogger("business_reports")
    saved = (list(pkg.handlers), pkg.level, pkg.propagate)
    monkeypatch.setattr(logging_setup, "_handler", None)
    pkg.handlers.clear()
    yield pkg
    pkg.handlers[:] = saved[0]
    pkg.setLevel(saved[1])
    pkg.propagate = saved[2]


def test_configure_logging_single_handler_and_level_updates(fresh_logging, monkeypatch):
    monkeypatch.delenv("BUSINESS_REPORTS_LOG_LEVEL", raising=False)
    buf = io.StringIO()
    configure_logging("info", stream=buf, fmt="%(name)s %(message)s")
    get_logger("business_reports.test").info("hello")
    assert buf.getvalue() == "business_reports.test hello\n"

    configure_logging("ERROR")
    get_logger("business_reports.test").warning("quiet")
    assert "quiet" not in buf.getvalue()
    assert len(fresh_logging.handlers) == 1


def test_level_from_environment(fresh_logging, monkeypatch):
    monkeypatch.setenv("BUSINESS_REPORTS_LOG_LEVEL", "debug")
    configure_logging(stream=io.StringIO())
    assert fresh_logging.level == logging.DEBUG


def test_unknown_level_falls_back_to_warning(fresh_logging):
    configure_logging("chatty", stream=io.StringIO())
    assert fresh_logging.level == logging.WARNING


def test_get_logger_is_silent_before_configuration(fresh_logging):
    get_logger("business_reports.x")
    assert any(isinstance(h, logging.NullHandler) for h in fresh_logging.handlers)
