import json
import logging
import sys

from stepwalk.core.logger import (
    SUCCESS_LEVEL,
    CustomFormatter,
    CustomLogger,
    JSONFormatter,
    setup_logger,
)
from stepwalk.core.logging_context import ContextFilter, LoggingContext, current_context


def make_record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("stepwalk.test", level, __file__, 10, msg, None, None, func="fn")
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_custom_formatter_multiline_and_extras():
    out = CustomFormatter().format(make_record("first\nsecond", run_id="r-1"))
    assert "[INFO]" in out
    assert "     Message: first" in out
    assert "\n             second" in out
    assert "run_id: r-1" in out


def test_custom_formatter_location():
    out = CustomFormatter(include_location=True).format(make_record())
    assert f"{__file__}:10" in out


def test_custom_formatter_exception_paths_are_clickable():
    try:
        raise ValueError("boom")
    except ValueError:
        record = make_record("failed")
        record.exc_info = sys.exc_info()
    out = CustomFormatter().format(record)
    assert "ValueError: boom" in out
    assert 'File "' in out and '", line' not in out


def test_json_formatter():
    payload = json.loads(JSONFormatter().format(make_record("hi", run_id="r-2", index=4)))
    assert payload["level"] == "INFO"
    assert payload["message"] == "hi"
    assert payload["location"]["function"] == "fn"
    assert payload["extra"] == {"run_id": "r-2", "index": 4}


def test_logging_context_nests_and_restores():
    assert current_context() == {}
    with LoggingContext(run_id="outer"):
        with LoggingContext(index=2):
            assert current_context() == {"run_id": "outer", "index": 2}
        assert current_context() == {"run_id": "outer"}
    assert current_context() == {}


def test_context_filter_keeps_explicit_extras():
    record = make_record(run_id="explicit")
    with LoggingContext(run_id="ctx", index=1):
        ContextFilter().filter(record)
    assert record.run_id == "explicit"
    assert record.index == 1


def test_setup_logger_json_and_level():
    logger = setup_logger("stepwalk.test.json", use_json=True, level="DEBUG")
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers)


def test_setup_logger_is_idempotent():
    first = setup_logger("stepwalk.test.idempotent", level="INFO")
    second = setup_logger("stepwalk.test.idempotent", level="WARNING")
    assert first is second
    assert len(second.handlers) == 1
    assert len([f for f in second.filters if isinstance(f, ContextFilter)]) == 1
    assert second.level == logging.WARNING


def test_success_level():
    logger = setup_logger("stepwalk.test.success", level="SUCCESS")
    assert isinstance(logger, CustomLogger)
    assert logging.getLevelName(SUCCESS_LEVEL) == "SUCCESS"
    assert logger.isEnabledFor(SUCCESS_LEVEL)
    assert not logger.isEnabledFor(logging.INFO)
