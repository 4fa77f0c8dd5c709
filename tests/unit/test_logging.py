"""
Unit tests for structured logging utilities.
"""

import json
import logging
from io import StringIO

import pytest

from treecheck.utils.logging import (
    JSONFormatter,
    LogContext,
    get_logger,
    log_error_with_context,
    log_rule_failure,
    log_traversal_phase,
    setup_logging,
)


@pytest.fixture
def captured():
    """Attach a JSON handler to a throwaway logger and yield (adapter, stream)."""
    logger = get_logger("treecheck.tests")
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.logger.addHandler(handler)
    logger.logger.setLevel(logging.DEBUG)
    yield logger, stream
    logger.logger.removeHandler(handler)


def test_json_formatter():
    """Test JSON formatter produces valid JSON output."""
    logger = logging.getLogger("test")
    logger.setLevel(logging.INFO)

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    try:
        logger.info("Test message", extra={"file_path": "Foo.java", "nodes": 12})
    finally:
        logger.removeHandler(handler)

    log_data = json.loads(stream.getvalue())

    assert "timestamp" in log_data
    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test"
    assert log_data["message"] == "Test message"
    assert log_data["file_path"] == "Foo.java"
    assert log_data["context"] == {"nodes": 12}
    assert "source" in log_data


def test_json_formatter_with_exception():
    """Test JSON formatter includes error details."""
    formatter = JSONFormatter()
    try:
        raise ValueError("bad tree")
    except ValueError as e:
        record = logging.LogRecord(
            "test", logging.ERROR, __file__, 1, "failed", None, (type(e), e, e.__traceback__)
        )

    log_data = json.loads(formatter.format(record))

    assert log_data["error"]["type"] == "ValueError"
    assert log_data["error"]["message"] == "bad tree"
    assert "Traceback" in log_data["error"]["stack_trace"]


def test_get_logger_with_context():
    """Test getting logger with context."""
    logger = get_logger("test_module", file_path="Foo.java", rule="NestedTernary")

    assert logger.extra["file_path"] == "Foo.java"
    assert logger.extra["rule"] == "NestedTernary"


def test_with_context_does_not_mutate_parent():
    """Test deriving a logger with more context."""
    logger = get_logger("test_module", file_path="Foo.java")

    child = logger.with_context(phase="finish")

    assert child.extra == {"file_path": "Foo.java", "phase": "finish"}
    assert logger.extra == {"file_path": "Foo.java"}


def test_adapter_injects_context(captured):
    """Test that adapter context ends up in every record."""
    logger, stream = captured
    logger = logger.with_context(file_path="Foo.java")

    logger.info("walking")

    log_data = json.loads(stream.getvalue())
    assert log_data["file_path"] == "Foo.java"


def test_log_context_is_temporary(captured):
    """Test that LogContext restores the previous context."""
    logger, stream = captured

    with LogContext(logger, phase="walk"):
        logger.info("inside")
    logger.info("outside")

    inside, outside = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert inside["phase"] == "walk"
    assert "phase" not in outside


def test_log_traversal_phase(captured):
    """Test traversal phase logging."""
    logger, stream = captured

    log_traversal_phase(logger, "Foo.java", "begin_tree", "started", rules=3)

    log_data = json.loads(stream.getvalue())
    assert log_data["file_path"] == "Foo.java"
    assert log_data["phase"] == "begin_tree"
    assert log_data["context"]["status"] == "started"
    assert log_data["context"]["rules"] == 3


def test_log_rule_failure(captured):
    """Test rule failure logging."""
    logger, stream = captured
    try:
        raise RuntimeError("boom")
    except RuntimeError as e:
        error = e

    log_rule_failure(logger, "Foo.java", "NestedTernary", "enter", error)

    log_data = json.loads(stream.getvalue())
    assert log_data["level"] == "ERROR"
    assert log_data["rule"] == "NestedTernary"
    assert log_data["phase"] == "enter"
    assert log_data["context"]["error_type"] == "RuntimeError"
    assert log_data["error"]["message"] == "boom"


def test_log_error_with_context(captured):
    """Test error logging with context."""
    logger, stream = captured

    log_error_with_context(logger, "Tree rejected", ValueError("cycle"), file_path="Foo.java")

    log_data = json.loads(stream.getvalue())
    assert log_data["message"] == "Tree rejected"
    assert log_data["file_path"] == "Foo.java"
    assert log_data["error"]["type"] == "ValueError"


def test_setup_logging():
    """Test that setup_logging installs one JSON handler on the root logger."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("DEBUG")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
