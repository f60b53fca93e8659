"""Unit tests for structured logging."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest

from workflow_agent.logging import JsonFormatter, configure_logging


@pytest.fixture
def restore_root() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="workflow_agent.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Executing step %s",
        args=("s1",),
        exc_info=None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_puts_context_under_extra() -> None:
    payload = json.loads(JsonFormatter().format(_record(step_id="s1", kind="tool-call")))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "workflow_agent.test"
    assert payload["message"] == "Executing step s1"
    assert payload["extra"] == {"step_id": "s1", "kind": "tool-call"}
    assert "timestamp" in payload


def test_json_formatter_stringifies_unknown_values() -> None:
    payload = json.loads(JsonFormatter().format(_record(tools={"a"})))

    assert payload["extra"]["tools"] == "{'a'}"


def test_json_formatter_omits_empty_extra() -> None:
    assert "extra" not in json.loads(JsonFormatter().format(_record()))


def test_configure_logging_replaces_handlers(restore_root: logging.Logger) -> None:
    configure_logging("debug")
    configure_logging("warning", fmt="text")

    assert len(restore_root.handlers) == 1
    assert not isinstance(restore_root.handlers[0].formatter, JsonFormatter)
    assert restore_root.level == logging.WARNING
    assert logging.getLogger("openai").level == logging.WARNING
