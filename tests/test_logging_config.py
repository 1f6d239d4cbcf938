"""
Structured logging: formatter output and handler installation.
"""

import json
import logging

from portal.middleware.logging_config import JSONFormatter, ReadableFormatter, configure_logging


def _record(**extra):
    record = logging.LogRecord(
        name="portal.grid", level=logging.INFO, pathname=__file__, lineno=10,
        msg="grid page form=%s", args=(3,), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_fields():
    line = JSONFormatter().format(_record(user_id=7, form_id=3, duration_ms=12.5))
    entry = json.loads(line)
    assert entry["message"] == "grid page form=3"
    assert entry["level"] == "INFO"
    assert entry["user_id"] == 7
    assert entry["form_id"] == 3
    assert entry["duration_ms"] == 12.5
    assert "circle_id" not in entry


def test_json_formatter_keeps_non_ascii():
    record = _record()
    record.msg = "企画 %s"
    line = JSONFormatter().format(record)
    assert "企画 3" in line


def test_readable_formatter_shows_duration():
    line = ReadableFormatter().format(_record(duration_ms=42.0))
    assert "grid page form=3" in line
    assert "[42ms]" in line


def test_readable_formatter_appends_ids():
    line = ReadableFormatter().format(_record(user_id=7, form_id=3))
    assert line.endswith(" user_id=7 form_id=3")
    assert "circle_id" not in line


def test_configure_logging_installs_single_handler(app):
    configure_logging(app)
    configure_logging(app)
    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, ReadableFormatter)
