import json
import logging
import sys

from catalog.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record():
    return logging.LogRecord("catalog", logging.INFO, __file__, 10, "hello %s", ("tester",), None)


def test_json_formatter_basic_fields():
    rec = make_record()
    rec.custom = "value"
    rec.request_id = "req-1"

    data = json.loads(JsonFormatter(env="testing", service="svc").format(rec))

    assert data["message"] == "hello tester"
    assert data["level"] == "INFO"
    assert data["logger"] == "catalog"
    assert data["service"] == "svc"
    assert data["env"] == "testing"
    assert data["request_id"] == "req-1"
    assert data["custom"] == "value"
    assert "timestamp" in data
    assert "version" in data


def test_json_formatter_keeps_reserved_attributes_out():
    data = json.loads(JsonFormatter(env="dev", service="svc").format(make_record()))

    for key in ("args", "msg", "levelno", "threadName", "exc_text"):
        assert key not in data


def test_json_formatter_non_serializable_extra():
    rec = make_record()

    class X:
        def __repr__(self):
            return "<X>"

    rec.obj = X()
    data = json.loads(JsonFormatter(env="dev", service="svc").format(rec))

    assert data["obj"] == "<X>"


def test_json_formatter_renders_exceptions():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        rec = logging.LogRecord("catalog", logging.ERROR, __file__, 10, "failed", (), sys.exc_info())

    data = json.loads(JsonFormatter(env="dev", service="svc").format(rec))

    assert "RuntimeError: boom" in data["exc_info"]


def test_json_formatter_service_defaults_to_project_name():
    assert JsonFormatter().service == "product-catalog-api"


def test_color_formatter_line_layout():
    rec = make_record()
    rec.request_id = "req-7"

    line = ColorFormatter().format(rec)

    assert "INFO" in line
    assert "req-7" in line
    assert line.endswith("hello tester")
