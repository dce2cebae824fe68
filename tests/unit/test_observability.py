"""Tests for observability/logger.py"""
import io
import json
import logging
import sys

from markloom.observability.logger import (
    PACKAGE_LOGGER,
    StructuredFormatter,
    get_logger,
    log_fields,
)


class TestStructuredFormatter:
    def _get_record(
        self,
        msg,
        level=logging.INFO,
        exc_info=None,
        extra_fields=None,
    ):
        record = logging.LogRecord(
            name="test",
            level=level,
            pathname="",
            lineno=0,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )
        if extra_fields is not None:
            record.extra_fields = extra_fields
        return record

    def test_basic_format(self):
        result = json.loads(StructuredFormatter().format(self._get_record("tree repaired")))
        assert result["message"] == "tree repaired"
        assert result["level"] == "INFO"
        assert result["logger"] == "test"
        assert "ts" in result

    def test_single_line(self):
        out = StructuredFormatter().format(self._get_record("a\nb"))
        assert "\n" not in out

    def test_extra_fields_merged(self):
        record = self._get_record("msg", extra_fields={"op": "normalize", "wrapped": 2})
        result = json.loads(StructuredFormatter().format(record))
        assert result["op"] == "normalize"
        assert result["wrapped"] == 2

    def test_unserializable_field_stringified(self):
        record = self._get_record("msg", extra_fields={"kind": object()})
        result = json.loads(StructuredFormatter().format(record))
        assert result["kind"].startswith("<object")

    def test_exception_info_included(self):
        try:
            raise ValueError("bad node")
        except ValueError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(self._get_record("err", exc_info=exc_info)))
        assert "ValueError" in result["exception"]


class TestLogFields:
    def test_wraps_fields(self):
        assert log_fields(op="parse", blocks=3) == {"extra_fields": {"op": "parse", "blocks": 3}}

    def test_empty(self):
        assert log_fields() == {"extra_fields": {}}


class TestGetLogger:
    def test_package_logger_owns_single_json_handler(self):
        package = get_logger()
        get_logger()
        assert package.name == PACKAGE_LOGGER
        assert len(package.handlers) == 1
        assert isinstance(package.handlers[0].formatter, StructuredFormatter)
        assert package.propagate is False

    def test_module_logger_propagates_to_package(self):
        logger = get_logger("markloom.unit")
        assert logger.parent is get_logger()
        assert logger.handlers == []
        assert logger.propagate is True

    def test_default_level_is_warning(self):
        assert get_logger().level == logging.WARNING
        assert not get_logger("markloom.unit").isEnabledFor(logging.DEBUG)

    def test_records_reach_stream_as_json(self):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        logger = get_logger("markloom.stream_test")
        logger.addHandler(handler)
        try:
            logger.warning("markdown loaded", extra=log_fields(op="set_markdown", blocks=2))
        finally:
            logger.removeHandler(handler)
        entry = json.loads(stream.getvalue().strip())
        assert entry["logger"] == "markloom.stream_test"
        assert entry["blocks"] == 2
