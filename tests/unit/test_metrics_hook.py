"""Tests for the MetricsHook protocol and the metrics emitted by the core.

Covers:
  - Protocol conformance (isinstance, structural subtyping)
  - NoopMetricsHook behaviour
  - Metric names emitted by the parser, serializer, normalizer and editor
"""
from __future__ import annotations

import pytest

from markloom.config import EditorConfig
from markloom.converter.markdown_parser import MarkdownParser
from markloom.converter.serializer import MarkdownSerializer
from markloom.document.nodes import element, paragraph, root, text
from markloom.editing.normalizer import TreeNormalizer
from markloom.editor import MarkdownEditor
from markloom.observability.metrics import MetricsHook, NoopMetricsHook

# ---------------------------------------------------------------------------
# Protocol conformance
# ---------------------------------------------------------------------------


class TestProtocol:
    def test_noop_satisfies_protocol(self):
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_recording_hook_satisfies_protocol(self, metrics):
        assert isinstance(metrics, MetricsHook)

    def test_object_without_methods_rejected(self):
        assert not isinstance(object(), MetricsHook)

    @pytest.mark.parametrize("call", [
        lambda h: h.increment("markloom.normalize_total"),
        lambda h: h.increment("markloom.commands_total", 2, tags={"command": "paste"}),
        lambda h: h.timing("markloom.parse_duration_ms", 1.5),
        lambda h: h.gauge("markloom.document_blocks", 4.0, tags={"env": "test"}),
    ])
    def test_noop_returns_none(self, call):
        assert call(NoopMetricsHook()) is None

    def test_noop_has_no_instance_dict(self):
        assert not hasattr(NoopMetricsHook(), "__dict__")


# ---------------------------------------------------------------------------
# Emission points
# ---------------------------------------------------------------------------


class TestEmission:
    def test_parse_timing(self, metrics):
        MarkdownParser(EditorConfig(metrics=metrics)).parse("# a")
        assert "markloom.parse_duration_ms" in metrics.names()

    def test_parse_warnings_counted(self, metrics):
        MarkdownParser(EditorConfig(metrics=metrics)).parse("<div>x</div>")
        warned = [c for c in metrics.increments if c["name"] == "markloom.conversion_warnings_total"]
        assert warned[0]["tags"] == {"stage": "parse"}
        assert warned[0]["value"] == 1

    def test_serialize_timing(self, metrics):
        MarkdownSerializer(EditorConfig(metrics=metrics)).serialize(root(paragraph("a")))
        assert "markloom.serialize_duration_ms" in metrics.names()

    def test_serialize_warnings_counted(self, metrics):
        doc = root(element("widget", "x"))
        MarkdownSerializer(EditorConfig(metrics=metrics)).serialize(doc)
        warned = [c for c in metrics.increments if c["name"] == "markloom.conversion_warnings_total"]
        assert warned and warned[0]["tags"] == {"stage": "serialize"}

    def test_normalize_counters(self, metrics):
        doc = root(text("stray"))
        TreeNormalizer(EditorConfig(metrics=metrics)).normalize(doc)
        names = metrics.names()
        assert "markloom.normalize_total" in names
        assert "markloom.normalize_repairs_total" in names
        assert metrics.gauges[-1] == {"name": "markloom.document_blocks", "value": 1, "tags": None}

    def test_valid_tree_reports_no_repairs(self, metrics):
        TreeNormalizer(EditorConfig(metrics=metrics)).normalize(root(paragraph("a")))
        assert "markloom.normalize_repairs_total" not in metrics.names()

    def test_editor_commands(self, metrics):
        editor = MarkdownEditor(EditorConfig(metrics=metrics))
        editor.paste("a")
        tagged = [c["tags"] for c in metrics.increments if c["name"] == "markloom.commands_total"]
        assert tagged == [{"command": "paste"}]
