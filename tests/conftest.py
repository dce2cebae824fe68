"""Shared test fixtures for the markloom test suite."""

from __future__ import annotations

from typing import Any

import pytest

from markloom.config import EditorConfig
from markloom.converter.markdown_parser import MarkdownParser
from markloom.converter.serializer import MarkdownSerializer
from markloom.editing.commands import EditCommands
from markloom.editing.normalizer import TreeNormalizer
from markloom.editor import MarkdownEditor


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(self, name: str, ms: float, tags: dict[str, str] | None = None) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def names(self) -> list[str]:
        return [call["name"] for call in self.increments + self.timings + self.gauges]


@pytest.fixture
def config() -> EditorConfig:
    """Default editor configuration."""
    return EditorConfig()


@pytest.fixture
def serializer(config: EditorConfig) -> MarkdownSerializer:
    return MarkdownSerializer(config)


@pytest.fixture
def parser(config: EditorConfig) -> MarkdownParser:
    return MarkdownParser(config)


@pytest.fixture
def normalizer(config: EditorConfig) -> TreeNormalizer:
    return TreeNormalizer(config)


@pytest.fixture
def commands(config: EditorConfig) -> EditCommands:
    return EditCommands(config)


@pytest.fixture
def editor(config: EditorConfig) -> MarkdownEditor:
    """Editor holding the empty-paragraph placeholder."""
    return MarkdownEditor(config)


@pytest.fixture
def metrics() -> RecordingMetricsHook:
    return RecordingMetricsHook()
