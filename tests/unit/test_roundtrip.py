"""Round-trip tests: document tree -> Markdown -> document tree.

The serializer targets a small dialect, so round trips are checked on
block-kind sequences and inline marks rather than on exact trees.
"""

from __future__ import annotations

import pytest

from markloom.document.nodes import (
    Node,
    NodeKind,
    bold,
    bullet_list,
    heading,
    italic,
    list_item,
    paragraph,
    root,
)
from markloom.document.schema import is_decorative


def _block_kinds(doc: Node) -> list[NodeKind]:
    return [child.kind for child in doc.children if not is_decorative(child.kind)]


def _mark_kinds(doc: Node) -> list[NodeKind]:
    return [n.kind for n in doc.walk() if n.kind in (NodeKind.BOLD, NodeKind.ITALIC)]


def _roundtrip(doc, serializer, parser, normalizer):
    markdown = serializer.serialize(doc)
    parsed = parser.parse(markdown).root
    normalizer.normalize(parsed)
    return parsed


class TestTreeRoundTrip:
    @pytest.mark.parametrize("doc", [
        root(heading(1, "Title"), paragraph("Body")),
        root(heading(2, "A"), heading(3, "B"), paragraph("c")),
        root(paragraph("one"), paragraph("two"), paragraph("three")),
        root(paragraph("a ", bold("b"), " ", italic("c"))),
        root(heading(1, "L"), bullet_list(list_item("x"), list_item("y")), paragraph("after")),
    ], ids=["heading-paragraph", "headings", "paragraphs", "marks", "list"])
    def test_block_kinds_and_marks_survive(self, doc, serializer, parser, normalizer):
        parsed = _roundtrip(doc, serializer, parser, normalizer)
        assert _block_kinds(parsed) == _block_kinds(doc)
        assert _mark_kinds(parsed) == _mark_kinds(doc)
        assert parsed.text_content() == doc.text_content()

    def test_heading_levels_survive(self, serializer, parser, normalizer):
        doc = root(*(heading(level, f"h{level}") for level in range(1, 7)))
        parsed = _roundtrip(doc, serializer, parser, normalizer)
        assert [h.attrs["level"] for h in parsed.children] == [1, 2, 3, 4, 5, 6]

    def test_list_items_survive(self, serializer, parser, normalizer):
        doc = root(bullet_list(list_item("x"), list_item("y"), list_item("z")))
        parsed = _roundtrip(doc, serializer, parser, normalizer)
        assert [i.text_content() for i in parsed.children[0].children] == ["x", "y", "z"]


class TestMarkdownRoundTrip:
    @pytest.mark.parametrize("markdown", [
        "# Title",
        "**bold** and *italic*",
        "- a\n- b",
        "---",
        "[go](https://e.com)",
        "![pic](a.png)",
        "`code`",
        "~~gone~~",
    ])
    def test_stable_after_one_pass(self, markdown, serializer, parser, normalizer):
        # parse -> serialize reaches a fixed point after one pass
        first = serializer.serialize(_roundtrip(parser.parse(markdown).root, serializer, parser, normalizer))
        second = serializer.serialize(_roundtrip(parser.parse(first).root, serializer, parser, normalizer))
        assert first == second

    def test_table_fixed_point(self, serializer, parser, normalizer):
        markdown = "| H1 | H2 |\n| --- | --- |\n| a | b |"
        doc = parser.parse(markdown).root
        normalizer.normalize(doc)
        out = serializer.serialize(doc)
        assert out == "| H1 | H2 | \n| --- | --- | \n| a | b |"
        again = parser.parse(out).root
        normalizer.normalize(again)
        assert serializer.serialize(again) == out
