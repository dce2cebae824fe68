"""Tests for editing/normalizer.py: structural repair and cursor mapping."""

import logging

from markloom.config import EditorConfig
from markloom.document.nodes import (
    NodeKind,
    bold,
    bullet_list,
    drag_handle,
    element,
    empty_paragraph,
    heading,
    line_break,
    list_item,
    ordered_list,
    paragraph,
    root,
    table_cell,
    table_row,
    text,
)
from markloom.document.schema import find_violations
from markloom.editing.normalizer import TreeNormalizer, normalize
from markloom.models import Selection


def kinds(node):
    return [child.kind for child in node.children]


# =========================================================================
# Empty root
# =========================================================================

class TestPlaceholder:
    def test_empty_root_gets_placeholder(self, normalizer):
        doc = root()
        result = normalizer.normalize(doc)
        assert doc.to_dict() == root(empty_paragraph()).to_dict()
        assert result.report.placeholder is True

    def test_single_line_break_replaced(self, normalizer):
        doc = root(line_break())
        normalizer.normalize(doc)
        assert doc.to_dict() == root(empty_paragraph()).to_dict()

    def test_drag_handle_only_counts_as_empty(self, normalizer):
        doc = root(drag_handle())
        normalizer.normalize(doc)
        assert kinds(doc) == [NodeKind.PARAGRAPH]

    def test_cursor_moves_to_placeholder(self, normalizer):
        doc = root()
        result = normalizer.normalize(doc, Selection(doc.id, 0))
        assert result.selection == Selection(doc.children[0].id, 0)

    def test_only_empty_text_becomes_placeholder(self, normalizer):
        doc = root(text(""))
        result = normalizer.normalize(doc)
        assert doc.to_dict() == root(empty_paragraph()).to_dict()
        assert result.report.removed == 1
        assert result.report.placeholder is True

    def test_existing_placeholder_untouched(self, normalizer):
        placeholder = empty_paragraph()
        doc = root(placeholder)
        result = normalizer.normalize(doc)
        assert doc.children[0] is placeholder
        assert not result.report.changed


# =========================================================================
# Root repair
# =========================================================================

class TestRootRepair:
    def test_stray_text_wrapped(self, normalizer):
        doc = root(text("hello"))
        result = normalizer.normalize(doc)
        assert doc.to_dict() == root(paragraph("hello")).to_dict()
        assert result.report.wrapped == 1

    def test_blocks_keep_identity(self, normalizer):
        h = heading(1, "T")
        p = paragraph("x")
        doc = root(h, text("stray"), p)
        normalizer.normalize(doc)
        assert doc.children[0] is h
        assert doc.children[2] is p
        assert doc.children[1].kind == NodeKind.PARAGRAPH

    def test_whitespace_text_is_wrapped(self, normalizer):
        doc = root(paragraph("a"), text("  "))
        normalizer.normalize(doc)
        assert doc.children[1].text_content() == "  "

    def test_empty_text_dropped(self, normalizer):
        doc = root(paragraph("a"), text(""))
        result = normalizer.normalize(doc)
        assert kinds(doc) == [NodeKind.PARAGRAPH]
        assert result.report.removed == 1

    def test_inline_element_relocated(self, normalizer):
        b = bold("x")
        doc = root(b)
        normalizer.normalize(doc)
        assert doc.children[0].kind == NodeKind.PARAGRAPH
        assert doc.children[0].children[0] is b

    def test_foreign_element_relocated(self, normalizer):
        div = element("div", "x")
        doc = root(div)
        normalizer.normalize(doc)
        assert doc.children[0].kind == NodeKind.PARAGRAPH
        assert doc.children[0].children[0] is div

    def test_stray_list_item_gets_list(self, normalizer):
        item = list_item("x")
        doc = root(item)
        normalizer.normalize(doc)
        assert doc.children[0].kind == NodeKind.BULLET_LIST
        assert doc.children[0].children[0] is item

    def test_stray_row_and_cell_get_table(self, normalizer):
        row = table_row(table_cell("a"))
        cell = table_cell("b")
        doc = root(row, cell)
        normalizer.normalize(doc)
        assert kinds(doc) == [NodeKind.TABLE, NodeKind.TABLE]
        assert doc.children[0].children[0] is row
        assert doc.children[1].children[0].children[0] is cell

    def test_drag_handles_stay(self, normalizer):
        handle = drag_handle()
        doc = root(handle, paragraph("x"))
        result = normalizer.normalize(doc)
        assert doc.children[0] is handle
        assert not result.report.changed

    def test_nested_content_not_touched(self, normalizer):
        # Stray text inside a paragraph is valid inline content.
        doc = root(paragraph("a", text("b")))
        before = doc.to_dict()
        normalizer.normalize(doc)
        assert doc.to_dict() == before

    def test_result_has_no_violations(self, normalizer):
        doc = root(text("a"), bold("b"), list_item("c"), bullet_list(text("d"), paragraph("e")))
        normalizer.normalize(doc)
        assert find_violations(doc) == []


# =========================================================================
# List repair
# =========================================================================

class TestListRepair:
    def test_text_in_list_wrapped_in_item(self, normalizer):
        lst = bullet_list(list_item("a"), text("b"))
        doc = root(lst)
        result = normalizer.normalize(doc)
        assert kinds(lst) == [NodeKind.LIST_ITEM, NodeKind.LIST_ITEM]
        assert lst.children[1].text_content() == "b"
        assert result.report.list_items_created == 1

    def test_paragraph_in_list_relocated(self, normalizer):
        p = paragraph("x")
        lst = ordered_list(p)
        normalizer.normalize(root(lst))
        assert lst.children[0].kind == NodeKind.LIST_ITEM
        assert lst.children[0].children[0] is p

    def test_nested_list_repaired(self, normalizer):
        inner = bullet_list(text("deep"))
        doc = root(bullet_list(list_item("a", inner)))
        normalizer.normalize(doc)
        assert kinds(inner) == [NodeKind.LIST_ITEM]

    def test_list_created_during_root_repair_checked(self, normalizer):
        doc = root(list_item("x"))
        normalizer.normalize(doc)
        assert find_violations(doc) == []

    def test_empty_text_in_list_dropped(self, normalizer):
        lst = bullet_list(list_item("a"), text(""))
        normalizer.normalize(root(lst))
        assert kinds(lst) == [NodeKind.LIST_ITEM]


# =========================================================================
# Cursor
# =========================================================================

class TestCursor:
    def test_unchanged_tree_keeps_selection(self, normalizer):
        run = text("abc")
        doc = root(paragraph(run))
        sel = Selection(run.id, 2, 3)
        assert normalizer.normalize(doc, sel).selection is sel

    def test_unchanged_tree_drops_selection_on_missing_node(self, normalizer):
        gone = text("gone")
        doc = root(paragraph("kept"))
        result = normalizer.normalize(doc, Selection(gone.id, 1))
        assert not result.report.changed
        assert result.selection is None

    def test_cursor_follows_copied_text(self, normalizer):
        run = text("hello")
        doc = root(run)
        result = normalizer.normalize(doc, Selection(run.id, 3))
        copy = doc.children[0].children[0]
        assert copy is not run
        assert result.selection == Selection(copy.id, 3)

    def test_copied_text_offset_clamped(self, normalizer):
        run = text("hi")
        doc = root(run)
        result = normalizer.normalize(doc, Selection(run.id, 10))
        assert result.selection.start == 2

    def test_cursor_in_relocated_element_goes_to_start(self, normalizer):
        b = bold("xyz")
        doc = root(b)
        result = normalizer.normalize(doc, Selection(b.id, 1))
        assert result.selection == Selection(b.id, 0)

    def test_cursor_inside_relocated_subtree_kept(self, normalizer):
        inner = text("xyz")
        doc = root(bold(inner), text("stray"))
        result = normalizer.normalize(doc, Selection(inner.id, 2))
        assert result.selection == Selection(inner.id, 2)

    def test_cursor_elsewhere_kept_and_clamped(self, normalizer):
        run = text("abc")
        doc = root(paragraph(run), text("stray"))
        result = normalizer.normalize(doc, Selection(run.id, 1, 99))
        assert result.selection == Selection(run.id, 1, 3)

    def test_unreachable_cursor_becomes_none(self, normalizer, caplog):
        doc = root(text("stray"))
        logger = logging.getLogger("markloom.normalizer")
        logger.addHandler(caplog.handler)
        caplog.set_level(logging.DEBUG, logger="markloom.normalizer")
        try:
            result = normalizer.normalize(doc, Selection(-5, 0))
        finally:
            logger.removeHandler(caplog.handler)
        assert result.selection is None
        assert any("could not be re-resolved" in r.getMessage() for r in caplog.records)

    def test_no_selection_stays_none(self, normalizer):
        assert normalizer.normalize(root(text("x"))).selection is None


# =========================================================================
# Idempotence, metrics
# =========================================================================

class TestIdempotence:
    def test_second_pass_changes_nothing(self, normalizer):
        doc = root(text("a"), bold("b"), list_item("c"), line_break())
        normalizer.normalize(doc)
        before = doc.to_dict()
        result = normalizer.normalize(doc)
        assert doc.to_dict() == before
        assert not result.report.changed


class TestMetrics:
    def test_counters_and_gauge(self, metrics):
        normalizer = TreeNormalizer(EditorConfig(metrics=metrics))
        normalizer.normalize(root(text("a"), paragraph("b")))
        names = [c["name"] for c in metrics.increments]
        assert names == ["markloom.normalize_total", "markloom.normalize_repairs_total"]
        assert metrics.increments[1]["value"] == 1
        assert metrics.gauges == [{"name": "markloom.document_blocks", "value": 2, "tags": None}]

    def test_clean_tree_counts_pass_only(self, metrics):
        normalizer = TreeNormalizer(EditorConfig(metrics=metrics))
        normalizer.normalize(root(paragraph("a")))
        assert [c["name"] for c in metrics.increments] == ["markloom.normalize_total"]


def test_module_level_normalize():
    doc = root(text("x"))
    result = normalize(doc)
    assert doc.children[0].kind == NodeKind.PARAGRAPH
    assert result.report.wrapped == 1
