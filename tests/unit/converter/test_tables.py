"""Tests for converter/tables.py: the pipe-table production."""

from markloom.converter.tables import cell_texts, collect_rows, render_table
from markloom.document.nodes import (
    NodeKind,
    bold,
    drag_handle,
    element,
    table,
    table_cell,
    table_from_rows,
    table_row,
)


class TestRenderTable:
    def test_header_separator_body(self):
        node = table_from_rows([["H1", "H2"], ["a", "b"]])
        assert render_table(node) == "| H1 | H2 | \n| --- | --- | \n| a | b | \n"

    def test_header_only(self):
        assert render_table(table_from_rows([["A"]])) == "| A | \n| --- | \n"

    def test_no_rows(self):
        assert render_table(table()) == ""

    def test_first_row_is_header_regardless_of_flag(self):
        node = table(table_row(table_cell("x")), table_row(table_cell("y")))
        assert render_table(node) == "| x | \n| --- | \n| y | \n"

    def test_separator_follows_header_width(self):
        node = table_from_rows([["a", "b", "c"], ["1"]])
        lines = render_table(node).split("\n")
        assert lines[1] == "| --- | --- | --- | "
        assert lines[2] == "| 1 | "

    def test_cells_trimmed_and_flattened(self):
        node = table(table_row(table_cell("  ", bold("B"), " x  ")))
        assert render_table(node).startswith("| B x | \n")

    def test_pipes_verbatim_by_default(self):
        assert render_table(table_from_rows([["a|b"]])).startswith("| a|b | ")

    def test_pipes_escaped_on_request(self):
        out = render_table(table_from_rows([["a|b"]]), escape_pipes=True)
        assert out.startswith("| a\\|b | ")


class TestRowCollection:
    def test_rows_found_through_wrappers(self):
        head = table_row(table_cell("H"))
        body = table_row(table_cell("b"))
        node = table(element("thead", head), element("tbody", body))
        assert collect_rows(node) == [head, body]

    def test_drag_handles_skipped(self):
        row = table_row(table_cell("H"))
        node = table(drag_handle(), row)
        assert collect_rows(node) == [row]

    def test_non_cells_ignored(self):
        row = table_row(drag_handle(), table_cell("a"), element(NodeKind.TEXT))
        assert cell_texts(row) == ["a"]
