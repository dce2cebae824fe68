"""Table serialization: table node to pipe-table text.

A table node holds rows; each row holds cells.  The first row is the
header regardless of its cells' ``header`` flag::

    table
      table_row            -> "| H1 | H2 | \\n"
        table_cell "H1"
        table_cell "H2"
                           -> "| --- | --- | \\n"
      table_row            -> "| a | b | \\n"
        table_cell "a"
        table_cell "b"

Cell content is reduced to its trimmed text content, so inline marks
inside cells are flattened.  ``|`` inside a cell is emitted verbatim unless
*escape_pipes* is set.
"""

from __future__ import annotations

from markloom.document.nodes import Node, NodeKind


def collect_rows(table: Node) -> list[Node]:
    """Table rows in document order, looking through wrapper nodes.

    Rows are searched below any intermediate node (e.g. a foreign
    ``thead``/``tbody`` left by a raw mutation) but not inside rows.
    """
    rows: list[Node] = []
    stack = list(reversed(table.children))
    while stack:
        node = stack.pop()
        if node.kind == NodeKind.TABLE_ROW:
            rows.append(node)
        elif node.kind != NodeKind.DRAG_HANDLE:
            stack.extend(reversed(node.children))
    return rows


def cell_texts(row: Node, *, escape_pipes: bool = False) -> list[str]:
    """Trimmed text of every cell in *row*."""
    texts: list[str] = []
    for cell in row.children:
        if cell.kind != NodeKind.TABLE_CELL:
            continue
        value = cell.text_content().strip()
        if escape_pipes:
            value = value.replace("|", "\\|")
        texts.append(value)
    return texts


def _render_row(cells: list[str]) -> str:
    return "| " + "".join(f"{cell} | " for cell in cells) + "\n"


def render_table(table: Node, *, escape_pipes: bool = False) -> str:
    """Render a table node to pipe-table lines.

    Parameters
    ----------
    table:
        A ``table`` node.
    escape_pipes:
        Escape ``|`` in cell text as ``\\|``.

    Returns
    -------
    str
        Header line, separator line and one line per body row, each ending
        in ``\\n``.  An empty string for a table without rows.
    """
    rows = collect_rows(table)
    if not rows:
        return ""

    header = cell_texts(rows[0], escape_pipes=escape_pipes)
    lines = [_render_row(header), "| " + "--- | " * len(header) + "\n"]
    for row in rows[1:]:
        lines.append(_render_row(cell_texts(row, escape_pipes=escape_pipes)))
    return "".join(lines)
