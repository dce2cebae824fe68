"""Direct-manipulation edit commands.

Each command mutates the tree in place and returns the selection the
cursor should take afterwards.  Commands do not normalize: the host runs
:class:`~markloom.editing.normalizer.TreeNormalizer` after every call, so
a command may leave a raw run of text at the root and rely on the next
repair pass to wrap it.

Block insertion
---------------

A new block goes after the block enclosing the cursor, at the nearest
level whose parent accepts it.  A cursor inside the empty placeholder
paragraph replaces that paragraph with the new block.  Without a
selection the block is appended to the root.
"""

from __future__ import annotations

from markloom.config import EditorConfig
from markloom.document.nodes import (
    Node,
    NodeKind,
    blockquote,
    bullet_list,
    checkbox,
    code_block,
    element,
    empty_paragraph,
    heading,
    horizontal_rule,
    image,
    is_empty_paragraph,
    kind_name,
    line_break,
    link,
    list_item,
    paragraph,
    table_from_rows,
    text,
)
from markloom.document.schema import attach, can_contain, is_block_kind, is_decorative, is_list_kind
from markloom.errors import MarkloomCommandError
from markloom.models import Selection
from markloom.observability import get_logger, log_fields

log = get_logger("markloom.commands")

# Format names accepted by toggle_format, mapped to their mark kind.
FORMAT_KINDS: dict[str, NodeKind] = {
    "bold": NodeKind.BOLD,
    "italic": NodeKind.ITALIC,
    "strikethrough": NodeKind.STRIKETHROUGH,
    "code": NodeKind.INLINE_CODE,
}

# Blocks that heading and blockquote commands convert in place.  ``div``
# arrives from raw host mutations.
_CONVERTIBLE_KINDS = frozenset({NodeKind.PARAGRAPH, NodeKind.HEADING, "div"})

PARAGRAPH_POSITIONS: tuple[str, ...] = ("first", "before", "after")


class EditCommands:
    """The editing operations behind the toolbar and the keyboard.

    Parameters
    ----------
    config:
        Editor configuration (tab text and default table/task sizes).
    """

    def __init__(self, config: EditorConfig) -> None:
        self._config = config

    # ------------------------------------------------------------------
    # Typing
    # ------------------------------------------------------------------

    def insert_text(self, root: Node, selection: Selection | None, value: str) -> Selection:
        """Replace the selected range with plain *value*."""
        path, offset, _ = _prepare(root, selection)
        if path is not None and path[-1].kind == NodeKind.TEXT:
            target = path[-1]
            target.text = target.text[:offset] + value + target.text[offset:]
            return Selection(target.id, offset + len(value))

        run = text(value)
        self._place_inline(root, path, offset, run)
        return Selection(run.id, len(value))

    def paste(self, root: Node, selection: Selection | None, value: str) -> Selection:
        """Paste clipboard text as plain text."""
        return self.insert_text(root, selection, value.replace("\r\n", "\n").replace("\r", "\n"))

    def insert_tab(self, root: Node, selection: Selection | None) -> Selection:
        return self.insert_text(root, selection, self._config.tab_text)

    def new_block(self, root: Node, selection: Selection | None) -> Selection | None:
        """Handle Enter.

        Inside an empty list item the item is dissolved and the cursor
        leaves the list into a new empty paragraph placed after it.  Inside
        a non-empty item the item is split at the cursor.  Anywhere else a
        line break is inserted (a newline inside code blocks).
        """
        path = root.path_to(selection.node_id) if selection is not None else None
        if path is None:
            return selection

        item_index = _enclosing(path, {NodeKind.LIST_ITEM})
        if item_index is not None:
            item = path[item_index]
            if not item.text_content().strip():
                return self._exit_list(path, item_index)
            offset, _ = _delete_selected(path, selection)
            return self._split_list_item(path[item_index:], path[item_index - 1], offset)

        offset, _ = _delete_selected(path, selection)
        return self._insert_line_break(root, path, offset)

    # ------------------------------------------------------------------
    # Inline formatting
    # ------------------------------------------------------------------

    def toggle_format(self, root: Node, selection: Selection | None, fmt: str) -> Selection | None:
        """Wrap the selected characters in a mark, or remove the mark.

        When the selection already sits inside a mark of this format, the
        mark is replaced by a plain text run of its text.  A collapsed
        selection is left alone.

        Raises
        ------
        MarkloomCommandError
            If *fmt* is not one of :data:`FORMAT_KINDS`.
        """
        kind = FORMAT_KINDS.get(fmt)
        if kind is None:
            raise MarkloomCommandError(
                message=f"unknown format '{fmt}'",
                context={"command": "toggle_format", "format": fmt},
            )
        path = root.path_to(selection.node_id) if selection is not None else None
        if path is None or selection.collapsed:
            return selection

        for i in range(len(path) - 1, 0, -1):
            if path[i].kind == kind:
                mark, parent = path[i], path[i - 1]
                plain = text(mark.text_content())
                parent.children[parent.index_of(mark)] = plain
                return Selection(plain.id, 0, len(plain.text))

        target = path[-1]
        if target.kind == NodeKind.TEXT:
            return self._wrap_text(path, selection, kind)
        return self._wrap_children(target, selection, kind)

    def _wrap_text(self, path: list[Node], selection: Selection, kind: NodeKind) -> Selection:
        target, parent = path[-1], path[-2]
        if parent.kind != NodeKind.ROOT and not can_contain(parent.kind, kind):
            _log_noop("toggle_format", parent)
            return selection
        lo, hi = (_clamp(target, offset) for offset in selection.bounds)
        if lo == hi:
            return selection

        left, middle, right = target.text[:lo], target.text[lo:hi], target.text[hi:]
        wrapper = element(kind, middle)
        target.text = left
        pieces = ([target] if left else []) + [wrapper] + ([text(right)] if right else [])
        index = parent.index_of(target)
        parent.children[index:index + 1] = pieces
        return Selection(wrapper.id, 0, 1)

    def _wrap_children(self, target: Node, selection: Selection, kind: NodeKind) -> Selection:
        lo, hi = (_clamp(target, offset) for offset in selection.bounds)
        selected = target.children[lo:hi]
        if (
            not selected
            or not can_contain(target.kind, kind)
            or not all(can_contain(kind, child.kind) for child in selected)
        ):
            _log_noop("toggle_format", target)
            return selection
        wrapper = Node(kind=kind, children=selected)
        target.children[lo:hi] = [wrapper]
        return Selection(wrapper.id, 0, len(selected))

    # ------------------------------------------------------------------
    # Block commands
    # ------------------------------------------------------------------

    def insert_heading(self, root: Node, selection: Selection | None, level: int) -> Selection:
        """Turn the enclosing paragraph into a heading, or insert one."""
        if not 1 <= level <= 6:
            raise MarkloomCommandError(
                message=f"heading level must be between 1 and 6, got {level}",
                context={"command": "insert_heading", "level": level},
            )
        placeholder = f"Heading {level}"

        path = root.path_to(selection.node_id) if selection is not None else None
        index = _convertible(path, NodeKind.HEADING) if path is not None else None
        if index is not None:
            block, parent = path[index], path[index - 1]
            content = [] if _is_blank_block(block) else list(block.children)
            if all(can_contain(NodeKind.HEADING, child.kind) for child in content):
                new = heading(level, *(content or [placeholder]))
                _replace(parent, block, new)
                return end_of(new)

        path, offset, _ = _prepare(root, selection)
        new = heading(level, placeholder)
        self._insert_block(root, path, new, offset)
        return end_of(new)

    def insert_list(self, root: Node, selection: Selection | None, ordered: bool = False) -> Selection:
        path, offset, _ = _prepare(root, selection)
        kind = NodeKind.ORDERED_LIST if ordered else NodeKind.BULLET_LIST
        new = element(kind, list_item("List item"))
        self._insert_block(root, path, new, offset)
        return end_of(new)

    def insert_blockquote(self, root: Node, selection: Selection | None) -> Selection:
        """Wrap the enclosing paragraph in a blockquote, or insert one."""
        path = root.path_to(selection.node_id) if selection is not None else None
        index = _convertible(path, NodeKind.BLOCKQUOTE) if path is not None else None
        if index is not None:
            block, parent = path[index], path[index - 1]
            _replace(parent, block, blockquote(block))
            return end_of(block)

        path, offset, _ = _prepare(root, selection)
        quote_text = paragraph("Quote")
        self._insert_block(root, path, blockquote(quote_text), offset)
        return end_of(quote_text)

    def insert_code_block(self, root: Node, selection: Selection | None) -> Selection:
        """Move the selected text (or a placeholder) into a new code block."""
        path, offset, removed = _prepare(root, selection)
        new = code_block(removed or "Code block")
        self._insert_block(root, path, new, offset)
        _insert_after(root, new, empty_paragraph())
        return end_of(new)

    def insert_horizontal_rule(self, root: Node, selection: Selection | None) -> Selection:
        path, offset, _ = _prepare(root, selection)
        rule = horizontal_rule()
        self._insert_block(root, path, rule, offset)
        follow = _insert_after(root, rule, empty_paragraph())
        return Selection(follow.id, 0)

    def insert_table(
        self,
        root: Node,
        selection: Selection | None,
        rows: int | None = None,
        cols: int | None = None,
    ) -> Selection:
        """Insert a *rows* x *cols* table (header row included).

        Header cells read ``Header i`` and body cells ``Cell r,c``.  The
        cursor lands at the end of the first header cell.
        """
        rows = self._config.default_table_rows if rows is None else rows
        cols = self._config.default_table_cols if cols is None else cols
        if rows < 1 or cols < 1:
            raise MarkloomCommandError(
                message=f"a table needs at least one row and one column, got {rows}x{cols}",
                context={"command": "insert_table", "rows": rows, "cols": cols},
            )

        cells = [[f"Header {c + 1}" for c in range(cols)]]
        cells += [[f"Cell {r + 1},{c + 1}" for c in range(cols)] for r in range(rows - 1)]
        new = table_from_rows(cells)

        path, offset, _ = _prepare(root, selection)
        self._insert_block(root, path, new, offset)
        _insert_after(root, new, empty_paragraph())
        return end_of(new.children[0].children[0])

    def insert_task_list(
        self, root: Node, selection: Selection | None, count: int | None = None,
    ) -> Selection:
        count = self._config.default_task_count if count is None else count
        if count < 1:
            raise MarkloomCommandError(
                message=f"a task list needs at least one item, got {count}",
                context={"command": "insert_task_list", "count": count},
            )

        new = bullet_list(*(list_item(checkbox(), f"Task {i + 1}") for i in range(count)))
        path, offset, _ = _prepare(root, selection)
        self._insert_block(root, path, new, offset)
        follow = _insert_after(root, new, empty_paragraph())
        return Selection(follow.id, 0)

    def create_paragraph_at(
        self, root: Node, reference_id: int | None = None, position: str = "after",
    ) -> Selection:
        """Insert an empty paragraph at the top level.

        Used when the user clicks an empty area of the editing surface.
        *position* is ``"first"``, or ``"before"`` / ``"after"`` the
        top-level block holding *reference_id*.  Without a reference the
        paragraph goes first.
        """
        if position not in PARAGRAPH_POSITIONS:
            raise MarkloomCommandError(
                message=f"unknown paragraph position '{position}'",
                context={"command": "create_paragraph_at", "position": position},
            )

        new = empty_paragraph()
        if position == "first" or reference_id is None:
            attach(root, new, 0)
            return Selection(new.id, 0)

        path = root.path_to(reference_id)
        if path is None or len(path) < 2:
            raise MarkloomCommandError(
                message=f"node {reference_id} is not inside the document",
                context={"command": "create_paragraph_at", "node_id": reference_id},
            )
        index = root.index_of(path[1])
        attach(root, new, index + 1 if position == "after" else index)
        return Selection(new.id, 0)

    # ------------------------------------------------------------------
    # Inline objects
    # ------------------------------------------------------------------

    def insert_link(
        self, root: Node, selection: Selection | None, url: str, label: str | None = None,
    ) -> Selection | None:
        """Replace the selection by a link to *url*.

        The link text is *label*, else the selected text, else ``Link``.
        An empty *url* does nothing.
        """
        if not url:
            return selection
        path, offset, removed = _prepare(root, selection)
        return self._place_inline(root, path, offset, link(url, label or removed or "Link"))

    def insert_image(
        self, root: Node, selection: Selection | None, url: str, alt: str | None = None,
    ) -> Selection | None:
        if not url:
            return selection
        path, offset, _ = _prepare(root, selection)
        return self._place_inline(root, path, offset, image(url, alt or "Image"))

    def toggle_checkbox(self, root: Node, node_id: int) -> bool:
        """Flip a task checkbox and return its new state."""
        node = root.find(node_id)
        if node is None or node.kind != NodeKind.CHECKBOX:
            raise MarkloomCommandError(
                message=f"node {node_id} is not a checkbox in this document",
                context={"command": "toggle_checkbox", "node_id": node_id},
            )
        node.attrs["checked"] = not node.attrs.get("checked", False)
        return node.attrs["checked"]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _insert_block(
        self, root: Node, path: list[Node] | None, block: Node, offset: int = 0,
    ) -> None:
        if path is None:
            attach(root, block)
            return
        if len(path) == 1:
            attach(root, block, min(max(offset, 0), len(root.children)))
            return

        for i in range(len(path) - 1, 0, -1):
            node, parent = path[i], path[i - 1]
            if is_empty_paragraph(node) and can_contain(parent.kind, block.kind):
                parent.children[parent.index_of(node)] = block
                return

        for i in range(len(path) - 1, 0, -1):
            node, parent = path[i], path[i - 1]
            if (is_block_kind(node.kind) or parent.kind == NodeKind.ROOT) and can_contain(
                parent.kind, block.kind,
            ):
                attach(parent, block, parent.index_of(node) + 1)
                return

        attach(root, block)

    def _place_inline(
        self, root: Node, path: list[Node] | None, offset: int, node: Node,
    ) -> Selection:
        """Put an inline *node* at the cursor; return the cursor after it."""
        if path is None:
            root.children.append(node)
            return Selection(root.id, len(root.children))

        target = path[-1]
        if target.kind != NodeKind.TEXT and is_empty_paragraph(target):
            target.children[:] = [c for c in target.children if is_decorative(c.kind)] + [node]
            return Selection(target.id, len(target.children))

        container = path[-2] if target.kind == NodeKind.TEXT else target
        if container.kind != NodeKind.ROOT and not can_contain(container.kind, node.kind):
            holder = paragraph(node)
            self._insert_block(root, path, holder, offset)
            return Selection(holder.id, 1)

        parent, index = _insertion_point(path, offset)
        parent.children.insert(index, node)
        return Selection(parent.id, index + 1)

    def _insert_line_break(self, root: Node, path: list[Node], offset: int) -> Selection:
        target = path[-1]
        container = path[-2] if target.kind == NodeKind.TEXT else target

        if container.kind == NodeKind.CODE_BLOCK and target.kind == NodeKind.TEXT:
            target.text = target.text[:offset] + "\n" + target.text[offset:]
            return Selection(target.id, offset + 1)

        if not can_contain(container.kind, NodeKind.LINE_BREAK):
            new = empty_paragraph()
            self._insert_block(root, path, new, offset)
            return Selection(new.id, 0)

        parent, index = _insertion_point(path, offset)
        parent.children.insert(index, line_break())
        return Selection(parent.id, index + 1)

    def _exit_list(self, path: list[Node], item_index: int) -> Selection:
        item, parent = path[item_index], path[item_index - 1]
        new = empty_paragraph()

        if not is_list_kind(parent.kind) or item_index < 2:
            parent.children[parent.index_of(item)] = new
            return Selection(new.id, 0)

        container = path[item_index - 2]
        del parent.children[parent.index_of(item)]
        index = container.index_of(parent)
        keep_list = any(child.kind == NodeKind.LIST_ITEM for child in parent.children)
        if keep_list:
            container.children.insert(index + 1, new)
        else:
            container.children[index] = new
        log.debug(
            "left list from empty item",
            extra=log_fields(op="new_block", list_id=parent.id, list_removed=not keep_list),
        )
        return Selection(new.id, 0)

    def _split_list_item(self, chain: list[Node], list_node: Node, offset: int) -> Selection:
        """Split the item ``chain[0]`` at the cursor in ``chain[-1]``."""
        item, target = chain[0], chain[-1]
        if target.kind == NodeKind.TEXT:
            right = text(target.text[offset:])
            target.text = target.text[:offset]
        else:
            right = Node(kind=target.kind, children=target.children[offset:], attrs=dict(target.attrs))
            del target.children[offset:]
        cursor_node = right

        for depth in range(len(chain) - 2, -1, -1):
            node, child = chain[depth], chain[depth + 1]
            index = node.index_of(child)
            right = Node(
                kind=node.kind,
                children=[right, *node.children[index + 1:]],
                attrs=dict(node.attrs),
            )
            del node.children[index + 1:]

        new_item = right
        cursor_offset = 0
        if _starts_with_checkbox(item) and not _starts_with_checkbox(new_item):
            new_item.children.insert(0, checkbox())
            if cursor_node is new_item:
                cursor_offset = 1

        list_node.children.insert(list_node.index_of(item) + 1, new_item)
        return Selection(cursor_node.id, cursor_offset)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _clamp(node: Node, offset: int) -> int:
    limit = len(node.text) if node.kind == NodeKind.TEXT else len(node.children)
    return min(max(offset, 0), limit)


def _delete_selected(path: list[Node], selection: Selection) -> tuple[int, str]:
    """Remove the selected range; return the cursor offset and the removed text."""
    target = path[-1]
    lo, hi = (_clamp(target, offset) for offset in selection.bounds)
    if target.kind == NodeKind.TEXT:
        removed = target.text[lo:hi]
        target.text = target.text[:lo] + target.text[hi:]
        return lo, removed
    removed = "".join(child.text_content() for child in target.children[lo:hi])
    del target.children[lo:hi]
    return lo, removed


def _prepare(root: Node, selection: Selection | None) -> tuple[list[Node] | None, int, str]:
    """Resolve *selection* and delete its range.

    Returns ``(path, offset, removed_text)``; ``path`` is ``None`` when
    there is no selection or its node is gone.
    """
    path = root.path_to(selection.node_id) if selection is not None else None
    if path is None:
        return None, 0, ""
    offset, removed = _delete_selected(path, selection)
    return path, offset, removed


def _insertion_point(path: list[Node], offset: int) -> tuple[Node, int]:
    """Parent and child index for a node inserted at the cursor.

    A text run is split when the cursor falls inside it.
    """
    target = path[-1]
    if target.kind != NodeKind.TEXT:
        return target, _clamp(target, offset)

    parent = path[-2]
    index = parent.index_of(target)
    if offset <= 0:
        return parent, index
    if offset >= len(target.text):
        return parent, index + 1
    parent.children.insert(index + 1, text(target.text[offset:]))
    target.text = target.text[:offset]
    return parent, index + 1


def _insert_after(root: Node, anchor: Node, new: Node) -> Node:
    parent = root.find_parent(anchor.id)
    return attach(parent, new, parent.index_of(anchor) + 1)


def _enclosing(path: list[Node], kinds) -> int | None:
    """Index in *path* of the deepest non-root node whose kind is in *kinds*."""
    for i in range(len(path) - 1, 0, -1):
        if path[i].kind in kinds:
            return i
    return None


def _convertible(path: list[Node], kind: NodeKind) -> int | None:
    """Index in *path* of the deepest convertible block whose parent accepts *kind*."""
    for i in range(len(path) - 1, 0, -1):
        if path[i].kind in _CONVERTIBLE_KINDS and can_contain(path[i - 1].kind, kind):
            return i
    return None


def _replace(parent: Node, old: Node, new: Node) -> None:
    index = parent.index_of(old)
    attach(parent, new, index)
    del parent.children[index + 1]


def end_of(node: Node) -> Selection:
    """Cursor at the end of the last text run under *node*."""
    last = None
    for candidate in node.walk():
        if candidate.kind == NodeKind.TEXT:
            last = candidate
    if last is not None:
        return Selection(last.id, len(last.text))
    return Selection(node.id, len(node.children))


def _is_blank_block(node: Node) -> bool:
    return is_empty_paragraph(node) or not [
        child for child in node.children if not is_decorative(child.kind)
    ]


def _starts_with_checkbox(item: Node) -> bool:
    return bool(item.children) and item.children[0].kind == NodeKind.CHECKBOX


def _log_noop(command: str, node: Node) -> None:
    log.debug(
        "command has no effect here",
        extra=log_fields(op=command, node_id=node.id, kind=kind_name(node.kind)),
    )
