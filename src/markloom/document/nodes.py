"""Document tree nodes.

A document is a tree of :class:`Node` objects hanging off a single root.
Each node has a *kind*, an ordered list of children, a text payload (used
only by text runs) and a small attribute mapping (heading ``level``, link
and image ``target``, image ``alt``, checkbox ``checked``, table cell
``header``).

Known kinds are members of :class:`NodeKind`.  Any other string is a
*foreign* kind: the host may insert such nodes through raw mutations
(a ``span`` or ``div`` pasted into the editing surface) and the core must
cope with them.

Every node receives a stable integer ``id`` at creation.  Selections
refer to nodes by this id, so a node keeps its identity when it is moved
around the tree.

Nodes compare by identity.  Use :meth:`Node.to_dict` for structural
comparisons::

    >>> paragraph("hi").to_dict()
    {'type': 'paragraph', 'children': [{'type': 'text', 'text': 'hi'}]}
"""

from __future__ import annotations

import itertools
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from markloom.errors import MarkloomSchemaError


class NodeKind(str, Enum):
    """Every node kind the editing core understands."""

    ROOT = "root"

    # Blocks
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BULLET_LIST = "bullet_list"
    ORDERED_LIST = "ordered_list"
    LIST_ITEM = "list_item"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK = "code_block"
    TABLE = "table"
    HORIZONTAL_RULE = "horizontal_rule"

    # Table parts
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"

    # Inline
    TEXT = "text"
    BOLD = "bold"
    ITALIC = "italic"
    STRIKETHROUGH = "strikethrough"
    INLINE_CODE = "inline_code"
    LINK = "link"
    IMAGE = "image"
    LINE_BREAK = "line_break"
    CHECKBOX = "checkbox"

    # Decoration added by the drag-and-drop layer
    DRAG_HANDLE = "drag_handle"


_KNOWN_KINDS: dict[str, NodeKind] = {k.value: k for k in NodeKind}

_ids = itertools.count(1)


def coerce_kind(kind: str) -> str:
    """Return the :class:`NodeKind` member for *kind*, or *kind* unchanged."""
    return _KNOWN_KINDS.get(kind, kind)


def kind_name(kind: str) -> str:
    """Plain string name of *kind*, for dicts, logs and warnings."""
    return kind.value if isinstance(kind, NodeKind) else kind


@dataclass(eq=False)
class Node:
    """A node of the document tree."""

    kind: str
    children: list[Node] = field(default_factory=list)
    text: str = ""
    attrs: dict[str, Any] = field(default_factory=dict)
    id: int = field(default_factory=lambda: next(_ids))

    def __post_init__(self) -> None:
        self.kind = coerce_kind(self.kind)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_text(self) -> bool:
        return self.kind == NodeKind.TEXT

    def text_content(self) -> str:
        """Concatenated text of all descendant text runs.

        Drag handles contribute nothing.
        """
        if self.kind == NodeKind.TEXT:
            return self.text
        if self.kind == NodeKind.DRAG_HANDLE:
            return ""
        return "".join(child.text_content() for child in self.children)

    def walk(self) -> Iterator[Node]:
        """Yield this node and its descendants in tree (pre-)order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find(self, node_id: int) -> Node | None:
        for node in self.walk():
            if node.id == node_id:
                return node
        return None

    def find_parent(self, node_id: int) -> Node | None:
        for node in self.walk():
            for child in node.children:
                if child.id == node_id:
                    return node
        return None

    def path_to(self, node_id: int) -> list[Node] | None:
        """Nodes from this node down to *node_id* inclusive, or ``None``."""
        if self.id == node_id:
            return [self]
        for child in self.children:
            sub = child.path_to(node_id)
            if sub is not None:
                return [self, *sub]
        return None

    def index_of(self, child: Node) -> int:
        """Position of *child* among this node's children (by identity)."""
        for i, candidate in enumerate(self.children):
            if candidate is child:
                return i
        raise ValueError(f"node {child.id} is not a child of node {self.id}")

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Structural, id-free dict form of the subtree."""
        result: dict[str, Any] = {"type": kind_name(self.kind)}
        if self.kind == NodeKind.TEXT:
            result["text"] = self.text
        if self.attrs:
            result["attrs"] = dict(self.attrs)
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result

    def __repr__(self) -> str:
        if self.kind == NodeKind.TEXT:
            return f"Node(text#{self.id} {self.text!r})"
        attrs = f" {self.attrs!r}" if self.attrs else ""
        return f"Node({kind_name(self.kind)}#{self.id}{attrs}, {len(self.children)} children)"


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

NodeLike = Node | str


def _nodes(items: tuple[NodeLike, ...]) -> list[Node]:
    return [text(item) if isinstance(item, str) else item for item in items]


def element(kind: str, *children: NodeLike, **attrs: Any) -> Node:
    """Build a node of any kind; plain strings become text runs."""
    return Node(kind=kind, children=_nodes(children), attrs=attrs)


def text(value: str) -> Node:
    return Node(kind=NodeKind.TEXT, text=value)


def root(*children: NodeLike) -> Node:
    return element(NodeKind.ROOT, *children)


def paragraph(*children: NodeLike) -> Node:
    return element(NodeKind.PARAGRAPH, *children)


def heading(level: int, *children: NodeLike) -> Node:
    if not 1 <= level <= 6:
        raise MarkloomSchemaError(
            message=f"heading level must be between 1 and 6, got {level}",
            context={"level": level},
        )
    return element(NodeKind.HEADING, *children, level=level)


def bullet_list(*items: NodeLike) -> Node:
    return element(NodeKind.BULLET_LIST, *items)


def ordered_list(*items: NodeLike) -> Node:
    return element(NodeKind.ORDERED_LIST, *items)


def list_item(*children: NodeLike) -> Node:
    return element(NodeKind.LIST_ITEM, *children)


def blockquote(*children: NodeLike) -> Node:
    return element(NodeKind.BLOCKQUOTE, *children)


def code_block(code: str) -> Node:
    return element(NodeKind.CODE_BLOCK, text(code))


def table(*rows: Node) -> Node:
    return element(NodeKind.TABLE, *rows)


def table_row(*cells: Node) -> Node:
    return element(NodeKind.TABLE_ROW, *cells)


def table_cell(*children: NodeLike, header: bool = False) -> Node:
    return element(NodeKind.TABLE_CELL, *children, header=header)


def table_from_rows(rows: list[list[str]]) -> Node:
    """Build a table from cell strings; the first row is the header."""
    return table(*(
        table_row(*(table_cell(value, header=(i == 0)) for value in row))
        for i, row in enumerate(rows)
    ))


def horizontal_rule() -> Node:
    return element(NodeKind.HORIZONTAL_RULE)


def bold(*children: NodeLike) -> Node:
    return element(NodeKind.BOLD, *children)


def italic(*children: NodeLike) -> Node:
    return element(NodeKind.ITALIC, *children)


def strikethrough(*children: NodeLike) -> Node:
    return element(NodeKind.STRIKETHROUGH, *children)


def inline_code(code: str) -> Node:
    return element(NodeKind.INLINE_CODE, text(code))


def link(target: str, *children: NodeLike) -> Node:
    return element(NodeKind.LINK, *children, target=target)


def image(target: str, alt: str = "") -> Node:
    return element(NodeKind.IMAGE, target=target, alt=alt)


def line_break() -> Node:
    return element(NodeKind.LINE_BREAK)


def checkbox(checked: bool = False) -> Node:
    return element(NodeKind.CHECKBOX, checked=checked)


def drag_handle() -> Node:
    return element(NodeKind.DRAG_HANDLE)


def empty_paragraph() -> Node:
    """The canonical empty block: a paragraph holding one line break."""
    return paragraph(line_break())


def is_empty_paragraph(node: Node) -> bool:
    """True for a paragraph with no content but the placeholder break."""
    if node.kind != NodeKind.PARAGRAPH:
        return False
    content = [c for c in node.children if c.kind != NodeKind.DRAG_HANDLE]
    return not content or (len(content) == 1 and content[0].kind == NodeKind.LINE_BREAK)
