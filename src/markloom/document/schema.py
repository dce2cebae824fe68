"""The allowed-children table and the predicates built on it.

This module is the contract consulted by every component that creates or
moves nodes.  It has no state of its own.

Kind groups
-----------

* **Root blocks** may sit directly under the root: paragraph, heading,
  bullet/ordered list, blockquote, code block, table, horizontal rule.
* **Blocks** are the root blocks plus the list item.
* **Inline** kinds live inside paragraphs, headings, cells and marks.
* **Decorative** kinds (the drag handle) are never content; they may be
  attached to the root and to any block or table node.
* **Foreign** kinds (anything outside :class:`NodeKind`) are accepted
  wherever inline content is, and may hold anything.
"""

from __future__ import annotations

from dataclasses import dataclass

from markloom.errors import MarkloomSchemaError

from .nodes import Node, NodeKind, coerce_kind, kind_name

ROOT_BLOCK_KINDS: frozenset[NodeKind] = frozenset({
    NodeKind.PARAGRAPH,
    NodeKind.HEADING,
    NodeKind.BULLET_LIST,
    NodeKind.ORDERED_LIST,
    NodeKind.BLOCKQUOTE,
    NodeKind.CODE_BLOCK,
    NodeKind.TABLE,
    NodeKind.HORIZONTAL_RULE,
})

BLOCK_KINDS: frozenset[NodeKind] = ROOT_BLOCK_KINDS | {NodeKind.LIST_ITEM}

LIST_KINDS: frozenset[NodeKind] = frozenset({
    NodeKind.BULLET_LIST,
    NodeKind.ORDERED_LIST,
})

TABLE_PART_KINDS: frozenset[NodeKind] = frozenset({
    NodeKind.TABLE_ROW,
    NodeKind.TABLE_CELL,
})

INLINE_KINDS: frozenset[NodeKind] = frozenset({
    NodeKind.TEXT,
    NodeKind.BOLD,
    NodeKind.ITALIC,
    NodeKind.STRIKETHROUGH,
    NodeKind.INLINE_CODE,
    NodeKind.LINK,
    NodeKind.IMAGE,
    NodeKind.LINE_BREAK,
    NodeKind.CHECKBOX,
})

MARK_KINDS: frozenset[NodeKind] = frozenset({
    NodeKind.BOLD,
    NodeKind.ITALIC,
    NodeKind.STRIKETHROUGH,
    NodeKind.INLINE_CODE,
    NodeKind.LINK,
})

DECORATIVE_KINDS: frozenset[NodeKind] = frozenset({NodeKind.DRAG_HANDLE})

LEAF_KINDS: frozenset[NodeKind] = frozenset({
    NodeKind.TEXT,
    NodeKind.IMAGE,
    NodeKind.LINE_BREAK,
    NodeKind.CHECKBOX,
    NodeKind.HORIZONTAL_RULE,
    NodeKind.DRAG_HANDLE,
})

_FLOW = ROOT_BLOCK_KINDS | INLINE_KINDS

ALLOWED_CHILDREN: dict[NodeKind, frozenset[NodeKind]] = {
    NodeKind.ROOT: ROOT_BLOCK_KINDS,
    NodeKind.PARAGRAPH: INLINE_KINDS,
    NodeKind.HEADING: INLINE_KINDS,
    NodeKind.BULLET_LIST: frozenset({NodeKind.LIST_ITEM}),
    NodeKind.ORDERED_LIST: frozenset({NodeKind.LIST_ITEM}),
    NodeKind.LIST_ITEM: _FLOW,
    NodeKind.BLOCKQUOTE: _FLOW,
    NodeKind.CODE_BLOCK: frozenset({NodeKind.TEXT}),
    NodeKind.TABLE: frozenset({NodeKind.TABLE_ROW}),
    NodeKind.TABLE_ROW: frozenset({NodeKind.TABLE_CELL}),
    NodeKind.TABLE_CELL: INLINE_KINDS,
    NodeKind.BOLD: INLINE_KINDS,
    NodeKind.ITALIC: INLINE_KINDS,
    NodeKind.STRIKETHROUGH: INLINE_KINDS,
    NodeKind.LINK: INLINE_KINDS,
    NodeKind.INLINE_CODE: frozenset({NodeKind.TEXT}),
}
"""Parent kind -> kinds it may contain.  Leaf kinds are absent (no children)."""


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def is_known_kind(kind: str) -> bool:
    return isinstance(coerce_kind(kind), NodeKind)


def is_block_kind(kind: str) -> bool:
    return kind in BLOCK_KINDS


def is_root_block_kind(kind: str) -> bool:
    return kind in ROOT_BLOCK_KINDS


def is_inline_kind(kind: str) -> bool:
    return kind in INLINE_KINDS


def is_list_kind(kind: str) -> bool:
    return kind in LIST_KINDS


def is_decorative(kind: str) -> bool:
    return kind in DECORATIVE_KINDS


def can_contain(parent_kind: str, child_kind: str) -> bool:
    """Whether a *parent_kind* node may hold a *child_kind* child."""
    parent_kind = coerce_kind(parent_kind)
    child_kind = coerce_kind(child_kind)
    if not is_known_kind(parent_kind):
        return True
    if is_decorative(child_kind):
        return (
            parent_kind == NodeKind.ROOT
            or parent_kind in BLOCK_KINDS
            or parent_kind in TABLE_PART_KINDS
        )
    allowed = ALLOWED_CHILDREN.get(parent_kind, frozenset())
    if not is_known_kind(child_kind):
        # Foreign nodes go wherever inline content goes.
        return NodeKind.TEXT in allowed and parent_kind not in (
            NodeKind.CODE_BLOCK,
            NodeKind.INLINE_CODE,
        )
    return child_kind in allowed


# ---------------------------------------------------------------------------
# Checked mutation
# ---------------------------------------------------------------------------

def attach(parent: Node, child: Node, index: int | None = None) -> Node:
    """Insert *child* into *parent* after checking the allowed-children table.

    Parameters
    ----------
    parent:
        The receiving node.
    child:
        The node to insert.  It must not currently belong to another parent.
    index:
        Position among *parent*'s children; appended when ``None``.

    Returns
    -------
    Node
        *child*, for chaining.

    Raises
    ------
    MarkloomSchemaError
        If *parent* may not hold a *child* of this kind.
    """
    if not can_contain(parent.kind, child.kind):
        raise MarkloomSchemaError(
            message=(
                f"a {kind_name(child.kind)} node cannot be placed "
                f"inside a {kind_name(parent.kind)} node"
            ),
            context={
                "parent_kind": kind_name(parent.kind),
                "child_kind": kind_name(child.kind),
                "parent_id": parent.id,
            },
        )
    if index is None:
        parent.children.append(child)
    else:
        parent.children.insert(index, child)
    return child


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SchemaViolation:
    """A parent/child pair that breaks the allowed-children table."""

    parent_id: int
    parent_kind: str
    child_id: int
    child_kind: str


def find_violations(root: Node) -> list[SchemaViolation]:
    """Every allowed-children violation in the subtree under *root*."""
    violations: list[SchemaViolation] = []
    for node in root.walk():
        for child in node.children:
            if not can_contain(node.kind, child.kind):
                violations.append(SchemaViolation(
                    parent_id=node.id,
                    parent_kind=kind_name(node.kind),
                    child_id=child.id,
                    child_kind=kind_name(child.kind),
                ))
    return violations
