"""Document tree to Markdown serializer.

Walks the tree depth-first in document order.  Every node kind wraps the
serialization of its children in a fixed prefix and suffix; text runs
contribute their literal text.  The joined output is trimmed.

Usage::

    from markloom.config import EditorConfig
    from markloom.converter.serializer import MarkdownSerializer

    serializer = MarkdownSerializer(EditorConfig())
    md = serializer.serialize(root)
"""

from __future__ import annotations

import json
import sys
import time
from collections.abc import Callable as _Callable

from markloom.config import EditorConfig
from markloom.document.nodes import Node, NodeKind, kind_name
from markloom.models import ConversionWarning
from markloom.observability import NoopMetricsHook, get_logger, log_fields

from .tables import render_table

log = get_logger("markloom.serializer")

# Inline marks rendered as ``<delimiter>children<delimiter>``.
_MARK_DELIMITERS: dict[NodeKind, str] = {
    NodeKind.BOLD: "**",
    NodeKind.ITALIC: "*",
    NodeKind.STRIKETHROUGH: "~~",
}

# Kinds whose children are concatenated without any wrapper.
_PASSTHROUGH_TYPES: frozenset[NodeKind] = frozenset({
    NodeKind.ROOT,
    NodeKind.TABLE_ROW,
    NodeKind.TABLE_CELL,
})


class MarkdownSerializer:
    """Convert a document tree to Markdown text.

    The serializer collects :class:`ConversionWarning` instances in
    :attr:`warnings` during :meth:`serialize` so callers can see which
    unknown node kinds were passed through.

    Parameters
    ----------
    config:
        Editor configuration; ``ordered_list_numbers`` and
        ``escape_table_pipes`` change the list and table productions.
    """

    def __init__(self, config: EditorConfig) -> None:
        self._config = config
        self._metrics = config.metrics or NoopMetricsHook()
        self.warnings: list[ConversionWarning] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def serialize(self, root: Node) -> str:
        """Serialize the children of *root* and trim the result.

        Parameters
        ----------
        root:
            The document root.  It is not modified.

        Returns
        -------
        str
            Markdown text with ``\\n`` line separators.
        """
        self.warnings = []
        start = time.monotonic()

        if self._config.debug_dump_tree:
            print(
                "[markloom] Document tree:",
                json.dumps(root.to_dict(), indent=2, ensure_ascii=False),
                file=sys.stderr,
            )

        markdown = self._render_children(root).strip()

        self._metrics.timing(
            "markloom.serialize_duration_ms", (time.monotonic() - start) * 1000,
        )
        if self.warnings:
            self._metrics.increment(
                "markloom.conversion_warnings_total", len(self.warnings),
                tags={"stage": "serialize"},
            )
        return markdown

    def render_node(self, node: Node) -> str:
        """Production for a single node, untrimmed."""
        return self._dispatch(node)

    # ------------------------------------------------------------------
    # Internal: dispatch
    # ------------------------------------------------------------------

    def _render_children(self, node: Node) -> str:
        return "".join(self._dispatch(child) for child in node.children)

    def _dispatch(self, node: Node) -> str:
        kind = node.kind

        if kind == NodeKind.TEXT:
            return node.text

        if kind == NodeKind.DRAG_HANDLE:
            return ""

        if kind in _MARK_DELIMITERS:
            delimiter = _MARK_DELIMITERS[kind]
            return f"{delimiter}{self._render_children(node)}{delimiter}"

        if kind in _PASSTHROUGH_TYPES:
            return self._render_children(node)

        renderer = _NODE_RENDERERS.get(kind)
        if renderer is not None:
            return renderer(self, node)

        return self._render_unknown(node)

    # ------------------------------------------------------------------
    # Block renderers
    # ------------------------------------------------------------------

    def _render_heading(self, node: Node) -> str:
        level = min(max(int(node.attrs.get("level", 1)), 1), 6)
        return f"\n{'#' * level} {self._render_children(node)}\n\n"

    def _render_paragraph(self, node: Node) -> str:
        return f"\n{self._render_children(node)}\n\n"

    def _render_list(self, node: Node) -> str:
        numbered = self._config.ordered_list_numbers and node.kind == NodeKind.ORDERED_LIST
        parts: list[str] = []
        number = 0
        for child in node.children:
            if child.kind == NodeKind.LIST_ITEM:
                number += 1
                marker = f"{number}. " if numbered else "- "
                parts.append(self._render_list_item(child, marker))
            else:
                parts.append(self._dispatch(child))
        return "\n" + "".join(parts) + "\n"

    def _render_list_item(self, node: Node, marker: str = "- ") -> str:
        return f"{marker}{self._render_children(node)}\n"

    def _render_blockquote(self, node: Node) -> str:
        return f"\n> {self._render_children(node)}\n\n"

    def _render_code_block(self, node: Node) -> str:
        return f"\n```\n{node.text_content()}\n```\n\n"

    def _render_horizontal_rule(self, node: Node) -> str:
        return "\n---\n\n"

    def _render_table(self, node: Node) -> str:
        body = render_table(node, escape_pipes=self._config.escape_table_pipes)
        return f"\n{body}\n"

    # ------------------------------------------------------------------
    # Inline renderers
    # ------------------------------------------------------------------

    def _render_inline_code(self, node: Node) -> str:
        return f"`{node.text_content()}`"

    def _render_link(self, node: Node) -> str:
        target = node.attrs.get("target", "")
        return f"[{self._render_children(node)}]({target})"

    def _render_image(self, node: Node) -> str:
        alt = node.attrs.get("alt", "")
        target = node.attrs.get("target", "")
        return f"![{alt}]({target})"

    def _render_line_break(self, node: Node) -> str:
        return "\n"

    def _render_checkbox(self, node: Node) -> str:
        return "[x] " if node.attrs.get("checked") else "[ ] "

    # ------------------------------------------------------------------
    # Unknown kinds
    # ------------------------------------------------------------------

    def _render_unknown(self, node: Node) -> str:
        """Keep the content of a node whose kind has no production."""
        name = kind_name(node.kind)
        self.warnings.append(ConversionWarning(
            code="UNKNOWN_NODE",
            message=f"Node kind '{name}' has no Markdown form; its children were kept.",
            context={"node_id": node.id, "kind": name},
        ))
        log.debug(
            "unknown node passed through",
            extra=log_fields(op="serialize", node_id=node.id, kind=name),
        )
        return self._render_children(node)


# ------------------------------------------------------------------
# Node renderer dispatch table
# ------------------------------------------------------------------

_NodeRenderer = _Callable[["MarkdownSerializer", Node], str]

_NODE_RENDERERS: dict[NodeKind, _NodeRenderer] = {
    NodeKind.HEADING: MarkdownSerializer._render_heading,
    NodeKind.PARAGRAPH: MarkdownSerializer._render_paragraph,
    NodeKind.BULLET_LIST: MarkdownSerializer._render_list,
    NodeKind.ORDERED_LIST: MarkdownSerializer._render_list,
    NodeKind.LIST_ITEM: MarkdownSerializer._render_list_item,
    NodeKind.BLOCKQUOTE: MarkdownSerializer._render_blockquote,
    NodeKind.CODE_BLOCK: MarkdownSerializer._render_code_block,
    NodeKind.HORIZONTAL_RULE: MarkdownSerializer._render_horizontal_rule,
    NodeKind.TABLE: MarkdownSerializer._render_table,
    NodeKind.INLINE_CODE: MarkdownSerializer._render_inline_code,
    NodeKind.LINK: MarkdownSerializer._render_link,
    NodeKind.IMAGE: MarkdownSerializer._render_image,
    NodeKind.LINE_BREAK: MarkdownSerializer._render_line_break,
    NodeKind.CHECKBOX: MarkdownSerializer._render_checkbox,
}


def serialize(root: Node, config: EditorConfig | None = None) -> str:
    """Serialize *root* with a one-off :class:`MarkdownSerializer`."""
    return MarkdownSerializer(config or EditorConfig()).serialize(root)
