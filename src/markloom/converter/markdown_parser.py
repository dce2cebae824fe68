"""Load Markdown text into a document tree.

This module wraps mistune v3's AST renderer and maps its token stream
onto :mod:`markloom.document` nodes.  The tree it returns is *not*
normalized; hosts run the normalizer before handing it to the editing
surface.

Token mapping
-------------

Blocks: heading, paragraph, list (bullet or ordered), list_item,
task_list_item, block_quote, block_code, thematic_break, table,
block_html.

Inline: text, strong, emphasis, strikethrough, codespan, link, image,
linebreak, softbreak, inline_html.

Tight list items carry ``block_text`` children; their inline content is
spliced directly into the list item.  Unknown tokens that carry children
are unwrapped; unknown leaves are dropped with a warning.
"""

from __future__ import annotations

import json
import sys
import time
from collections.abc import Callable as _Callable

import mistune

from markloom.config import EditorConfig
from markloom.document.nodes import (
    Node,
    NodeKind,
    checkbox,
    element,
    heading,
    horizontal_rule,
    image,
    line_break,
    root,
    text,
)
from markloom.models import ConversionWarning, ParseResult
from markloom.observability import NoopMetricsHook, get_logger, log_fields

log = get_logger("markloom.parser")

# Tokens that carry no content.
_SKIP_TYPES: frozenset[str] = frozenset({
    "blank_line",
})

# Inline mistune tokens that map one-to-one onto a mark kind.
_MARK_TYPES: dict[str, NodeKind] = {
    "strong": NodeKind.BOLD,
    "emphasis": NodeKind.ITALIC,
    "strikethrough": NodeKind.STRIKETHROUGH,
}


class _ParseContext:
    """Mutable accumulator for one parse."""

    __slots__ = ("warnings",)

    def __init__(self) -> None:
        self.warnings: list[ConversionWarning] = []

    def add_warning(self, code: str, message: str, **context: object) -> None:
        self.warnings.append(ConversionWarning(
            code=code, message=message, context=dict(context),
        ))


class MarkdownParser:
    """Parse Markdown into a document tree.

    Parameters
    ----------
    config:
        Editor configuration; ``parser_plugins`` selects the mistune
        plugins and ``debug_dump_tree`` dumps the resulting tree.

    Examples
    --------
    >>> parser = MarkdownParser(EditorConfig())
    >>> result = parser.parse("# Hello\\n\\nWorld")
    >>> [c.kind.value for c in result.root.children]
    ['heading', 'paragraph']
    """

    def __init__(self, config: EditorConfig) -> None:
        self._config = config
        self._metrics = config.metrics or NoopMetricsHook()
        self._markdown = mistune.create_markdown(
            renderer="ast",
            plugins=list(config.parser_plugins),
        )

    def parse(self, markdown: str) -> ParseResult:
        """Parse *markdown* and build a fresh root node.

        Parameters
        ----------
        markdown:
            Raw Markdown text.

        Returns
        -------
        ParseResult
            The root (not yet normalized) and any non-fatal warnings.
        """
        start = time.monotonic()
        tokens = self._markdown(markdown)
        if isinstance(tokens, str):
            tokens = []

        ctx = _ParseContext()
        document = root(*_build_blocks(tokens, ctx))

        if self._config.debug_dump_tree:
            print(
                "[markloom] Parsed tree:",
                json.dumps(document.to_dict(), indent=2, ensure_ascii=False),
                file=sys.stderr,
            )

        self._metrics.timing("markloom.parse_duration_ms", (time.monotonic() - start) * 1000)
        if ctx.warnings:
            self._metrics.increment(
                "markloom.conversion_warnings_total", len(ctx.warnings),
                tags={"stage": "parse"},
            )
        log.debug(
            "markdown parsed",
            extra=log_fields(
                op="parse",
                chars=len(markdown),
                blocks=len(document.children),
                warnings=len(ctx.warnings),
            ),
        )
        return ParseResult(root=document, warnings=ctx.warnings)


# ---------------------------------------------------------------------------
# Block tokens
# ---------------------------------------------------------------------------

def _build_blocks(tokens: list[dict], ctx: _ParseContext) -> list[Node]:
    nodes: list[Node] = []
    for token in tokens:
        nodes.extend(_build_block(token, ctx))
    return nodes


def _build_block(token: dict, ctx: _ParseContext) -> list[Node]:
    token_type = token.get("type", "")
    if token_type in _SKIP_TYPES:
        return []
    handler = _BLOCK_HANDLERS.get(token_type)
    if handler is not None:
        return handler(token, ctx)
    # Inline tokens can surface at block level inside list items.
    if token_type in _INLINE_HANDLERS or token_type in _MARK_TYPES:
        return _build_inline(token, ctx)
    return _unwrap_unknown(token, ctx, _build_blocks)


def _build_heading(token: dict, ctx: _ParseContext) -> list[Node]:
    level = token.get("attrs", {}).get("level", 1)
    return [heading(min(max(level, 1), 6), *_build_inlines(token.get("children", []), ctx))]


def _build_paragraph(token: dict, ctx: _ParseContext) -> list[Node]:
    return [element(NodeKind.PARAGRAPH, *_build_inlines(token.get("children", []), ctx))]


def _build_list(token: dict, ctx: _ParseContext) -> list[Node]:
    ordered = token.get("attrs", {}).get("ordered", False)
    kind = NodeKind.ORDERED_LIST if ordered else NodeKind.BULLET_LIST
    return [element(kind, *_build_blocks(token.get("children", []), ctx))]


def _build_list_item(token: dict, ctx: _ParseContext) -> list[Node]:
    item = element(NodeKind.LIST_ITEM)
    if token.get("type") == "task_list_item":
        checked = bool(token.get("attrs", {}).get("checked", False))
        item.children.append(checkbox(checked))
    for child in token.get("children", []):
        if child.get("type") == "block_text":
            item.children.extend(_build_inlines(child.get("children", []), ctx))
        else:
            item.children.extend(_build_block(child, ctx))
    return [item]


def _build_block_quote(token: dict, ctx: _ParseContext) -> list[Node]:
    return [element(NodeKind.BLOCKQUOTE, *_build_blocks(token.get("children", []), ctx))]


def _build_block_code(token: dict, ctx: _ParseContext) -> list[Node]:
    code = token.get("raw", "")
    # mistune keeps the newline before the closing fence
    if code.endswith("\n"):
        code = code[:-1]
    return [element(NodeKind.CODE_BLOCK, text(code))]


def _build_thematic_break(token: dict, ctx: _ParseContext) -> list[Node]:
    return [horizontal_rule()]


def _build_table(token: dict, ctx: _ParseContext) -> list[Node]:
    table = element(NodeKind.TABLE)
    for part in token.get("children", []):
        part_type = part.get("type")
        if part_type == "table_head":
            table.children.append(_build_table_row(part, ctx, header=True))
        elif part_type == "table_body":
            for row in part.get("children", []):
                table.children.append(_build_table_row(row, ctx, header=False))
    return [table]


def _build_table_row(token: dict, ctx: _ParseContext, *, header: bool) -> Node:
    row = element(NodeKind.TABLE_ROW)
    for cell in token.get("children", []):
        row.children.append(element(
            NodeKind.TABLE_CELL,
            *_build_inlines(cell.get("children", []), ctx),
            header=header,
        ))
    return row


def _build_html_block(token: dict, ctx: _ParseContext) -> list[Node]:
    raw = token.get("raw", "").strip()
    if not raw:
        return []
    ctx.add_warning(
        "HTML_BLOCK",
        "Raw HTML block kept as plain paragraph text.",
        length=len(raw),
    )
    return [element(NodeKind.PARAGRAPH, text(raw))]


_BlockHandler = _Callable[[dict, _ParseContext], list[Node]]

_BLOCK_HANDLERS: dict[str, _BlockHandler] = {
    "heading": _build_heading,
    "paragraph": _build_paragraph,
    "block_text": _build_paragraph,
    "list": _build_list,
    "list_item": _build_list_item,
    "task_list_item": _build_list_item,
    "block_quote": _build_block_quote,
    "block_code": _build_block_code,
    "thematic_break": _build_thematic_break,
    "table": _build_table,
    "block_html": _build_html_block,
}


# ---------------------------------------------------------------------------
# Inline tokens
# ---------------------------------------------------------------------------

def _build_inlines(tokens: list[dict], ctx: _ParseContext) -> list[Node]:
    nodes: list[Node] = []
    for token in tokens:
        nodes.extend(_build_inline(token, ctx))
    return _merge_text_runs(nodes)


def _build_inline(token: dict, ctx: _ParseContext) -> list[Node]:
    token_type = token.get("type", "")
    if token_type in _MARK_TYPES:
        return [element(_MARK_TYPES[token_type], *_build_inlines(token.get("children", []), ctx))]
    handler = _INLINE_HANDLERS.get(token_type)
    if handler is not None:
        return handler(token, ctx)
    return _unwrap_unknown(token, ctx, _build_inlines)


def _build_text(token: dict, ctx: _ParseContext) -> list[Node]:
    return [text(token.get("raw", ""))]


def _build_softbreak(token: dict, ctx: _ParseContext) -> list[Node]:
    return [text("\n")]


def _build_linebreak(token: dict, ctx: _ParseContext) -> list[Node]:
    return [line_break()]


def _build_codespan(token: dict, ctx: _ParseContext) -> list[Node]:
    return [element(NodeKind.INLINE_CODE, text(token.get("raw", "")))]


def _build_link(token: dict, ctx: _ParseContext) -> list[Node]:
    target = token.get("attrs", {}).get("url", "")
    return [element(NodeKind.LINK, *_build_inlines(token.get("children", []), ctx), target=target)]


def _build_image(token: dict, ctx: _ParseContext) -> list[Node]:
    target = token.get("attrs", {}).get("url", "")
    alt = "".join(node.text_content() for node in _build_inlines(token.get("children", []), ctx))
    return [image(target, alt)]


_INLINE_HANDLERS: dict[str, _BlockHandler] = {
    "text": _build_text,
    "inline_html": _build_text,
    "softbreak": _build_softbreak,
    "linebreak": _build_linebreak,
    "codespan": _build_codespan,
    "link": _build_link,
    "image": _build_image,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _unwrap_unknown(
    token: dict,
    ctx: _ParseContext,
    build_children: _Callable[[list[dict], _ParseContext], list[Node]],
) -> list[Node]:
    """Keep the children of a token type with no node mapping."""
    token_type = token.get("type", "")
    children = token.get("children")
    if children:
        return build_children(children, ctx)
    if "raw" in token:
        return [text(token["raw"])]
    ctx.add_warning(
        "UNKNOWN_TOKEN",
        f"Unknown token type '{token_type}' was skipped.",
        token_type=token_type,
    )
    return []


def _merge_text_runs(nodes: list[Node]) -> list[Node]:
    """Join adjacent text runs into one node."""
    merged: list[Node] = []
    for node in nodes:
        if node.kind == NodeKind.TEXT and merged and merged[-1].kind == NodeKind.TEXT:
            merged[-1].text += node.text
        else:
            merged.append(node)
    return merged
