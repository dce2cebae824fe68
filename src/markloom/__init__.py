"""markloom: editing core for a rich-text Markdown editor.

Public re-exports
-----------------

* **Editor host:** :class:`MarkdownEditor`
* **Configuration:** :class:`EditorConfig`
* **Components:** :class:`TreeNormalizer`, :class:`MarkdownSerializer`,
  :class:`MarkdownParser`, :class:`EditCommands`
* **Document model:** :class:`Node`, :class:`NodeKind` and the schema
  predicates
* **Errors:** Every :class:`MarkloomError` subclass and :class:`ErrorCode`
* **Models:** Selections, reports and results

Usage::

    from markloom import MarkdownEditor

    editor = MarkdownEditor()
    editor.set_markdown("# Hello\\n\\nWorld")
    editor.insert_heading(2)
    print(editor.get_markdown())
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from markloom.config import DEFAULT_PARSER_PLUGINS, EditorConfig

# ── Components ──────────────────────────────────────────────────────────
from markloom.converter import MarkdownParser, MarkdownSerializer, render_table, serialize

# ── Document model ──────────────────────────────────────────────────────
from markloom.document import (
    ALLOWED_CHILDREN,
    Node,
    NodeKind,
    SchemaViolation,
    attach,
    can_contain,
    empty_paragraph,
    find_violations,
    is_block_kind,
    is_decorative,
    is_inline_kind,
)
from markloom.editing import EditCommands, TreeNormalizer, normalize

# ── Editor host ─────────────────────────────────────────────────────────
from markloom.editor import MarkdownEditor

# ── Errors ──────────────────────────────────────────────────────────────
from markloom.errors import (
    ErrorCode,
    MarkloomCommandError,
    MarkloomError,
    MarkloomSchemaError,
)

# ── Models ──────────────────────────────────────────────────────────────
from markloom.models import (
    ConversionWarning,
    DocumentStats,
    NormalizeReport,
    NormalizeResult,
    ParseResult,
    Selection,
)

__all__ = [
    "ALLOWED_CHILDREN",
    "DEFAULT_PARSER_PLUGINS",
    "ConversionWarning",
    "DocumentStats",
    "EditCommands",
    "EditorConfig",
    "ErrorCode",
    "MarkdownEditor",
    "MarkdownParser",
    "MarkdownSerializer",
    "MarkloomCommandError",
    "MarkloomError",
    "MarkloomSchemaError",
    "Node",
    "NodeKind",
    "NormalizeReport",
    "NormalizeResult",
    "ParseResult",
    "SchemaViolation",
    "Selection",
    "TreeNormalizer",
    "attach",
    "can_contain",
    "empty_paragraph",
    "find_violations",
    "is_block_kind",
    "is_decorative",
    "is_inline_kind",
    "normalize",
    "render_table",
    "serialize",
]

__version__ = "0.1.0"
