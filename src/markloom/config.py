"""Editor configuration for markloom.

:class:`EditorConfig` captures every tuneable knob of the editing core.
A single instance is handed to :class:`~markloom.editor.MarkdownEditor`,
which passes it on to the parser, serializer, normalizer and edit commands.

:data:`DEFAULT_PARSER_PLUGINS` lists the mistune plugins enabled when
loading Markdown into the tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Parser plugin constants
# ---------------------------------------------------------------------------

DEFAULT_PARSER_PLUGINS: list[str] = [
    "strikethrough",
    "table",
    "task_lists",
    "url",
]
"""mistune plugins used by :class:`~markloom.converter.MarkdownParser`."""

SUPPORTED_PARSER_PLUGINS: frozenset[str] = frozenset({
    "strikethrough",
    "table",
    "task_lists",
    "url",
    "mark",
    "insert",
    "superscript",
    "subscript",
})


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class EditorConfig:
    """Complete configuration for a markloom editor.

    Every parameter has a default, so ``EditorConfig()`` is a working
    configuration.

    Parameters
    ----------
    ordered_list_numbers:
        Emit ``1. ``, ``2. `` ... markers for items of ordered lists.
        Off by default: both list kinds serialize items with ``- ``.
    escape_table_pipes:
        Escape ``|`` inside table cell text as ``\\|``.  Off by default:
        cell text is emitted verbatim.
    parser_plugins:
        mistune plugins enabled when parsing Markdown.
    tab_text:
        Text inserted by the Tab key.
    default_table_rows:
        Row count (header included) of a table inserted without arguments.
    default_table_cols:
        Column count of a table inserted without arguments.
    default_task_count:
        Number of items in a freshly inserted task list.
    metrics:
        Optional :class:`~markloom.observability.MetricsHook` backend.
    debug_dump_tree:
        Write the document tree as JSON to *stderr* on every parse and
        serialize.
    """

    # ── Serialization ───────────────────────────────────────────────────
    ordered_list_numbers: bool = False

    escape_table_pipes: bool = False

    # ── Parsing ─────────────────────────────────────────────────────────
    parser_plugins: list[str] = field(
        default_factory=lambda: list(DEFAULT_PARSER_PLUGINS),
    )

    # ── Editing ─────────────────────────────────────────────────────────
    tab_text: str = "    "

    default_table_rows: int = 3

    default_table_cols: int = 3

    default_task_count: int = 3

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_tree: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        unknown = [p for p in self.parser_plugins if p not in SUPPORTED_PARSER_PLUGINS]
        if unknown:
            raise ValueError(f"unsupported parser plugins: {', '.join(unknown)}")
        if self.default_table_rows < 1:
            raise ValueError(f"default_table_rows must be >= 1, got {self.default_table_rows}")
        if self.default_table_cols < 1:
            raise ValueError(f"default_table_cols must be >= 1, got {self.default_table_cols}")
        if self.default_task_count < 1:
            raise ValueError(f"default_task_count must be >= 1, got {self.default_task_count}")
