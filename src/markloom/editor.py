"""The editor host.

:class:`MarkdownEditor` owns the live document tree and the cursor.  It
receives its collaborators (normalizer, serializer, parser and command
set) at construction, runs the normalizer after every change and is the
only thing a UI layer needs to talk to.

Usage::

    from markloom import MarkdownEditor

    editor = MarkdownEditor()
    editor.set_markdown("# Notes\\n\\n- milk\\n- eggs")
    editor.insert_text("!")
    print(editor.get_markdown())
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from markloom.config import EditorConfig
from markloom.converter.markdown_parser import MarkdownParser
from markloom.converter.serializer import MarkdownSerializer
from markloom.document.nodes import Node, NodeKind, is_empty_paragraph, root
from markloom.document.schema import is_block_kind, is_decorative
from markloom.editing.commands import EditCommands, end_of
from markloom.editing.normalizer import TreeNormalizer
from markloom.errors import MarkloomCommandError
from markloom.models import ConversionWarning, DocumentStats, NormalizeReport, Selection
from markloom.observability import NoopMetricsHook, get_logger, log_fields

log = get_logger("markloom.editor")

# Ctrl/Cmd shortcuts that map onto an inline format.
_FORMAT_SHORTCUTS: dict[str, str] = {
    "b": "bold",
    "i": "italic",
    "u": "strikethrough",
    "e": "code",
}

_HEADING_KEYS = frozenset("123456")


class MarkdownEditor:
    """Live Markdown document with a cursor.

    Parameters
    ----------
    config:
        Editor configuration.  Defaults to ``EditorConfig()``.
    normalizer, serializer, parser, commands:
        Collaborators; each defaults to the stock implementation built
        from *config*.
    """

    def __init__(
        self,
        config: EditorConfig | None = None,
        *,
        normalizer: TreeNormalizer | None = None,
        serializer: MarkdownSerializer | None = None,
        parser: MarkdownParser | None = None,
        commands: EditCommands | None = None,
    ) -> None:
        self._config = config or EditorConfig()
        self._metrics = self._config.metrics or NoopMetricsHook()
        self._normalizer = normalizer or TreeNormalizer(self._config)
        self._serializer = serializer or MarkdownSerializer(self._config)
        self._parser = parser or MarkdownParser(self._config)
        self._commands = commands or EditCommands(self._config)

        self.root: Node = root()
        self.selection: Selection | None = None
        self.is_modified = False
        self.warnings: list[ConversionWarning] = []
        self.normalize()

    @property
    def config(self) -> EditorConfig:
        return self._config

    # ------------------------------------------------------------------
    # Document I/O
    # ------------------------------------------------------------------

    def get_markdown(self) -> str:
        """Serialize the current document."""
        return self._serializer.serialize(self.root)

    def set_markdown(self, markdown: str) -> list[ConversionWarning]:
        """Replace the document with parsed *markdown*.

        The document is not marked modified.  Returns the parse warnings.
        """
        result = self._parser.parse(markdown)
        self.root = result.root
        self.selection = None
        self.warnings = list(result.warnings)
        self.normalize()
        log.info(
            "markdown loaded",
            extra=log_fields(
                op="set_markdown",
                blocks=len(self.root.children),
                warnings=len(self.warnings),
            ),
        )
        return self.warnings

    def set_content(self, content: str) -> list[ConversionWarning]:
        """Load file content: clear, then parse as Markdown."""
        self.clear()
        warnings = self.set_markdown(content)
        self.is_modified = False
        return warnings

    def clear(self) -> None:
        self.root = root()
        self.selection = None
        self.warnings = []
        self.normalize()
        self.is_modified = False

    def stats(self) -> DocumentStats:
        """Word and character counts of the document text.

        Characters count the concatenated text runs; words are split on
        whitespace and on block boundaries.
        """
        return DocumentStats(
            words=len(_plain_text(self.root).split()),
            characters=len(self.root.text_content()),
        )

    # ------------------------------------------------------------------
    # Selection and repair
    # ------------------------------------------------------------------

    def set_selection(self, selection: Selection | None) -> None:
        """Move the cursor.

        Raises
        ------
        MarkloomCommandError
            If the selection names a node outside the document.
        """
        if selection is not None and self.root.find(selection.node_id) is None:
            raise MarkloomCommandError(
                message=f"node {selection.node_id} is not inside the document",
                context={"command": "set_selection", "node_id": selection.node_id},
            )
        self.selection = selection

    def normalize(self) -> NormalizeReport:
        """Repair the tree and re-resolve the cursor.

        When the cursor cannot be re-resolved it moves to the end of the
        content.
        """
        result = self._normalizer.normalize(self.root, self.selection)
        self.selection = result.selection or self._content_end()
        return result.report

    def mutate(self, mutation: Callable[[Node], Any]) -> NormalizeReport:
        """Apply a raw mutation to the root (drag and drop, host DOM edits).

        The tree is normalized afterwards and marked modified.
        """
        mutation(self.root)
        return self._finish("mutate", self.selection)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def insert_text(self, value: str) -> None:
        self._finish("insert_text", self._commands.insert_text(self.root, self.selection, value))

    def paste(self, value: str) -> None:
        self._finish("paste", self._commands.paste(self.root, self.selection, value))

    def insert_tab(self) -> None:
        self._finish("insert_tab", self._commands.insert_tab(self.root, self.selection))

    def new_block(self) -> None:
        self._finish("new_block", self._commands.new_block(self.root, self.selection))

    def toggle_format(self, fmt: str) -> None:
        self._finish("toggle_format", self._commands.toggle_format(self.root, self.selection, fmt))

    def insert_heading(self, level: int) -> None:
        self._finish(
            "insert_heading", self._commands.insert_heading(self.root, self.selection, level),
        )

    def insert_link(self, url: str, label: str | None = None) -> None:
        self._finish(
            "insert_link", self._commands.insert_link(self.root, self.selection, url, label),
        )

    def insert_image(self, url: str, alt: str | None = None) -> None:
        self._finish(
            "insert_image", self._commands.insert_image(self.root, self.selection, url, alt),
        )

    def insert_list(self, ordered: bool = False) -> None:
        self._finish(
            "insert_list", self._commands.insert_list(self.root, self.selection, ordered),
        )

    def insert_blockquote(self) -> None:
        self._finish("insert_blockquote", self._commands.insert_blockquote(self.root, self.selection))

    def insert_code_block(self) -> None:
        self._finish("insert_code_block", self._commands.insert_code_block(self.root, self.selection))

    def insert_horizontal_rule(self) -> None:
        self._finish(
            "insert_horizontal_rule",
            self._commands.insert_horizontal_rule(self.root, self.selection),
        )

    def insert_table(self, rows: int | None = None, cols: int | None = None) -> None:
        self._finish(
            "insert_table", self._commands.insert_table(self.root, self.selection, rows, cols),
        )

    def insert_task_list(self, count: int | None = None) -> None:
        self._finish(
            "insert_task_list", self._commands.insert_task_list(self.root, self.selection, count),
        )

    def toggle_checkbox(self, node_id: int) -> bool:
        checked = self._commands.toggle_checkbox(self.root, node_id)
        self._finish("toggle_checkbox", self.selection)
        return checked

    def create_paragraph_at(self, reference_id: int | None = None, position: str = "after") -> None:
        self._finish(
            "create_paragraph_at",
            self._commands.create_paragraph_at(self.root, reference_id, position),
        )

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def handle_key(
        self,
        key: str,
        *,
        ctrl: bool = False,
        shift: bool = False,
        alt: bool = False,
    ) -> bool:
        """Dispatch a key press.

        Returns ``True`` when the editor handled the key.  Shortcuts that
        belong to the host (help panel, undo/redo, file operations, link
        prompt, file browser) return ``False``.
        """
        if ctrl:
            lowered = key.lower()
            if lowered in _FORMAT_SHORTCUTS and not (lowered == "e" and shift):
                self.toggle_format(_FORMAT_SHORTCUTS[lowered])
                return True
            if lowered in _HEADING_KEYS and alt:
                self.insert_heading(int(lowered))
                return True
            return False

        if key == "Tab":
            self.insert_tab()
            return True
        if key == "Enter":
            self.new_block()
            return True
        return False

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _finish(self, command: str, selection: Selection | None) -> NormalizeReport:
        self.selection = selection
        report = self.normalize()
        self.is_modified = True
        self._metrics.increment("markloom.commands_total", tags={"command": command})
        log.debug(
            "command applied",
            extra=log_fields(op=command, repairs=report.repairs),
        )
        return report

    def _content_end(self) -> Selection | None:
        content = [child for child in self.root.children if not is_decorative(child.kind)]
        if not content:
            return None
        last = content[-1]
        if is_empty_paragraph(last):
            return Selection(last.id, 0)
        return end_of(last)


def _plain_text(node: Node) -> str:
    """Text content with a newline after every block and line break."""
    if node.kind == NodeKind.TEXT:
        return node.text
    if node.kind == NodeKind.LINE_BREAK:
        return "\n"
    inner = "".join(_plain_text(child) for child in node.children)
    if is_block_kind(node.kind) or node.kind == NodeKind.TABLE_CELL:
        return inner + "\n"
    return inner
