"""Public data models for markloom.

Plain dataclasses shared between the editing core and its callers:
selections, conversion warnings, parse results, normalizer reports and
document statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from markloom.document.nodes import Node


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Selection:
    """A cursor or a range inside a single node.

    Offsets count characters when the node is a text run and child
    positions when it is an element, so ``Selection(paragraph.id, 0)``
    sits before the paragraph's first child.

    Attributes
    ----------
    node_id:
        Stable identifier of the node holding the selection.
    start:
        Offset of the cursor (or of the range start).
    end:
        Offset of the range end, or ``None`` for a collapsed cursor.
    """

    node_id: int
    start: int
    end: int | None = None

    @property
    def collapsed(self) -> bool:
        return self.end is None or self.end == self.start

    @property
    def bounds(self) -> tuple[int, int]:
        """``(low, high)`` offsets regardless of selection direction."""
        end = self.start if self.end is None else self.end
        return min(self.start, end), max(self.start, end)


# ---------------------------------------------------------------------------
# Conversion warnings
# ---------------------------------------------------------------------------

@dataclass
class ConversionWarning:
    """A non-fatal issue met while parsing or serializing.

    Attributes
    ----------
    code:
        Machine-readable warning code (e.g. ``"UNKNOWN_NODE"``).
    message:
        Human-readable description.
    context:
        Structured diagnostic data.
    """

    code: str
    message: str
    context: dict = field(default_factory=dict)


@dataclass
class ParseResult:
    """Outcome of loading Markdown into a document tree.

    Attributes
    ----------
    root:
        The freshly built root node.  It has not been normalized yet.
    warnings:
        Non-fatal issues met while mapping parser tokens to nodes.
    """

    root: Node
    warnings: list[ConversionWarning] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Normalizer results
# ---------------------------------------------------------------------------

@dataclass
class NormalizeReport:
    """Counts of the repairs a normalize pass performed."""

    wrapped: int = 0
    """Root children moved into a new block wrapper."""

    list_items_created: int = 0
    """List children moved into a new list item."""

    removed: int = 0
    """Empty text runs dropped from root or list level."""

    placeholder: bool = False
    """Root content was replaced by the empty-paragraph placeholder."""

    @property
    def repairs(self) -> int:
        return self.wrapped + self.list_items_created + self.removed + int(self.placeholder)

    @property
    def changed(self) -> bool:
        return self.repairs > 0


@dataclass
class NormalizeResult:
    """Outcome of a normalize pass.

    Attributes
    ----------
    selection:
        The cursor re-resolved against the repaired tree, or ``None`` when
        it could not be placed.
    report:
        What the pass changed.
    """

    selection: Selection | None
    report: NormalizeReport


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DocumentStats:
    """Word and character counts shown in the editor status bar."""

    words: int
    characters: int
