"""Restore the block-structure invariants after an arbitrary mutation.

Raw edits (typing at the top level, pasting, deleting the last block,
dragging a list item out of its list) can leave the tree in a state the
rest of the core does not accept.  :class:`TreeNormalizer` repairs it in
place:

* root holds only root-level blocks (and drag handles);
* root is never empty: an empty root, or one holding a single bare line
  break, receives the empty-paragraph placeholder;
* lists hold only list items.

Repairs are minimal.  Nodes that are already valid keep their identity,
and a wrapped element is moved, not copied, so selections pointing into
it stay valid.  Text runs that sit where text is not allowed are copied
into a fresh node; the cursor follows the copy.

A second pass over a normalized tree changes nothing.
"""

from __future__ import annotations

from markloom.config import EditorConfig
from markloom.document.nodes import (
    Node,
    NodeKind,
    element,
    empty_paragraph,
    kind_name,
    list_item,
    paragraph,
    text,
)
from markloom.document.schema import is_decorative, is_list_kind, is_root_block_kind
from markloom.models import NormalizeReport, NormalizeResult, Selection
from markloom.observability import NoopMetricsHook, get_logger, log_fields

log = get_logger("markloom.normalizer")


class _Relocation:
    """Where a displaced node ended up.

    ``copied`` is true when the original was a text run whose text now
    lives in ``node``; false when the original node itself was moved.
    """

    __slots__ = ("copied", "node")

    def __init__(self, node: Node, copied: bool) -> None:
        self.node = node
        self.copied = copied


class TreeNormalizer:
    """Repair pass over a live document tree.

    Parameters
    ----------
    config:
        Editor configuration (metrics backend).
    """

    def __init__(self, config: EditorConfig) -> None:
        self._config = config
        self._metrics = config.metrics or NoopMetricsHook()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def normalize(self, root: Node, selection: Selection | None = None) -> NormalizeResult:
        """Repair *root* in place and re-resolve *selection*.

        Parameters
        ----------
        root:
            The document root.  Mutated in place.
        selection:
            The cursor before the repair, if any.

        Returns
        -------
        NormalizeResult
            The selection mapped onto the repaired tree (``None`` when it
            cannot be placed) and a report of what changed.
        """
        report = NormalizeReport()
        moved: dict[int, _Relocation] = {}
        placeholder: Node | None = None

        if _is_blank(root):
            placeholder = self._install_placeholder(root, report)
        else:
            self._repair_root(root, report, moved)
            self._repair_lists(root, report, moved)
            if not _content_children(root):
                placeholder = self._install_placeholder(root, report)

        resolved = self._resolve_selection(root, selection, report, moved, placeholder)

        self._metrics.increment("markloom.normalize_total")
        self._metrics.gauge("markloom.document_blocks", len(_content_children(root)))
        if report.changed:
            self._metrics.increment("markloom.normalize_repairs_total", report.repairs)
            log.debug(
                "tree repaired",
                extra=log_fields(
                    op="normalize",
                    wrapped=report.wrapped,
                    list_items_created=report.list_items_created,
                    removed=report.removed,
                    placeholder=report.placeholder,
                    selection_kept=resolved is not None,
                ),
            )
        return NormalizeResult(selection=resolved, report=report)

    # ------------------------------------------------------------------
    # Repairs
    # ------------------------------------------------------------------

    def _install_placeholder(self, root: Node, report: NormalizeReport) -> Node:
        placeholder = empty_paragraph()
        root.children[:] = [placeholder]
        report.placeholder = True
        return placeholder

    def _repair_root(
        self, root: Node, report: NormalizeReport, moved: dict[int, _Relocation],
    ) -> None:
        repaired: list[Node] = []
        for child in root.children:
            if is_decorative(child.kind) or is_root_block_kind(child.kind):
                repaired.append(child)
                continue

            if child.kind == NodeKind.TEXT:
                if not child.text:
                    report.removed += 1
                    continue
                copy = text(child.text)
                repaired.append(paragraph(copy))
                moved[child.id] = _Relocation(copy, copied=True)
            else:
                repaired.append(_wrap_for_root(child))
                moved[child.id] = _Relocation(child, copied=False)
            report.wrapped += 1

        root.children[:] = repaired

    def _repair_lists(
        self, root: Node, report: NormalizeReport, moved: dict[int, _Relocation],
    ) -> None:
        lists = [node for node in root.walk() if is_list_kind(node.kind)]
        for list_node in lists:
            repaired: list[Node] = []
            for child in list_node.children:
                if child.kind == NodeKind.LIST_ITEM or is_decorative(child.kind):
                    repaired.append(child)
                    continue

                if child.kind == NodeKind.TEXT:
                    if not child.text:
                        report.removed += 1
                        continue
                    copy = text(child.text)
                    repaired.append(list_item(copy))
                    moved[child.id] = _Relocation(copy, copied=True)
                else:
                    repaired.append(list_item(child))
                    moved[child.id] = _Relocation(child, copied=False)
                report.list_items_created += 1

            list_node.children[:] = repaired

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def _resolve_selection(
        self,
        root: Node,
        selection: Selection | None,
        report: NormalizeReport,
        moved: dict[int, _Relocation],
        placeholder: Node | None,
    ) -> Selection | None:
        if selection is None:
            return None
        if not report.changed:
            if root.find(selection.node_id) is None:
                return self._lost(selection)
            return selection
        if placeholder is not None:
            return Selection(placeholder.id, 0)

        relocation = moved.get(selection.node_id)
        if relocation is not None:
            target = relocation.node
            if root.find(target.id) is None:
                return self._lost(selection)
            if relocation.copied:
                return Selection(target.id, _clamp(target, selection.start))
            return Selection(target.id, 0)

        node = root.find(selection.node_id)
        if node is None:
            return self._lost(selection)
        if selection.end is None:
            return Selection(node.id, _clamp(node, selection.start))
        return Selection(node.id, _clamp(node, selection.start), _clamp(node, selection.end))

    def _lost(self, selection: Selection) -> None:
        log.debug(
            "selection could not be re-resolved",
            extra=log_fields(op="normalize", node_id=selection.node_id),
        )
        return None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _content_children(node: Node) -> list[Node]:
    return [child for child in node.children if not is_decorative(child.kind)]


def _is_blank(root: Node) -> bool:
    """Root with no content, or nothing but one bare line break."""
    content = _content_children(root)
    return not content or (len(content) == 1 and content[0].kind == NodeKind.LINE_BREAK)


def _wrap_for_root(child: Node) -> Node:
    """Smallest root-level block that may hold *child*."""
    if child.kind == NodeKind.LIST_ITEM:
        return element(NodeKind.BULLET_LIST, child)
    if child.kind == NodeKind.TABLE_ROW:
        return element(NodeKind.TABLE, child)
    if child.kind == NodeKind.TABLE_CELL:
        return element(NodeKind.TABLE, element(NodeKind.TABLE_ROW, child))
    log.debug(
        "wrapping stray node in paragraph",
        extra=log_fields(op="normalize", node_id=child.id, kind=kind_name(child.kind)),
    )
    return paragraph(child)


def _clamp(node: Node, offset: int) -> int:
    limit = len(node.text) if node.kind == NodeKind.TEXT else len(node.children)
    return min(max(offset, 0), limit)


def normalize(
    root: Node,
    selection: Selection | None = None,
    config: EditorConfig | None = None,
) -> NormalizeResult:
    """Normalize *root* in place with a one-off :class:`TreeNormalizer`."""
    return TreeNormalizer(config or EditorConfig()).normalize(root, selection)
