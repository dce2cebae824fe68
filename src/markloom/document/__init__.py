"""Document model: node kinds, factories and the allowed-children schema."""

from markloom.document.nodes import (
    Node,
    NodeKind,
    blockquote,
    bold,
    bullet_list,
    checkbox,
    code_block,
    drag_handle,
    element,
    empty_paragraph,
    heading,
    horizontal_rule,
    image,
    inline_code,
    is_empty_paragraph,
    italic,
    kind_name,
    line_break,
    link,
    list_item,
    ordered_list,
    paragraph,
    root,
    strikethrough,
    table,
    table_cell,
    table_from_rows,
    table_row,
    text,
)
from markloom.document.schema import (
    ALLOWED_CHILDREN,
    BLOCK_KINDS,
    INLINE_KINDS,
    ROOT_BLOCK_KINDS,
    SchemaViolation,
    attach,
    can_contain,
    find_violations,
    is_block_kind,
    is_decorative,
    is_inline_kind,
    is_root_block_kind,
)

__all__ = [
    "ALLOWED_CHILDREN",
    "BLOCK_KINDS",
    "INLINE_KINDS",
    "ROOT_BLOCK_KINDS",
    "Node",
    "NodeKind",
    "SchemaViolation",
    "attach",
    "blockquote",
    "bold",
    "bullet_list",
    "can_contain",
    "checkbox",
    "code_block",
    "drag_handle",
    "element",
    "empty_paragraph",
    "find_violations",
    "heading",
    "horizontal_rule",
    "image",
    "inline_code",
    "is_block_kind",
    "is_decorative",
    "is_empty_paragraph",
    "is_inline_kind",
    "is_root_block_kind",
    "italic",
    "kind_name",
    "line_break",
    "link",
    "list_item",
    "ordered_list",
    "paragraph",
    "root",
    "strikethrough",
    "table",
    "table_cell",
    "table_from_rows",
    "table_row",
    "text",
]
