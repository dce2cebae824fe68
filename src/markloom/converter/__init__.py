"""Markdown <-> document tree conversion.

Public API:

- :class:`MarkdownSerializer`: document tree → Markdown text.
- :class:`MarkdownParser`: Markdown text → document tree (via mistune).
- :func:`serialize`: one-off serialization with a default config.
- :func:`render_table`: pipe-table production for a table node.
"""

from markloom.converter.markdown_parser import MarkdownParser
from markloom.converter.serializer import MarkdownSerializer, serialize
from markloom.converter.tables import render_table

__all__ = [
    "MarkdownParser",
    "MarkdownSerializer",
    "render_table",
    "serialize",
]
