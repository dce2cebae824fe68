"""Editing: the normalizer and the direct-manipulation commands."""

from markloom.editing.commands import FORMAT_KINDS, PARAGRAPH_POSITIONS, EditCommands, end_of
from markloom.editing.normalizer import TreeNormalizer, normalize

__all__ = [
    "FORMAT_KINDS",
    "PARAGRAPH_POSITIONS",
    "EditCommands",
    "TreeNormalizer",
    "end_of",
    "normalize",
]
