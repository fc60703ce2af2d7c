from __future__ import annotations

"""Cursor and selection over the block tree.

A :class:`Cursor` pins a node reference and an offset into that node's line
text. Because nodes are compared by identity, a cursor stays valid while the
tree around it is restructured; only removal of its node invalidates it.
:class:`Position` is the detachable counterpart (child-index path + offset)
used to re-resolve a selection against a restored snapshot.

All functions in this module are read-only queries.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Type

from structmd.core.models import (
    Blockquote,
    CodeBlock,
    Document,
    ListItem,
    Node,
    child_list,
    document_of,
    index_in_parent,
    is_line,
    iter_lines,
    line_length,
    line_text,
)

__all__ = [
    "Cursor",
    "Selection",
    "Position",
    "resolve",
    "position_of",
    "collapse",
    "ordered",
    "range_of_line",
    "is_at_line_start",
    "is_at_line_end",
    "is_at_structural_boundary",
    "selected_lines",
    "clamp",
    "is_attached",
]

_BOUNDARY_KINDS = {
    "list_item": ListItem,
    "blockquote": Blockquote,
    "code_block": CodeBlock,
}


@dataclass(frozen=True)
class Cursor:
    node: Node
    offset: int = 0


@dataclass(frozen=True)
class Selection:
    anchor: Cursor
    focus: Cursor

    @classmethod
    def caret(cls, node: Node, offset: int = 0) -> "Selection":
        cursor = Cursor(node, offset)
        return cls(cursor, cursor)

    @classmethod
    def between(cls, start_node: Node, start: int, end_node: Node, end: int) -> "Selection":
        return cls(Cursor(start_node, start), Cursor(end_node, end))

    @property
    def is_collapsed(self) -> bool:
        return self.anchor == self.focus


@dataclass(frozen=True)
class Position:
    path: Tuple[int, ...]
    offset: int = 0


def _path(node: Node) -> Tuple[int, ...]:
    indices: List[int] = []
    current = node
    while current.parent is not None:
        indices.append(index_in_parent(current))
        current = current.parent
    return tuple(reversed(indices))


def position_of(cursor: Cursor) -> Position:
    return Position(_path(cursor.node), cursor.offset)


def resolve(document: Document, position: Position) -> Optional[Cursor]:
    """Resolve *position* against *document*; None when the path is stale."""
    node: Node = document
    for index in position.path:
        siblings = child_list(node)
        if siblings is None or not 0 <= index < len(siblings):
            return None
        node = siblings[index]
    if not is_line(node):
        return None
    return Cursor(node, max(0, min(position.offset, line_length(node))))


def _sort_key(cursor: Cursor) -> Tuple[Tuple[int, ...], int]:
    # Pre-order paths sort in document order: an item's own text sorts
    # before its children.
    return _path(cursor.node), cursor.offset


def ordered(selection: Selection) -> Tuple[Cursor, Cursor]:
    """Return (start, end) of *selection* in document order."""
    if selection.is_collapsed:
        return selection.anchor, selection.focus
    if _sort_key(selection.focus) < _sort_key(selection.anchor):
        return selection.focus, selection.anchor
    return selection.anchor, selection.focus


def collapse(selection: Selection, to_start: bool = True) -> Cursor:
    start, end = ordered(selection)
    return start if to_start else end


def clamp(cursor: Cursor) -> Cursor:
    return Cursor(cursor.node, max(0, min(cursor.offset, line_length(cursor.node))))


def range_of_line(cursor: Cursor) -> Tuple[int, int]:
    """Offsets of the ``"\\n"``-delimited run of text holding *cursor*."""
    text = line_text(cursor.node)
    offset = max(0, min(cursor.offset, len(text)))
    start = text.rfind("\n", 0, offset) + 1
    end = text.find("\n", offset)
    return start, (len(text) if end < 0 else end)


def is_at_line_start(cursor: Cursor) -> bool:
    return cursor.offset == range_of_line(cursor)[0]


def is_at_line_end(cursor: Cursor) -> bool:
    return cursor.offset == range_of_line(cursor)[1]


def is_at_structural_boundary(cursor: Cursor, kind: Optional[str] = None) -> bool:
    """True at offset 0 of a list item, blockquote or code block.

    *kind* restricts the check to ``"list_item"``, ``"blockquote"`` or
    ``"code_block"``.
    """
    if cursor.offset != 0:
        return False
    if kind is None:
        types: Tuple[Type[Node], ...] = tuple(_BOUNDARY_KINDS.values())
    else:
        types = (_BOUNDARY_KINDS[kind],)
    return isinstance(cursor.node, types)


def selected_lines(document: Document, selection: Selection) -> List[Node]:
    """Line nodes covered by *selection*, in document order.

    A last line that is only entered at offset 0 is not part of the range,
    which is what a triple-click selection produces.
    """
    start, end = ordered(selection)
    if start.node is end.node:
        return [start.node]
    lines: List[Node] = []
    inside = False
    for line in iter_lines(document):
        if line is start.node:
            inside = True
        if inside:
            lines.append(line)
        if line is end.node:
            break
    if len(lines) > 1 and lines[-1] is end.node and end.offset == 0:
        lines.pop()
    return lines


def is_attached(node: Node, document: Document) -> bool:
    return document_of(node) is document
