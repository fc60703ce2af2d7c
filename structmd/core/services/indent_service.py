from __future__ import annotations

"""Indent and outdent (Tab / Shift+Tab).

List items move one level deeper or shallower; visual line order never
changes. Only the roots of a selection move: an item whose ancestor item is
selected too travels with that ancestor.

Indent nests a run of sibling items under the item right before the run.
The run is appended after the host's existing nested blocks, joining the
host's last sublist when it has the same kind.

Outdent of a nested item places it right after its parent item. The
siblings that followed it become its children, together with whatever came
after its list inside the parent item. A top-level item turns into a
paragraph, splitting its list.

Inside code blocks and blockquotes Tab inserts spaces instead.
"""

import logging
from typing import Dict, List, Optional, Set

from structmd.core.models import (
    Blockquote,
    CodeBlock,
    Document,
    ListBlock,
    ListItem,
    Node,
    Run,
    TextBlock,
    index_in_parent,
    insert_child,
)
from structmd.core.models.cursor import Cursor, Selection, ordered, range_of_line, selected_lines
from structmd.core.services.base import EditingService, EditResult
from structmd.core.tree_ops import lift_item, unwrap_item

__all__ = ["IndentService", "selected_item_roots", "sibling_runs"]

logger = logging.getLogger(__name__)


def selected_item_roots(document: Document, selection: Selection) -> List[ListItem]:
    """Selected list items that have no selected ancestor item, in order."""
    items = [line for line in selected_lines(document, selection) if isinstance(line, ListItem)]
    chosen: Set[int] = {id(item) for item in items}
    roots: List[ListItem] = []
    for item in items:
        ancestor = item.parent
        nested = False
        while ancestor is not None:
            if isinstance(ancestor, ListItem) and id(ancestor) in chosen:
                nested = True
                break
            ancestor = ancestor.parent
        if not nested:
            roots.append(item)
    return roots


def sibling_runs(items: List[ListItem]) -> List[List[ListItem]]:
    """Group items into runs of consecutive siblings of one list."""
    runs: List[List[ListItem]] = []
    for item in items:
        if runs:
            last = runs[-1][-1]
            if last.parent is item.parent and index_in_parent(item) == index_in_parent(last) + 1:
                runs[-1].append(item)
                continue
        runs.append([item])
    return runs


class IndentService(EditingService):
    """Tab and Shift+Tab handling."""

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def indent(self, document: Document, selection: Selection) -> EditResult:
        """Nest the selected list items one level deeper.

        The first item of a list has no host and stays where it is. In a code
        block or blockquote, spaces are inserted instead.
        """
        return self._apply("indent", document, selection, lambda: self._indent(document, selection))

    def outdent(self, document: Document, selection: Selection) -> EditResult:
        """Move the selected list items one level up.

        Top-level items become paragraphs. In a code block or blockquote,
        leading spaces are removed from each affected line.
        """
        return self._apply("outdent", document, selection, lambda: self._outdent(document, selection))

    # -------------------------------------------------------------------------
    # Lists
    # -------------------------------------------------------------------------

    def _indent(self, document: Document, selection: Selection) -> Optional[Selection]:
        if self._is_text_tab(selection):
            return self._shift_text(selection, outdent=False)
        roots = selected_item_roots(document, selection)
        moved = 0
        for run in sibling_runs(roots):
            if self._nest_run(run):
                moved += len(run)
        if not moved:
            return None
        logger.debug("Indent: moved=%d", moved)
        return selection

    @staticmethod
    def _nest_run(run: List[ListItem]) -> bool:
        block = run[0].parent
        first_index = index_in_parent(run[0])
        if first_index <= 0:
            return False
        host = block.items[first_index - 1]
        del block.items[first_index:first_index + len(run)]
        last_child = host.children[-1] if host.children else None
        if isinstance(last_child, ListBlock) and last_child.kind is block.kind:
            for item in run:
                insert_child(last_child, len(last_child.items), item)
        else:
            insert_child(host, len(host.children), ListBlock(kind=block.kind, items=run))
        return True

    def _outdent(self, document: Document, selection: Selection) -> Optional[Selection]:
        if self._is_text_tab(selection):
            return self._shift_text(selection, outdent=True)
        roots = selected_item_roots(document, selection)
        if not roots:
            return None
        replaced: Dict[int, Node] = {}
        for item in roots:
            if isinstance(item.parent.parent, ListItem):
                lift_item(item)
            else:
                replaced[id(item)] = unwrap_item(item)

        def remap(cursor: Cursor) -> Cursor:
            node = replaced.get(id(cursor.node))
            return cursor if node is None else Cursor(node, cursor.offset)

        return Selection(remap(selection.anchor), remap(selection.focus))

    # -------------------------------------------------------------------------
    # Code blocks and blockquotes
    # -------------------------------------------------------------------------

    @staticmethod
    def _is_text_tab(selection: Selection) -> bool:
        node = selection.anchor.node
        return node is selection.focus.node and isinstance(node, (CodeBlock, Blockquote))

    def _shift_text(self, selection: Selection, outdent: bool) -> Optional[Selection]:
        node = selection.anchor.node
        width = self.settings.code_indent
        start, end = ordered(selection)
        text = node.text

        if not outdent and selection.is_collapsed:
            self._insert(node, start.offset, " " * width)
            return Selection.caret(node, start.offset + width)

        line_starts = [range_of_line(start)[0]]
        line_starts += [index + 1 for index in range(start.offset, end.offset) if text[index] == "\n"]

        edits: List[tuple] = []
        for line_start in line_starts:
            if outdent:
                removable = len(text[line_start:line_start + width]) - len(text[line_start:line_start + width].lstrip(" "))
                if removable:
                    edits.append((line_start, -removable))
            else:
                edits.append((line_start, width))
        if not edits:
            return None

        for position, delta in reversed(edits):
            if delta > 0:
                self._insert(node, position, " " * delta)
            elif isinstance(node, CodeBlock):
                node.text = node.text[:position] + node.text[position - delta:]
            else:
                node.content.delete(position, position - delta)

        def shift(offset: int) -> int:
            moved = offset
            for position, delta in edits:
                if delta > 0 and position <= offset:
                    moved += delta
                elif delta < 0 and position < offset:
                    moved -= min(-delta, offset - position)
            return moved

        return Selection(
            Cursor(node, shift(selection.anchor.offset)),
            Cursor(node, shift(selection.focus.offset)),
        )

    @staticmethod
    def _insert(node: Node, offset: int, spaces: str) -> None:
        if isinstance(node, CodeBlock):
            text = node.text
            node.text = text[:offset] + spaces + text[offset:]
        elif isinstance(node, TextBlock):
            node.content.insert(offset, [Run(spaces, node.content.marks_at(offset), None)])
