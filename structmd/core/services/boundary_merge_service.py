from __future__ import annotations

"""Backward deletion (Backspace) across structural boundaries.

Inside a line, Backspace removes one character. At offset 0 it runs a small
state machine keyed on the node kind, its emptiness and the shape of its
siblings:

- an empty list item splits its list around a new paragraph, or, when it is
  the only item of a parent item's only sublist, dissolves that sublist;
- a non-empty list item merges into the preceding list line, or leaves the
  list when nothing list-like precedes it;
- a paragraph between two lists of the same kind is removed and the lists
  are merged; lists of different kinds are never merged;
- headings, blockquotes and empty code blocks fall back to paragraphs, and a
  cursor on a horizontal rule removes the rule.

A non-collapsed selection is deleted as a range instead.
"""

import logging
from typing import List, Optional

from structmd.core.models import (
    Blockquote,
    CodeBlock,
    Document,
    Heading,
    HorizontalRule,
    ListBlock,
    ListItem,
    Node,
    Paragraph,
    TextBlock,
    detach,
    index_in_parent,
    insert_child,
    iter_lines,
    last_line,
    line_length,
    relink,
    replace_node,
)
from structmd.core.models.cursor import Cursor, Selection, ordered
from structmd.core.services.base import EditingService, EditResult
from structmd.core.tree_ops import (
    append_line,
    delete_in_line,
    delete_range,
    move_children,
    next_sibling,
    previous_sibling,
    unwrap_item,
)

__all__ = ["BoundaryMergeService"]

logger = logging.getLogger(__name__)


def _caret(cursor: Cursor) -> Selection:
    return Selection(cursor, cursor)


def _end(node: Node) -> Selection:
    return Selection.caret(node, line_length(node))


class BoundaryMergeService(EditingService):
    """Backspace and range deletion on a document."""

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def backspace(self, document: Document, selection: Selection, composing: bool = False) -> EditResult:
        """Apply one Backspace press.

        Parameters
        ----------
        document
            Document to edit in place.
        selection
            Current selection; a range is deleted as a whole.
        composing
            True while an IME composition is active. Only deletion inside a
            single line is performed then.
        """
        return self._apply(
            "backspace",
            document,
            selection,
            lambda: self._backspace(document, selection, composing),
        )

    def delete_selection(self, document: Document, selection: Selection) -> EditResult:
        """Delete the selected range, joining its first and last lines."""
        if selection.is_collapsed:
            logger.info("Edit noop: delete_selection collapsed")
            return EditResult(False, "Nothing selected.", selection)
        return self._apply(
            "delete_selection",
            document,
            selection,
            lambda: _caret(delete_range(*ordered(selection))),
        )

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def _backspace(self, document: Document, selection: Selection, composing: bool) -> Optional[Selection]:
        if not selection.is_collapsed:
            start, end = ordered(selection)
            if composing and start.node is not end.node:
                return None
            return _caret(delete_range(start, end))

        cursor = selection.focus
        node = cursor.node
        if cursor.offset > 0:
            delete_in_line(node, cursor.offset - 1, cursor.offset)
            return Selection.caret(node, cursor.offset - 1)
        if composing:
            return None

        if isinstance(node, HorizontalRule):
            return self._remove_rule(document, node)
        if isinstance(node, ListItem):
            if node.is_empty():
                return self._empty_item(node)
            return self._item_at_start(node)
        if isinstance(node, Heading):
            paragraph = Paragraph(content=node.content)
            replace_node(node, paragraph)
            return Selection.caret(paragraph, 0)
        if isinstance(node, Blockquote):
            return self._split_quote(node)
        if isinstance(node, CodeBlock):
            if not node.is_empty():
                return None
            paragraph = Paragraph()
            replace_node(node, paragraph)
            return Selection.caret(paragraph, 0)
        if isinstance(node, Paragraph):
            return self._paragraph_at_start(node)
        return None

    # -- list items -----------------------------------------------------------

    def _empty_item(self, item: ListItem) -> Selection:
        block = item.parent
        container = block.parent
        if (
            len(block.items) == 1
            and isinstance(container, ListItem)
            and len(container.children) == 1
        ):
            detach(block)
            move_children(item, container)
            if not container.is_empty():
                return _end(container)
            previous = previous_sibling(container)
            if previous is not None:
                return _end(last_line(previous))
            return Selection.caret(container, 0)

        paragraph = unwrap_item(item)
        return Selection.caret(paragraph, 0)

    def _item_at_start(self, item: ListItem) -> Selection:
        block = item.parent
        index = index_in_parent(item)
        if index > 0:
            return self._merge_item(item, last_line(block.items[index - 1]))

        container = block.parent
        previous = previous_sibling(block)
        if isinstance(previous, ListBlock):
            return self._merge_item(item, last_line(previous))
        if isinstance(container, ListItem):
            if isinstance(previous, TextBlock):
                return self._merge_item(item, previous)
            return self._merge_item(item, container)

        # First item of a top-level list with no list above it
        paragraph = unwrap_item(item)
        return Selection.caret(paragraph, 0)

    @staticmethod
    def _merge_item(item: ListItem, target: Node) -> Selection:
        offset = line_length(target)
        append_line(target, item.content)
        block = item.parent
        if target is block.parent:
            # Merging into the parent's own text; nested blocks go ahead of the list.
            children = list(item.children)
            item.children = []
            position = index_in_parent(block)
            for index, child in enumerate(children):
                insert_child(target, position + index, child)
        else:
            move_children(item, target)
        detach(item)
        return Selection.caret(target, offset)

    # -- paragraphs -----------------------------------------------------------

    def _paragraph_at_start(self, paragraph: Paragraph) -> Optional[Selection]:
        container = paragraph.parent
        previous = previous_sibling(paragraph)
        following = next_sibling(paragraph)

        if (
            isinstance(previous, ListBlock)
            and isinstance(following, ListBlock)
            and previous.kind is following.kind
        ):
            target = last_line(previous)
            offset = line_length(target)
            append_line(target, paragraph.content)
            detach(paragraph)
            detach(following)
            previous.items.extend(following.items)
            relink(previous)
            return Selection.caret(target, offset)

        if previous is None:
            if isinstance(container, ListItem):
                offset = line_length(container)
                append_line(container, paragraph.content)
                detach(paragraph)
                return Selection.caret(container, offset)
            if paragraph.is_empty() and following is not None:
                detach(paragraph)
                return Selection.caret(self._first_line(following), 0)
            return None

        if paragraph.is_empty():
            detach(paragraph)
            if isinstance(previous, HorizontalRule):
                return Selection.caret(previous, 0)
            return _end(last_line(previous))

        if isinstance(previous, (HorizontalRule, CodeBlock)):
            return None
        target = last_line(previous)
        offset = line_length(target)
        append_line(target, paragraph.content)
        detach(paragraph)
        return Selection.caret(target, offset)

    # -- other blocks ---------------------------------------------------------

    @staticmethod
    def _split_quote(quote: Blockquote) -> Selection:
        content = quote.content
        text = content.text
        paragraphs: List[Paragraph] = []
        start = 0
        for index, char in enumerate(text):
            if char == "\n":
                paragraphs.append(Paragraph(content=content.slice(start, index)))
                start = index + 1
        paragraphs.append(Paragraph(content=content.slice(start)))
        replace_node(quote, *paragraphs)
        return Selection.caret(paragraphs[0], 0)

    def _remove_rule(self, document: Document, rule: HorizontalRule) -> Selection:
        lines = list(iter_lines(document))
        index = next(i for i, line in enumerate(lines) if line is rule)
        detach(rule)
        if index > 0:
            return _end(lines[index - 1])
        if index + 1 < len(lines):
            return Selection.caret(lines[index + 1], 0)
        paragraph = Paragraph()
        document.children.append(paragraph)
        paragraph.parent = document
        return Selection.caret(paragraph, 0)

    @staticmethod
    def _first_line(node: Node) -> Node:
        return next(iter_lines(node))
