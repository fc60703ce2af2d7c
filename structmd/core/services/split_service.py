from __future__ import annotations

"""Block splitting (Enter)."""

import logging
import re
from typing import Optional

from structmd.core.models import (
    Blockquote,
    CodeBlock,
    Document,
    Heading,
    HorizontalRule,
    ListItem,
    Paragraph,
    Run,
    index_in_parent,
    insert_after,
    insert_child,
    replace_node,
)
from structmd.core.models.cursor import Cursor, Selection, ordered, range_of_line
from structmd.core.services.base import EditingService, EditResult
from structmd.core.tree_ops import delete_range, lift_item, unwrap_item

__all__ = ["SplitService"]

logger = logging.getLogger(__name__)

_FENCE_OPENER_RE = re.compile(r"^(?:`{3,}|~{3,})(?P<lang>[^`\s]*)$")


class SplitService(EditingService):
    """Enter handling for every block kind."""

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def split(self, document: Document, selection: Selection) -> EditResult:
        """Split the block at the cursor, deleting any selection first."""
        return self._apply("split", document, selection, lambda: self._split(selection))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _split(self, selection: Selection) -> Optional[Selection]:
        if selection.is_collapsed:
            cursor = selection.focus
        else:
            cursor = delete_range(*ordered(selection))
        node = cursor.node

        if isinstance(node, HorizontalRule):
            paragraph = Paragraph()
            insert_after(node, paragraph)
            return Selection.caret(paragraph, 0)
        if isinstance(node, CodeBlock):
            return self._code_newline(node, cursor)
        if isinstance(node, Blockquote):
            return self._quote_newline(node, cursor)
        if isinstance(node, ListItem):
            return self._split_item(node, cursor.offset)
        if isinstance(node, Heading):
            return self._split_heading(node, cursor.offset)
        if isinstance(node, Paragraph):
            fence = _FENCE_OPENER_RE.match(node.text)
            if fence and cursor.offset == node.length and isinstance(node.parent, Document):
                code = CodeBlock(language=fence.group("lang"))
                replace_node(node, code)
                return Selection.caret(code, 0)
            head, tail = node.content.split(cursor.offset)
            node.content = head
            paragraph = Paragraph(content=tail)
            insert_after(node, paragraph)
            return Selection.caret(paragraph, 0)
        return None

    @staticmethod
    def _code_newline(code: CodeBlock, cursor: Cursor) -> Selection:
        start, _ = range_of_line(cursor)
        text = code.text
        line = text[start:cursor.offset]
        indent = line[: len(line) - len(line.lstrip(" "))]
        inserted = "\n" + indent
        code.text = text[:cursor.offset] + inserted + text[cursor.offset:]
        return Selection.caret(code, cursor.offset + len(inserted))

    @staticmethod
    def _quote_newline(quote: Blockquote, cursor: Cursor) -> Selection:
        start, end = range_of_line(cursor)
        length = quote.length
        if start == end and end == length:
            # Enter on an empty last line leaves the quote.
            if start > 0:
                quote.content.delete(start - 1, start)
                paragraph = Paragraph()
                insert_after(quote, paragraph)
            else:
                paragraph = Paragraph()
                replace_node(quote, paragraph)
            return Selection.caret(paragraph, 0)
        marks = quote.content.marks_at(cursor.offset)
        quote.content.insert(cursor.offset, [Run("\n", marks)])
        return Selection.caret(quote, cursor.offset + 1)

    @staticmethod
    def _split_heading(heading: Heading, offset: int) -> Selection:
        if offset >= heading.length:
            paragraph = Paragraph()
            insert_after(heading, paragraph)
            return Selection.caret(paragraph, 0)
        if offset == 0:
            insert_child(heading.parent, index_in_parent(heading), Paragraph())
            return Selection.caret(heading, 0)
        head, tail = heading.content.split(offset)
        heading.content = head
        paragraph = Paragraph(content=tail)
        insert_after(heading, paragraph)
        return Selection.caret(paragraph, 0)

    @staticmethod
    def _split_item(item: ListItem, offset: int) -> Selection:
        if item.is_empty() and not item.children:
            if isinstance(item.parent.parent, ListItem):
                lift_item(item)
                return Selection.caret(item, 0)
            paragraph = unwrap_item(item)
            return Selection.caret(paragraph, 0)
        head, tail = item.content.split(offset)
        item.content = head
        new_item = ListItem(content=tail, children=item.children)
        item.children = []
        insert_after(item, new_item)
        return Selection.caret(new_item, 0)
