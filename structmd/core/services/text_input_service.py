from __future__ import annotations

"""Typed text insertion and Markdown input rules.

Typing a marker followed by a space at the start of a paragraph converts the
paragraph: ``- ``/``* ``/``+ `` to a bullet item, ``1. `` to an ordered item,
``- [ ] ``/``- [x] `` to a task item, ``# `` to a heading and ``> `` to a
blockquote. ``[ ] `` typed at the start of a bullet item turns it into a task
item. Input rules are suppressed while an IME composition is active.
"""

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
    ListKind,
    Node,
    Paragraph,
    Run,
    TextBlock,
    insert_after,
    replace_node,
)
from structmd.core.models.cursor import Cursor, Selection, ordered
from structmd.core.services.base import EditingService, EditResult
from structmd.core.tree_ops import delete_range, paragraph_to_item, set_item_kind

__all__ = ["TextInputService", "insert_plain"]

logger = logging.getLogger(__name__)

_TASK_RULE_RE = re.compile(r"^[-*+] \[(?P<state>[ xX])\] $")
_BULLET_RULE_RE = re.compile(r"^[-*+] $")
_ORDERED_RULE_RE = re.compile(r"^\d{1,9}[.)] $")
_HEADING_RULE_RE = re.compile(r"^(?P<marks>#{1,6}) $")
_QUOTE_RULE_RE = re.compile(r"^> $")
_ITEM_TASK_RULE_RE = re.compile(r"^\[(?P<state>[ xX])\] $")


def insert_plain(node: Node, offset: int, text: str, href: Optional[str] = None) -> int:
    """Insert *text* at *offset*, inheriting the style before the cursor.

    Returns the offset just after the inserted text.
    """
    if isinstance(node, CodeBlock):
        current = node.text
        node.text = current[:offset] + text + current[offset:]
        return offset + len(text)
    if isinstance(node, TextBlock):
        before = node.content.run_before(offset)
        marks = node.content.marks_at(offset)
        link = href
        if link is None and before is not None and not before.is_image:
            link = before.href
        return offset + node.content.insert(offset, [Run(text, marks, link)])
    return offset


class TextInputService(EditingService):
    """Character input at the cursor."""

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def insert_text(
        self,
        document: Document,
        selection: Selection,
        text: str,
        composing: bool = False,
    ) -> EditResult:
        """Insert *text*, replacing the selection, then run the input rules."""
        return self._apply(
            "insert_text",
            document,
            selection,
            lambda: self._insert(selection, text, composing),
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _insert(self, selection: Selection, text: str, composing: bool) -> Optional[Selection]:
        if not text:
            return None
        if selection.is_collapsed:
            cursor = selection.focus
        else:
            cursor = delete_range(*ordered(selection))
        node = cursor.node
        offset = cursor.offset
        if isinstance(node, HorizontalRule):
            node = Paragraph()
            insert_after(cursor.node, node)
            offset = 0
        offset = insert_plain(node, offset, text.replace("\r\n", "\n"))
        caret = Cursor(node, offset)
        if text.endswith(" ") and not composing and self.settings.input_rules:
            caret = self._input_rule(caret) or caret
        return Selection(caret, caret)

    def _input_rule(self, caret: Cursor) -> Optional[Cursor]:
        node = caret.node
        prefix = node.text[:caret.offset]

        if isinstance(node, ListItem):
            task = _ITEM_TASK_RULE_RE.match(prefix)
            if task and node.parent.kind is ListKind.BULLET:
                node.content.delete(0, len(prefix))
                set_item_kind(node, ListKind.TASK)
                node.checked = task.group("state") != " "
                logger.debug("Input rule: task item")
                return Cursor(node, 0)
            return None
        if not isinstance(node, Paragraph):
            return None

        task = _TASK_RULE_RE.match(prefix)
        if task:
            node.content.delete(0, len(prefix))
            item = paragraph_to_item(node, ListKind.TASK, checked=task.group("state") != " ")
            return Cursor(item, 0)
        if _BULLET_RULE_RE.match(prefix):
            node.content.delete(0, len(prefix))
            return Cursor(paragraph_to_item(node, ListKind.BULLET), 0)
        if _ORDERED_RULE_RE.match(prefix):
            node.content.delete(0, len(prefix))
            return Cursor(paragraph_to_item(node, ListKind.ORDERED), 0)
        if not isinstance(node.parent, Document):
            return None
        heading = _HEADING_RULE_RE.match(prefix)
        if heading:
            node.content.delete(0, len(prefix))
            block: TextBlock = Heading(content=node.content, level=len(heading.group("marks")))
            replace_node(node, block)
            return Cursor(block, 0)
        if _QUOTE_RULE_RE.match(prefix):
            node.content.delete(0, len(prefix))
            block = Blockquote(content=node.content)
            replace_node(node, block)
            return Cursor(block, 0)
        return None
