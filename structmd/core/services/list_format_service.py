from __future__ import annotations

"""Toolbar list formatting: switch lines between list kinds and paragraphs."""

import logging
from typing import Dict, List, Optional

from structmd.core.models import Document, ListItem, ListKind, Node, Paragraph
from structmd.core.models.cursor import Cursor, Selection, selected_lines
from structmd.core.services.base import EditingService, EditResult
from structmd.core.tree_ops import paragraph_to_item, set_item_kind, unwrap_item

__all__ = ["ListFormatService"]

logger = logging.getLogger(__name__)


def _remap(selection: Selection, replaced: Dict[int, Node]) -> Selection:
    def remap(cursor: Cursor) -> Cursor:
        node = replaced.get(id(cursor.node))
        return cursor if node is None else Cursor(node, cursor.offset)

    return Selection(remap(selection.anchor), remap(selection.focus))


class ListFormatService(EditingService):
    """Apply or remove list formatting on the selected lines."""

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def set_list_kind(self, document: Document, selection: Selection, kind: ListKind) -> EditResult:
        """Make every selected line an item of *kind*.

        Paragraphs become items joining adjacent lists of the same kind; items
        of another kind are split out of their list into a list of their own.
        Items already of *kind* are left alone.
        """
        kind = ListKind(kind)
        return self._apply(
            f"set_list_kind:{kind.value}",
            document,
            selection,
            lambda: self._set_kind(document, selection, kind),
        )

    def unset_list(self, document: Document, selection: Selection) -> EditResult:
        """Turn the selected list items back into paragraphs."""
        return self._apply("unset_list", document, selection, lambda: self._unset(document, selection))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _set_kind(self, document: Document, selection: Selection, kind: ListKind) -> Optional[Selection]:
        replaced: Dict[int, Node] = {}
        changed = 0
        lines: List[Node] = selected_lines(document, selection)
        for line in lines:
            if isinstance(line, ListItem):
                if set_item_kind(line, kind):
                    changed += 1
            elif type(line) is Paragraph:
                replaced[id(line)] = paragraph_to_item(line, kind)
                changed += 1
        if not changed:
            return None
        logger.debug("List format: kind=%s lines=%d", kind.value, changed)
        return _remap(selection, replaced)

    def _unset(self, document: Document, selection: Selection) -> Optional[Selection]:
        replaced: Dict[int, Node] = {}
        for line in selected_lines(document, selection):
            if isinstance(line, ListItem):
                replaced[id(line)] = unwrap_item(line)
        if not replaced:
            return None
        return _remap(selection, replaced)
