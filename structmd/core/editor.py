from __future__ import annotations

"""Editor session: the document, the selection and gesture dispatch.

:class:`EditorSession` is the only stateful object of the package. It owns the
block tree, the current selection and the IME composition flag, and routes
each gesture to the stateless service that implements it.

Examples
--------
Basic usage:

    session = EditorSession("- aaa\\n- bbb")
    session.select(session.find("bbb"))
    session.tab()
    print(session.markdown)   # "- aaa\\n  - bbb"

"""

from enum import Enum
import logging
from typing import Callable, Dict, Optional, Tuple

from structmd.config import EditorSettings, get_editor_config
from structmd.core.generators.html_builder import to_html
from structmd.core.generators.markdown_builder import encode
from structmd.core.models import Document, ListKind, Node, iter_lines, line_length
from structmd.core.models.cursor import Cursor, Selection, is_attached
from structmd.core.parser.html_parser import from_html
from structmd.core.parser.markdown_parser import decode
from structmd.core.services import (
    BoundaryMergeService,
    ClipboardPayload,
    EditResult,
    IndentService,
    ListFormatService,
    PasteService,
    SplitService,
    TextInputService,
)

__all__ = ["EditorSession", "Gesture"]

logger = logging.getLogger(__name__)


class Gesture(str, Enum):
    """Discrete key gestures a host surface reports."""

    BACKSPACE = "backspace"
    TAB = "tab"
    SHIFT_TAB = "shift_tab"
    ENTER = "enter"


class EditorSession:
    """Holds one document and applies editing gestures to it."""

    def __init__(self, markdown: str = "", settings: Optional[EditorSettings] = None) -> None:
        self.settings = settings or get_editor_config()
        self.document: Document = decode(markdown)
        self.selection: Selection = self._initial_selection()
        self.composing = False

        self._merge = BoundaryMergeService(self.settings)
        self._indent = IndentService(self.settings)
        self._split = SplitService(self.settings)
        self._input = TextInputService(self.settings)
        self._format = ListFormatService(self.settings)
        self._clipboard = PasteService(self.settings)
        self._gestures: Dict[Gesture, Callable[[], EditResult]] = {
            Gesture.BACKSPACE: self.backspace,
            Gesture.TAB: self.tab,
            Gesture.SHIFT_TAB: self.shift_tab,
            Gesture.ENTER: self.enter,
        }

    @classmethod
    def from_html(cls, html: str, settings: Optional[EditorSettings] = None) -> "EditorSession":
        session = cls(settings=settings)
        session.load_html(html)
        return session

    # -------------------------------------------------------------------------
    # Loading and serialization
    # -------------------------------------------------------------------------

    def load_markdown(self, text: str) -> None:
        """Replace the document with decoded *text*; the caret goes to the start."""
        self.document = decode(text)
        self.selection = self._initial_selection()
        logger.info("Session: loaded markdown chars=%d", len(text or ""))

    def load_html(self, html: str) -> None:
        self.document = from_html(html)
        self.selection = self._initial_selection()
        logger.info("Session: loaded html chars=%d", len(html or ""))

    @property
    def markdown(self) -> str:
        return encode(self.document, self.settings.ordered_numbering)

    @property
    def html(self) -> str:
        return to_html(self.document, self.settings.default_code_language)

    def snapshot(self) -> Document:
        """Deep copy of the document for undo layers built on top."""
        return self.document.clone()

    def restore(self, snapshot: Document) -> None:
        self.document.restore(snapshot)
        self.selection = self._initial_selection()

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select(
        self,
        node: Node,
        offset: int = 0,
        focus_node: Optional[Node] = None,
        focus_offset: Optional[int] = None,
    ) -> Selection:
        """Place the caret, or a range when a focus is given.

        ``offset=-1`` (or ``focus_offset=-1``) means the end of the line.
        """
        if not is_attached(node, self.document):
            raise ValueError("Node is not part of this document")
        anchor = self._cursor(node, offset)
        if focus_node is None:
            focus = anchor if focus_offset is None else self._cursor(node, focus_offset)
        else:
            if not is_attached(focus_node, self.document):
                raise ValueError("Node is not part of this document")
            focus = self._cursor(focus_node, 0 if focus_offset is None else focus_offset)
        self.selection = Selection(anchor, focus)
        return self.selection

    def find(self, text: str, occurrence: int = 0) -> Node:
        """Return the line node whose text equals *text*."""
        matches = [line for line in iter_lines(self.document) if line.text == text]
        if len(matches) <= occurrence:
            raise LookupError(f"No line with text {text!r}")
        return matches[occurrence]

    # -------------------------------------------------------------------------
    # Gestures
    # -------------------------------------------------------------------------

    def dispatch(self, gesture: Gesture) -> EditResult:
        return self._gestures[Gesture(gesture)]()

    def backspace(self) -> EditResult:
        return self._commit(self._merge.backspace(self.document, self.selection, composing=self.composing))

    def delete_selection(self) -> EditResult:
        return self._commit(self._merge.delete_selection(self.document, self.selection))

    def tab(self) -> EditResult:
        if self.composing:
            return self._suspended("indent")
        return self._commit(self._indent.indent(self.document, self.selection))

    def shift_tab(self) -> EditResult:
        if self.composing:
            return self._suspended("outdent")
        return self._commit(self._indent.outdent(self.document, self.selection))

    def enter(self) -> EditResult:
        if self.composing:
            return self._suspended("split")
        return self._commit(self._split.split(self.document, self.selection))

    def insert_text(self, text: str) -> EditResult:
        return self._commit(
            self._input.insert_text(self.document, self.selection, text, composing=self.composing)
        )

    def paste(self, payload: ClipboardPayload) -> EditResult:
        return self._commit(self._clipboard.paste(self.document, self.selection, payload))

    def paste_mime(self, data: Dict[str, str]) -> EditResult:
        """Paste from a MIME type to content mapping."""
        return self.paste(ClipboardPayload.from_mime(data, self.settings.markdown_mime))

    def copy(self) -> ClipboardPayload:
        return self._clipboard.copy(self.document, self.selection)

    def cut(self) -> Tuple[ClipboardPayload, EditResult]:
        payload = self.copy()
        return payload, self.delete_selection()

    def set_list_kind(self, kind: ListKind) -> EditResult:
        return self._commit(self._format.set_list_kind(self.document, self.selection, kind))

    def unset_list(self) -> EditResult:
        return self._commit(self._format.unset_list(self.document, self.selection))

    # -------------------------------------------------------------------------
    # IME composition
    # -------------------------------------------------------------------------

    def composition_start(self) -> None:
        self.composing = True
        logger.debug("Session: composition started")

    def composition_end(self) -> None:
        self.composing = False
        logger.debug("Session: composition ended")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _commit(self, result: EditResult) -> EditResult:
        if result.selection is not None:
            self.selection = result.selection
        return result

    def _suspended(self, op: str) -> EditResult:
        logger.info("Edit noop: %s composing", op)
        return EditResult(False, "Not handled during composition.", self.selection, {"op": op})

    def _initial_selection(self) -> Selection:
        first = next(iter_lines(self.document))
        return Selection.caret(first, 0)

    @staticmethod
    def _cursor(node: Node, offset: int) -> Cursor:
        length = line_length(node)
        if offset < 0:
            return Cursor(node, length)
        return Cursor(node, min(offset, length))
