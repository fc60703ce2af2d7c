from __future__ import annotations

"""Shared result type and transaction wrapper for the editing services.

Every public service method goes through :meth:`EditingService._apply`,
which makes the operation total:

- the document is snapshotted before the mutation runs;
- an unexpected exception restores the snapshot, re-resolves the selection
  and yields ``EditResult(success=False, ...)``;
- a successful mutation is followed by the invariant repair pass and the
  returned selection is clamped onto attached nodes.

A mutation callable returns the new :class:`Selection`, or ``None`` when the
gesture does not apply in the current context (a no-op).
"""

from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, Optional

from structmd.config import EditorSettings, get_editor_config
from structmd.core.invariants import repair
from structmd.core.models import Document, iter_lines, structure
from structmd.core.models.cursor import (
    Cursor,
    Position,
    Selection,
    clamp,
    is_attached,
    position_of,
    resolve,
)

__all__ = ["EditResult", "EditingService", "Mutation"]

logger = logging.getLogger(__name__)

Mutation = Callable[[], Optional[Selection]]


@dataclass(frozen=True)
class EditResult:
    """Result of an editing operation.

    Attributes
    ----------
    success
        Whether the tree was changed.
    message
        Human-readable summary suitable for logs or UI display.
    selection
        Selection to show after the operation. Unchanged for no-ops.
    details
        Optional structured details for diagnostics or caller logic.
    """
    success: bool
    message: str
    selection: Optional[Selection] = None
    details: Optional[Dict[str, Any]] = None


class EditingService:
    """Base class of the stateless editing services."""

    def __init__(self, settings: Optional[EditorSettings] = None) -> None:
        self._settings = settings
        self._logger = logging.getLogger(f"{type(self).__module__}.{type(self).__name__}")

    @property
    def settings(self) -> EditorSettings:
        if self._settings is None:
            self._settings = get_editor_config()
        return self._settings

    # -------------------------------------------------------------------------
    # Transaction wrapper
    # -------------------------------------------------------------------------

    def _apply(
        self,
        op: str,
        document: Document,
        selection: Selection,
        mutate: Mutation,
        message: str = "",
    ) -> EditResult:
        self._logger.info("Edit: %s", op)
        if not (is_attached(selection.anchor.node, document) and is_attached(selection.focus.node, document)):
            self._logger.warning("Edit FAIL: %s selection_detached", op)
            return EditResult(False, "Selection is not inside the document.", selection, {"op": op})

        snapshot = document.clone()
        anchor_position = position_of(selection.anchor)
        focus_position = position_of(selection.focus)
        try:
            new_selection = mutate()
        except Exception as exc:
            self._logger.error("Edit FAIL: %s error=%s", op, exc, exc_info=True)
            document.restore(snapshot)
            restored = self._reresolve(document, anchor_position, focus_position)
            return EditResult(False, f"{op} failed.", restored, {"op": op, "error": str(exc)})

        if new_selection is None:
            if structure(document) != structure(snapshot):
                # A no-op must leave the tree untouched.
                document.restore(snapshot)
                selection = self._reresolve(document, anchor_position, focus_position)
            self._logger.info("Edit noop: %s", op)
            return EditResult(False, f"{op} does not apply here.", selection, {"op": op})

        report = repair(document)
        new_selection = self._settle(document, new_selection)
        self._logger.info("Edit OK: %s", op)
        details: Dict[str, Any] = {"op": op}
        if report.changed:
            details["repair"] = report.summary()
        return EditResult(True, message or f"{op} applied.", new_selection, details)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _settle(document: Document, selection: Selection) -> Selection:
        def settle(cursor: Cursor) -> Cursor:
            if is_attached(cursor.node, document):
                return clamp(cursor)
            first = next(iter_lines(document))
            return Cursor(first, 0)

        anchor = settle(selection.anchor)
        focus = anchor if selection.anchor == selection.focus else settle(selection.focus)
        return Selection(anchor, focus)

    @staticmethod
    def _reresolve(document: Document, anchor: Position, focus: Position) -> Selection:
        first = Cursor(next(iter_lines(document)), 0)
        anchor_cursor = resolve(document, anchor) or first
        focus_cursor = resolve(document, focus) or anchor_cursor
        return Selection(anchor_cursor, focus_cursor)
