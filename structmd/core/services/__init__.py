from __future__ import annotations

"""Editing services: stateless functions of (document, selection, gesture).

Every service mutates the document in place and reports the new selection
through an :class:`EditResult`; none of them raises to the caller.
"""

from .base import EditResult, EditingService  # noqa: F401
from .boundary_merge_service import BoundaryMergeService  # noqa: F401
from .indent_service import IndentService  # noqa: F401
from .list_format_service import ListFormatService  # noqa: F401
from .paste_service import ClipboardPayload, PasteService  # noqa: F401
from .split_service import SplitService  # noqa: F401
from .text_input_service import TextInputService  # noqa: F401

__all__: list[str] = [
    "EditResult",
    "EditingService",
    "BoundaryMergeService",
    "IndentService",
    "ListFormatService",
    "ClipboardPayload",
    "PasteService",
    "SplitService",
    "TextInputService",
]
