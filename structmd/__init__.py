from __future__ import annotations

"""Top-level package for structmd, a structural Markdown editing engine.

Hosts should depend on the public API exposed here rather than importing
internal modules directly.
"""

from .core.editor import EditorSession, Gesture  # noqa: F401
from .core.generators import encode, to_html  # noqa: F401
from .core.models import Document, ListKind  # noqa: F401
from .core.models.cursor import Cursor, Selection  # noqa: F401
from .core.parser import decode, from_html  # noqa: F401
from .core.services import ClipboardPayload, EditResult  # noqa: F401

__version__ = "0.1.0"

__all__: list[str] = [
    "EditorSession",
    "Gesture",
    "Document",
    "ListKind",
    "Cursor",
    "Selection",
    "ClipboardPayload",
    "EditResult",
    "decode",
    "encode",
    "from_html",
    "to_html",
]
