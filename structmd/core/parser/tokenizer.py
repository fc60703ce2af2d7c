from __future__ import annotations

"""markdown-it-py configuration shared by the Markdown decoders.

The parser is CommonMark with the ``strikethrough`` rule enabled and the
GitHub task list plugin. Link destinations are stored exactly as written;
percent-encoding them is left to whoever renders the document.
"""

from markdown_it import MarkdownIt
from mdit_py_plugins.tasklists import tasklists_plugin

__all__ = ["SourceMarkdownIt", "create_markdown_it"]


class SourceMarkdownIt(MarkdownIt):
    """CommonMark parser that keeps link destinations verbatim."""

    def normalizeLink(self, url: str) -> str:  # noqa: N802
        return url

    def normalizeLinkText(self, link: str) -> str:  # noqa: N802
        return link


def create_markdown_it() -> MarkdownIt:
    """Return a parser configured for the editor's Markdown dialect."""
    return SourceMarkdownIt("commonmark").enable("strikethrough").use(tasklists_plugin)
