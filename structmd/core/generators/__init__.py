from __future__ import annotations

"""Encoders producing canonical Markdown and the rendered HTML fragment."""

from .html_builder import HtmlBuilder, to_html  # noqa: F401
from .markdown_builder import MarkdownBuilder, encode  # noqa: F401

__all__: list[str] = [
    "HtmlBuilder",
    "to_html",
    "MarkdownBuilder",
    "encode",
]
