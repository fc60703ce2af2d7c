from __future__ import annotations

"""Decoders turning Markdown text and HTML fragments into block trees."""

from .html_parser import HtmlFragmentParser, from_html  # noqa: F401
from .inline_parser import InlineParser, parse_inline  # noqa: F401
from .markdown_parser import MarkdownParser, decode  # noqa: F401

__all__: list[str] = [
    "HtmlFragmentParser",
    "from_html",
    "InlineParser",
    "parse_inline",
    "MarkdownParser",
    "decode",
]
