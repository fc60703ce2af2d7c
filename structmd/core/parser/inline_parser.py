from __future__ import annotations

"""Inline Markdown to flat run sequences.

markdown-it-py tokenizes the inline syntax and this module folds the nested
syntax tree into :class:`Run` values:

- ``strong``, ``em``, ``s`` and code spans become marks;
- a link sets ``href`` on the runs of its label;
- an image becomes a single image run whose text is the alt text;
- soft breaks, hard breaks and ``<br>`` tags become ``"\\n"``.

Any other inline HTML is kept as literal text.
"""

import re
from typing import FrozenSet, Iterable, List, Optional

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from structmd.core.models import CODE, EMPHASIS, STRIKE, STRONG, Inline, Run
from structmd.core.parser.tokenizer import create_markdown_it

__all__ = ["InlineParser", "parse_inline"]

_BREAK_TAG_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)

_MARKS = {"strong": STRONG, "em": EMPHASIS, "s": STRIKE}
_TEXT_TYPES = ("text", "text_special")
_BREAK_TYPES = ("softbreak", "hardbreak")


def _plain_text(nodes: Iterable[SyntaxTreeNode]) -> str:
    parts: List[str] = []
    for node in nodes:
        if node.type in _BREAK_TYPES:
            parts.append(" ")
        elif node.children:
            parts.append(_plain_text(node.children))
        else:
            parts.append(node.content)
    return "".join(parts)


class InlineParser:
    """Convert inline syntax nodes into runs; one instance can be shared."""

    def __init__(self, md: Optional[MarkdownIt] = None) -> None:
        self.md = md or create_markdown_it()

    def parse(self, text: str) -> Inline:
        root = SyntaxTreeNode(self.md.parseInline(text))
        runs: List[Run] = []
        for node in root.children:
            self._collect(node.children, frozenset(), None, runs)
        return Inline(runs).normalized()

    def convert(self, nodes: Iterable[SyntaxTreeNode]) -> Inline:
        """Fold the children of an ``inline`` node into normalized content."""
        runs: List[Run] = []
        self._collect(nodes, frozenset(), None, runs)
        return Inline(runs).normalized()

    # ------------------------------------------------------------------
    # Tree walk
    # ------------------------------------------------------------------
    def _collect(
        self,
        nodes: Iterable[SyntaxTreeNode],
        marks: FrozenSet[str],
        href: Optional[str],
        runs: List[Run],
    ) -> None:
        for node in nodes:
            kind = node.type
            if kind in _TEXT_TYPES:
                runs.append(Run(node.content, marks, href))
            elif kind in _BREAK_TYPES:
                runs.append(Run("\n", marks, href))
            elif kind == "code_inline":
                runs.append(Run(node.content, frozenset({CODE}), href))
            elif kind in _MARKS:
                self._collect(node.children, marks | {_MARKS[kind]}, href, runs)
            elif kind == "link":
                self._collect(node.children, marks, str(node.attrGet("href") or ""), runs)
            elif kind == "image":
                runs.append(Run(_plain_text(node.children), src=str(node.attrGet("src") or "")))
            elif kind == "html_inline" and _BREAK_TAG_RE.fullmatch(node.content.strip()):
                runs.append(Run("\n", marks, href))
            else:
                runs.append(Run(node.content, marks, href))


_DEFAULT_PARSER: Optional[InlineParser] = None


def parse_inline(text: str) -> Inline:
    global _DEFAULT_PARSER
    if _DEFAULT_PARSER is None:
        _DEFAULT_PARSER = InlineParser()
    return _DEFAULT_PARSER.parse(text)
