from __future__ import annotations

"""Block tree to canonical Markdown.

Canonical form:

- bullets use ``-``; ordered items are numbered ``1.``, ``2.``, ... (or all
  ``1.`` when ``ordered_numbering="one"``); task items use ``- [ ]``/``- [x]``;
- nested lists are indented by the parent marker width (2 columns for
  bullets and tasks, ``len("N. ")`` for ordered items);
- lists are always tight; a blank line only precedes an item's trailing
  paragraph, or a sublist opening with an empty item (an empty item cannot
  interrupt a paragraph in CommonMark);
- inline marks are emitted per run, ``~~`` outermost, then ``**``, then
  ``*``; code runs ignore other marks;
- rules are ``---`` and fences are backticks.

Text is escaped so that it never decodes back as markup. Whitespace at the
edges of a line is written as a character reference because CommonMark
strips it. Empty paragraphs are transient editing state and are skipped.
"""

import re
from typing import List, Optional

from structmd.core.models import (
    CODE,
    EMPHASIS,
    STRIKE,
    STRONG,
    Block,
    Blockquote,
    CodeBlock,
    Document,
    Heading,
    HorizontalRule,
    Inline,
    ListBlock,
    ListKind,
    Paragraph,
    Run,
)

__all__ = ["MarkdownBuilder", "encode", "split_breaks"]

_BACKTICKS_RE = re.compile(r"`+")
_URL_NEEDS_BRACKETS_RE = re.compile(r"[\s<>]")
_ENTITY_RE = re.compile(r"&(?=#[0-9]{1,7};|#[xX][0-9a-fA-F]{1,6};|[A-Za-z][A-Za-z0-9]{1,31};)")

# Line starts CommonMark reads as block syntax.
_LINE_START_RES = (
    re.compile(r"^([-*_])(?:[ \t]*\1){2,}[ \t]*$"),  # thematic break
    re.compile(r"^(?:=+|-+)[ \t]*$"),  # setext underline
    re.compile(r"^(?:[-*+]|\d{1,9}[.)])(?:[ \t]|$)"),  # list item
    re.compile(r"^#{1,6}(?:[ \t]|$)"),  # ATX heading
    re.compile(r"^>"),  # blockquote
    re.compile(r"^(?:`{3,}|~{3,})"),  # fence
)

_EDGE_REFERENCES = {" ": "&#32;", "\t": "&#9;"}


def split_breaks(content: Inline) -> List[Inline]:
    """Split inline content at line breaks."""
    lines: List[Inline] = [Inline()]
    for run in content.runs:
        if run.is_image or "\n" not in run.text:
            lines[-1].runs.append(run)
            continue
        pieces = run.text.split("\n")
        for index, piece in enumerate(pieces):
            if index:
                lines.append(Inline())
            if piece:
                lines[-1].runs.append(Run(piece, run.marks, run.href))
    return lines


def _escape_text(text: str) -> str:
    out: List[str] = []
    for index, ch in enumerate(text):
        prev = text[index - 1] if index else ""
        nxt = text[index + 1] if index + 1 < len(text) else ""
        if ch in "\\`*[]":
            out.append("\\" + ch)
        elif ch == "_" and not (prev.isalnum() and nxt.isalnum()):
            out.append("\\_")
        elif ch == "~" and (prev == "~" or nxt == "~"):
            out.append("\\~")
        elif ch == "<" and nxt and (nxt.isalpha() or nxt in "/!?"):
            out.append("\\<")
        elif ch == "&" and _ENTITY_RE.match(text, index):
            out.append("\\&")
        else:
            out.append(ch)
    return "".join(out)


def _escape_line_start(line: str) -> str:
    if not any(pattern.match(line) for pattern in _LINE_START_RES):
        return line
    digits = re.match(r"\d+", line)
    if digits:
        return digits.group() + "\\" + line[digits.end():]
    return "\\" + line


def _protect_edges(line: str, line_start: bool = True) -> str:
    """Keep edge whitespace and block syntax of a text line from being read as markup."""
    body = line.lstrip(" \t")
    if body != line:
        lead = line[: len(line) - len(body)]
        line = _EDGE_REFERENCES[lead[0]] + lead[1:] + body
    elif line_start:
        line = _escape_line_start(line)
    if line.endswith((" ", "\t")):
        line = line[:-1] + _EDGE_REFERENCES[line[-1]]
    return line


def _code_span(text: str) -> str:
    longest = max((len(ticks) for ticks in _BACKTICKS_RE.findall(text)), default=0)
    fence = "`" * (longest + 1)
    pad = ""
    if text.startswith("`") or text.endswith("`") or (
        text.startswith(" ") and text.endswith(" ") and text.strip(" ")
    ):
        pad = " "
    return f"{fence}{pad}{text}{pad}{fence}"


def _destination(url: str) -> str:
    if _URL_NEEDS_BRACKETS_RE.search(url) or url.count("(") != url.count(")"):
        return f"<{url}>"
    return url


class MarkdownBuilder:
    """Serialize a :class:`Document` to canonical Markdown."""

    def __init__(self, ordered_numbering: str = "sequential") -> None:
        self.ordered_numbering = ordered_numbering

    def build(self, document: Document) -> str:
        chunks = []
        for block in document.children:
            lines = self._block(block, 0)
            if lines:
                chunks.append("\n".join(lines))
        return "\n\n".join(chunks)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------
    def _block(self, block: Block, indent: int) -> Optional[List[str]]:
        pad = " " * indent
        if isinstance(block, ListBlock):
            return self._list(block, indent)
        if isinstance(block, Heading):
            text = self.inline(block.content).replace("\n", " ")
            if text.endswith("#"):
                # A trailing run of # would close the heading.
                text = text[:-1] + "\\#"
            text = _protect_edges(text, line_start=False)
            marks = "#" * block.level
            return [f"{pad}{marks} {text}" if text else f"{pad}{marks}"]
        if isinstance(block, Blockquote):
            return [f"{pad}> {line}" for line in self.text_lines(block.content)] or [f"{pad}>"]
        if isinstance(block, CodeBlock):
            longest = max((len(ticks) for ticks in _BACKTICKS_RE.findall(block.text)), default=0)
            fence = "`" * max(3, longest + 1)
            return [f"{pad}{fence}{block.language}", *(pad + line for line in block.lines), f"{pad}{fence}"]
        if isinstance(block, HorizontalRule):
            return [f"{pad}---"]
        if isinstance(block, Paragraph):
            if block.is_empty():
                return None
            return [pad + line for line in self.text_lines(block.content)]
        raise TypeError(f"Cannot encode {type(block).__name__}")

    def _list(self, block: ListBlock, indent: int) -> List[str]:
        pad = " " * indent
        lines: List[str] = []
        for number, item in enumerate(block.items, start=1):
            if block.kind is ListKind.ORDERED:
                marker = f"{number if self.ordered_numbering == 'sequential' else 1}."
                child_indent = indent + len(marker) + 1
            elif block.kind is ListKind.TASK:
                marker = "- [x]" if item.checked else "- [ ]"
                child_indent = indent + 2
            else:
                marker = "-"
                child_indent = indent + 2
            text_lines = self.text_lines(item.content)
            first = text_lines[0] if text_lines else ""
            lines.append(f"{pad}{marker} {first}" if first else f"{pad}{marker}")
            lines.extend(" " * child_indent + line for line in text_lines[1:])
            after_text = bool(text_lines)
            for child in item.children:
                if isinstance(child, ListBlock):
                    opens_empty = bool(child.items) and child.items[0].content.is_empty()
                    if after_text and opens_empty and child.kind is not ListKind.TASK:
                        # An empty item cannot interrupt a paragraph.
                        lines.append("")
                    lines.extend(self._list(child, child_indent))
                    after_text = False
                elif isinstance(child, Paragraph) and not child.is_empty():
                    lines.append("")
                    lines.extend(" " * child_indent + line for line in self.text_lines(child.content))
                    after_text = True
        return lines

    # ------------------------------------------------------------------
    # Inline
    # ------------------------------------------------------------------
    def text_lines(self, content: Inline) -> List[str]:
        """Encode multi-line inline content as source lines.

        Breaks become newlines, except next to an empty line where a
        ``<br>`` keeps the paragraph from splitting.
        """
        segments = [self.inline(segment) for segment in split_breaks(content)]
        lines = [segments[0]]
        previous = segments[0]
        for segment in segments[1:]:
            if previous == "" or segment == "":
                lines[-1] += "<br>" + segment
            else:
                lines.append(segment)
            previous = segment
        if lines == [""]:
            return []
        return [_protect_edges(line) for line in lines]

    def inline(self, content: Inline) -> str:
        out: List[str] = []
        runs = content.runs
        i = 0
        while i < len(runs):
            run = runs[i]
            if run.is_image:
                alt = _escape_text(run.text)
                out.append(f"![{alt}]({_destination(run.src or '')})")
                i += 1
                continue
            if run.href is not None:
                j = i
                while j < len(runs) and not runs[j].is_image and runs[j].href == run.href:
                    j += 1
                label = "".join(self._styled(part) for part in runs[i:j])
                out.append(f"[{label}]({_destination(run.href)})")
                i = j
                continue
            out.append(self._styled(run))
            i += 1
        return "".join(out)

    @staticmethod
    def _styled(run: Run) -> str:
        if CODE in run.marks:
            return _code_span(run.text)
        escaped = _escape_text(run.text)
        core = escaped.strip(" ")
        if not run.marks or not core:
            return escaped
        lead = escaped[: len(escaped) - len(escaped.lstrip(" "))]
        trail = escaped[len(escaped.rstrip(" ")):]
        if STRONG in run.marks and EMPHASIS in run.marks:
            delimiter = "***"
        elif STRONG in run.marks:
            delimiter = "**"
        elif EMPHASIS in run.marks:
            delimiter = "*"
        else:
            delimiter = ""
        core = f"{delimiter}{core}{delimiter}"
        if STRIKE in run.marks:
            core = f"~~{core}~~"
        return f"{lead}{core}{trail}"


def encode(document: Document, ordered_numbering: str = "sequential") -> str:
    """Serialize *document* to canonical Markdown."""
    return MarkdownBuilder(ordered_numbering).build(document)
