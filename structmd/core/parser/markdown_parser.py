from __future__ import annotations

"""Markdown to block tree decoding.

markdown-it-py parses the text (CommonMark plus strikethrough and GitHub task
lists) and :class:`MarkdownParser` maps its syntax tree onto the block model.
The mapping adds the editor's own list rules on top of CommonMark:

- list kind is per item, so a list mixing task and plain items is split into
  sibling lists of one kind each, and the pieces stay where CommonMark put
  them (a kind change under an item is still a child of that item);
- a bare ``- [ ]``/``- [x]`` line is an empty task item;
- lists are tight, so further paragraphs of an item become its trailing
  paragraphs.

Structure the model cannot hold degrades to text instead of being dropped:
blocks nested in a blockquote are flattened into its lines, non-list blocks
inside an item become paragraphs, and raw HTML blocks are read as inline
text.
"""

import logging
import re
from typing import List, Optional, Tuple

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from structmd.core.invariants import repair
from structmd.core.models import (
    Block,
    Blockquote,
    CodeBlock,
    Document,
    Heading,
    HorizontalRule,
    Inline,
    ListBlock,
    ListItem,
    ListKind,
    Paragraph,
    Run,
)
from structmd.core.parser.inline_parser import InlineParser
from structmd.core.parser.tokenizer import create_markdown_it

__all__ = ["MarkdownParser", "decode"]

logger = logging.getLogger(__name__)

_CHECKBOX_RE = re.compile(r"<input\b[^>]*\btype=\"checkbox\"", re.IGNORECASE)
_CHECKED_RE = re.compile(r"\bchecked\b", re.IGNORECASE)
_BARE_TASK_RE = re.compile(r"\[(?P<state>[ xX])\]")

_LIST_TYPES = ("bullet_list", "ordered_list")


def _join_lines(parts: List[Inline]) -> Inline:
    content = Inline()
    for index, part in enumerate(parts):
        if index:
            content.extend(Inline.of("\n"))
        content.extend(part)
    return content.normalized()


def _prefixed(prefix: str, content: Inline) -> Inline:
    result = Inline.of(prefix)
    result.extend(content)
    return result.normalized()


def _flatten(blocks: List[Block]) -> List[Inline]:
    """Render blocks as text lines for containers that only hold inline text."""
    lines: List[Inline] = []
    for block in blocks:
        if isinstance(block, ListBlock):
            for number, item in enumerate(block.items, start=1):
                if block.kind is ListKind.ORDERED:
                    marker = f"{number}. "
                elif block.kind is ListKind.TASK:
                    marker = "- [x] " if item.checked else "- [ ] "
                else:
                    marker = "- "
                lines.append(_prefixed(marker, item.content))
                lines.extend(_flatten(item.children))
        elif isinstance(block, Heading):
            lines.append(_prefixed("#" * block.level + " ", block.content))
        elif isinstance(block, CodeBlock):
            lines.append(Inline.of(block.text))
        elif isinstance(block, HorizontalRule):
            lines.append(Inline.of("---"))
        else:
            lines.append(block.content)
    return lines


class MarkdownParser:
    """Map markdown-it-py syntax trees onto :class:`Document` trees."""

    def __init__(self, md: Optional[MarkdownIt] = None, inline_parser: Optional[InlineParser] = None) -> None:
        self.md = md or create_markdown_it()
        self._inline = inline_parser or InlineParser(self.md)

    def parse(self, text: str) -> Document:
        root = SyntaxTreeNode(self.md.parse(text))
        document = Document(children=self._blocks(root.children))
        repair(document)
        return document

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------
    def _blocks(self, nodes: List[SyntaxTreeNode]) -> List[Block]:
        blocks: List[Block] = []
        for node in nodes:
            kind = node.type
            if kind == "paragraph":
                blocks.append(Paragraph(content=self._content(node)))
            elif kind == "heading":
                blocks.append(Heading(level=int(node.tag[1:]), content=self._content(node)))
            elif kind == "blockquote":
                blocks.append(Blockquote(content=_join_lines(_flatten(self._blocks(node.children)))))
            elif kind in ("fence", "code_block"):
                blocks.append(self._code(node))
            elif kind == "hr":
                blocks.append(HorizontalRule())
            elif kind in _LIST_TYPES:
                blocks.extend(self._lists(node))
            elif kind == "html_block":
                blocks.append(Paragraph(content=self._inline.parse(node.content.rstrip("\n"))))
            else:
                logger.debug("Decode: unsupported block %s kept as text", kind)
                blocks.append(Paragraph(content=Inline.of(node.content.rstrip("\n"))))
        return blocks

    def _content(self, node: SyntaxTreeNode) -> Inline:
        if not node.children:
            return Inline()
        return self._inline.convert(node.children[0].children)

    @staticmethod
    def _code(node: SyntaxTreeNode) -> CodeBlock:
        body = node.content
        if body.endswith("\n"):
            body = body[:-1]
        info = node.info.split() if node.type == "fence" else []
        return CodeBlock(language=info[0] if info else "", lines=body.split("\n"))

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------
    def _lists(self, node: SyntaxTreeNode) -> List[ListBlock]:
        ordered = node.type == "ordered_list"
        lists: List[ListBlock] = []
        for item_node in node.children:
            item, kind = self._item(item_node, ordered)
            if lists and lists[-1].kind is kind:
                lists[-1].items.append(item)
                item.parent = lists[-1]
            else:
                lists.append(ListBlock(kind=kind, items=[item]))
        return lists

    def _item(self, node: SyntaxTreeNode, ordered: bool) -> Tuple[ListItem, ListKind]:
        kind = ListKind.ORDERED if ordered else ListKind.BULLET
        checked = False
        content = Inline()
        children: List[Block] = []
        for index, child in enumerate(node.children):
            if child.type in _LIST_TYPES:
                children.extend(self._lists(child))
                continue
            if index == 0 and child.type == "paragraph" and child.children:
                state, content = self._task(child.children[0], ordered)
                if state is not None:
                    kind = ListKind.TASK
                    checked = state
                continue
            lines = _flatten(self._blocks([child]))
            if index == 0 and lines:
                content = lines.pop(0)
            children.extend(Paragraph(content=line) for line in lines)
        return ListItem(content=content, checked=checked, children=children), kind

    def _task(self, inline: SyntaxTreeNode, ordered: bool) -> Tuple[Optional[bool], Inline]:
        """Split a leading task checkbox off the first line of an item."""
        nodes = list(inline.children)
        if nodes and nodes[0].type == "html_inline" and _CHECKBOX_RE.search(nodes[0].content):
            checked = bool(_CHECKED_RE.search(nodes[0].content))
            content = self._inline.convert(nodes[1:])
            if ordered:
                # Ordered items have no checkbox; keep the marker as text.
                return None, _prefixed("[x]" if checked else "[ ]", content)
            if content.runs and not content.runs[0].is_image and content.runs[0].text.startswith(" "):
                first = content.runs[0]
                content.runs[0] = Run(first.text[1:], first.marks, first.href)
            return checked, content.normalized()
        bare = _BARE_TASK_RE.fullmatch(inline.content)
        if bare and not ordered:
            return bare.group("state") in "xX", Inline()
        return None, self._inline.convert(nodes)


_DEFAULT_PARSER: Optional[MarkdownParser] = None


def decode(text: str) -> Document:
    """Decode Markdown into a repaired block tree."""
    global _DEFAULT_PARSER
    try:
        if _DEFAULT_PARSER is None:
            _DEFAULT_PARSER = MarkdownParser()
        return _DEFAULT_PARSER.parse(text or "")
    except Exception as exc:
        logger.error("Decode FAIL: error=%s", exc, exc_info=True)
        document = Document(children=[Paragraph(content=Inline.of(text or ""))])
        repair(document)
        return document
