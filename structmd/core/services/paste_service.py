from __future__ import annotations

"""Clipboard paste normalization and copy.

Paste picks one source from the payload, in this order:

1. the editor's own Markdown (``ClipboardPayload.markdown``), decoded as is;
2. a single-line plain-text URL, turned into a link;
3. HTML from other applications, parsed by the tolerant fragment parser;
4. plain text; more than one line becomes one paragraph per line.

Inside a code block or an inline code span the payload is always inserted as
literal text. A fragment holding one paragraph is inserted inline; other
fragments split the current block and go in between. List fragments pasted
into a list item are spliced into the item's list.

Copy produces all three flavours for the selected range.
"""

from dataclasses import dataclass
import logging
import re
from typing import Dict, List, Mapping, Optional, Tuple

from structmd.core.generators.html_builder import HtmlBuilder
from structmd.core.generators.markdown_builder import MarkdownBuilder
from structmd.core.models import (
    CODE,
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
    Node,
    Paragraph,
    Run,
    TextBlock,
    detach,
    index_in_parent,
    insert_after,
    insert_child,
    iter_lines,
    last_line,
    line_length,
    list_depth,
    replace_node,
)
from structmd.core.models.cursor import Cursor, Selection, ordered
from structmd.core.parser.html_parser import from_html
from structmd.core.parser.markdown_parser import decode
from structmd.core.services.base import EditingService, EditResult
from structmd.core.services.text_input_service import insert_plain
from structmd.core.tree_ops import delete_range, line_slice

__all__ = ["ClipboardPayload", "PasteService"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClipboardPayload:
    """Clipboard content in the flavours the editor understands.

    Attributes
    ----------
    text
        ``text/plain`` flavour.
    html
        ``text/html`` flavour, or None.
    markdown
        The editor's own Markdown flavour, or None.
    """
    text: str = ""
    html: Optional[str] = None
    markdown: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.text or self.html or self.markdown)

    def to_mime(self, markdown_mime: str = "text/x-any-md") -> Dict[str, str]:
        data = {"text/plain": self.text}
        if self.html is not None:
            data["text/html"] = self.html
        if self.markdown is not None:
            data[markdown_mime] = self.markdown
        return data

    @classmethod
    def from_mime(cls, data: Mapping[str, str], markdown_mime: str = "text/x-any-md") -> "ClipboardPayload":
        return cls(
            text=data.get("text/plain", "") or "",
            html=data.get("text/html"),
            markdown=data.get(markdown_mime),
        )


def _for_item(blocks: List[Block]) -> List[Block]:
    """Narrow *blocks* to what a list item may hold (paragraphs and lists)."""
    narrowed: List[Block] = []
    for block in blocks:
        if isinstance(block, (ListBlock, Paragraph)):
            narrowed.append(block)
        elif isinstance(block, TextBlock):
            narrowed.append(Paragraph(content=block.content))
        elif isinstance(block, CodeBlock):
            narrowed.append(Paragraph(content=Inline.of(block.text, (CODE,))))
    return narrowed


def _as_items(blocks: List[Block]) -> List[ListItem]:
    items: List[ListItem] = []
    for block in blocks:
        if isinstance(block, ListBlock):
            items.extend(block.items)
        elif isinstance(block, TextBlock):
            items.append(ListItem(content=block.content))
        elif isinstance(block, CodeBlock):
            items.append(ListItem(content=Inline.of(block.text, (CODE,))))
    return items


class PasteService(EditingService):
    """Paste and copy on a document."""

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def paste(self, document: Document, selection: Selection, payload: ClipboardPayload) -> EditResult:
        """Insert *payload* at the selection, replacing selected content."""
        return self._apply("paste", document, selection, lambda: self._paste(selection, payload))

    def copy(self, document: Document, selection: Selection) -> ClipboardPayload:
        """Serialize the selected range in every clipboard flavour."""
        logger.info("Edit: copy")
        try:
            payload = self._copy(document, selection)
        except Exception as exc:
            logger.error("Edit FAIL: copy error=%s", exc, exc_info=True)
            return ClipboardPayload()
        logger.info("Edit OK: copy chars=%d", len(payload.text))
        return payload

    def match_url(self, text: str) -> Optional[str]:
        """Return the URL when *text* is a single bare URL of an allowed scheme."""
        candidate = text.strip()
        if not candidate or any(ch.isspace() for ch in candidate):
            return None
        schemes = "|".join(re.escape(scheme) for scheme in self.settings.url_schemes)
        if re.match(rf"^(?:{schemes})://[^\s<>\"]+$", candidate, re.IGNORECASE):
            return candidate
        return None

    # -------------------------------------------------------------------------
    # Paste
    # -------------------------------------------------------------------------

    def _paste(self, selection: Selection, payload: ClipboardPayload) -> Optional[Selection]:
        if payload.is_empty:
            return None
        start, end = ordered(selection)

        if self._in_code(start):
            literal = payload.text or payload.markdown or self._html_text(payload.html)
            if not literal:
                return None
            cursor = self._clear(selection)
            if isinstance(cursor.node, TextBlock):
                literal = literal.replace("\r\n", "\n").replace("\n", " ")
            offset = insert_plain(cursor.node, cursor.offset, literal.replace("\r\n", "\n"))
            return Selection.caret(cursor.node, offset)

        if payload.markdown is not None:
            return self._insert_fragment(self._clear(selection), decode(payload.markdown).children)

        url = None if payload.html else self.match_url(payload.text)
        if url is not None:
            node = start.node
            if not selection.is_collapsed and node is end.node and isinstance(node, TextBlock):
                node.content.apply_href(start.offset, end.offset, url)
                logger.debug("Paste: linked selection")
                return selection
            cursor = self._clear(selection)
            return self._insert_inline(cursor, Inline([Run(url, frozenset(), url)]))

        if payload.html:
            return self._insert_fragment(self._clear(selection), from_html(payload.html).children)

        text = payload.text.replace("\r\n", "\n").replace("\r", "\n")
        cursor = self._clear(selection)
        if "\n" not in text:
            if isinstance(cursor.node, HorizontalRule):
                return self._insert_inline(cursor, Inline.of(text))
            return Selection.caret(cursor.node, insert_plain(cursor.node, cursor.offset, text))
        blocks: List[Block] = [Paragraph(content=Inline.of(line)) for line in text.split("\n")]
        return self._insert_fragment(cursor, blocks)

    @staticmethod
    def _clear(selection: Selection) -> Cursor:
        if selection.is_collapsed:
            return selection.focus
        return delete_range(*ordered(selection))

    @staticmethod
    def _in_code(cursor: Cursor) -> bool:
        node = cursor.node
        if isinstance(node, CodeBlock):
            return True
        if not isinstance(node, TextBlock):
            return False
        before = node.content.run_before(cursor.offset)
        after = node.content.run_before(cursor.offset + 1) if cursor.offset < node.length else None
        return (
            before is not None
            and after is not None
            and CODE in before.marks
            and CODE in after.marks
        )

    @staticmethod
    def _html_text(html: Optional[str]) -> str:
        if not html:
            return ""
        return "\n".join(line.text for line in iter_lines(from_html(html)))

    def _insert_inline(self, cursor: Cursor, content: Inline) -> Selection:
        node = cursor.node
        if isinstance(node, HorizontalRule):
            paragraph = Paragraph(content=content)
            insert_after(node, paragraph)
            return Selection.caret(paragraph, paragraph.length)
        if isinstance(node, CodeBlock):
            offset = insert_plain(node, cursor.offset, content.text)
            return Selection.caret(node, offset)
        inserted = node.content.insert(cursor.offset, content.runs)
        return Selection.caret(node, cursor.offset + inserted)

    def _insert_fragment(self, cursor: Cursor, blocks: List[Block]) -> Optional[Selection]:
        blocks = [
            block
            for block in blocks
            if not (isinstance(block, Paragraph) and block.is_empty())
        ]
        if not blocks:
            return None
        for block in blocks:
            block.parent = None
        node = cursor.node

        if len(blocks) == 1 and isinstance(blocks[0], Paragraph) and not isinstance(node, HorizontalRule):
            return self._insert_inline(cursor, blocks[0].content)

        if isinstance(node, ListItem):
            return self._splice_items(node, blocks)

        if isinstance(node.parent, ListItem):
            blocks = _for_item(blocks)
            if not blocks:
                return None

        if isinstance(node, HorizontalRule):
            insert_after(node, *blocks)
        elif isinstance(node, Paragraph) and node.is_empty():
            replace_node(node, *blocks)
        else:
            self._split_around(node, cursor.offset, blocks)
        target = last_line(blocks[-1])
        return Selection.caret(target, line_length(target))

    @staticmethod
    def _split_around(node: Node, offset: int, blocks: List[Block]) -> None:
        if offset == 0 and line_length(node) > 0:
            container = node.parent
            index = index_in_parent(node)
            for position, block in enumerate(blocks):
                insert_child(container, index + position, block)
            return
        tail: Optional[Block] = None
        if offset < line_length(node):
            if isinstance(node, CodeBlock):
                text = node.text
                node.text = text[:offset]
                tail = CodeBlock(language=node.language, lines=text[offset:].split("\n"))
            else:
                head, rest = node.content.split(offset)
                node.content = head
                tail = type(node)(content=rest) if isinstance(node, Blockquote) else Paragraph(content=rest)
        insert_after(node, *blocks, *([tail] if tail is not None else []))

    @staticmethod
    def _splice_items(item: ListItem, blocks: List[Block]) -> Optional[Selection]:
        items = _as_items(blocks)
        if not items:
            return None
        block = item.parent
        index = index_in_parent(item)
        if item.is_empty():
            children = list(item.children)
            item.children = []
            detach(item)
            for position, new_item in enumerate(items):
                insert_child(block, index + position, new_item)
            for child in children:
                insert_child(items[-1], len(items[-1].children), child)
        else:
            for position, new_item in enumerate(items, start=1):
                insert_child(block, index + position, new_item)
        target = last_line(items[-1])
        return Selection.caret(target, line_length(target))

    # -------------------------------------------------------------------------
    # Copy
    # -------------------------------------------------------------------------

    def _copy(self, document: Document, selection: Selection) -> ClipboardPayload:
        if selection.is_collapsed:
            return ClipboardPayload()
        start, end = ordered(selection)
        numbering = self.settings.ordered_numbering
        html_builder = HtmlBuilder(self.settings.default_code_language)

        if start.node is end.node and not isinstance(start.node, HorizontalRule):
            node = start.node
            if isinstance(node, CodeBlock):
                text = node.text[start.offset:end.offset]
                fragment = Document(children=[CodeBlock(language=node.language, lines=text.split("\n"))])
                return ClipboardPayload(text=text, html=html_builder.build(fragment), markdown=text)
            content = line_slice(node, start.offset, end.offset)
            fragment = Document(children=[Paragraph(content=content)])
            return ClipboardPayload(
                text=content.text,
                html=html_builder.build(fragment),
                markdown=MarkdownBuilder(numbering).inline(content),
            )

        fragment = self._fragment(document, start, end)
        texts = [line.text for line in iter_lines(fragment)]
        return ClipboardPayload(
            text="\n".join(texts),
            html=html_builder.build(fragment),
            markdown=MarkdownBuilder(numbering).build(fragment),
        )

    def _fragment(self, document: Document, start: Cursor, end: Cursor) -> Document:
        lines: List[Node] = []
        inside = False
        for line in iter_lines(document):
            if line is start.node:
                inside = True
            if inside:
                lines.append(line)
            if line is end.node:
                break
        if len(lines) > 1 and lines[-1] is end.node and end.offset == 0:
            lines.pop()

        depths = [list_depth(line) for line in lines if isinstance(line, ListItem)]
        base = min(depths) if depths else 0
        fragment = Document()
        stack: List[Tuple[int, ListItem, ListItem]] = []

        def portion(line: Node) -> Tuple[int, Optional[int]]:
            first = start.offset if line is start.node else 0
            last = end.offset if line is end.node else None
            return first, last

        for line in lines:
            first, last = portion(line)
            if isinstance(line, ListItem):
                depth = list_depth(line) - base
                while stack and stack[-1][0] >= depth:
                    stack.pop()
                copy = ListItem(content=line_slice(line, first, last), checked=line.checked)
                siblings = stack[-1][2].children if stack else fragment.children
                owner = stack[-1][2] if stack else fragment
                kind = line.parent.kind if isinstance(line.parent, ListBlock) else ListKind.BULLET
                previous = siblings[-1] if siblings else None
                if isinstance(previous, ListBlock) and previous.kind is kind:
                    insert_child(previous, len(previous.items), copy)
                else:
                    insert_child(owner, len(siblings), ListBlock(kind=kind, items=[copy]))
                stack.append((depth, line, copy))
                continue

            holder = line.parent
            entry = next((frame for frame in reversed(stack) if frame[1] is holder), None)
            if entry is not None and isinstance(line, Paragraph):
                while stack[-1] is not entry:
                    stack.pop()
                insert_child(entry[2], len(entry[2].children), Paragraph(content=line_slice(line, first, last)))
                continue

            stack.clear()
            fragment.children.append(self._copy_block(line, first, last))
        for child in fragment.children:
            child.parent = fragment
        return fragment

    @staticmethod
    def _copy_block(line: Node, first: int, last: Optional[int]) -> Block:
        if isinstance(line, CodeBlock):
            return CodeBlock(language=line.language, lines=line.text[first:last].split("\n"))
        if isinstance(line, HorizontalRule):
            return HorizontalRule()
        content = line_slice(line, first, last)
        if isinstance(line, Heading):
            return Heading(content=content, level=line.level)
        if isinstance(line, Blockquote):
            return Blockquote(content=content)
        return Paragraph(content=content)
