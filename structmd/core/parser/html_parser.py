from __future__ import annotations

"""HTML fragment to block tree.

Reads both the editor's own rendered fragments and third-party clipboard
HTML. It is tolerant where the renderer is strict:

- a trailing ``<br>`` in a block is the empty-line placeholder and is dropped;
- ``b``/``i``/``s``/``strike`` and inline ``span`` styles map to marks, and a
  ``font-weight: normal`` wrapper cancels bold;
- ``div`` wrappers and loose ``<li><p>...</p></li>`` items are unwrapped, and
  further paragraphs in an item become its trailing paragraphs;
- a list mixing checkbox and plain items is split into sibling lists by kind;
- elements outside the vocabulary are unwrapped to their inline content;
- input lxml cannot parse becomes one paragraph of raw text.
"""

import logging
import re
from typing import FrozenSet, List, Optional, Tuple

from lxml import etree as ET  # type: ignore
from lxml import html as lxml_html  # type: ignore

from structmd.core.invariants import repair
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
    ListItem,
    ListKind,
    Paragraph,
    Run,
    TextBlock,
    iter_lines,
)

__all__ = ["HtmlFragmentParser", "from_html"]

logger = logging.getLogger(__name__)

_CONTAINER_TAGS = {
    "div", "section", "article", "header", "footer", "main", "nav", "aside",
    "figure", "form", "details", "table", "thead", "tbody", "tfoot", "dl", "center",
}
_BLOCK_TAGS = _CONTAINER_TAGS | {
    "p", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "li", "blockquote",
    "pre", "hr", "tr", "dt", "dd", "figcaption", "summary", "address",
}
_SKIP_TAGS = {"script", "style", "head", "title", "meta", "link", "template", "noscript", "colgroup"}
_MARK_BY_TAG = {
    "strong": STRONG,
    "b": STRONG,
    "em": EMPHASIS,
    "i": EMPHASIS,
    "del": STRIKE,
    "s": STRIKE,
    "strike": STRIKE,
    "code": CODE,
    "kbd": CODE,
    "samp": CODE,
    "tt": CODE,
}
_WS_RE = re.compile(r"[ \t\r\n\f]+")
_TAG_RE = re.compile(r"<[^>]*>")
_DOCUMENT_RE = re.compile(r"<(?:html|body)[\s>]", re.IGNORECASE)
_BOLD_RE = re.compile(r"font-weight\s*:\s*(bold|bolder|[6-9]00)", re.IGNORECASE)
_NOT_BOLD_RE = re.compile(r"font-weight\s*:\s*(normal|lighter|[1-4]00)", re.IGNORECASE)
_ITALIC_RE = re.compile(r"font-style\s*:\s*(italic|oblique)", re.IGNORECASE)
_STRIKE_RE = re.compile(r"text-decoration[^;]*line-through", re.IGNORECASE)
_LANGUAGE_CLASS_RE = re.compile(r"(?:^|\s)(?:language|lang)-(\S+)")


def _tag(element: ET._Element) -> Optional[str]:
    return element.tag.lower() if isinstance(element.tag, str) else None


def _style_marks(element: ET._Element, marks: FrozenSet[str]) -> FrozenSet[str]:
    style = element.get("style") or ""
    if not style:
        return marks
    result = set(marks)
    if _BOLD_RE.search(style):
        result.add(STRONG)
    elif _NOT_BOLD_RE.search(style):
        result.discard(STRONG)
    if _ITALIC_RE.search(style):
        result.add(EMPHASIS)
    if _STRIKE_RE.search(style):
        result.add(STRIKE)
    return frozenset(result)


def _is_checkbox(element: ET._Element) -> bool:
    return _tag(element) == "input" and (element.get("type") or "").lower() == "checkbox"


class _InlineCollector:
    """Accumulates runs from mixed inline content."""

    def __init__(self) -> None:
        self.runs: List[Run] = []
        self.checkbox: Optional[bool] = None

    def has_content(self) -> bool:
        return any(run.is_image or run.text.strip() for run in self.runs)

    def add_text(self, text: Optional[str], marks: FrozenSet[str] = frozenset(), href: Optional[str] = None) -> None:
        if text:
            self.runs.append(Run(_WS_RE.sub(" ", text), marks, href))

    def add_element(self, element: ET._Element, marks: FrozenSet[str] = frozenset(), href: Optional[str] = None) -> None:
        tag = _tag(element)
        if tag is None or tag in _SKIP_TAGS:
            return
        if tag == "br":
            self.runs.append(Run("\n", marks, href))
            return
        if tag == "img":
            self.runs.append(Run(element.get("alt") or "", frozenset(), None, src=element.get("src") or ""))
            return
        if tag == "input":
            if _is_checkbox(element) and self.checkbox is None and not self.has_content():
                self.checkbox = element.get("checked") is not None
            return
        inner = marks | {_MARK_BY_TAG[tag]} if tag in _MARK_BY_TAG else marks
        inner = _style_marks(element, inner)
        if tag == "a" and element.get("href"):
            href = element.get("href")
        self.add_text(element.text, inner, href)
        for child in element:
            self.add_element(child, inner, href)
            self.add_text(child.tail, inner, href)
        if tag in ("td", "th"):
            self.add_text(" ", marks, None)

    def finish(self) -> Inline:
        runs = [run for run in Inline(self.runs).normalized().runs]
        while runs and not runs[0].is_image:
            stripped = runs[0].text.lstrip(" ")
            if stripped:
                runs[0] = Run(stripped, runs[0].marks, runs[0].href)
                break
            runs.pop(0)
        while runs and not runs[-1].is_image:
            stripped = runs[-1].text.rstrip(" ")
            if stripped:
                runs[-1] = Run(stripped, runs[-1].marks, runs[-1].href)
                break
            runs.pop()
        runs = [
            run if run.is_image else Run(run.text.replace(" \n", "\n").replace("\n ", "\n"), run.marks, run.href)
            for run in runs
        ]
        # One trailing break is the contenteditable placeholder.
        if runs and not runs[-1].is_image and runs[-1].text.endswith("\n"):
            last = runs.pop()
            if len(last.text) > 1:
                runs.append(Run(last.text[:-1], last.marks, last.href))
        return Inline(runs).normalized()


class HtmlFragmentParser:
    """Convert an HTML fragment into a repaired :class:`Document`."""

    def parse(self, html: str) -> Document:
        if not html or not html.strip():
            document = Document(children=[Paragraph()])
            repair(document)
            return document
        try:
            root = self._root(html)
        except (ET.ParserError, ValueError) as exc:
            logger.warning("HTML parse degraded to text: %s", exc)
            text = _WS_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()
            document = Document(children=[Paragraph(content=Inline.of(text))])
            repair(document)
            return document
        document = Document(children=self._blocks(root) if root is not None else [])
        repair(document)
        return document

    @staticmethod
    def _root(html: str) -> Optional[ET._Element]:
        if _DOCUMENT_RE.search(html):
            tree = lxml_html.document_fromstring(html)
            body = tree.find(".//body")
            return body if body is not None else tree
        return lxml_html.fragment_fromstring(html, create_parent="div")

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------
    def _blocks(self, element: ET._Element) -> List[Block]:
        blocks: List[Block] = []
        collector = _InlineCollector()

        def flush() -> None:
            nonlocal collector
            if collector.has_content():
                blocks.append(Paragraph(content=collector.finish()))
            collector = _InlineCollector()

        collector.add_text(element.text)
        for child in element:
            tag = _tag(child)
            if tag in _BLOCK_TAGS:
                flush()
                blocks.extend(self._block(child, tag))
            elif tag is not None and tag not in _SKIP_TAGS:
                collector.add_element(child)
            collector.add_text(child.tail)
        flush()
        return blocks

    def _has_block_children(self, element: ET._Element) -> bool:
        return any(_tag(child) in _BLOCK_TAGS for child in element)

    def _inline(self, element: ET._Element) -> Inline:
        collector = _InlineCollector()
        collector.add_text(element.text, _style_marks(element, frozenset()))
        for child in element:
            collector.add_element(child, _style_marks(element, frozenset()))
            collector.add_text(child.tail, _style_marks(element, frozenset()))
        return collector.finish()

    def _block(self, element: ET._Element, tag: str) -> List[Block]:
        if tag in ("ul", "ol"):
            return list(self._list(element, tag == "ol"))
        if tag == "li":
            return list(self._list_from_items([element], ordered=False))
        if tag == "hr":
            return [HorizontalRule()]
        if tag == "pre":
            return [self._code_block(element)]
        if tag == "blockquote":
            return [self._blockquote(element)]
        if tag in ("h1", "h2", "h3", "h4", "h5", "h6"):
            return [Heading(level=int(tag[1]), content=self._inline(element))]
        if self._has_block_children(element):
            return self._blocks(element)
        if tag in _CONTAINER_TAGS and not (element.text or "").strip() and not len(element):
            return []
        return [Paragraph(content=self._inline(element))]

    def _code_block(self, element: ET._Element) -> CodeBlock:
        language = element.get("data-lang") or ""
        code = element.find("code")
        if not language and code is not None:
            match = _LANGUAGE_CLASS_RE.search(code.get("class") or "")
            language = match.group(1) if match else ""
        if language == "plaintext":
            language = ""
        pieces: List[str] = []

        def walk(node: ET._Element) -> None:
            if _tag(node) == "br":
                pieces.append("\n")
            elif node.text:
                pieces.append(node.text)
            for child in node:
                walk(child)
                if child.tail:
                    pieces.append(child.tail)

        walk(element)
        text = "".join(pieces)
        if text.endswith("\n"):
            text = text[:-1]
        return CodeBlock(language=language, lines=text.split("\n"))

    def _blockquote(self, element: ET._Element) -> Blockquote:
        if not self._has_block_children(element):
            return Blockquote(content=self._inline(element))
        content = Inline()
        inner = Document(children=self._blocks(element))
        for index, line in enumerate(iter_lines(inner)):
            if index:
                content.extend(Inline.of("\n"))
            if isinstance(line, TextBlock):
                content.extend(line.content)
            else:
                content.extend(Inline.of(getattr(line, "text", "")))
        return Blockquote(content=content)

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------
    def _list(self, element: ET._Element, ordered: bool) -> List[ListBlock]:
        return self._list_from_items(list(element), ordered)

    def _list_from_items(self, elements: List[ET._Element], ordered: bool) -> List[ListBlock]:
        lists: List[ListBlock] = []
        for child in elements:
            tag = _tag(child)
            if tag in ("ul", "ol"):
                # A list directly inside a list belongs to the previous item.
                nested = self._list(child, tag == "ol")
                if lists:
                    owner = lists[-1].items[-1]
                    owner.children.extend(nested)
                    for block in nested:
                        block.parent = owner
                else:
                    lists.extend(nested)
                continue
            if tag != "li":
                continue
            item, is_task = self._item(child)
            kind = ListKind.ORDERED if ordered else (ListKind.TASK if is_task else ListKind.BULLET)
            if lists and lists[-1].kind is kind:
                lists[-1].items.append(item)
                item.parent = lists[-1]
            else:
                lists.append(ListBlock(kind=kind, items=[item]))
        return lists

    def _item_blocks(self, element: ET._Element, tag: str) -> List[Block]:
        """Blocks nested in an item, narrowed to lists and paragraphs."""
        blocks: List[Block] = []
        for block in self._block(element, tag):
            if isinstance(block, (Paragraph, ListBlock)):
                blocks.append(block)
            elif isinstance(block, TextBlock):
                blocks.append(Paragraph(content=block.content))
            else:
                blocks.append(Paragraph(content=Inline.of(getattr(block, "text", ""))))
        return blocks

    def _item(self, element: ET._Element) -> Tuple[ListItem, bool]:
        collector = _InlineCollector()
        children: List[Block] = []
        trailing: Optional[_InlineCollector] = None
        content_taken = False

        def flush_trailing() -> None:
            nonlocal trailing
            if trailing is not None and trailing.has_content():
                children.append(Paragraph(content=trailing.finish()))
            trailing = None

        def sink() -> _InlineCollector:
            nonlocal trailing
            if not children and not content_taken:
                return collector
            if trailing is None:
                trailing = _InlineCollector()
            return trailing

        collector.add_text(element.text)
        for child in element:
            tag = _tag(child)
            if tag in ("ul", "ol"):
                flush_trailing()
                children.extend(self._list(child, tag == "ol"))
            elif tag in ("p", "div") and not children and not content_taken and not collector.has_content():
                # Loose item: the first paragraph is the item's own text.
                collector.add_text(child.text)
                for grandchild in child:
                    grand_tag = _tag(grandchild)
                    if grand_tag in ("ul", "ol"):
                        children.extend(self._list(grandchild, grand_tag == "ol"))
                    else:
                        collector.add_element(grandchild)
                    collector.add_text(grandchild.tail)
                content_taken = True
            elif tag in _BLOCK_TAGS:
                flush_trailing()
                children.extend(self._item_blocks(child, tag))
            elif tag is not None and tag not in _SKIP_TAGS:
                sink().add_element(child)
            sink().add_text(child.tail)
        flush_trailing()
        item = ListItem(content=collector.finish(), checked=bool(collector.checkbox), children=children)
        return item, collector.checkbox is not None


def from_html(html: str) -> Document:
    """Parse an HTML fragment into a repaired block tree."""
    try:
        return HtmlFragmentParser().parse(html)
    except Exception as exc:
        logger.error("HTML parse FAIL: error=%s", exc, exc_info=True)
        document = Document(children=[Paragraph(content=Inline.of(_WS_RE.sub(" ", _TAG_RE.sub(" ", html or "")).strip()))])
        repair(document)
        return document
