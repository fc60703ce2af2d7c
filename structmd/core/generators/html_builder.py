from __future__ import annotations

"""Render the block tree as the HTML fragment shown by the editing surface.

The fragment uses a fixed vocabulary: ``p``, ``h1``-``h6``, ``ul``, ``ol``,
``li``, ``blockquote``, ``pre``>``code`` (``data-lang``), ``hr``, ``strong``,
``em``, ``del``, ``code``, ``a[href]``, ``img``, ``br`` and
``input[type=checkbox]``. Empty blocks carry a single ``<br>`` placeholder.

Mark wrappers nest in a fixed order, outermost first: link, ``del``,
``strong``, ``em``, ``code``.
"""

from typing import List

from lxml import etree as ET  # type: ignore

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

__all__ = ["HtmlBuilder", "to_html"]

_MARK_TAGS = ((STRIKE, "del"), (STRONG, "strong"), (EMPHASIS, "em"), (CODE, "code"))


def _append_text(parent: ET._Element, text: str) -> None:
    if not text:
        return
    if len(parent):
        last = parent[-1]
        last.tail = (last.tail or "") + text
    else:
        parent.text = (parent.text or "") + text


def _append_lines(parent: ET._Element, text: str) -> None:
    for index, piece in enumerate(text.split("\n")):
        if index:
            ET.SubElement(parent, "br")
        _append_text(parent, piece)


class HtmlBuilder:
    """Build lxml elements for a document and serialize them."""

    def __init__(self, default_code_language: str = "plaintext") -> None:
        self.default_code_language = default_code_language

    def build(self, document: Document) -> str:
        return "".join(
            ET.tostring(element, method="html", encoding="unicode", with_tail=False)
            for element in self.elements(document)
        )

    def elements(self, document: Document) -> List[ET._Element]:
        return [self._block(block) for block in document.children]

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------
    def _block(self, block: Block) -> ET._Element:
        if isinstance(block, ListBlock):
            element = ET.Element("ol" if block.kind is ListKind.ORDERED else "ul")
            for item in block.items:
                li = ET.SubElement(element, "li")
                if block.kind is ListKind.TASK:
                    checkbox = ET.SubElement(li, "input", type="checkbox")
                    if item.checked:
                        checkbox.set("checked", "checked")
                self._inline(li, item.content, item.placeholder)
                for child in item.children:
                    li.append(self._block(child))
            return element
        if isinstance(block, Heading):
            element = ET.Element(f"h{block.level}")
            self._inline(element, block.content, block.placeholder)
            return element
        if isinstance(block, Blockquote):
            element = ET.Element("blockquote")
            self._inline(element, block.content, block.placeholder)
            return element
        if isinstance(block, Paragraph):
            element = ET.Element("p")
            self._inline(element, block.content, block.placeholder)
            return element
        if isinstance(block, CodeBlock):
            element = ET.Element("pre")
            element.set("data-lang", block.language or self.default_code_language)
            code = ET.SubElement(element, "code")
            if block.placeholder:
                ET.SubElement(code, "br")
            else:
                code.text = block.text
            return element
        if isinstance(block, HorizontalRule):
            return ET.Element("hr")
        raise TypeError(f"Cannot render {type(block).__name__}")

    # ------------------------------------------------------------------
    # Inline
    # ------------------------------------------------------------------
    def _inline(self, parent: ET._Element, content: Inline, placeholder: bool) -> None:
        if placeholder:
            ET.SubElement(parent, "br")
            return
        runs = content.runs
        i = 0
        while i < len(runs):
            run = runs[i]
            if run.href is not None and not run.is_image:
                anchor = ET.SubElement(parent, "a", href=run.href)
                while i < len(runs) and not runs[i].is_image and runs[i].href == run.href:
                    self._run(anchor, runs[i])
                    i += 1
                continue
            self._run(parent, run)
            i += 1

    @staticmethod
    def _run(parent: ET._Element, run: Run) -> None:
        if run.is_image:
            ET.SubElement(parent, "img", src=run.src or "", alt=run.text)
            return
        target = parent
        for mark, tag in _MARK_TAGS:
            if mark in run.marks:
                target = ET.SubElement(target, tag)
        _append_lines(target, run.text)


def to_html(document: Document, default_code_language: str = "plaintext") -> str:
    """Render *document* as an HTML fragment string."""
    return HtmlBuilder(default_code_language).build(document)
