from __future__ import annotations

"""Invariant checking and self-healing for the block tree.

Services mutate the tree freely and then call :func:`repair`, which restores
the structural rules in one pass:

- lists never have zero items (empty lists are deleted);
- directly adjacent lists of the same kind in one container are merged;
- stray list items outside a list are wrapped in a bullet list;
- every empty text block, list item or code block carries exactly one
  placeholder and non-empty ones carry none;
- heading levels stay within 1-6 and inline runs are normalized;
- parent back-references are consistent;
- the document holds at least one block.

:func:`find_violations` reports the same rules without changing anything and
is used by tests and debug logging.
"""

from dataclasses import dataclass, fields
import logging
from typing import List

from structmd.core.models import (
    CodeBlock,
    Document,
    Heading,
    ListBlock,
    ListItem,
    ListKind,
    Node,
    Paragraph,
    TextBlock,
    child_list,
    iter_nodes,
    relink,
)

__all__ = ["RepairReport", "repair", "find_violations"]

logger = logging.getLogger(__name__)


@dataclass
class RepairReport:
    """Counts of the fixes applied by one :func:`repair` pass."""

    removed_lists: int = 0
    merged_lists: int = 0
    wrapped_items: int = 0
    placeholders_added: int = 0
    placeholders_removed: int = 0
    headings_clamped: int = 0
    paragraphs_added: int = 0

    @property
    def changed(self) -> bool:
        return any(getattr(self, f.name) for f in fields(self))

    def summary(self) -> str:
        return " ".join(f"{f.name}={getattr(self, f.name)}" for f in fields(self) if getattr(self, f.name))


def repair(document: Document) -> RepairReport:
    """Restore every tree invariant in place and report what changed."""
    report = RepairReport()
    _repair_container(document, report)
    if not document.children:
        document.children.append(Paragraph())
        report.paragraphs_added += 1
    relink(document)
    for node in iter_nodes(document):
        if isinstance(node, TextBlock):
            node.content.normalize()
        if isinstance(node, Heading) and not 1 <= node.level <= 6:
            node.level = max(1, min(6, node.level))
            report.headings_clamped += 1
        if isinstance(node, (TextBlock, CodeBlock)):
            wanted = node.is_empty()
            if wanted and not node.placeholder:
                report.placeholders_added += 1
            elif node.placeholder and not wanted:
                report.placeholders_removed += 1
            node.placeholder = wanted
    if report.changed:
        logger.debug("Repair: %s", report.summary())
    return report


def _repair_container(container: Node, report: RepairReport) -> None:
    children = child_list(container)
    for child in children:
        if isinstance(child, ListBlock):
            for item in child.items:
                _repair_container(item, report)
        elif isinstance(child, ListItem):
            _repair_container(child, report)

    kept: list = []
    for child in children:
        if isinstance(child, ListItem):
            child = ListBlock(kind=ListKind.BULLET, items=[child])
            report.wrapped_items += 1
        if isinstance(child, ListBlock):
            if not child.items:
                report.removed_lists += 1
                continue
            previous = kept[-1] if kept else None
            if isinstance(previous, ListBlock) and previous.kind is child.kind:
                previous.items.extend(child.items)
                report.merged_lists += 1
                continue
        kept.append(child)
    children[:] = kept


def find_violations(document: Document) -> List[str]:
    """Describe every invariant breach found in *document*."""
    problems: List[str] = []
    if not document.children:
        problems.append("document has no blocks")
    for node in iter_nodes(document):
        for child in child_list(node) or ():
            if child.parent is not node:
                problems.append(f"{type(child).__name__} has a stale parent reference")
        if isinstance(node, ListBlock):
            if not node.items:
                problems.append("list without items")
        elif isinstance(node, ListItem) and not isinstance(node.parent, ListBlock):
            problems.append("list item outside a list")
        if isinstance(node, (TextBlock, CodeBlock)) and node.placeholder != node.is_empty():
            state = "missing" if node.is_empty() else "stale"
            problems.append(f"{state} placeholder on {type(node).__name__} {node.text!r}")
        children = child_list(node)
        if children and not isinstance(node, ListBlock):
            for left, right in zip(children, children[1:]):
                if isinstance(left, ListBlock) and isinstance(right, ListBlock) and left.kind is right.kind:
                    problems.append(f"adjacent {left.kind.value} lists")
    return problems
