from __future__ import annotations

"""Block tree model shared by the codecs and the editing services.

Nodes are dataclasses with a ``parent`` back-reference. They compare by
identity (``eq=False``) so that sibling lookups never confuse two structurally
equal nodes, e.g. two empty list items in the same list.

Inline content is a flat sequence of :class:`Run` values. Emphasis, strong,
strike and code spans are *marks* carried by the runs they cover; a link is a
stretch of consecutive runs sharing an ``href``. Line breaks are ``"\\n"``
characters inside run text and an image is a run with ``src`` set, occupying
exactly one offset position.

The package is free of rendering and I/O code so the objects can be reused by
the codecs, the services and the tests alike.
"""

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union

__all__ = [
    "STRONG",
    "EMPHASIS",
    "STRIKE",
    "CODE",
    "OBJECT_CHAR",
    "Run",
    "Inline",
    "ListKind",
    "Node",
    "TextBlock",
    "Paragraph",
    "Heading",
    "Blockquote",
    "CodeBlock",
    "HorizontalRule",
    "ListItem",
    "ListBlock",
    "Document",
    "Block",
    "child_list",
    "relink",
    "index_in_parent",
    "detach",
    "insert_child",
    "insert_after",
    "replace_node",
    "iter_nodes",
    "iter_lines",
    "is_line",
    "line_length",
    "line_text",
    "last_line",
    "list_depth",
    "document_of",
    "visual_lines",
    "structure",
]

STRONG = "strong"
EMPHASIS = "em"
STRIKE = "del"
CODE = "code"

# Stands in for an image in plain-text views so offsets stay aligned.
OBJECT_CHAR = "\ufffc"


@dataclass(frozen=True)
class Run:
    """A stretch of inline text sharing one style."""

    text: str = ""
    marks: FrozenSet[str] = frozenset()
    href: Optional[str] = None
    src: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.src is not None

    @property
    def length(self) -> int:
        return 1 if self.is_image else len(self.text)

    @property
    def plain(self) -> str:
        return OBJECT_CHAR if self.is_image else self.text

    def same_style(self, other: "Run") -> bool:
        return (
            not self.is_image
            and not other.is_image
            and self.marks == other.marks
            and self.href == other.href
        )


@dataclass(eq=False)
class Inline:
    """Inline content of a text-bearing block."""

    runs: List[Run] = field(default_factory=list)

    @classmethod
    def of(cls, text: str = "", marks: Iterable[str] = (), href: Optional[str] = None) -> "Inline":
        if not text:
            return cls()
        return cls([Run(text, frozenset(marks), href)])

    @property
    def length(self) -> int:
        return sum(run.length for run in self.runs)

    @property
    def text(self) -> str:
        return "".join(run.plain for run in self.runs)

    def is_empty(self) -> bool:
        return self.length == 0

    def copy(self) -> "Inline":
        return Inline(list(self.runs))

    def split(self, offset: int) -> Tuple["Inline", "Inline"]:
        """Return the content before and after *offset* as two new values."""
        left: List[Run] = []
        right: List[Run] = []
        pos = 0
        for run in self.runs:
            end = pos + run.length
            if end <= offset:
                left.append(run)
            elif pos >= offset:
                right.append(run)
            else:
                cut = offset - pos
                left.append(replace(run, text=run.text[:cut]))
                right.append(replace(run, text=run.text[cut:]))
            pos = end
        return Inline(left).normalized(), Inline(right).normalized()

    def slice(self, start: int, end: Optional[int] = None) -> "Inline":
        end = self.length if end is None else end
        _, tail = self.split(start)
        middle, _ = tail.split(max(0, end - start))
        return middle

    def delete(self, start: int, end: int) -> None:
        left, rest = self.split(start)
        _, right = rest.split(max(0, end - start))
        self.runs = left.runs + right.runs
        self.normalize()

    def insert(self, offset: int, runs: Iterable[Run]) -> int:
        """Insert *runs* at *offset*; return the inserted length."""
        new_runs = list(runs)
        left, right = self.split(offset)
        self.runs = left.runs + new_runs + right.runs
        self.normalize()
        return sum(run.length for run in new_runs)

    def extend(self, other: "Inline") -> None:
        self.runs = self.runs + list(other.runs)
        self.normalize()

    def run_before(self, offset: int) -> Optional[Run]:
        """Return the run holding the character just before *offset*."""
        pos = 0
        for run in self.runs:
            if pos < offset <= pos + run.length:
                return run
            pos += run.length
        return None

    def marks_at(self, offset: int) -> FrozenSet[str]:
        run = self.run_before(offset)
        if run is None and offset == 0 and self.runs:
            run = self.runs[0]
        return run.marks if run is not None else frozenset()

    def apply_href(self, start: int, end: int, href: Optional[str]) -> None:
        left, rest = self.split(start)
        middle, right = rest.split(max(0, end - start))
        linked = [replace(run, href=href) for run in middle.runs]
        self.runs = left.runs + linked + right.runs
        self.normalize()

    def normalize(self) -> None:
        """Drop empty runs and merge neighbours of identical style."""
        merged: List[Run] = []
        for run in self.runs:
            if not run.is_image and not run.text:
                continue
            if CODE in run.marks and run.marks != frozenset({CODE}):
                run = replace(run, marks=frozenset({CODE}))
            if merged and merged[-1].same_style(run):
                merged[-1] = replace(merged[-1], text=merged[-1].text + run.text)
            else:
                merged.append(run)
        self.runs = merged

    def normalized(self) -> "Inline":
        self.normalize()
        return self


class ListKind(str, Enum):
    """Kind of a list; each kind serializes to its own marker family."""

    BULLET = "bullet"
    ORDERED = "ordered"
    TASK = "task"


@dataclass(eq=False)
class Node:
    parent: Optional["Node"] = field(default=None, init=False, repr=False)


@dataclass(eq=False)
class TextBlock(Node):
    """A block whose own content is inline text."""

    content: Inline = field(default_factory=Inline)
    placeholder: bool = False

    @property
    def text(self) -> str:
        return self.content.text

    @property
    def length(self) -> int:
        return self.content.length

    def is_empty(self) -> bool:
        return self.content.is_empty()


@dataclass(eq=False)
class Paragraph(TextBlock):
    pass


@dataclass(eq=False)
class Heading(TextBlock):
    level: int = 1


@dataclass(eq=False)
class Blockquote(TextBlock):
    """Quoted text; soft-broken lines are ``"\\n"`` in the content."""


@dataclass(eq=False)
class CodeBlock(Node):
    language: str = ""
    lines: List[str] = field(default_factory=lambda: [""])
    placeholder: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @text.setter
    def text(self, value: str) -> None:
        self.lines = value.split("\n")

    @property
    def length(self) -> int:
        return len(self.text)

    def is_empty(self) -> bool:
        return self.text == ""


@dataclass(eq=False)
class HorizontalRule(Node):
    @property
    def text(self) -> str:
        return ""

    @property
    def length(self) -> int:
        return 0

    def is_empty(self) -> bool:
        return True


@dataclass(eq=False)
class ListItem(TextBlock):
    """One entry of a list: own content first, then nested blocks."""

    checked: bool = False
    children: List["Block"] = field(default_factory=list)

    def __post_init__(self) -> None:
        for child in self.children:
            child.parent = self

    def sublists(self) -> List["ListBlock"]:
        return [child for child in self.children if isinstance(child, ListBlock)]


@dataclass(eq=False)
class ListBlock(Node):
    kind: ListKind = ListKind.BULLET
    items: List[ListItem] = field(default_factory=list)

    def __post_init__(self) -> None:
        for item in self.items:
            item.parent = self


@dataclass(eq=False)
class Document(Node):
    children: List["Block"] = field(default_factory=list)

    def __post_init__(self) -> None:
        relink(self)

    def clone(self) -> "Document":
        """Return a deep snapshot suitable for :meth:`restore`."""
        return copy.deepcopy(self)

    def restore(self, snapshot: "Document") -> None:
        self.children = copy.deepcopy(snapshot).children
        relink(self)


Block = Union[Paragraph, Heading, Blockquote, CodeBlock, HorizontalRule, ListBlock]
_LINE_TYPES = (TextBlock, CodeBlock, HorizontalRule)


# ---------------------------------------------------------------------------
# Structural helpers
# ---------------------------------------------------------------------------

def child_list(node: Optional[Node]) -> Optional[list]:
    """Return the mutable child sequence of *node*, or None for leaves."""
    if isinstance(node, (Document, ListItem)):
        return node.children
    if isinstance(node, ListBlock):
        return node.items
    return None


def relink(node: Node) -> None:
    """Reset parent back-references for the whole subtree of *node*."""
    stack = [node]
    while stack:
        current = stack.pop()
        for child in child_list(current) or ():
            child.parent = current
            stack.append(child)


def index_in_parent(node: Node) -> int:
    siblings = child_list(node.parent)
    if siblings is None:
        return -1
    for index, sibling in enumerate(siblings):
        if sibling is node:
            return index
    return -1


def detach(node: Node) -> int:
    """Remove *node* from its parent and return its former index."""
    index = index_in_parent(node)
    if index >= 0:
        del child_list(node.parent)[index]
    node.parent = None
    return index


def insert_child(container: Node, index: int, node: Node) -> None:
    siblings = child_list(container)
    if siblings is None:
        raise TypeError(f"{type(container).__name__} cannot hold children")
    siblings.insert(index, node)
    node.parent = container


def insert_after(anchor: Node, *nodes: Node) -> None:
    container = anchor.parent
    index = index_in_parent(anchor)
    for offset, node in enumerate(nodes, start=1):
        insert_child(container, index + offset, node)


def replace_node(old: Node, *new: Node) -> None:
    container = old.parent
    index = detach(old)
    for offset, node in enumerate(new):
        insert_child(container, index + offset, node)


def iter_nodes(node: Node) -> Iterator[Node]:
    """Pre-order walk of *node* and its descendants."""
    yield node
    for child in list(child_list(node) or ()):
        yield from iter_nodes(child)


def is_line(node: Node) -> bool:
    return isinstance(node, _LINE_TYPES)


def iter_lines(node: Node) -> Iterator[Node]:
    """Yield line-bearing nodes in visual order."""
    for current in iter_nodes(node):
        if is_line(current):
            yield current


def line_length(node: Node) -> int:
    return getattr(node, "length", 0)


def line_text(node: Node) -> str:
    return getattr(node, "text", "")


def last_line(node: Node) -> Optional[Node]:
    result = None
    for result in iter_lines(node):
        pass
    return result


def list_depth(node: Node) -> int:
    """Number of enclosing lists; 0 for top-level blocks."""
    depth = 0
    current = node.parent
    while current is not None:
        if isinstance(current, ListBlock):
            depth += 1
        current = current.parent
    return depth


def document_of(node: Node) -> Optional[Document]:
    current = node
    while current is not None and not isinstance(current, Document):
        current = current.parent
    return current


def visual_lines(node: Node) -> List[Tuple[int, str]]:
    """(depth, text) of every line in visual order."""
    return [(list_depth(line), line_text(line)) for line in iter_lines(node)]


def _inline_structure(content: Inline) -> tuple:
    return tuple(
        (run.text, tuple(sorted(run.marks)), run.href, run.src) for run in content.runs
    )


def structure(node: Node) -> tuple:
    """Comparable description of kinds, text and nesting below *node*."""
    if isinstance(node, Document):
        return ("document", tuple(structure(child) for child in node.children))
    if isinstance(node, ListBlock):
        return ("list", node.kind.value, tuple(structure(item) for item in node.items))
    if isinstance(node, ListItem):
        checked = node.checked if isinstance(node.parent, ListBlock) and node.parent.kind is ListKind.TASK else None
        return (
            "item",
            _inline_structure(node.content),
            checked,
            tuple(structure(child) for child in node.children),
        )
    if isinstance(node, Heading):
        return ("heading", node.level, _inline_structure(node.content))
    if isinstance(node, Blockquote):
        return ("blockquote", _inline_structure(node.content))
    if isinstance(node, Paragraph):
        return ("paragraph", _inline_structure(node.content))
    if isinstance(node, CodeBlock):
        return ("code", node.language, tuple(node.lines))
    if isinstance(node, HorizontalRule):
        return ("hr",)
    raise TypeError(f"Unknown node type: {type(node).__name__}")
