from __future__ import annotations

"""Tree mutation primitives shared by the editing services.

Side effects are limited to the nodes passed in; none of the helpers repair
invariants themselves (empty lists left behind are removed by
:func:`structmd.core.invariants.repair`, which every service runs last).
"""

from typing import List, Optional, Tuple

from structmd.core.models import (
    Block,
    CodeBlock,
    Document,
    HorizontalRule,
    Inline,
    ListBlock,
    ListItem,
    ListKind,
    Node,
    Paragraph,
    TextBlock,
    child_list,
    detach,
    document_of,
    index_in_parent,
    insert_after,
    insert_child,
    iter_lines,
    line_length,
    replace_node,
)
from structmd.core.models.cursor import Cursor

__all__ = [
    "previous_sibling",
    "next_sibling",
    "split_list_around",
    "unwrap_item",
    "move_children",
    "append_line",
    "line_slice",
    "delete_in_line",
    "delete_range",
    "remove_line",
    "hoist_item_children",
    "paragraph_to_item",
    "set_item_kind",
    "lift_item",
]


def previous_sibling(node: Node) -> Optional[Node]:
    index = index_in_parent(node)
    if index <= 0:
        return None
    return child_list(node.parent)[index - 1]


def next_sibling(node: Node) -> Optional[Node]:
    siblings = child_list(node.parent)
    index = index_in_parent(node)
    if siblings is None or index < 0 or index + 1 >= len(siblings):
        return None
    return siblings[index + 1]


def split_list_around(item: ListItem) -> Tuple[ListBlock, Optional[ListBlock]]:
    """Detach *item* from its list.

    Items that followed it move to a new list of the same kind placed right
    after the original one. Returns ``(list, tail_list)``; the original list
    may be left empty for the repair pass to remove.
    """
    block = item.parent
    index = index_in_parent(item)
    following = block.items[index + 1:]
    del block.items[index:]
    item.parent = None
    tail = None
    if following:
        tail = ListBlock(kind=block.kind, items=following)
        insert_after(block, tail)
    return block, tail


def unwrap_item(item: ListItem) -> Paragraph:
    """Turn *item* into a paragraph in place, splitting its list.

    The item's own nested blocks follow the paragraph as siblings, ahead of
    the items that came after it.
    """
    block, _ = split_list_around(item)
    paragraph = Paragraph(content=item.content)
    children = list(item.children)
    item.children = []
    insert_after(block, paragraph, *children)
    return paragraph


def move_children(source: ListItem, target: Node) -> None:
    """Re-home *source*'s nested blocks under or after *target*."""
    children = list(source.children)
    source.children = []
    if not children:
        return
    if isinstance(target, ListItem):
        for child in children:
            insert_child(target, len(target.children), child)
    else:
        insert_after(target, *children)


def hoist_item_children(item: ListItem) -> List[ListItem]:
    """Flatten *item*'s nested blocks into list items (lists unwrapped)."""
    items: List[ListItem] = []
    for child in item.children:
        if isinstance(child, ListBlock):
            items.extend(child.items)
        elif isinstance(child, TextBlock):
            items.append(ListItem(content=child.content))
    item.children = []
    return items


def line_slice(node: Node, start: int, end: Optional[int] = None) -> Inline:
    """Content of a line between two offsets as inline runs."""
    if isinstance(node, TextBlock):
        return node.content.slice(start, end)
    if isinstance(node, CodeBlock):
        return Inline.of(node.text[start:end])
    return Inline()


def append_line(node: Node, content: Inline) -> None:
    if isinstance(node, TextBlock):
        node.content.extend(content)
    elif isinstance(node, CodeBlock):
        node.text = node.text + content.text


def delete_in_line(node: Node, start: int, end: int) -> None:
    if isinstance(node, TextBlock):
        node.content.delete(start, end)
    elif isinstance(node, CodeBlock):
        text = node.text
        node.text = text[:start] + text[end:]


def remove_line(node: Node) -> None:
    """Remove one line; a list item's surviving descendants take its place."""
    if node.parent is None:
        return
    if isinstance(node, ListItem):
        survivors = hoist_item_children(node)
        block = node.parent
        index = detach(node)
        for offset, item in enumerate(survivors):
            insert_child(block, index + offset, item)
        return
    detach(node)


def delete_range(start: Cursor, end: Cursor) -> Cursor:
    """Delete the text between two ordered cursors and return the caret.

    The last line's remainder joins the first line, every line in between is
    removed, and descendants outside the range keep their place in visual
    order.
    """
    first, last = start.node, end.node
    if first is last:
        delete_in_line(first, start.offset, end.offset)
        return Cursor(first, start.offset)

    document = document_of(first)
    lines = list(iter_lines(document)) if isinstance(document, Document) else []
    first_index = next((i for i, line in enumerate(lines) if line is first), -1)
    last_index = next((i for i, line in enumerate(lines) if line is last), -1)
    middle = lines[first_index + 1:last_index] if 0 <= first_index < last_index else []

    tail = line_slice(last, end.offset)
    offset = start.offset
    if isinstance(first, HorizontalRule):
        replacement = Paragraph()
        replace_node(first, replacement)
        first, offset = replacement, 0
    else:
        delete_in_line(first, offset, line_length(first))
    append_line(first, tail)

    orphans: List[Block] = []
    if isinstance(last, ListItem):
        orphans = list(last.children)
        last.children = []
    remove_line(last)
    for node in reversed(middle):
        remove_line(node)

    if orphans:
        if isinstance(first, ListItem):
            for index, block in enumerate(orphans):
                insert_child(first, index, block)
        else:
            insert_after(first, *orphans)
    return Cursor(first, offset)


def paragraph_to_item(paragraph: TextBlock, kind: ListKind, checked: bool = False) -> ListItem:
    """Replace *paragraph* with a list item of *kind*.

    The item joins a directly preceding list of the same kind; otherwise it
    opens a new list in place.
    """
    item = ListItem(content=paragraph.content, checked=checked)
    previous = previous_sibling(paragraph)
    if isinstance(previous, ListBlock) and previous.kind is kind:
        detach(paragraph)
        insert_child(previous, len(previous.items), item)
    else:
        replace_node(paragraph, ListBlock(kind=kind, items=[item]))
    return item


def set_item_kind(item: ListItem, kind: ListKind) -> bool:
    """Move *item* into a list of *kind*, splitting its list when needed."""
    block = item.parent
    if block.kind is kind:
        return False
    if len(block.items) == 1:
        block.kind = kind
        return True
    block, _ = split_list_around(item)
    insert_after(block, ListBlock(kind=kind, items=[item]))
    return True


def lift_item(item: ListItem) -> None:
    """Move a nested *item* one level up, right after its parent item.

    Siblings that followed it become a child list of the item (keeping their
    kind), followed by the blocks that trailed its list in the parent item.
    """
    block = item.parent
    parent_item = block.parent
    index = index_in_parent(item)
    following = block.items[index + 1:]
    del block.items[index:]

    position = index_in_parent(block)
    trailing = parent_item.children[position + 1:]
    del parent_item.children[position + 1:]

    if following:
        item.children.append(ListBlock(kind=block.kind, items=following))
    item.children.extend(trailing)
    for child in item.children:
        child.parent = item

    outer = parent_item.parent
    insert_child(outer, index_in_parent(parent_item) + 1, item)
