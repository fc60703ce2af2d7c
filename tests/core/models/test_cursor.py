from structmd.core.models import Blockquote, Document, Inline, Paragraph
from structmd.core.models.cursor import (
    Cursor,
    Position,
    Selection,
    clamp,
    collapse,
    is_at_line_end,
    is_at_line_start,
    is_at_structural_boundary,
    ordered,
    position_of,
    range_of_line,
    resolve,
    selected_lines,
)
from structmd.core.parser.markdown_parser import decode


def test_position_round_trip_through_a_snapshot(line):
    document = decode("- a\n  - b\n- c")
    b = line(document, "b")
    position = position_of(Cursor(b, 1))
    assert position == Position((0, 0, 0, 0), 1)

    restored = document.clone()
    cursor = resolve(restored, position)
    assert cursor is not None
    assert cursor.node.text == "b"
    assert cursor.node is not b


def test_resolve_clamps_offset_and_rejects_stale_paths():
    document = decode("abc")
    assert resolve(document, Position((0,), 99)).offset == 3
    assert resolve(document, Position((4,), 0)) is None
    # A list is a container, not a line.
    assert resolve(decode("- a"), Position((0,), 0)) is None


def test_ordered_and_collapse_follow_document_order(line):
    document = decode("one\n\ntwo")
    one, two = line(document, "one"), line(document, "two")
    backwards = Selection(Cursor(two, 1), Cursor(one, 2))
    assert ordered(backwards) == (Cursor(one, 2), Cursor(two, 1))
    assert collapse(backwards) == Cursor(one, 2)
    assert collapse(backwards, to_start=False) == Cursor(two, 1)


def test_item_text_sorts_before_its_children(line):
    document = decode("- parent\n  - child")
    parent, child = line(document, "parent"), line(document, "child")
    start, end = ordered(Selection(Cursor(child, 0), Cursor(parent, 3)))
    assert start.node is parent
    assert end.node is child


def test_range_of_line_inside_soft_breaks():
    quote = Blockquote(content=Inline.of("first\nsecond\nthird"))
    Document(children=[quote])
    assert range_of_line(Cursor(quote, 8)) == (6, 12)
    assert is_at_line_start(Cursor(quote, 6))
    assert is_at_line_end(Cursor(quote, 12))
    assert not is_at_line_end(Cursor(quote, 7))


def test_structural_boundary_kinds(line):
    document = decode("- item\n\n> quote\n\n```\ncode\n```\n\nplain")
    item = line(document, "item")
    assert is_at_structural_boundary(Cursor(item, 0))
    assert is_at_structural_boundary(Cursor(item, 0), "list_item")
    assert not is_at_structural_boundary(Cursor(item, 0), "code_block")
    assert not is_at_structural_boundary(Cursor(item, 1))
    assert is_at_structural_boundary(Cursor(line(document, "quote"), 0), "blockquote")
    assert is_at_structural_boundary(Cursor(line(document, "code"), 0), "code_block")
    assert not is_at_structural_boundary(Cursor(line(document, "plain"), 0))


def test_selected_lines_drops_a_last_line_entered_at_offset_zero(line):
    document = decode("- a\n- b\n- c")
    a, b, c = line(document, "a"), line(document, "b"), line(document, "c")
    assert selected_lines(document, Selection(Cursor(a, 0), Cursor(c, 0))) == [a, b]
    assert selected_lines(document, Selection(Cursor(c, 1), Cursor(a, 0))) == [a, b, c]
    assert selected_lines(document, Selection.caret(b, 1)) == [b]


def test_clamp_limits_offset_to_line_length():
    paragraph = Paragraph(content=Inline.of("ab"))
    assert clamp(Cursor(paragraph, 7)) == Cursor(paragraph, 2)
    assert clamp(Cursor(paragraph, -3)) == Cursor(paragraph, 0)
