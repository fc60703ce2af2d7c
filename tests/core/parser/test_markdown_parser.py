from structmd.core.generators.markdown_builder import encode
from structmd.core.invariants import find_violations
from structmd.core.models import (
    Blockquote,
    CodeBlock,
    Heading,
    HorizontalRule,
    ListBlock,
    ListKind,
    Paragraph,
    visual_lines,
)
from structmd.core.parser.markdown_parser import MarkdownParser, decode

MIXED = "- a\n  - b\n    - c\n    - [ ] d\n    1. e\n  - f\n    - [ ] g"


def test_mixed_kinds_under_one_parent_stay_nested(line):
    document = decode(MIXED)
    assert len(document.children) == 1
    assert document.children[0].kind is ListKind.BULLET

    b = line(document, "b")
    assert [child.kind for child in b.children] == [ListKind.BULLET, ListKind.TASK, ListKind.ORDERED]
    assert visual_lines(document) == [(1, "a"), (2, "b"), (3, "c"), (3, "d"), (3, "e"), (2, "f"), (3, "g")]
    assert find_violations(document) == []


def test_mixed_kinds_encode_with_ordered_item_nested_under_b():
    markdown = encode(decode(MIXED))
    assert "\n    1. e\n" in markdown
    assert markdown == MIXED


def test_kind_change_at_top_level_opens_a_sibling_list():
    document = decode("- a\n1. b\n- [x] c")
    assert [child.kind for child in document.children] == [ListKind.BULLET, ListKind.ORDERED, ListKind.TASK]
    assert document.children[2].items[0].checked


def test_bullet_markers_share_one_list():
    document = decode("* a\n+ b\n- c")
    assert len(document.children) == 1
    assert encode(document) == "- a\n- b\n- c"


def test_loose_list_decodes_tight():
    assert encode(decode("- a\n\n- b\n\n- c")) == "- a\n- b\n- c"


def test_item_paragraph_after_blank_line(line):
    document = decode("- a\n\n  more\n- b")
    a = line(document, "a")
    assert isinstance(a.children[0], Paragraph)
    assert a.children[0].text == "more"
    assert encode(document) == "- a\n\n  more\n- b"


def test_lazy_continuation_joins_the_item(line):
    document = decode("- a\ncontinued")
    assert line(document, "a\ncontinued") is not None


def test_block_kinds():
    document = decode("# Title #\n\n> one\n> two\n\n***\n\n~~~py\nx = 1\n~~~\n\ntext")
    heading, quote, rule, code, paragraph = document.children
    assert isinstance(heading, Heading) and heading.level == 1 and heading.text == "Title"
    assert isinstance(quote, Blockquote) and quote.text == "one\ntwo"
    assert isinstance(rule, HorizontalRule)
    assert isinstance(code, CodeBlock) and code.language == "py" and code.lines == ["x = 1"]
    assert isinstance(paragraph, Paragraph)


def test_unclosed_fence_runs_to_the_end():
    document = decode("```\nline one\nline two")
    assert document.children[0].lines == ["line one", "line two"]


def test_fence_keeps_markup_literal():
    document = decode("```md\n- not a list\n# nor a heading\n```")
    assert len(document.children) == 1
    assert document.children[0].text == "- not a list\n# nor a heading"


def test_empty_input_is_one_empty_paragraph():
    document = decode("")
    assert len(document.children) == 1
    assert document.children[0].placeholder


def test_tabs_expand_for_nesting():
    document = decode("- a\n\t- b")
    assert visual_lines(document) == [(1, "a"), (2, "b")]


def test_parser_instance_is_reusable():
    parser = MarkdownParser()
    first = parser.parse("- a")
    second = parser.parse("- a")
    assert isinstance(first.children[0], ListBlock)
    assert first.children[0] is not second.children[0]


def test_setext_heading_and_indented_code():
    document = decode("Title\n=====\n\nSub\n---\n\n    x = 1\n    y = 2")
    title, sub, code = document.children
    assert isinstance(title, Heading) and title.level == 1 and title.text == "Title"
    assert isinstance(sub, Heading) and sub.level == 2
    assert isinstance(code, CodeBlock) and code.language == "" and code.lines == ["x = 1", "y = 2"]


def test_html_block_is_read_as_text():
    document = decode("<div>hi</div>")
    assert isinstance(document.children[0], Paragraph)
    assert document.children[0].text == "<div>hi</div>"


def test_bare_task_marker_is_an_empty_task_item():
    document = decode("- [ ]\n- [x]")
    block = document.children[0]
    assert block.kind is ListKind.TASK
    assert [(item.text, item.checked) for item in block.items] == [("", False), ("", True)]


def test_checkbox_in_ordered_item_stays_text():
    document = decode("1. [x] a")
    block = document.children[0]
    assert block.kind is ListKind.ORDERED
    assert block.items[0].text == "[x] a"


def test_task_text_keeps_inline_marks(line):
    document = decode("- [ ] **bold** rest")
    item = line(document, "bold rest")
    assert document.children[0].kind is ListKind.TASK
    assert item.content.runs[0].text == "bold"


def test_blocks_inside_a_quote_are_flattened_to_lines():
    document = decode("> # Note\n> - a\n> - b")
    assert len(document.children) == 1
    assert document.children[0].text == "# Note\n- a\n- b"


def test_heading_in_item_becomes_item_text(line):
    document = decode("- # big\n  more")
    item = line(document, "# big")
    assert [child.text for child in item.children] == ["more"]


def test_empty_nested_item_needs_a_blank_line_after_text():
    assert visual_lines(decode("- a\n  -")) == [(1, "## a")]
    assert visual_lines(decode("- a\n\n  -")) == [(1, "a"), (2, "")]
