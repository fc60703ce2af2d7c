import pytest

from structmd.core.generators.html_builder import to_html
from structmd.core.generators.markdown_builder import encode
from structmd.core.models import (
    Blockquote,
    CodeBlock,
    Document,
    Heading,
    Inline,
    ListBlock,
    Paragraph,
    visual_lines,
)
from structmd.core.models.cursor import Selection
from structmd.core.parser.html_parser import from_html
from structmd.core.parser.markdown_parser import decode
from structmd.core.services.split_service import SplitService


@pytest.fixture
def service(settings):
    return SplitService(settings)


def test_enter_splits_a_list_item(service, caret, line):
    document = decode("- aaa")
    result = service.split(document, caret(document, "aaa", 1))
    assert encode(document) == "- a\n- aa"
    assert result.selection.focus.node is line(document, "aa")
    assert result.selection.focus.offset == 0


def test_new_item_takes_the_nested_children(service, caret):
    document = decode("- a\n  - b")
    service.split(document, caret(document, "a", -1))
    assert visual_lines(document) == [(1, "a"), (1, ""), (2, "b")]


def test_enter_on_an_empty_top_level_item_leaves_the_list(service, line):
    document = decode("- a\n-")
    result = service.split(document, Selection.caret(line(document, ""), 0))
    assert [type(child) for child in document.children] == [ListBlock, Paragraph]
    assert result.selection.focus.node is document.children[1]
    assert encode(document) == "- a"


def test_enter_on_an_empty_nested_item_outdents_it(service, line):
    document = decode("- a\n\n  -")
    service.split(document, Selection.caret(line(document, ""), 0))
    assert visual_lines(document) == [(1, "a"), (1, "")]


def test_checked_state_does_not_carry_to_the_new_item(service, caret):
    document = decode("- [x] done")
    service.split(document, caret(document, "done", -1))
    assert encode(document) == "- [x] done\n- [ ]"


def test_heading_split_positions(service, caret):
    document = decode("# Title")
    service.split(document, caret(document, "Title", 2))
    assert isinstance(document.children[0], Heading)
    assert [child.text for child in document.children] == ["Ti", "tle"]
    assert isinstance(document.children[1], Paragraph)

    document = decode("# Title")
    result = service.split(document, caret(document, "Title", -1))
    assert isinstance(result.selection.focus.node, Paragraph)
    assert encode(document) == "# Title"

    document = decode("# Title")
    result = service.split(document, caret(document, "Title"))
    assert isinstance(document.children[0], Paragraph)
    assert isinstance(result.selection.focus.node, Heading)


def test_paragraph_split_and_range_replacement(service, line):
    document = decode("abcd")
    node = line(document, "abcd")
    service.split(document, Selection.between(node, 1, node, 3))
    assert [child.text for child in document.children] == ["a", "d"]


def test_fence_line_opens_a_code_block(service, caret):
    document = Document(children=[Paragraph(content=Inline.of("```py"))])
    result = service.split(document, caret(document, "```py", -1))
    code = document.children[0]
    assert isinstance(code, CodeBlock)
    assert code.language == "py"
    assert result.selection.focus.node is code


def test_code_block_newline_keeps_indentation(service, line):
    document = decode("```\n  x\n```")
    code = document.children[0]
    result = service.split(document, Selection.caret(code, len(code.text)))
    assert code.text == "  x\n  "
    assert result.selection.focus.offset == 6


def test_quote_soft_break_then_exit(service, caret):
    document = decode("> a")
    first = service.split(document, caret(document, "a", -1))
    quote = document.children[0]
    assert quote.text == "a\n"
    second = service.split(document, first.selection)
    assert quote.text == "a"
    assert isinstance(document.children[1], Paragraph)
    assert second.selection.focus.node is document.children[1]


def test_enter_in_an_empty_quote_replaces_it(service):
    document = decode("> a")
    quote = document.children[0]
    quote.content.delete(0, 1)
    service.split(document, Selection.caret(quote, 0))
    assert not any(isinstance(child, Blockquote) for child in document.children)


def test_enter_on_a_rule_adds_a_paragraph_after_it(service):
    document = decode("---")
    result = service.split(document, Selection.caret(document.children[0], 0))
    assert isinstance(document.children[1], Paragraph)
    assert result.selection.focus.node is document.children[1]


def test_enter_on_empty_parent_item_moves_the_sublist_to_the_new_item(service, line):
    document = from_html("<ul><li><br><ul><li>b</li></ul></li></ul>")
    result = service.split(document, Selection.caret(line(document, ""), 0))
    assert result.success
    assert to_html(document) == "<ul><li><br></li><li><br><ul><li>b</li></ul></li></ul>"
    assert result.selection.focus.node.children[0].items[0].text == "b"
