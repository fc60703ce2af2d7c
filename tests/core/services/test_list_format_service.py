import pytest

from structmd.core.generators.markdown_builder import encode
from structmd.core.models import ListItem, ListKind
from structmd.core.models.cursor import Selection
from structmd.core.parser.markdown_parser import decode
from structmd.core.services.list_format_service import ListFormatService


@pytest.fixture
def service(settings):
    return ListFormatService(settings)


def test_changing_one_middle_item_splits_the_list(service, caret):
    document = decode("- a\n- b\n- c")
    result = service.set_list_kind(document, caret(document, "b"), ListKind.ORDERED)
    assert result.success
    assert result.details["op"] == "set_list_kind:ordered"
    assert [child.kind for child in document.children] == [ListKind.BULLET, ListKind.ORDERED, ListKind.BULLET]


def test_changing_several_items_keeps_them_in_one_list(service, line):
    document = decode("- a\n- b\n- c")
    selection = Selection.between(line(document, "a"), 0, line(document, "b"), 1)
    service.set_list_kind(document, selection, ListKind.ORDERED)
    assert encode(document) == "1. a\n2. b\n\n- c"


def test_sole_item_changes_its_list_kind(service, caret):
    document = decode("- a")
    service.set_list_kind(document, caret(document, "a"), "task")
    assert encode(document) == "- [ ] a"


def test_paragraphs_become_items_of_one_list(service, line):
    document = decode("x\n\ny")
    selection = Selection.between(line(document, "x"), 0, line(document, "y"), 1)
    result = service.set_list_kind(document, selection, ListKind.BULLET)
    assert encode(document) == "- x\n- y"
    assert isinstance(result.selection.anchor.node, ListItem)
    assert result.selection.focus.node is line(document, "y")


def test_paragraph_joins_a_list_of_the_same_kind_above(service, caret):
    document = decode("1. a\n\nb")
    service.set_list_kind(document, caret(document, "b"), ListKind.ORDERED)
    assert encode(document) == "1. a\n2. b"


def test_same_kind_or_non_paragraph_lines_are_noops(service, caret):
    document = decode("- a\n\n# H")
    assert not service.set_list_kind(document, caret(document, "a"), ListKind.BULLET).success
    assert not service.set_list_kind(document, caret(document, "H"), ListKind.BULLET).success


def test_unset_list_turns_items_into_paragraphs(service, line):
    document = decode("- a\n- b\n- c")
    selection = Selection.between(line(document, "a"), 0, line(document, "b"), 1)
    result = service.unset_list(document, selection)
    assert encode(document) == "a\n\nb\n\n- c"
    assert result.selection.anchor.node is line(document, "a")
    assert not isinstance(result.selection.anchor.node, ListItem)


def test_unset_list_outside_lists_is_a_noop(service, caret):
    document = decode("text")
    assert not service.unset_list(document, caret(document, "text")).success
