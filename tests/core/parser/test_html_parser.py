from lxml import etree as ET  # type: ignore

from structmd.core.generators.markdown_builder import encode
from structmd.core.models import (
    EMPHASIS,
    STRONG,
    Blockquote,
    CodeBlock,
    ListKind,
    Paragraph,
    Run,
    visual_lines,
)
from structmd.core.parser.html_parser import HtmlFragmentParser, from_html


def test_loose_items_are_unwrapped():
    document = from_html("<ul>\n<li><p>a</p></li>\n<li><p>b</p>\n<p>more</p></li>\n</ul>")
    assert encode(document) == "- a\n- b\n\n  more"


def test_placeholder_br_is_not_content():
    document = from_html("<ul><li>ccc<ul><li>dd</li><li><br></li><li>fff</li></ul></li></ul>")
    assert visual_lines(document) == [(1, "ccc"), (2, "dd"), (2, ""), (2, "fff")]
    empty = list(document.children[0].items[0].children[0].items)[1]
    assert empty.placeholder


def test_trailing_br_after_text_is_dropped_but_inner_breaks_stay():
    document = from_html("<p>a<br>b<br></p>")
    assert document.children[0].text == "a\nb"


def test_checkbox_items_become_task_lists():
    document = from_html('<ul><li><input type="checkbox" checked> done</li><li><input type="checkbox">open</li></ul>')
    block = document.children[0]
    assert block.kind is ListKind.TASK
    assert [item.checked for item in block.items] == [True, False]
    assert block.items[0].text == "done"


def test_mixed_checkbox_list_splits_by_kind():
    document = from_html('<ul><li><input type="checkbox">t</li><li>plain</li></ul>')
    assert [child.kind for child in document.children] == [ListKind.TASK, ListKind.BULLET]


def test_list_directly_inside_list_belongs_to_previous_item():
    document = from_html("<ul><li>a</li><ul><li>b</li></ul></ul>")
    assert visual_lines(document) == [(1, "a"), (2, "b")]


def test_style_spans_map_to_marks():
    document = from_html(
        '<p><span style="font-weight:700">b</span> <span style="font-style: italic">i</span>'
        ' <b style="font-weight:normal">n</b></p>'
    )
    assert document.children[0].content.runs == [
        Run("b", frozenset({STRONG})),
        Run(" "),
        Run("i", frozenset({EMPHASIS})),
        Run(" n"),
    ]


def test_containers_and_unknown_tags_are_unwrapped():
    document = from_html("<div><p>a</p><div>b</div></div><section><foo>c</foo></section><script>x()</script>")
    assert [type(child) for child in document.children] == [Paragraph, Paragraph, Paragraph]
    assert [child.text for child in document.children] == ["a", "b", "c"]


def test_full_documents_use_the_body():
    document = from_html("<html><head><title>t</title></head><body><h3>x</h3></body></html>")
    assert encode(document) == "### x"


def test_code_language_from_class_and_plaintext_default():
    document = from_html('<pre><code class="language-python">x = 1\ny</code></pre><pre data-lang="plaintext"><code>z</code></pre>')
    first, second = document.children
    assert isinstance(first, CodeBlock)
    assert first.language == "python"
    assert first.lines == ["x = 1", "y"]
    assert second.language == ""


def test_blockquote_paragraphs_become_soft_breaks():
    document = from_html("<blockquote><p>a</p><p>b</p></blockquote>")
    assert isinstance(document.children[0], Blockquote)
    assert document.children[0].text == "a\nb"


def test_empty_input_yields_one_empty_paragraph():
    document = from_html("   ")
    assert len(document.children) == 1
    assert document.children[0].placeholder


def test_unparseable_input_degrades_to_text(monkeypatch):
    def broken(html):
        raise ET.ParserError("boom")

    monkeypatch.setattr(HtmlFragmentParser, "_root", staticmethod(broken))
    document = from_html("<p>one</p><p>two</p>")
    assert len(document.children) == 1
    assert document.children[0].text == "one two"
