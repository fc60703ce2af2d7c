from structmd.core.generators.html_builder import HtmlBuilder, to_html
from structmd.core.invariants import repair
from structmd.core.models import STRONG, Document, Inline, Paragraph, Run
from structmd.core.parser.html_parser import from_html
from structmd.core.parser.markdown_parser import decode


def test_inline_marks_render_as_tags():
    html = to_html(decode("**b** *i* ~~s~~ `c`"))
    assert html == "<p><strong>b</strong> <em>i</em> <del>s</del> <code>c</code></p>"


def test_link_wraps_marked_runs():
    html = to_html(decode("[**x** y](https://example.com)"))
    assert html == '<p><a href="https://example.com"><strong>x</strong> y</a></p>'


def test_nested_lists():
    html = to_html(decode("- aaa\n  - bbb\n- ccc"))
    assert html == "<ul><li>aaa<ul><li>bbb</li></ul></li><li>ccc</li></ul>"


def test_ordered_list_and_task_checkbox():
    assert to_html(decode("1. a")) == "<ol><li>a</li></ol>"
    task = to_html(decode("- [x] done\n- [ ] open"))
    assert task.startswith("<ul><li><input")
    assert task.count('type="checkbox"') == 2
    assert "checked" in task.split("done")[0]
    assert "checked" not in task.split("done")[1]
    assert "done</li>" in task and "open</li>" in task


def test_placeholders_render_as_br():
    assert to_html(decode("")) == "<p><br></p>"
    document = Document(children=[Paragraph(content=Inline.of("x")), Paragraph()])
    repair(document)
    assert to_html(document) == "<p>x</p><p><br></p>"


def test_code_block_language_and_default():
    assert to_html(decode("```py\nx = 1\n```")) == '<pre data-lang="py"><code>x = 1</code></pre>'
    assert 'data-lang="plaintext"' in to_html(decode("```\nx\n```"))
    assert 'data-lang="text"' in HtmlBuilder("text").build(decode("```\nx\n```"))


def test_blocks_and_line_breaks():
    html = to_html(decode("## T\n\n---\n\n> a\n> b\n\nx\ny"))
    assert html == "<h2>T</h2><hr><blockquote>a<br>b</blockquote><p>x<br>y</p>"


def test_text_is_escaped():
    document = Document(children=[Paragraph(content=Inline([Run("a < b & c", frozenset({STRONG}))]))])
    assert to_html(document) == "<p><strong>a &lt; b &amp; c</strong></p>"


def test_rendered_html_parses_back_to_the_same_tree(same_tree):
    for markdown in (
        "- a\n  - b\n    - c\n    - [ ] d\n    1. e\n  - f\n    - [x] g",
        "# H\n\n> q\n> r\n\n```py\nx\n```\n\n---\n\n**s** [l](u) ![i](p.png)",
    ):
        document = decode(markdown)
        assert same_tree(from_html(to_html(document)), document)
