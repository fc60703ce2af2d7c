import pytest

from structmd.core.models import CODE, EMPHASIS, STRIKE, STRONG, Run
from structmd.core.parser.inline_parser import InlineParser, parse_inline


def test_strong_and_emphasis_become_marks():
    assert parse_inline("**bold** and *em*").runs == [
        Run("bold", frozenset({STRONG})),
        Run(" and "),
        Run("em", frozenset({EMPHASIS})),
    ]


@pytest.mark.parametrize(
    "source, marks",
    [
        ("__a__", {STRONG}),
        ("_a_", {EMPHASIS}),
        ("***a***", {STRONG, EMPHASIS}),
        ("~~a~~", {STRIKE}),
        ("~~**a**~~", {STRIKE, STRONG}),
        ("`a`", {CODE}),
    ],
)
def test_delimiters_map_to_marks(source, marks):
    assert parse_inline(source).runs == [Run("a", frozenset(marks))]


def test_intraword_underscore_stays_literal():
    assert parse_inline("snake_case_name").runs == [Run("snake_case_name")]


def test_unclosed_delimiters_are_text():
    assert parse_inline("**open").text == "**open"
    assert parse_inline("a ~ b").text == "a ~ b"


def test_code_span_content_is_literal():
    assert parse_inline("`a*b*`").runs == [Run("a*b*", frozenset({CODE}))]


def test_links_and_autolinks_carry_href():
    assert parse_inline("[click](https://x.com)").runs == [Run("click", href="https://x.com")]
    assert parse_inline("<https://a.b>").runs == [Run("https://a.b", href="https://a.b")]
    linked = parse_inline('[**b** x](u "title")').runs
    assert linked == [Run("b", frozenset({STRONG}), "u"), Run(" x", href="u")]


def test_image_keeps_underscores_in_alt_and_source():
    runs = parse_inline("![my_pic](a_b.png)").runs
    assert runs == [Run("my_pic", src="a_b.png")]


def test_br_tag_is_a_line_break():
    assert parse_inline("a<br>b").text == "a\nb"


def test_escapes_are_removed():
    assert parse_inline(r"\*not\* \_em\_").runs == [Run("*not* _em_")]
    assert parse_inline(r"1\. item").text == "1. item"


def test_character_references_decode():
    assert parse_inline("&#32;a&amp;b&#9;").text == " a&b\t"
    assert parse_inline(r"\&amp;").text == "&amp;"


def test_other_inline_html_stays_literal():
    assert parse_inline("a <span>b</span>").runs == [Run("a <span>b</span>")]


def test_link_destination_is_kept_verbatim():
    assert parse_inline("[x](a b.md)").text == "[x](a b.md)"
    assert parse_inline("[x](<a b.md>)").runs == [Run("x", href="a b.md")]
    assert parse_inline("[x](caf%C3%A9)").runs == [Run("x", href="caf%C3%A9")]


def test_hard_break_is_a_line_break():
    assert InlineParser().parse("a  \nb").text == "a\nb"
