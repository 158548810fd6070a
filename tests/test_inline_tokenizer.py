"""Tests for the single-line inline tokenizer."""

import pytest

from epicmd.core.inline_tokenizer import tokenize
from epicmd.core.markdown_model import Bold, Code, Italic, Link, Plain, spans_source, spans_text


class TestTokenizeSpans:
    """Recognized span kinds."""

    def test_plain_line_is_single_plain_span(self):
        """A line with no markup is one Plain span with the same text."""
        assert tokenize("just words here") == (Plain("just words here"),)

    def test_empty_line_has_no_spans(self):
        assert tokenize("") == ()

    def test_bold_and_italic(self):
        """Bold and italic separated by plain text."""
        assert tokenize("**hi** and *there*") == (
            Bold("hi"),
            Plain(" and "),
            Italic("there"),
        )

    def test_link(self):
        assert tokenize("see [docs](https://example.com) now") == (
            Plain("see "),
            Link("docs", "https://example.com"),
            Plain(" now"),
        )

    def test_code(self):
        assert tokenize("run `pip install` first") == (
            Plain("run "),
            Code("pip install"),
            Plain(" first"),
        )

    def test_adjacent_spans(self):
        assert tokenize("**a***b*`c`") == (Bold("a"), Italic("b"), Code("c"))


class TestTokenizePrecedence:
    """Openers are tried bold, italic, link, code, and the earliest match wins."""

    def test_bold_before_italic(self):
        """'**' opens bold even though '*' alone would open italic."""
        assert tokenize("**x**") == (Bold("x"),)

    def test_triple_star_resolves_to_bold_then_plain(self):
        assert tokenize("***x***") == (Bold("*x"), Plain("*"))

    def test_markup_inside_code_is_literal(self):
        assert tokenize("`**not bold**`") == (Code("**not bold**"),)

    def test_markup_inside_link_label_is_literal(self):
        assert tokenize("[*a*](u)") == (Link("*a*", "u"),)

    def test_emphasis_is_not_nested(self):
        """Italic inside bold stays part of the bold text."""
        assert tokenize("**a *b* c**") == (Bold("a *b* c"),)


class TestTokenizeDegradation:
    """Malformed markup degrades to plain text and never raises."""

    def test_unclosed_bold_is_plain(self):
        assert tokenize("**bold") == (Plain("**bold"),)

    def test_unclosed_bold_does_not_become_italic(self):
        """The '*' of an unclosed '**' is not re-read as an italic opener."""
        assert tokenize("**a*") == (Plain("**a*"),)

    def test_unclosed_italic_is_plain(self):
        assert tokenize("a *b") == (Plain("a *b"),)

    def test_empty_emphasis_is_plain(self):
        assert tokenize("****") == (Plain("****"),)
        assert tokenize("a ** b") == (Plain("a ** b"),)

    @pytest.mark.parametrize("line", ["[x]", "[x](", "[](u)", "[x]()", "[x] (u)"])
    def test_incomplete_links_are_plain(self, line):
        assert tokenize(line) == (Plain(line),)

    def test_unclosed_code_is_plain(self):
        assert tokenize("a `b") == (Plain("a `b"),)

    def test_none_is_treated_as_empty(self):
        assert tokenize(None) == ()


class TestTokenizeRoundTrip:
    """Joining raw span text reproduces the line."""

    @pytest.mark.parametrize(
        "line",
        [
            "**hi** and *there*",
            "***x***",
            "**open [link](u) `c` *i* trailing*",
            "weird ]( ) ` ** * [",
        ],
    )
    def test_raw_reconstructs_line(self, line):
        assert spans_source(tokenize(line)) == line

    def test_visible_text_drops_delimiters(self):
        assert spans_text(tokenize("**hi** and *there* [x](u) `y`")) == "hi and there x y"
