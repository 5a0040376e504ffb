"""Tests for the markup tokenizer."""

import unittest

from turbosanitize.tokenizer import Tokenizer, TokenizerError, TokenizerOpts
from turbosanitize.tokens import CharacterTokens, CommentToken, DoctypeToken, EOFToken, Tag


class _Collector:
    def __init__(self):
        self.tokens = []

    def process_token(self, token):
        self.tokens.append(token)


def tokenize(html, **opts):
    sink = _Collector()
    Tokenizer(sink, TokenizerOpts(**opts)).run(html)
    return sink.tokens


def text_of(tokens):
    return "".join(t.data for t in tokens if isinstance(t, CharacterTokens))


class TestTags(unittest.TestCase):
    def test_start_text_end(self):
        tokens = tokenize('<p class="x">hi</p>')
        assert len(tokens) == 4
        start, text, end, eof = tokens
        assert isinstance(start, Tag) and start.kind == Tag.START
        assert start.name == "p"
        assert start.attrs == [("class", "x")]
        assert isinstance(text, CharacterTokens) and text.data == "hi"
        assert isinstance(end, Tag) and end.kind == Tag.END and end.name == "p"
        assert isinstance(eof, EOFToken)

    def test_names_are_lowercased(self):
        tag = tokenize("<DIV ID=a>")[0]
        assert tag.name == "div"
        assert tag.attrs == [("id", "a")]

    def test_attribute_quoting_styles(self):
        tag = tokenize("<a x=\"1\" y='2' z=3 w>")[0]
        assert tag.attrs == [("x", "1"), ("y", "2"), ("z", "3"), ("w", "")]

    def test_duplicate_attribute_keeps_first(self):
        tag = tokenize("<a href=1 href=2>")[0]
        assert tag.attrs == [("href", "1")]

    def test_self_closing(self):
        tag = tokenize("<br/>")[0]
        assert tag.name == "br"
        assert tag.self_closing
        assert not tag.is_start

    def test_self_closing_with_attributes(self):
        tag = tokenize('<img src="a" />')[0]
        assert tag.self_closing
        assert tag.attrs == [("src", "a")]

    def test_attribute_references_are_decoded(self):
        tag = tokenize('<a title="&lt;x&gt;">')[0]
        assert tag.attrs == [("title", "<x>")]

    def test_query_string_in_attribute_is_not_a_reference(self):
        tag = tokenize('<a href="?a=1&copy=2">')[0]
        assert tag.attrs == [("href", "?a=1&copy=2")]

    def test_incomplete_tag_at_eof_is_discarded(self):
        tokens = tokenize("text<p")
        assert text_of(tokens) == "text"
        assert not any(isinstance(t, Tag) for t in tokens)

    def test_unterminated_attribute_value_is_discarded(self):
        tokens = tokenize('<a href="abc')
        assert len(tokens) == 1
        assert isinstance(tokens[0], EOFToken)

    def test_empty_end_tag_is_dropped(self):
        tokens = tokenize("a</>b")
        assert text_of(tokens) == "ab"
        assert not any(isinstance(t, (Tag, CommentToken)) for t in tokens)


class TestText(unittest.TestCase):
    def test_lt_not_followed_by_letter_is_text(self):
        tokens = tokenize("<<p>Why SO?</p>")
        assert text_of(tokens) == "<<p>Why SO?"
        tags = [t for t in tokens if isinstance(t, Tag)]
        assert len(tags) == 1
        assert tags[0].kind == Tag.END and tags[0].name == "p"

    def test_runs_of_lt_pair_up(self):
        tokens = tokenize("<<<<<<pre>Why Why<<<</pre>")
        assert text_of(tokens) == "<<<<<<pre>Why Why<<<</pre>"
        assert not any(isinstance(t, Tag) for t in tokens)

    def test_lone_lt_at_eof(self):
        assert text_of(tokenize("a <")) == "a <"
        assert text_of(tokenize("a </")) == "a </"

    def test_references_in_text(self):
        assert text_of(tokenize("a &amp; b &lt;c&gt;")) == "a & b <c>"

    def test_newlines_are_normalized(self):
        assert text_of(tokenize("a\r\nb\rc")) == "a\nb\nc"

    def test_nul_is_replaced(self):
        assert text_of(tokenize("a\0b")) == "a\ufffdb"

    def test_bom_is_discarded(self):
        assert text_of(tokenize("\ufeffabc")) == "abc"
        assert text_of(tokenize("\ufeffabc", discard_bom=False)) == "\ufeffabc"


class TestContentModels(unittest.TestCase):
    def test_script_content_is_raw(self):
        tokens = tokenize("<script><b>x</b> &amp;</script>after")
        assert [type(t) for t in tokens] == [Tag, CharacterTokens, Tag, CharacterTokens, EOFToken]
        assert tokens[1].data == "<b>x</b> &amp;"
        assert tokens[2].kind == Tag.END and tokens[2].name == "script"
        assert tokens[3].data == "after"

    def test_rawtext_end_tag_is_case_insensitive(self):
        tokens = tokenize("<style>a</STYLE>")
        assert tokens[1].data == "a"
        assert tokens[2].name == "style"

    def test_rawtext_needs_full_end_tag(self):
        tokens = tokenize("<script>a</scriptx></script>")
        assert tokens[1].data == "a</scriptx>"

    def test_rcdata_decodes_references(self):
        tokens = tokenize("<title>a &amp; <b></title>")
        assert tokens[1].data == "a & <b>"

    def test_unclosed_script_runs_to_eof(self):
        tokens = tokenize("<script>alert(1)")
        assert text_of(tokens) == "alert(1)"

    def test_plaintext_takes_the_rest(self):
        tokens = tokenize("<plaintext><b>x</plaintext>")
        assert text_of(tokens) == "<b>x</plaintext>"

    def test_self_closing_script_does_not_switch_state(self):
        tokens = tokenize("<script/><b>")
        assert [t.name for t in tokens if isinstance(t, Tag)] == ["script", "b"]


class TestMarkupDeclarations(unittest.TestCase):
    def test_comment(self):
        tokens = tokenize("a<!-- c -->b")
        assert isinstance(tokens[1], CommentToken)
        assert tokens[1].data == " c "
        assert text_of(tokens) == "ab"

    def test_abrupt_empty_comments(self):
        assert tokenize("<!-->")[0].data == ""
        assert tokenize("<!--->")[0].data == ""

    def test_comment_ends_at_bang_terminator(self):
        tokens = tokenize("<!--x--!><script>alert(1)</script>-->")
        assert [type(t) for t in tokens] == [CommentToken, Tag, CharacterTokens, Tag, CharacterTokens, EOFToken]
        assert tokens[0].data == "x"
        assert tokens[1].name == "script" and tokens[1].kind == Tag.START
        assert tokens[4].data == "-->"

    def test_empty_comment_with_bang_terminator(self):
        tokens = tokenize("<!----!>a")
        assert tokens[0].data == ""
        assert text_of(tokens) == "a"

    def test_lone_dashes_and_bangs_stay_in_comment(self):
        assert tokenize("<!--a-!>b--!->c-->")[0].data == "a-!>b--!->c"

    def test_unterminated_comment_runs_to_eof(self):
        tokens = tokenize("<!--abc")
        assert isinstance(tokens[0], CommentToken)
        assert tokens[0].data == "abc"

    def test_doctype(self):
        token = tokenize("<!doctype  html >")[0]
        assert isinstance(token, DoctypeToken)
        assert token.data == "html"

    def test_bogus_comments(self):
        assert tokenize("<?xml version?>")[0].data == "?xml version?"
        assert tokenize("<!foo>")[0].data == "foo"
        assert tokenize("</ x>")[0].data == " x"


class TestLimits(unittest.TestCase):
    def test_max_buf_allows_small_tokens(self):
        tokens = tokenize("<p>abc</p>", max_buf=4)
        assert text_of(tokens) == "abc"

    def test_max_buf_exceeded_by_text(self):
        with self.assertRaises(TokenizerError) as ctx:
            tokenize("<p>hello world</p>", max_buf=4)
        error = ctx.exception.error
        assert error.code == "buffer-exceeded"
        assert error.line == 1
        assert error.column == 4

    def test_max_buf_exceeded_by_tag(self):
        with self.assertRaises(TokenizerError):
            tokenize('<a href="https://example.com/">x</a>', max_buf=10)

    def test_error_position_on_later_line(self):
        with self.assertRaises(TokenizerError) as ctx:
            tokenize("ab\n<!--" + "x" * 20 + "-->", max_buf=10)
        error = ctx.exception.error
        assert error.line == 2
        assert error.column == 1


if __name__ == "__main__":
    unittest.main()
