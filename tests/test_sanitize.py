from __future__ import annotations

import unittest

from turbosanitize import PairingMismatchError, Sanitizer, sanitize
from turbosanitize.constants import DEFAULT_ATTRIBUTES, DEFAULT_ELEMENTS, DEFAULT_URI_SCHEMES


def tags_list_sanitizer() -> Sanitizer:
    sanitizer = Sanitizer()
    sanitizer.elements = ["a", "br", "p", "pre", "img"]
    sanitizer.attributes = ["href", "src"]
    sanitizer.uri_schemes = ["http", "https", "ftp"]
    return sanitizer.strict_mode()


class SanitizeCase(unittest.TestCase):
    def check(self, sanitizer: Sanitizer, cases: list[tuple[str, str]]) -> None:
        for source, expected in cases:
            with self.subTest(source=source):
                assert sanitizer.sanitize(source) == expected


class TestPresets(unittest.TestCase):
    def test_custom_is_empty(self) -> None:
        sanitizer = Sanitizer()
        assert sanitizer.elements == []
        assert not sanitizer.strip_html
        assert not sanitizer.ensure_in_pairs

    def test_strip_only(self) -> None:
        sanitizer = Sanitizer.strip_only()
        assert sanitizer.strip_html
        assert sanitizer.elements == []
        assert not sanitizer.ensure_in_pairs

    def test_default(self) -> None:
        sanitizer = Sanitizer.default()
        assert sanitizer.elements == list(DEFAULT_ELEMENTS)
        assert sanitizer.attributes == list(DEFAULT_ATTRIBUTES)
        assert sanitizer.uri_schemes == list(DEFAULT_URI_SCHEMES)
        assert sanitizer.ensure_in_pairs
        assert sanitizer.force_href_link
        assert sanitizer.force_target_blank
        assert sanitizer.force_rel_nofollow

    def test_default_lists_are_copies(self) -> None:
        sanitizer = Sanitizer.default()
        sanitizer.elements.append("iframe")
        assert "iframe" not in DEFAULT_ELEMENTS
        assert "iframe" not in Sanitizer.default().elements

    def test_strict_mode_returns_the_instance(self) -> None:
        sanitizer = Sanitizer(elements=["p"])
        assert sanitizer.strict_mode() is sanitizer
        assert sanitizer.ensure_in_pairs


class TestStripOnly(SanitizeCase):
    def test_strip_tags(self) -> None:
        self.check(
            Sanitizer.strip_only(),
            [
                ("<html>html document</html>", "html document"),
                ('a link: <a href="http://example.com/">example.com</a>', "a link: example.com"),
                ("<script>alert(1);</script>", ""),
                ('<meta name="abc" value="123">', ""),
                ('<span style="font-size:100">font</span>', "font"),
                ('<a href="//abc.com"><b>abc.com</b></a><span> a Good site</span>', "abc.com a Good site"),
                ("<<p>paragraphs</p>", "&lt;&lt;p&gt;paragraphs"),
            ],
        )

    def test_comments_are_not_text(self) -> None:
        assert Sanitizer.strip_only().sanitize("a<!-- b -->c<!DOCTYPE html>") == "ac"


class TestDefault(SanitizeCase):
    def test_default_list(self) -> None:
        self.check(
            Sanitizer.default(),
            [
                ("<html>html document</html>", "html document"),
                (
                    'a link: <a href="http://example.com/">example.com</a>',
                    'a link: <a href="http://example.com/" rel="nofollow" target="_blank">example.com</a>',
                ),
                ("<script>alert(1);</script>", ""),
                ('<meta name="abc" value="123">', ""),
                ('<span style="font-size:100">font</span>', "font"),
                ("<pre>Pre</pre>", "<pre>Pre</pre>"),
                ("<this>Ignore This Tag</this>", "Ignore This Tag"),
                ("<iframe>Not allow by default</iframe>", "Not allow by default"),
                ("<p>default p</p>", "<p>default p</p>"),
                ('<a href="/abc">123</a>', '<a href="/abc">123</a>'),
                ('<a href="/abc" noattr="ignore">123</a>', '<a href="/abc">123</a>'),
                ('<a href="/abc" target="default">123</a>', '<a href="/abc" target="default">123</a>'),
                (
                    '<a href="javascript:alert(1);">javascript</a>',
                    '<a href="http://javascript:alert(1);" rel="nofollow" target="_blank">javascript</a>',
                ),
            ],
        )

    def test_module_function_uses_default(self) -> None:
        assert sanitize("<p>x</p><script>y</script>") == "<p>x</p>"

    def test_surrounding_whitespace_is_trimmed(self) -> None:
        assert sanitize("  \n<p>x</p>\t ") == "<p>x</p>"

    def test_only_unicode_whitespace_is_trimmed(self) -> None:
        assert Sanitizer.strip_only().sanitize("\x1cabc\x1f") == "\x1cabc\x1f"
        assert Sanitizer.strip_only().sanitize("\u3000abc\xa0") == "abc"

    def test_bytes_input(self) -> None:
        assert sanitize("<b>caf\xe9</b>".encode()) == "<b>caf\xe9</b>"

    def test_self_closing_and_void_tags(self) -> None:
        assert sanitize("a<br>b<br/>c") == "a<br>b<br/>c"
        assert sanitize('<img src="/x.png" alt="x"/>') == '<img src="/x.png" alt="x"/>'

    def test_escaping_is_stable(self) -> None:
        assert sanitize("<p>&lt;b&gt; &amp; &#39;</p>") == "<p>&lt;b&gt; &amp; &#39;</p>"

    def test_comments_pass_through(self) -> None:
        assert sanitize("<p>a<!-- note -->b</p>") == "<p>a<!-- note -->b</p>"

    def test_bang_terminated_comment_does_not_hide_markup(self) -> None:
        output = sanitize("<!--x--!><script>alert(1)</script>-->")
        assert output == "<!--x-->--&gt;"
        assert "<script>" not in output and "alert(1)" not in output

    def test_markup_after_empty_bang_comment_is_filtered(self) -> None:
        sanitizer = Sanitizer(elements=["p"])
        output = sanitizer.sanitize("<p>a<!----!><img src=x onerror=alert(1)>--></p>")
        assert output == "<p>a<!---->--&gt;</p>"

    def test_drop_comments(self) -> None:
        sanitizer = Sanitizer.default()
        sanitizer.drop_comments = True
        assert sanitizer.sanitize("<p>a<!-- note -->b</p>") == "<p>ab</p>"


class TestTagsList(SanitizeCase):
    def test_tags_list(self) -> None:
        self.check(
            tags_list_sanitizer(),
            [
                ("<html>html document</html>", "html document"),
                ("<h1>not support heading</h1>", "not support heading"),
                ("<pre>Pre</pre>", "<pre>Pre</pre>"),
                ("<this>Ignore This Tag</this>", "Ignore This Tag"),
                ("<iframe>Not allow by default</iframe>", "Not allow by default"),
                ('<p class="no this attr">attr disallow</p>', "<p>attr disallow</p>"),
                ('<img src="abc">', '<img src="http://abc">'),
                ('<img src="abc" alt="not allow">', '<img src="http://abc">'),
                ('<img src="<wtf>">', '<img src="http://&lt;wtf&gt;">'),
                ('<a href="/abc"><>&$#!!#+><|</a>', '<a href="/abc">&lt;&gt;&amp;$#!!#+&gt;&lt;|</a>'),
                ('<a href="/abc" noattr="ignore">123</a>', '<a href="/abc">123</a>'),
                ('<a href="/abc" target="default">123</a>', '<a href="/abc">123</a>'),
                ('<a href="abc.com" target="default">123</a>', '<a href="http://abc.com" rel="nofollow" target="_blank">123</a>'),
                (
                    '<a href="javascript:alert(1);">javascript</a>',
                    '<a href="http://javascript:alert(1);" rel="nofollow" target="_blank">javascript</a>',
                ),
                (
                    'a link: <a href="http://example.com/">example.com</a>',
                    'a link: <a href="http://example.com/" rel="nofollow" target="_blank">example.com</a>',
                ),
            ],
        )


class TestTagsPairs(SanitizeCase):
    def test_malformed_markup_without_pair_checking(self) -> None:
        sanitizer = tags_list_sanitizer()
        sanitizer.ensure_in_pairs = False
        self.check(
            sanitizer,
            [
                ("<<p>Why SO?</p>", "&lt;&lt;p&gt;Why SO?</p>"),
                ("<<<<<<pre>Why Why<<<</pre>", "&lt;&lt;&lt;&lt;&lt;&lt;pre&gt;Why Why&lt;&lt;&lt;&lt;/pre&gt;"),
                ("<pre>so what</pre>>>>>>", "<pre>so what</pre>&gt;&gt;&gt;&gt;&gt;"),
            ],
        )

    def test_malformed_markup_with_pair_checking(self) -> None:
        with self.assertRaises(PairingMismatchError) as ctx:
            tags_list_sanitizer().sanitize("<<p>Why SO?</p>")
        assert ctx.exception.start_tags == 0
        assert ctx.exception.end_tags == 1

    def test_unclosed_element(self) -> None:
        with self.assertRaises(PairingMismatchError):
            sanitize("<p>never closed")

    def test_void_elements_do_not_unbalance(self) -> None:
        assert sanitize("<p>a<br>b<hr></p>") == "<p>a<br>b<hr></p>"


class TestLinkModes(unittest.TestCase):
    def test_unforced_links_use_schemes_as_block_list(self) -> None:
        sanitizer = Sanitizer(elements=["a"], attributes=["href"], uri_schemes=["javascript"])
        assert sanitizer.sanitize('<a href="javascript:alert(1)">x</a>') == '<a href="">x</a>'
        assert sanitizer.sanitize('<a href="https://example.com/">x</a>') == '<a href="https://example.com/">x</a>'

    def test_unforced_invalid_url_is_emptied(self) -> None:
        sanitizer = Sanitizer(elements=["a"], attributes=["href"])
        assert sanitizer.sanitize('<a href="http://x:99999/">x</a>') == '<a href="">x</a>'

    def test_attribute_values_are_escaped(self) -> None:
        sanitizer = Sanitizer(elements=["a"], attributes=["title"])
        assert sanitizer.sanitize("<a title='say \"hi\"'>x</a>") == '<a title="say &#34;hi&#34;">x</a>'


class TestReuse(unittest.TestCase):
    def test_repeated_calls_are_independent(self) -> None:
        sanitizer = Sanitizer.default()
        assert sanitizer.sanitize("<script>x</script>") == ""
        assert sanitizer.sanitize("<p>y</p>") == "<p>y</p>"

    def test_configuration_is_not_modified(self) -> None:
        sanitizer = Sanitizer(elements=["p"], strip_html=True)
        sanitizer.sanitize("<p>x</p>")
        assert sanitizer.strip_html
        assert sanitizer.elements == ["p"]


if __name__ == "__main__":
    unittest.main()
