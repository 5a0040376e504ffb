"""Whitelist and element constants

This module defines the built-in tables used by the sanitizer. Everything here
is computed once at import time and must never be mutated; callers that want
to extend a default list should copy it first.

Usage:
    from turbosanitize.constants import DEFAULT_ELEMENTS, VOID_ELEMENTS

References:
    - https://html.spec.whatwg.org/multipage/syntax.html#void-elements
    - https://en.wikipedia.org/wiki/List_of_URI_schemes
"""

# Elements allowed by the default preset
DEFAULT_ELEMENTS = (
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "p",
    "hr",
    "pre",
    "blockquote",
    "div",
    "a",
    "code",
    "br",
    "img",
    "ol",
    "ul",
    "li",
    "em",
    "strong",
    "small",
    "strike",
    "i",
    "b",
    "u",
    "table",
    "caption",
    "colgroup",
    "col",
    "tbody",
    "thead",
    "tfoot",
    "tr",
    "td",
    "th",
)

# Attributes allowed by the default preset, on every element
DEFAULT_ATTRIBUTES = (
    "valign",
    "align",
    "rows",
    "cols",
    "colspan",
    "cellpadding",
    "cellspacing",
    "rowspan",
    "title",
    "href",
    "alt",
    "rel",
    "target",
    "src",
    "selected",
    "checked",
)

DEFAULT_URI_SCHEMES = (
    "aim",
    "apt",
    "bitcoin",
    "callto",
    "cvs",
    "facetime",
    "feed",
    "ftp",
    "git",
    "gopher",
    "gtalk",
    "http",
    "https",
    "imap",
    "irc",
    "itms",
    "jabber",
    "magnet",
    "mailto",
    "mms",
    "msnim",
    "news",
    "nntp",
    "rtmp",
    "rtsp",
    "sftp",
    "skype",
    "svn",
    "ymsgr",
)

# Removed together with everything up to their matching end tag
ALWAYS_REMOVED_TAGS = frozenset({"script", "applet", "style"})

# Start tags with no end tag by convention. These never count towards the
# start/end tag balance, whether or not they are written as "<br/>".
VOID_ELEMENTS = frozenset(
    {
        "br",
        "img",
        "hr",
        "area",
        "base",
        "col",
        "command",
        "embed",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Content models for the tokenizer
RAWTEXT_ELEMENTS = frozenset(
    {
        "script",
        "style",
        "xmp",
        "iframe",
        "noembed",
        "noframes",
        "noscript",
    }
)

RCDATA_ELEMENTS = frozenset({"title", "textarea"})

# Values written onto external links
FORCED_TARGET = "_blank"
FORCED_REL = "nofollow"
FORCED_SCHEME_PREFIX = "http://"
