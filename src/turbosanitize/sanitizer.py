"""Whitelist-based HTML sanitizer.

Given lists of acceptable elements and attributes, `Sanitizer.sanitize()`
removes all other markup from a string:

    from turbosanitize import Sanitizer, sanitize

    # default whitelist, strict mode
    sanitize("...")

    # custom whitelist
    sanitizer = Sanitizer.default()
    sanitizer.elements = ["a", "b", "div", "ul", "li", "u", "i", "p"]
    sanitizer.attributes = ["href", "target", "rel", "title"]
    sanitizer.sanitize("some <tag> html </tag> ... text")

    # strip all markup
    Sanitizer.strip_only().sanitize("some <tag> html </tag> ... text")

    # everything configurable
    sanitizer = Sanitizer(elements=["p"], uri_schemes=["https"])
    sanitizer.strict_mode()

A configuration is never modified by sanitizing, so one instance may be
shared between threads as long as nobody reassigns its fields.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .constants import DEFAULT_ATTRIBUTES, DEFAULT_ELEMENTS, DEFAULT_URI_SCHEMES
from .errors import EncodingError, PairingMismatchError, TokenizeError
from .filter import TokenFilter
from .tokenizer import Tokenizer, TokenizerError, TokenizerOpts
from .whitelist import Whitelist

logger = logging.getLogger(__name__)

# Unicode White_Space; unlike str.isspace() this excludes \x1c-\x1f
_TRIM_CHARS = (
    "\t\n\v\f\r \x85\xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)


@dataclass(slots=True)
class Sanitizer:
    """Sanitizing configuration.

    - Tags not in `elements` are unwrapped: the tag goes, its text stays.
      script, applet and style lose their content as well.
    - Attributes not in `attributes` are dropped, on every element.
    - href/src values are rewritten by the link policy using `uri_schemes`.

    With `strip_html` and no `elements`, the result is the escaped text
    content only. Configuring any element disables stripping.
    """

    elements: list[str] = field(default_factory=list)
    attributes: list[str] = field(default_factory=list)
    uri_schemes: list[str] = field(default_factory=list)

    # Return only the text content
    strip_html: bool = False

    # Fail when start and end tag counts differ. Malformed input such as
    # "<<p>x</p>" lexes to text plus a lone "</p>", so counting catches it.
    ensure_in_pairs: bool = False

    # Prefix links that lack a configured scheme with "http://"
    force_href_link: bool = False

    # For links that are not internal ("/path" or "#frag"), force
    # target="_blank" and rel="nofollow"
    force_target_blank: bool = False
    force_rel_nofollow: bool = False

    drop_comments: bool = False
    drop_doctype: bool = False

    # Largest raw size of one token, 0 for no limit
    max_buf: int = 0

    @classmethod
    def strip_only(cls) -> Sanitizer:
        """Allow nothing: return the text content with all markup removed."""
        return cls(strip_html=True)

    @classmethod
    def default(cls) -> Sanitizer:
        """The built-in whitelists with strict mode on."""
        sanitizer = cls(
            elements=list(DEFAULT_ELEMENTS),
            attributes=list(DEFAULT_ATTRIBUTES),
            uri_schemes=list(DEFAULT_URI_SCHEMES),
        )
        return sanitizer.strict_mode()

    def strict_mode(self) -> Sanitizer:
        self.ensure_in_pairs = True
        self.force_href_link = True
        self.force_target_blank = True
        self.force_rel_nofollow = True
        return self

    def sanitize(self, text: str | bytes) -> str:
        """Sanitize `text`, which must be valid UTF-8.

        Leading and trailing whitespace is removed first.

        Raises:
            EncodingError: `text` is not valid UTF-8.
            TokenizeError: the tokenizer failed; `.input` is the original text.
            PairingMismatchError: `ensure_in_pairs` is set and start/end tag
                counts differ.
        """
        source = _decode(text)
        whitelist = Whitelist.compile(self)
        sink = TokenFilter(whitelist, self)
        tokenizer = Tokenizer(sink, TokenizerOpts(max_buf=self.max_buf))

        try:
            tokenizer.run(source.strip(_TRIM_CHARS))
        except TokenizerError as exc:
            logger.warning("Tokenizing failed: %s", exc.error)
            raise TokenizeError(text, exc.error) from exc

        if self.ensure_in_pairs and not sink.balanced:
            logger.warning("Tag pairs mismatch: %d start tags, %d end tags", sink.start_tags, sink.end_tags)
            raise PairingMismatchError(sink.start_tags, sink.end_tags)

        result = sink.result()
        logger.debug(
            "Sanitized %d characters into %d (%d start tags, %d end tags)",
            len(source),
            len(result),
            sink.start_tags,
            sink.end_tags,
        )
        return result


def _decode(text: str | bytes) -> str:
    if isinstance(text, bytes):
        try:
            return text.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError() from exc
    try:
        # Lone surrogates cannot be encoded as UTF-8
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingError() from exc
    return text


def sanitize(text: str | bytes) -> str:
    """Sanitize `text` with the default whitelist."""
    return Sanitizer.default().sanitize(text)
