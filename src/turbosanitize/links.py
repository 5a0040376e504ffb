"""Link policy for href/src values.

Internal links (same-document fragments and site-relative paths) are trusted
as-is. Everything else either gets a scheme forced onto it or is parsed and
normalized, depending on `force_href_link`.

Scheme forcing matches configured scheme names as plain string prefixes, so
with "http" configured, "httpfoo:alert(1)" passes through untouched. The
guarantee is "starts with a recognized scheme name", not "is a safe URL".
"""

from __future__ import annotations

import logging
import re
from collections.abc import Collection
from urllib.parse import SplitResult, quote, urlsplit, urlunsplit

from .constants import FORCED_SCHEME_PREFIX

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_BAD_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# Characters left as-is when re-encoding; "%" keeps existing escapes intact
_PATH_SAFE = "/:;=@$&+,!'()*[]%"
_FRAGMENT_SAFE = _PATH_SAFE + "?"


def is_internal_link(url: str) -> bool:
    """True for "/", "#..." and "/..." but not protocol-relative "//...".

    >>> is_internal_link("/abc"), is_internal_link("//abc.com")
    (True, False)
    """
    if url.startswith("#"):
        return True
    if url == "/":
        return True
    return len(url) >= 2 and url[0] == "/" and url[1] != "/"


def force_scheme(url: str, schemes: Collection[str]) -> str:
    for scheme in schemes:
        if url.startswith(scheme):
            return url
    return FORCED_SCHEME_PREFIX + url


def parse_url(url: str) -> SplitResult | None:
    """Split `url`, or return None when it is not a well-formed URL."""
    if _CONTROL_CHARS.search(url) or _BAD_PERCENT_ESCAPE.search(url):
        return None
    # A scheme separator with no scheme in front of it
    if url.startswith(":"):
        return None
    try:
        parts = urlsplit(url)
        # Accessing the port validates it
        parts.port  # noqa: B018
    except ValueError:
        return None
    return parts


def sanitize_link(url: str, uri_schemes: Collection[str], *, force_href_link: bool) -> str:
    """Return the value to keep for a link attribute; "" drops the link."""
    if not url.strip():
        return ""
    if is_internal_link(url):
        return url
    if force_href_link:
        return force_scheme(url, uri_schemes)

    parts = parse_url(url)
    if parts is None:
        logger.debug("Dropping unparseable link %r", url)
        return ""
    # Without forcing, the configured schemes act as a block list
    if parts.scheme in uri_schemes:
        logger.debug("Dropping link with blocked scheme %r", parts.scheme)
        return ""
    # Path and fragment are percent-encoded, the query is kept raw
    parts = parts._replace(
        path=quote(parts.path, safe=_PATH_SAFE),
        fragment=quote(parts.fragment, safe=_FRAGMENT_SAFE),
    )
    return urlunsplit(parts)


def classify_and_rewrite(url: str, uri_schemes: Collection[str], *, force_href_link: bool) -> tuple[str, bool]:
    """Rewrite `url` and report whether the result is an internal link."""
    rewritten = sanitize_link(url, uri_schemes, force_href_link=force_href_link)
    return rewritten, is_internal_link(rewritten)
