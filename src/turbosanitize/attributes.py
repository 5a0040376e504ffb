"""Per-tag attribute filtering and link hardening."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .constants import FORCED_REL, FORCED_TARGET
from .links import classify_and_rewrite

if TYPE_CHECKING:
    from .sanitizer import Sanitizer
    from .whitelist import Whitelist

logger = logging.getLogger(__name__)

Attribute = tuple[str, str]


class AttributeRewriter:
    """Filters a tag's attributes against the whitelist and rewrites links.

    Output keeps the input order. Forced `rel` and `target` values replace
    existing ones in place; when missing they are appended, `rel` first.
    """

    __slots__ = ("force_href_link", "force_rel_nofollow", "force_target_blank", "whitelist")

    def __init__(self, whitelist: Whitelist, sanitizer: Sanitizer) -> None:
        self.whitelist = whitelist
        self.force_href_link = bool(sanitizer.force_href_link)
        self.force_target_blank = bool(sanitizer.force_target_blank)
        self.force_rel_nofollow = bool(sanitizer.force_rel_nofollow)

    def rewrite(self, tag_name: str, attrs: list[Attribute]) -> list[Attribute]:
        whitelist = self.whitelist
        out: list[Attribute] = []
        is_link = False
        is_internal_link = False
        has_target = False
        has_rel = False

        for name, value in attrs:
            if not whitelist.allows_attribute(name):
                logger.debug("Dropping attribute %r on <%s>", name, tag_name)
                continue
            if name == "href" or name == "src":
                value, internal = classify_and_rewrite(
                    value, whitelist.uri_schemes, force_href_link=self.force_href_link
                )
                # Only href decides whether this tag is a link
                if name == "href":
                    is_link = True
                    is_internal_link = internal
            elif name == "target" and not is_internal_link and self.force_target_blank:
                has_target = True
                value = FORCED_TARGET
            elif name == "rel" and not is_internal_link and self.force_rel_nofollow:
                has_rel = True
                value = FORCED_REL
            out.append((name, value))

        if is_link and not is_internal_link:
            if not has_rel and self.force_rel_nofollow:
                out.append(("rel", FORCED_REL))
            if not has_target and self.force_target_blank:
                out.append(("target", FORCED_TARGET))
        return out
