"""Token filter: the sanitizing sink driven by the tokenizer.

For every token the filter decides whether to keep it, drop it or rewrite
it. Whitelisted tags are re-serialized with rewritten attributes, other tags
are unwrapped (their text survives), and the content of always-removed
elements (script, applet, style) is suppressed until their end tag.

Known quirk, kept on purpose: suppression applies to text, comments and
doctypes, not to whitelisted tags. `<applet><p>x</p></applet>` keeps the
`<p></p>` pair and loses only "x".

Start and end tags are counted along the way so the caller can reject
unbalanced markup. Void elements (br, img, ...) never count as start tags.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .attributes import AttributeRewriter
from .constants import ALWAYS_REMOVED_TAGS, VOID_ELEMENTS
from .serialize import escape, serialize_end_tag, serialize_start_tag, serialize_token
from .tokens import CharacterTokens, CommentToken, DoctypeToken, EOFToken, Tag

if TYPE_CHECKING:
    from .sanitizer import Sanitizer
    from .whitelist import Whitelist

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Emitting:
    """Content is written to the output."""

    @property
    def suppressing(self) -> bool:
        return False

    def enter(self) -> Suppressing:
        return Suppressing(1)

    def leave(self) -> Emitting:
        # A stray end tag of a removed element has nothing to close
        return self


@dataclass(frozen=True, slots=True)
class Suppressing:
    """Inside `depth` nested always-removed elements."""

    depth: int

    def __post_init__(self) -> None:
        if self.depth < 1:
            raise ValueError(f"Suppression depth must be positive, got {self.depth}")

    @property
    def suppressing(self) -> bool:
        return True

    def enter(self) -> Suppressing:
        return Suppressing(self.depth + 1)

    def leave(self) -> Emitting | Suppressing:
        if self.depth == 1:
            return EMITTING
        return Suppressing(self.depth - 1)


EMITTING = Emitting()


class TokenFilter:
    """Tokenizer sink that assembles the sanitized output."""

    __slots__ = (
        "drop_comments",
        "drop_doctype",
        "end_tags",
        "output",
        "rewriter",
        "start_tags",
        "state",
        "stripped",
        "whitelist",
    )

    def __init__(self, whitelist: Whitelist, sanitizer: Sanitizer) -> None:
        self.whitelist = whitelist
        self.rewriter = AttributeRewriter(whitelist, sanitizer)
        self.drop_comments = bool(sanitizer.drop_comments)
        self.drop_doctype = bool(sanitizer.drop_doctype)

        self.start_tags = 0
        self.end_tags = 0
        self.state: Emitting | Suppressing = EMITTING
        self.output: list[str] = []
        self.stripped: list[str] = []

    @property
    def balanced(self) -> bool:
        return self.start_tags == self.end_tags

    def result(self) -> str:
        if self.whitelist.strip_html:
            return "".join(self.stripped)
        return "".join(self.output)

    def process_token(self, token: object) -> None:
        if isinstance(token, Tag):
            if token.kind == Tag.START:
                self._process_start_tag(token)
            else:
                self._process_end_tag(token)
        elif isinstance(token, CharacterTokens):
            if not self.state.suppressing:
                text = escape(token.data)
                self.output.append(text)
                if self.whitelist.strip_html:
                    self.stripped.append(text)
        elif isinstance(token, EOFToken):
            return
        else:
            if self.state.suppressing:
                return
            if isinstance(token, CommentToken) and self.drop_comments:
                return
            if isinstance(token, DoctypeToken) and self.drop_doctype:
                return
            self.output.append(serialize_token(token))

    def _process_start_tag(self, tag: Tag) -> None:
        name = tag.name
        if tag.is_start and name not in VOID_ELEMENTS:
            self.start_tags += 1

        if not self.whitelist.allows_element(name):
            if name in ALWAYS_REMOVED_TAGS and tag.is_start:
                self.state = self.state.enter()
                logger.debug("Suppressing content of <%s>", name)
            return

        attrs = self.rewriter.rewrite(name, tag.attrs)
        self.output.append(serialize_start_tag(name, attrs, self_closing=tag.self_closing))

    def _process_end_tag(self, tag: Tag) -> None:
        name = tag.name
        self.end_tags += 1

        if not self.whitelist.allows_element(name):
            if name in ALWAYS_REMOVED_TAGS:
                if not self.state.suppressing:
                    logger.debug("Ignoring stray </%s>", name)
                self.state = self.state.leave()
            return

        self.output.append(serialize_end_tag(name))
