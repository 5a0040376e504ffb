"""Whitelist registry: per-call lookup sets compiled from a Sanitizer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .sanitizer import Sanitizer


@dataclass(frozen=True, slots=True)
class Whitelist:
    """Fast membership tests for one sanitize call.

    An empty `elements` set rejects every element. That is also how strip-only
    sanitizing works: nothing is whitelisted, so every tag is unwrapped or
    removed and only text survives.
    """

    elements: frozenset[str]
    attributes: frozenset[str]
    uri_schemes: frozenset[str]

    # Effective strip flag. Configuring any element turns stripping off.
    strip_html: bool = False

    @classmethod
    def compile(cls, sanitizer: Sanitizer) -> Whitelist:
        elements = frozenset(sanitizer.elements or ())
        return cls(
            elements=elements,
            attributes=frozenset(sanitizer.attributes or ()),
            uri_schemes=frozenset(sanitizer.uri_schemes or ()),
            strip_html=bool(sanitizer.strip_html) and not elements,
        )

    def allows_element(self, name: str) -> bool:
        return name in self.elements

    def allows_attribute(self, name: str) -> bool:
        return name in self.attributes
