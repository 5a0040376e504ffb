"""Exceptions raised by the sanitizer.

Every error is terminal for the call that raised it: no partial output is
returned and nothing is retried internally.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tokens import ParseError


class SanitizeError(Exception):
    """Base class for all sanitizer failures."""


class EncodingError(SanitizeError, ValueError):
    """Input is not valid UTF-8 text."""

    def __init__(self, message: str = "Invalid UTF-8 encoding string") -> None:
        super().__init__(message)


class TokenizeError(SanitizeError):
    """The tokenizer failed for a reason other than end of input.

    `input` is the original, unmodified input so callers can inspect or
    fall back to it.
    """

    def __init__(self, input: str | bytes, error: ParseError) -> None:
        self.input = input
        self.error = error
        super().__init__(str(error))


class PairingMismatchError(SanitizeError):
    """Start and end tag counts differ while balance checking is enabled."""

    def __init__(self, start_tags: int, end_tags: int) -> None:
        self.start_tags = start_tags
        self.end_tags = end_tags
        super().__init__(f"Tags pairs mismatch: {start_tags} start tags, {end_tags} end tags")
