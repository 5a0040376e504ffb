"""Token re-serialization.

Tokens carry decoded text, so every string written back out is escaped here.
Text and attribute values share one escaper: the five HTML-significant
characters plus carriage return are replaced with references.
"""

from __future__ import annotations

from .tokens import CharacterTokens, CommentToken, DoctypeToken, Tag

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "'": "&#39;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&#34;",
        "\r": "&#13;",
    }
)


def escape(text: str | None) -> str:
    if not text:
        return ""
    return text.translate(_ESCAPE_TABLE)


def escape_comment(data: str) -> str:
    """Neutralize comment data that would end the comment early."""
    if data.startswith((">", "->")) or "-->" in data or "--!>" in data:
        return data.replace(">", "&gt;")
    return data


def serialize_start_tag(name: str, attrs: list[tuple[str, str]] | None = None, *, self_closing: bool = False) -> str:
    parts: list[str] = ["<", name]
    for key, value in attrs or ():
        parts.extend([" ", key, '="', escape(value), '"'])
    parts.append("/>" if self_closing else ">")
    return "".join(parts)


def serialize_end_tag(name: str) -> str:
    return f"</{name}>"


def serialize_token(token: object) -> str:
    """Serialize any non-EOF token back to markup."""
    if isinstance(token, CharacterTokens):
        return escape(token.data)
    if isinstance(token, Tag):
        if token.kind == Tag.END:
            return serialize_end_tag(token.name)
        return serialize_start_tag(token.name, token.attrs, self_closing=token.self_closing)
    if isinstance(token, CommentToken):
        return f"<!--{escape_comment(token.data)}-->"
    if isinstance(token, DoctypeToken):
        return f"<!DOCTYPE {token.data}>"
    raise TypeError(f"Cannot serialize token: {type(token).__name__}")
