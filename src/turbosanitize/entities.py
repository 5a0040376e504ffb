"""Character reference decoding.

The tokenizer hands out decoded text and attribute values; the serializer
escapes them again on the way out. Decoding before re-escaping is what keeps
sanitized output stable: `&amp;` in the input comes back as `&amp;`, never
as `&amp;amp;`.

Supports named references (&amp;, &nbsp;, legacy forms like &amp without a
semicolon) and numeric references (&#60;, &#x3C;).
"""

import html.entities

# Keys in html5 include the trailing semicolon for most entries ("amp;") and
# omit it for the legacy forms that may appear without one ("amp").
_HTML5_ENTITIES = html.entities.html5

NAMED_ENTITIES = {}
LEGACY_ENTITIES = set()
for _key, _value in _HTML5_ENTITIES.items():
    if _key.endswith(";"):
        NAMED_ENTITIES[_key[:-1]] = _value
    else:
        NAMED_ENTITIES[_key] = _value
        LEGACY_ENTITIES.add(_key)

_LONGEST_NAME = max(len(name) for name in NAMED_ENTITIES)

# HTML5 numeric character reference replacements for the C1 control range
NUMERIC_REPLACEMENTS = {
    0x00: "\ufffd",  # NULL
    0x80: "\u20ac",  # EURO SIGN
    0x82: "\u201a",  # SINGLE LOW-9 QUOTATION MARK
    0x83: "\u0192",  # LATIN SMALL LETTER F WITH HOOK
    0x84: "\u201e",  # DOUBLE LOW-9 QUOTATION MARK
    0x85: "\u2026",  # HORIZONTAL ELLIPSIS
    0x86: "\u2020",  # DAGGER
    0x87: "\u2021",  # DOUBLE DAGGER
    0x88: "\u02c6",  # MODIFIER LETTER CIRCUMFLEX ACCENT
    0x89: "\u2030",  # PER MILLE SIGN
    0x8a: "\u0160",  # LATIN CAPITAL LETTER S WITH CARON
    0x8b: "\u2039",  # SINGLE LEFT-POINTING ANGLE QUOTATION MARK
    0x8c: "\u0152",  # LATIN CAPITAL LIGATURE OE
    0x8e: "\u017d",  # LATIN CAPITAL LETTER Z WITH CARON
    0x91: "\u2018",  # LEFT SINGLE QUOTATION MARK
    0x92: "\u2019",  # RIGHT SINGLE QUOTATION MARK
    0x93: "\u201c",  # LEFT DOUBLE QUOTATION MARK
    0x94: "\u201d",  # RIGHT DOUBLE QUOTATION MARK
    0x95: "\u2022",  # BULLET
    0x96: "\u2013",  # EN DASH
    0x97: "\u2014",  # EM DASH
    0x98: "\u02dc",  # SMALL TILDE
    0x99: "\u2122",  # TRADE MARK SIGN
    0x9a: "\u0161",  # LATIN SMALL LETTER S WITH CARON
    0x9b: "\u203a",  # SINGLE RIGHT-POINTING ANGLE QUOTATION MARK
    0x9c: "\u0153",  # LATIN SMALL LIGATURE OE
    0x9e: "\u017e",  # LATIN SMALL LETTER Z WITH CARON
    0x9f: "\u0178",  # LATIN CAPITAL LETTER Y WITH DIAERESIS
}

_HEX_DIGITS = "0123456789abcdefABCDEF"


def decode_numeric_entity(digits, is_hex=False):
    """Decode the digits of a numeric reference, or None if they are unusable."""
    try:
        codepoint = int(digits, 16 if is_hex else 10)
    except ValueError:
        return None
    if codepoint in NUMERIC_REPLACEMENTS:
        return NUMERIC_REPLACEMENTS[codepoint]
    if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
        return "\ufffd"
    return chr(codepoint)


def _legacy_blocked(next_char, in_attribute):
    # In attribute values "&copy=1" reads as a query string, not a reference
    if not in_attribute or not next_char:
        return False
    return next_char.isalnum() or next_char == "="


def unescape(text, in_attribute=False):
    """Decode every character reference in `text`.

    Unknown or malformed references are kept as literal text.
    """
    if "&" not in text:
        return text

    result = []
    i = 0
    length = len(text)
    while i < length:
        amp = text.find("&", i)
        if amp == -1:
            result.append(text[i:])
            break
        if amp > i:
            result.append(text[i:amp])
        i = amp
        j = i + 1

        if j < length and text[j] == "#":
            j += 1
            is_hex = j < length and text[j] in "xX"
            if is_hex:
                j += 1
            digit_start = j
            allowed = _HEX_DIGITS if is_hex else "0123456789"
            while j < length and text[j] in allowed:
                j += 1
            has_semicolon = j < length and text[j] == ";"
            end = j + 1 if has_semicolon else j
            decoded = decode_numeric_entity(text[digit_start:j], is_hex=is_hex) if j > digit_start else None
            result.append(decoded if decoded is not None else text[i:end])
            i = end
            continue

        while j < length and j - i <= _LONGEST_NAME and text[j].isalnum():
            j += 1
        name = text[i + 1 : j]
        has_semicolon = j < length and text[j] == ";"

        if has_semicolon and name in NAMED_ENTITIES:
            result.append(NAMED_ENTITIES[name])
            i = j + 1
            continue

        # Longest legacy prefix, e.g. "&notit;" decodes "&not" and keeps "it;"
        matched = None
        for k in range(len(name), 0, -1):
            if name[:k] in LEGACY_ENTITIES:
                matched = name[:k]
                break
        if matched is not None:
            end = i + 1 + len(matched)
            next_char = text[end] if end < length else None
            if not _legacy_blocked(next_char, in_attribute):
                result.append(NAMED_ENTITIES[matched])
                i = end
                continue

        result.append("&")
        i += 1

    return "".join(result)
