import re

from .constants import RAWTEXT_ELEMENTS, RCDATA_ELEMENTS
from .entities import unescape
from .tokens import (
    CharacterTokens,
    CommentToken,
    DoctypeToken,
    EOFToken,
    ParseError,
    Tag,
)

_ATTR_VALUE_DOUBLE_TERMINATORS = '"'
_ATTR_VALUE_SINGLE_TERMINATORS = "'"
_ATTR_VALUE_UNQUOTED_TERMINATORS = "\t\n\f >"
_ATTR_NAME_TERMINATORS = "\t\n\f />="
_TAG_NAME_TERMINATORS = "\t\n\f />"
_WHITESPACE = ("\t", "\n", "\f", " ")
_ASCII_LETTERS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")
_ASCII_LOWER_TABLE = str.maketrans({chr(code): chr(code + 32) for code in range(65, 91)})

_ATTR_VALUE_DOUBLE_PATTERN = re.compile(f"[{re.escape(_ATTR_VALUE_DOUBLE_TERMINATORS)}]")
_ATTR_VALUE_SINGLE_PATTERN = re.compile(f"[{re.escape(_ATTR_VALUE_SINGLE_TERMINATORS)}]")
_ATTR_VALUE_UNQUOTED_PATTERN = re.compile(f"[{re.escape(_ATTR_VALUE_UNQUOTED_TERMINATORS)}]")
_ATTR_NAME_TERMINATOR_PATTERN = re.compile(f"[{re.escape(_ATTR_NAME_TERMINATORS)}]")
_TAG_NAME_TERMINATOR_PATTERN = re.compile(f"[{re.escape(_TAG_NAME_TERMINATORS)}]")

_COMMENT_END_PATTERN = re.compile("--!?>")

_RAWTEXT_END_PATTERNS = {
    name: re.compile(f"</{name}(?=[\t\n\f />])", re.IGNORECASE) for name in RAWTEXT_ELEMENTS | RCDATA_ELEMENTS
}


class TokenizerError(Exception):
    """Raised when tokenizing stops for a reason other than end of input."""

    def __init__(self, error):
        self.error = error
        super().__init__(str(error))


class TokenizerOpts:
    __slots__ = ("discard_bom", "max_buf")

    def __init__(self, discard_bom=True, max_buf=0):
        self.discard_bom = bool(discard_bom)
        # Largest raw size of a single token in characters, 0 for no limit
        self.max_buf = int(max_buf)


class Tokenizer:
    """Lexes markup into Tag, CharacterTokens, CommentToken and DoctypeToken.

    Tokens are pushed to `sink.process_token()` in document order, followed by
    a single EOFToken. Text and attribute values are handed out decoded.

    A "<" that is not followed by a letter, "/", "!" or "?" is plain text and
    takes the following character with it, so "<<p>" lexes as the text "<<p>"
    rather than "<" plus a <p> start tag.
    """

    DATA = 0
    TAG_OPEN = 1
    END_TAG_OPEN = 2
    TAG_NAME = 3
    BEFORE_ATTRIBUTE_NAME = 4
    ATTRIBUTE_NAME = 5
    AFTER_ATTRIBUTE_NAME = 6
    BEFORE_ATTRIBUTE_VALUE = 7
    ATTRIBUTE_VALUE_DOUBLE = 8
    ATTRIBUTE_VALUE_SINGLE = 9
    ATTRIBUTE_VALUE_UNQUOTED = 10
    SELF_CLOSING_START_TAG = 11
    MARKUP_DECLARATION_OPEN = 12
    COMMENT = 13
    BOGUS_COMMENT = 14
    DOCTYPE = 15
    RAWTEXT = 16
    PLAINTEXT = 17

    __slots__ = (
        "buffer",
        "current_attr_name",
        "current_attr_names",
        "current_attr_value",
        "current_char",
        "current_tag_attrs",
        "current_tag_kind",
        "current_tag_name",
        "current_tag_self_closing",
        "length",
        "markup_start",
        "opts",
        "pos",
        "rawtext_tag_name",
        "reconsume",
        "sink",
        "state",
        "text_buffer",
        "token_start",
    )

    def __init__(self, sink, opts=None):
        self.sink = sink
        self.opts = opts or TokenizerOpts()

        self.state = self.DATA
        self.buffer = ""
        self.length = 0
        self.pos = 0
        self.reconsume = False
        self.current_char = ""
        self.token_start = 0
        self.markup_start = 0

        self.text_buffer = []
        self.current_tag_name = []
        self.current_tag_attrs = []  # [(name, value), ...]
        self.current_attr_names = []
        self.current_attr_name = []
        self.current_attr_value = []
        self.current_tag_self_closing = False
        self.current_tag_kind = Tag.START
        self.rawtext_tag_name = None

    def run(self, html):
        if html and html[0] == "\ufeff" and self.opts.discard_bom:
            html = html[1:]
        html = html or ""
        if "\r" in html:
            html = html.replace("\r\n", "\n").replace("\r", "\n")
        if "\0" in html:
            html = html.replace("\0", "\ufffd")

        self.buffer = html
        self.length = len(html)
        self.pos = 0
        self.reconsume = False
        self.current_char = ""
        self.token_start = 0
        self.markup_start = 0
        self.text_buffer.clear()
        self._start_tag(Tag.START)
        self.rawtext_tag_name = None
        self.state = self.DATA

        while True:
            state = self.state
            if state == self.DATA:
                if self._state_data():
                    break
            elif state == self.TAG_OPEN:
                if self._state_tag_open():
                    break
            elif state == self.END_TAG_OPEN:
                if self._state_end_tag_open():
                    break
            elif state == self.TAG_NAME:
                if self._state_tag_name():
                    break
            elif state == self.BEFORE_ATTRIBUTE_NAME:
                if self._state_before_attribute_name():
                    break
            elif state == self.ATTRIBUTE_NAME:
                if self._state_attribute_name():
                    break
            elif state == self.AFTER_ATTRIBUTE_NAME:
                if self._state_after_attribute_name():
                    break
            elif state == self.BEFORE_ATTRIBUTE_VALUE:
                if self._state_before_attribute_value():
                    break
            elif state == self.ATTRIBUTE_VALUE_DOUBLE:
                if self._state_attribute_value_quoted(_ATTR_VALUE_DOUBLE_PATTERN):
                    break
            elif state == self.ATTRIBUTE_VALUE_SINGLE:
                if self._state_attribute_value_quoted(_ATTR_VALUE_SINGLE_PATTERN):
                    break
            elif state == self.ATTRIBUTE_VALUE_UNQUOTED:
                if self._state_attribute_value_unquoted():
                    break
            elif state == self.SELF_CLOSING_START_TAG:
                if self._state_self_closing_start_tag():
                    break
            elif state == self.MARKUP_DECLARATION_OPEN:
                if self._state_markup_declaration_open():
                    break
            elif state == self.COMMENT:
                if self._state_comment():
                    break
            elif state == self.BOGUS_COMMENT:
                if self._state_bogus_comment():
                    break
            elif state == self.DOCTYPE:
                if self._state_doctype():
                    break
            elif state == self.RAWTEXT:
                if self._state_rawtext():
                    break
            elif state == self.PLAINTEXT:
                if self._state_plaintext():
                    break
            else:
                # Unknown state fallback to data.
                self.state = self.DATA

    # ---------------------
    # State handlers
    # ---------------------

    def _state_data(self):
        if not self.text_buffer:
            self.token_start = self.pos
        pos = self.pos
        lt_index = self.buffer.find("<", pos)
        if lt_index == -1:
            if pos < self.length:
                self.text_buffer.append(self.buffer[pos:])
            self.pos = self.length
            return self._finish()
        if lt_index > pos:
            self.text_buffer.append(self.buffer[pos:lt_index])
        self.markup_start = lt_index
        self.pos = lt_index + 1
        self.state = self.TAG_OPEN
        return False

    def _state_tag_open(self):
        c = self._get_char()
        if c is None:
            self.text_buffer.append("<")
            return self._finish()
        if c == "!":
            self.state = self.MARKUP_DECLARATION_OPEN
            return False
        if c == "/":
            self.state = self.END_TAG_OPEN
            return False
        if c == "?":
            self._begin_markup()
            self.pos -= 1
            self.state = self.BOGUS_COMMENT
            return False
        if c in _ASCII_LETTERS:
            self._begin_markup()
            self._start_tag(Tag.START)
            self._append_tag_name(c)
            self.state = self.TAG_NAME
            return False

        # Not markup: "<" and the character after it are both text.
        self.text_buffer.append("<")
        self.text_buffer.append(c)
        self.state = self.DATA
        return False

    def _state_end_tag_open(self):
        c = self._get_char()
        if c is None:
            self.text_buffer.append("</")
            return self._finish()
        self._begin_markup()
        if c in _ASCII_LETTERS:
            self._start_tag(Tag.END)
            self._append_tag_name(c)
            self.state = self.TAG_NAME
            return False
        if c == ">":
            # "</>" produces nothing at all
            self.token_start = self.pos
            self.state = self.DATA
            return False
        self.pos -= 1
        self.state = self.BOGUS_COMMENT
        return False

    def _state_tag_name(self):
        match = _TAG_NAME_TERMINATOR_PATTERN.search(self.buffer, self.pos)
        if match is None:
            # EOF in tag name: the incomplete tag is discarded
            self.pos = self.length
            return self._finish()
        if match.start() > self.pos:
            self.current_tag_name.append(self.buffer[self.pos : match.start()].translate(_ASCII_LOWER_TABLE))
        self.pos = match.end()
        c = match.group()
        if c == ">":
            self._emit_current_tag()
        elif c == "/":
            self.state = self.SELF_CLOSING_START_TAG
        else:
            self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_before_attribute_name(self):
        while True:
            c = self._get_char()
            if c is None:
                return self._finish()
            if c in _WHITESPACE:
                continue
            if c == "/":
                self.state = self.SELF_CLOSING_START_TAG
                return False
            if c == ">":
                self._emit_current_tag()
                return False
            # A leading "=" is part of the attribute name
            self._start_attribute()
            self._append_attr_name(c)
            self.state = self.ATTRIBUTE_NAME
            return False

    def _state_attribute_name(self):
        while True:
            if self._consume_attribute_name_run():
                continue
            c = self._get_char()
            if c is None:
                return self._finish()
            if c in _WHITESPACE:
                self.state = self.AFTER_ATTRIBUTE_NAME
                return False
            if c == "/":
                self._finish_attribute()
                self.state = self.SELF_CLOSING_START_TAG
                return False
            if c == "=":
                self.state = self.BEFORE_ATTRIBUTE_VALUE
                return False
            if c == ">":
                self._emit_current_tag()
                return False
            self._append_attr_name(c)

    def _state_after_attribute_name(self):
        while True:
            c = self._get_char()
            if c is None:
                return self._finish()
            if c in _WHITESPACE:
                continue
            if c == "/":
                self._finish_attribute()
                self.state = self.SELF_CLOSING_START_TAG
                return False
            if c == "=":
                self.state = self.BEFORE_ATTRIBUTE_VALUE
                return False
            if c == ">":
                self._emit_current_tag()
                return False
            self._finish_attribute()
            self._start_attribute()
            self._append_attr_name(c)
            self.state = self.ATTRIBUTE_NAME
            return False

    def _state_before_attribute_value(self):
        while True:
            c = self._get_char()
            if c is None:
                return self._finish()
            if c in _WHITESPACE:
                continue
            if c == '"':
                self.state = self.ATTRIBUTE_VALUE_DOUBLE
                return False
            if c == "'":
                self.state = self.ATTRIBUTE_VALUE_SINGLE
                return False
            if c == ">":
                self._emit_current_tag()
                return False
            self._reconsume_current()
            self.state = self.ATTRIBUTE_VALUE_UNQUOTED
            return False

    def _state_attribute_value_quoted(self, stop_pattern):
        match = stop_pattern.search(self.buffer, self.pos)
        if match is None:
            # EOF in attribute value: the incomplete tag is discarded
            self.pos = self.length
            return self._finish()
        self.current_attr_value.append(self.buffer[self.pos : match.start()])
        self.pos = match.end()
        self._finish_attribute()
        self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_attribute_value_unquoted(self):
        while True:
            if self._consume_attribute_value_run(_ATTR_VALUE_UNQUOTED_PATTERN):
                continue
            c = self._get_char()
            if c is None:
                return self._finish()
            if c in _WHITESPACE:
                self._finish_attribute()
                self.state = self.BEFORE_ATTRIBUTE_NAME
                return False
            if c == ">":
                self._emit_current_tag()
                return False
            self.current_attr_value.append(c)

    def _state_self_closing_start_tag(self):
        c = self._get_char()
        if c is None:
            return self._finish()
        if c == ">":
            self.current_tag_self_closing = True
            self._emit_current_tag()
            return False
        self._reconsume_current()
        self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_markup_declaration_open(self):
        self._begin_markup()
        if self._consume_if("--"):
            self.state = self.COMMENT
            return False
        if self._consume_case_insensitive("DOCTYPE"):
            self.state = self.DOCTYPE
            return False
        self.state = self.BOGUS_COMMENT
        return False

    def _state_comment(self):
        buffer = self.buffer
        pos = self.pos
        # "<!-->" and "<!--->" are complete, empty comments
        if buffer.startswith(">", pos):
            self.pos = pos + 1
            return self._emit_and_resume(CommentToken(""))
        if buffer.startswith("->", pos):
            self.pos = pos + 2
            return self._emit_and_resume(CommentToken(""))
        match = _COMMENT_END_PATTERN.search(buffer, pos)
        if match is None:
            self.pos = self.length
            self._emit_token(CommentToken(buffer[pos:]))
            return self._finish()
        self.pos = match.end()
        return self._emit_and_resume(CommentToken(buffer[pos:match.start()]))

    def _state_bogus_comment(self):
        pos = self.pos
        end = self.buffer.find(">", pos)
        if end == -1:
            self.pos = self.length
            self._emit_token(CommentToken(self.buffer[pos:]))
            return self._finish()
        self.pos = end + 1
        return self._emit_and_resume(CommentToken(self.buffer[pos:end]))

    def _state_doctype(self):
        pos = self.pos
        end = self.buffer.find(">", pos)
        if end == -1:
            self.pos = self.length
            self._emit_token(DoctypeToken(self.buffer[pos:].strip()))
            return self._finish()
        self.pos = end + 1
        return self._emit_and_resume(DoctypeToken(self.buffer[pos:end].strip()))

    def _state_rawtext(self):
        if not self.text_buffer:
            self.token_start = self.pos
        pos = self.pos
        match = _RAWTEXT_END_PATTERNS[self.rawtext_tag_name].search(self.buffer, pos)
        if match is None:
            if pos < self.length:
                self.text_buffer.append(self.buffer[pos:])
            self.pos = self.length
            return self._finish()
        if match.start() > pos:
            self.text_buffer.append(self.buffer[pos : match.start()])
        self.markup_start = match.start()
        self._begin_markup()
        self.rawtext_tag_name = None
        self._start_tag(Tag.END)
        self.pos = match.start() + 2
        self.state = self.TAG_NAME
        return False

    def _state_plaintext(self):
        if not self.text_buffer:
            self.token_start = self.pos
        if self.pos < self.length:
            self.text_buffer.append(self.buffer[self.pos :])
        self.pos = self.length
        return self._finish()

    # ---------------------
    # Low-level helpers
    # ---------------------

    def _get_char(self):
        if self.reconsume:
            self.reconsume = False
            return self.current_char
        if self.pos >= self.length:
            self.current_char = None
            return None
        c = self.buffer[self.pos]
        self.pos += 1
        self.current_char = c
        return c

    def _reconsume_current(self):
        self.reconsume = True

    def _consume_if(self, literal):
        end = self.pos + len(literal)
        if self.buffer[self.pos : end] != literal:
            return False
        self.pos = end
        return True

    def _consume_case_insensitive(self, literal):
        end = self.pos + len(literal)
        if self.buffer[self.pos : end].lower() != literal.lower():
            return False
        self.pos = end
        return True

    def _consume_attribute_value_run(self, stop_pattern):
        if self.reconsume:
            return False
        pos = self.pos
        if pos >= self.length:
            return False
        match = stop_pattern.search(self.buffer, pos)
        end = match.start() if match else self.length
        if end == pos:
            return False
        self.current_attr_value.append(self.buffer[pos:end])
        self.pos = end
        return True

    def _consume_attribute_name_run(self):
        if self.reconsume:
            return False
        pos = self.pos
        if pos >= self.length:
            return False
        match = _ATTR_NAME_TERMINATOR_PATTERN.search(self.buffer, pos)
        end = match.start() if match else self.length
        if end == pos:
            return False
        self.current_attr_name.append(self.buffer[pos:end].translate(_ASCII_LOWER_TABLE))
        self.pos = end
        return True

    def _start_tag(self, kind):
        self.current_tag_kind = kind
        self.current_tag_name.clear()
        self.current_tag_attrs = []
        self.current_attr_names.clear()
        self.current_attr_name.clear()
        self.current_attr_value.clear()
        self.current_tag_self_closing = False

    def _start_attribute(self):
        self.current_attr_name.clear()
        self.current_attr_value.clear()

    def _append_tag_name(self, c):
        self.current_tag_name.append(c.translate(_ASCII_LOWER_TABLE))

    def _append_attr_name(self, c):
        self.current_attr_name.append(c.translate(_ASCII_LOWER_TABLE))

    def _finish_attribute(self):
        if not self.current_attr_name:
            self.current_attr_value.clear()
            return
        name = "".join(self.current_attr_name)
        value = "".join(self.current_attr_value)
        if "&" in value:
            value = unescape(value, in_attribute=True)
        # First occurrence wins on duplicate attribute names
        if name not in self.current_attr_names:
            self.current_attr_names.append(name)
            self.current_tag_attrs.append((name, value))
        self.current_attr_name.clear()
        self.current_attr_value.clear()

    def _begin_markup(self):
        # The characters after "<" committed to a tag, comment or doctype, so
        # any pending text ends where that markup starts.
        self._flush_text(self.markup_start)
        self.token_start = self.markup_start

    def _flush_text(self, end):
        if not self.text_buffer:
            return
        data = "".join(self.text_buffer)
        self.text_buffer.clear()
        if not data:
            return
        self._check_size(end)
        # RAWTEXT and PLAINTEXT content is never decoded, RCDATA is
        if self.state != self.PLAINTEXT and self.rawtext_tag_name not in RAWTEXT_ELEMENTS:
            data = unescape(data)
        self.sink.process_token(CharacterTokens(data))
        self.token_start = end

    def _emit_current_tag(self):
        self._finish_attribute()
        name = "".join(self.current_tag_name)
        kind = self.current_tag_kind
        self_closing = self.current_tag_self_closing
        if kind == Tag.END:
            tag = Tag(Tag.END, name)
        else:
            tag = Tag(Tag.START, name, self.current_tag_attrs, self_closing)
        self._start_tag(Tag.START)

        self.state = self.DATA
        if kind == Tag.START and not self_closing:
            if name in RAWTEXT_ELEMENTS or name in RCDATA_ELEMENTS:
                self.state = self.RAWTEXT
                self.rawtext_tag_name = name
            elif name == "plaintext":
                self.state = self.PLAINTEXT
        self._emit_token(tag)

    def _emit_and_resume(self, token):
        self._emit_token(token)
        self.state = self.DATA
        return False

    def _emit_token(self, token):
        self._check_size(self.pos)
        self.sink.process_token(token)
        self.token_start = self.pos

    def _finish(self):
        self._flush_text(self.pos)
        self.sink.process_token(EOFToken())
        return True

    def _check_size(self, end):
        max_buf = self.opts.max_buf
        if max_buf and end - self.token_start > max_buf:
            message = f"token longer than {max_buf} characters"
            raise TokenizerError(self._parse_error("buffer-exceeded", self.token_start, message))

    def _parse_error(self, code, pos, message=None):
        line = self.buffer.count("\n", 0, pos) + 1
        column = pos - self.buffer.rfind("\n", 0, pos)
        return ParseError(code, line=line, column=column, message=message)
