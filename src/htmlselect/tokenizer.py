"""HTML tokenizer.

A state machine over the whole input string. Each state handler consumes
as much as it can with `str.find` or a precompiled run pattern, emits
tokens to the sink, sets the next state and returns True once EOF has been
emitted. The sink is the tree builder: it receives tokens through
`process_token` and text through `process_characters`, and its
`open_elements` stack tells the tokenizer when a start tag switched the
content model (RCDATA, RAWTEXT, script data, PLAINTEXT) or when CDATA
sections are allowed.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from typing import TYPE_CHECKING, Any

from .constants import RAWTEXT_ELEMENTS, RCDATA_ELEMENTS
from .entities import decode_entities_in_text
from .errors import generate_error_message
from .tokens import CommentToken, Doctype, DoctypeToken, EOFToken, ParseDiagnostic, Tag

if TYPE_CHECKING:
    from collections.abc import Callable

_ASCII_LOWER_TABLE = str.maketrans({chr(code): chr(code + 32) for code in range(65, 91)})
_WHITESPACE = "\t\n\f "

_TAG_NAME_RUN_PATTERN = re.compile(r"[^\t\n\f />]+")
_ATTR_NAME_RUN_PATTERN = re.compile(r"[^\t\n\f />=]+")
_ATTR_VALUE_UNQUOTED_PATTERN = re.compile(r"[^\t\n\f >]+")
_WHITESPACE_PATTERN = re.compile(r"[\t\n\f ]*")
_SCRIPT_END_TAG_PATTERN = re.compile(r"</script[\t\n\f />]", re.IGNORECASE)
_SCRIPT_WORD_PATTERN = re.compile(r"script[\t\n\f />]", re.IGNORECASE)
_DOCTYPE_PATTERN = re.compile(
    r"""\s*(?P<name>[^\s]+)?\s*
        (?:(?P<keyword>PUBLIC|SYSTEM)\s*
           (?:(?P<q1>["'])(?P<id1>.*?)(?P=q1)\s*
              (?:(?P<q2>["'])(?P<id2>.*?)(?P=q2))?)?)?""",
    re.IGNORECASE | re.VERBOSE | re.DOTALL,
)


def _lower(name: str) -> str:
    return name.translate(_ASCII_LOWER_TABLE)


class Tokenizer:
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
    AFTER_ATTRIBUTE_VALUE_QUOTED = 11
    SELF_CLOSING_START_TAG = 12
    MARKUP_DECLARATION_OPEN = 13
    BOGUS_COMMENT = 14
    RCDATA = 15
    RAWTEXT = 16
    PLAINTEXT = 17
    SCRIPT_DATA = 18

    __slots__ = (
        "_newline_positions",
        "bogus_comment_start",
        "buffer",
        "current_attr_name",
        "current_attr_value",
        "current_tag_attrs",
        "current_tag_kind",
        "current_tag_name",
        "current_tag_self_closing",
        "errors",
        "last_start_tag_name",
        "length",
        "pos",
        "sink",
        "state",
        "token_start",
    )

    _STATE_HANDLERS: dict[int, Callable[[Tokenizer], bool]]

    def __init__(self, sink: Any) -> None:
        self.sink = sink
        self.errors: list[ParseDiagnostic] = []
        self.buffer = ""
        self.length = 0
        self.pos = 0
        self.state = self.DATA
        self.token_start = 0
        self.bogus_comment_start = 0
        self.current_tag_kind = Tag.START
        self.current_tag_name = ""
        self.current_tag_attrs: dict[str, str] = {}
        self.current_tag_self_closing = False
        self.current_attr_name = ""
        self.current_attr_value = ""
        self.last_start_tag_name: str | None = None
        self._newline_positions: list[int] = []

    def initialize(self, html: str) -> None:
        if html and html[0] == "\ufeff":
            html = html[1:]
        # Newline normalization happens once, up front
        if "\r" in html:
            html = html.replace("\r\n", "\n").replace("\r", "\n")

        self.buffer = html
        self.length = len(html)
        self.pos = 0
        self.state = self.DATA
        self.errors = []
        self.last_start_tag_name = None
        self._newline_positions = [i for i, ch in enumerate(html) if ch == "\n"]

    def run(self, html: str) -> None:
        self.initialize(html)
        while not self.step():
            pass

    def step(self) -> bool:
        """Run one state handler. Returns True once EOF has been emitted."""
        return self._STATE_HANDLERS[self.state](self)

    def location(self, pos: int | None = None) -> tuple[int, int]:
        """Return the 1-based (line, column) of `pos`, defaulting to the current token."""
        if pos is None:
            pos = self.token_start
        line = bisect_right(self._newline_positions, pos - 1)
        line_start = self._newline_positions[line - 1] + 1 if line else 0
        return line + 1, pos - line_start + 1

    # ---------------------
    # Emission helpers
    # ---------------------

    def _emit_error(self, code: str, pos: int | None = None) -> None:
        line, column = self.location(self.pos if pos is None else pos)
        self.errors.append(ParseDiagnostic(code, line, column, generate_error_message(code)))

    def _emit_text(self, text: str, *, decode: bool) -> None:
        if "\0" in text:
            self._emit_error("unexpected-null-character")
            # NULs are dropped from markup text and replaced inside text-only elements
            text = text.replace("\0", "") if decode else text.replace("\0", "\ufffd")
        if decode:
            text = decode_entities_in_text(text, report=self._emit_error)
        if text:
            self.sink.process_characters(text)

    def _emit_comment(self, data: str) -> None:
        self.sink.process_token(CommentToken(data.replace("\0", "\ufffd")))

    def _emit_eof(self) -> bool:
        self.pos = self.length
        self.sink.process_token(EOFToken())
        return True

    def _start_tag(self, kind: int) -> None:
        self.current_tag_kind = kind
        self.current_tag_name = ""
        self.current_tag_attrs = {}
        self.current_tag_self_closing = False
        self.current_attr_name = ""

    def _start_attribute(self, first: str = "") -> None:
        self.current_attr_name = first
        self.current_attr_value = ""

    def _finish_attribute(self) -> None:
        name = self.current_attr_name
        if not name:
            return
        self.current_attr_name = ""
        name = _lower(name.replace("\0", "\ufffd"))
        if name in self.current_tag_attrs:
            self._emit_error("duplicate-attribute")
            return
        value = self.current_attr_value.replace("\0", "\ufffd")
        self.current_tag_attrs[name] = decode_entities_in_text(value, in_attribute=True, report=self._emit_error)

    def _emit_current_tag(self) -> None:
        self._finish_attribute()
        name = self.current_tag_name
        tag = Tag(self.current_tag_kind, name, self.current_tag_attrs, self.current_tag_self_closing)
        if tag.kind == Tag.END:
            if tag.attrs:
                self._emit_error("end-tag-with-attributes")
            if tag.self_closing:
                self._emit_error("end-tag-with-trailing-solidus")
            self.sink.process_token(tag)
            self.state = self.DATA
            return

        self.last_start_tag_name = name
        self.sink.process_token(tag)
        self.state = self._content_state_after(name)

    def _content_state_after(self, name: str) -> int:
        # The switch only applies when the tree builder actually opened an HTML element
        stack = self.sink.open_elements
        if not stack:
            return self.DATA
        current = stack[-1]
        if current.name != name or current.namespace != "html":
            return self.DATA
        if name in RCDATA_ELEMENTS:
            return self.RCDATA
        if name == "script":
            return self.SCRIPT_DATA
        if name in RAWTEXT_ELEMENTS:
            return self.RAWTEXT
        if name == "plaintext":
            return self.PLAINTEXT
        return self.DATA

    def _in_foreign_content(self) -> bool:
        stack = self.sink.open_elements
        return bool(stack) and stack[-1].namespace not in (None, "html")

    def _skip_whitespace(self) -> None:
        self.pos = _WHITESPACE_PATTERN.match(self.buffer, self.pos).end()

    # ---------------------
    # State handlers
    # ---------------------

    def _state_data(self) -> bool:
        next_lt = self.buffer.find("<", self.pos)
        if next_lt == -1:
            next_lt = self.length
        if next_lt > self.pos:
            self._emit_text(self.buffer[self.pos : next_lt], decode=True)
        if next_lt >= self.length:
            return self._emit_eof()
        self.token_start = next_lt
        self.pos = next_lt + 1
        self.state = self.TAG_OPEN
        return False

    def _state_tag_open(self) -> bool:
        if self.pos >= self.length:
            self._emit_error("eof-before-tag-name")
            self.sink.process_characters("<")
            return self._emit_eof()

        c = self.buffer[self.pos]
        if c == "!":
            self.pos += 1
            self.state = self.MARKUP_DECLARATION_OPEN
        elif c == "/":
            self.pos += 1
            self.state = self.END_TAG_OPEN
        elif c.isascii() and c.isalpha():
            self._start_tag(Tag.START)
            self.state = self.TAG_NAME
        elif c == "?":
            self._emit_error("unexpected-question-mark-instead-of-tag-name")
            self.bogus_comment_start = self.pos
            self.state = self.BOGUS_COMMENT
        else:
            self._emit_error("invalid-first-character-of-tag-name")
            self.sink.process_characters("<")
            self.state = self.DATA
        return False

    def _state_end_tag_open(self) -> bool:
        if self.pos >= self.length:
            self._emit_error("eof-before-tag-name")
            self.sink.process_characters("</")
            return self._emit_eof()

        c = self.buffer[self.pos]
        if c.isascii() and c.isalpha():
            self._start_tag(Tag.END)
            self.state = self.TAG_NAME
        elif c == ">":
            self._emit_error("empty-end-tag")
            self.pos += 1
            self.state = self.DATA
        else:
            self._emit_error("invalid-first-character-of-tag-name")
            self.bogus_comment_start = self.pos
            self.state = self.BOGUS_COMMENT
        return False

    def _state_tag_name(self) -> bool:
        match = _TAG_NAME_RUN_PATTERN.match(self.buffer, self.pos)
        if match:
            self.current_tag_name += _lower(match.group().replace("\0", "\ufffd"))
            self.pos = match.end()
        return self._after_name_or_value(self.BEFORE_ATTRIBUTE_NAME)

    def _after_name_or_value(self, on_whitespace: int) -> bool:
        # Shared tail of the tag-name, unquoted-value and after-quoted-value states
        if self.pos >= self.length:
            self._emit_error("eof-in-tag")
            return self._emit_eof()
        c = self.buffer[self.pos]
        self.pos += 1
        if c in _WHITESPACE:
            self.state = on_whitespace
        elif c == "/":
            self.state = self.SELF_CLOSING_START_TAG
        elif c == ">":
            self._emit_current_tag()
        else:
            self._emit_error("missing-whitespace-between-attributes")
            self.pos -= 1
            self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_before_attribute_name(self) -> bool:
        self._skip_whitespace()
        if self.pos >= self.length:
            self._emit_error("eof-in-tag")
            return self._emit_eof()
        c = self.buffer[self.pos]
        if c in "/>":
            self.state = self.AFTER_ATTRIBUTE_NAME
            return False
        self._finish_attribute()
        if c == "=":
            self._emit_error("unexpected-equals-sign-before-attribute-name")
            self.pos += 1
            self._start_attribute("=")
        else:
            self._start_attribute()
        self.state = self.ATTRIBUTE_NAME
        return False

    def _state_attribute_name(self) -> bool:
        match = _ATTR_NAME_RUN_PATTERN.match(self.buffer, self.pos)
        if match:
            run = match.group()
            if any(ch in run for ch in "\"'<"):
                self._emit_error("unexpected-character-in-attribute-name")
            self.current_attr_name += run
            self.pos = match.end()
        if self.pos < self.length and self.buffer[self.pos] == "=":
            self.pos += 1
            self.state = self.BEFORE_ATTRIBUTE_VALUE
        else:
            self.state = self.AFTER_ATTRIBUTE_NAME
        return False

    def _state_after_attribute_name(self) -> bool:
        self._skip_whitespace()
        if self.pos >= self.length:
            self._emit_error("eof-in-tag")
            return self._emit_eof()
        c = self.buffer[self.pos]
        if c == "/":
            self.pos += 1
            self._finish_attribute()
            self.state = self.SELF_CLOSING_START_TAG
        elif c == "=":
            self.pos += 1
            self.state = self.BEFORE_ATTRIBUTE_VALUE
        elif c == ">":
            self.pos += 1
            self._emit_current_tag()
        else:
            self._finish_attribute()
            self._start_attribute()
            self.state = self.ATTRIBUTE_NAME
        return False

    def _state_before_attribute_value(self) -> bool:
        self._skip_whitespace()
        c = self.buffer[self.pos] if self.pos < self.length else ""
        if c == '"':
            self.pos += 1
            self.state = self.ATTRIBUTE_VALUE_DOUBLE
        elif c == "'":
            self.pos += 1
            self.state = self.ATTRIBUTE_VALUE_SINGLE
        elif c == ">":
            self._emit_error("missing-attribute-value")
            self.pos += 1
            self._emit_current_tag()
        else:
            self.state = self.ATTRIBUTE_VALUE_UNQUOTED
        return False

    def _quoted_value(self, quote: str) -> bool:
        end = self.buffer.find(quote, self.pos)
        if end == -1:
            self._emit_error("eof-in-tag")
            return self._emit_eof()
        self.current_attr_value = self.buffer[self.pos : end]
        self.pos = end + 1
        self.state = self.AFTER_ATTRIBUTE_VALUE_QUOTED
        return False

    def _state_attribute_value_double(self) -> bool:
        return self._quoted_value('"')

    def _state_attribute_value_single(self) -> bool:
        return self._quoted_value("'")

    def _state_attribute_value_unquoted(self) -> bool:
        match = _ATTR_VALUE_UNQUOTED_PATTERN.match(self.buffer, self.pos)
        if match:
            value = match.group()
            if any(ch in value for ch in "\"'<=`"):
                self._emit_error("unexpected-character-in-unquoted-attribute-value")
            self.current_attr_value = value
            self.pos = match.end()
        return self._after_name_or_value(self.BEFORE_ATTRIBUTE_NAME)

    def _state_after_attribute_value_quoted(self) -> bool:
        return self._after_name_or_value(self.BEFORE_ATTRIBUTE_NAME)

    def _state_self_closing_start_tag(self) -> bool:
        if self.pos >= self.length:
            self._emit_error("eof-in-tag")
            return self._emit_eof()
        if self.buffer[self.pos] == ">":
            self.pos += 1
            self.current_tag_self_closing = True
            self._emit_current_tag()
        else:
            self._emit_error("unexpected-character-after-solidus-in-tag")
            self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_markup_declaration_open(self) -> bool:
        buffer = self.buffer
        pos = self.pos
        if buffer.startswith("--", pos):
            return self._consume_comment(pos + 2)
        if buffer[pos : pos + 7].upper() == "DOCTYPE":
            return self._consume_doctype(pos + 7)
        if buffer.startswith("[CDATA[", pos):
            if self._in_foreign_content():
                return self._consume_cdata(pos + 7)
            self._emit_error("cdata-in-html-content")
        else:
            self._emit_error("incorrectly-opened-comment")
        self.bogus_comment_start = pos
        self.state = self.BOGUS_COMMENT
        return False

    def _consume_comment(self, start: int) -> bool:
        buffer = self.buffer
        self.state = self.DATA
        # <!--> and <!---> close immediately
        for closer in (">", "->"):
            if buffer.startswith(closer, start):
                self._emit_error("abrupt-closing-of-empty-comment", start)
                self._emit_comment("")
                self.pos = start + len(closer)
                return False

        end = buffer.find("-->", start)
        bang_end = buffer.find("--!>", start)
        if bang_end != -1 and (end == -1 or bang_end < end):
            self._emit_error("incorrectly-closed-comment", bang_end)
            self._emit_comment(buffer[start:bang_end])
            self.pos = bang_end + 4
            return False
        if end == -1:
            self._emit_error("eof-in-comment", self.length)
            data = buffer[start:]
            # Trailing dashes belong to the unfinished comment end
            if data.endswith("--"):
                data = data[:-2]
            elif data.endswith("-"):
                data = data[:-1]
            self._emit_comment(data)
            return self._emit_eof()
        self._emit_comment(buffer[start:end])
        self.pos = end + 3
        return False

    def _consume_doctype(self, start: int) -> bool:
        end = self.buffer.find(">", start)
        at_eof = end == -1
        content = self.buffer[start:] if at_eof else self.buffer[start:end]
        match = _DOCTYPE_PATTERN.match(content)
        name = match.group("name") if match else None
        public_id = system_id = None
        missing_identifier = False
        if match and match.group("keyword"):
            first = match.group("id1")
            missing_identifier = first is None
            second = match.group("id2")
            if match.group("keyword").upper() == "PUBLIC":
                public_id, system_id = first, second
            else:
                system_id = first
        doctype = Doctype(
            name=_lower(name.replace("\0", "\ufffd")) if name else None,
            public_id=public_id,
            system_id=system_id,
            force_quirks=at_eof or not name or missing_identifier,
        )
        self.sink.process_token(DoctypeToken(doctype))
        self.state = self.DATA
        if at_eof:
            self._emit_error("eof-in-doctype", self.length)
            return self._emit_eof()
        self.pos = end + 1
        return False

    def _consume_cdata(self, start: int) -> bool:
        end = self.buffer.find("]]>", start)
        self.state = self.DATA
        if end == -1:
            if start < self.length:
                self.sink.process_characters(self.buffer[start:])
            return self._emit_eof()
        if end > start:
            self.sink.process_characters(self.buffer[start:end])
        self.pos = end + 3
        return False

    def _state_bogus_comment(self) -> bool:
        start = self.bogus_comment_start
        end = self.buffer.find(">", start)
        self.state = self.DATA
        if end == -1:
            self._emit_comment(self.buffer[start:])
            return self._emit_eof()
        self._emit_comment(self.buffer[start:end])
        self.pos = end + 1
        return False

    def _state_text_until_end_tag(self, *, decode: bool) -> bool:
        # RCDATA and RAWTEXT end at "</name" followed by whitespace, "/" or ">"
        name = self.last_start_tag_name or ""
        pattern = re.compile(r"</" + re.escape(name) + r"[\t\n\f />]", re.IGNORECASE)
        match = pattern.search(self.buffer, self.pos)
        end = match.start() if match else self.length
        if end > self.pos:
            text = self.buffer[self.pos : end]
            if "\0" in text:
                self._emit_error("unexpected-null-character")
                text = text.replace("\0", "\ufffd")
            if decode:
                text = decode_entities_in_text(text, report=self._emit_error)
            self.sink.process_characters(text)
        if not match:
            return self._emit_eof()
        self._open_end_tag_at(end)
        return False

    def _open_end_tag_at(self, end: int) -> None:
        self.token_start = end
        self.pos = end + 2
        self._start_tag(Tag.END)
        self.state = self.TAG_NAME

    def _find_script_data_end(self) -> tuple[int, bool]:
        """Locate the ``</script`` that closes the current script element.

        Inside ``<!--`` the script is "escaped" and a nested ``<script``
        makes it double-escaped; ``</script`` only ends the element outside
        the double-escaped part, and ``-->`` leaves both. Returns the offset
        of the end tag (or the input length) and whether the input ran out
        inside an escaped section.
        """
        buffer = self.buffer
        length = self.length
        pos = self.pos
        escaped = double = False
        dashes = 0
        while pos < length:
            if not escaped:
                pos = buffer.find("<", pos)
                if pos == -1:
                    return length, False
                if _SCRIPT_END_TAG_PATTERN.match(buffer, pos):
                    return pos, False
                if buffer.startswith("<!--", pos):
                    escaped = True
                    dashes = 2
                    pos += 4
                else:
                    pos += 1
                continue

            ch = buffer[pos]
            if ch == "-":
                dashes += 1
                pos += 1
                continue
            if ch == ">" and dashes >= 2:
                escaped = double = False
            elif ch == "<":
                if double:
                    if buffer.startswith("/", pos + 1) and _SCRIPT_WORD_PATTERN.match(buffer, pos + 2):
                        double = False
                elif _SCRIPT_END_TAG_PATTERN.match(buffer, pos):
                    return pos, False
                elif _SCRIPT_WORD_PATTERN.match(buffer, pos + 1):
                    double = True
            dashes = 0
            pos += 1
        return length, escaped

    def _state_script_data(self) -> bool:
        end, in_escape = self._find_script_data_end()
        if end > self.pos:
            text = self.buffer[self.pos : end]
            if "\0" in text:
                self._emit_error("unexpected-null-character")
                text = text.replace("\0", "\ufffd")
            self.sink.process_characters(text)
        if end >= self.length:
            if in_escape:
                self._emit_error("eof-in-script-html-comment-like-text")
            return self._emit_eof()
        self._open_end_tag_at(end)
        return False

    def _state_rcdata(self) -> bool:
        return self._state_text_until_end_tag(decode=True)

    def _state_rawtext(self) -> bool:
        return self._state_text_until_end_tag(decode=False)

    def _state_plaintext(self) -> bool:
        if self.pos < self.length:
            self.sink.process_characters(self.buffer[self.pos :].replace("\0", "\ufffd"))
        return self._emit_eof()


Tokenizer._STATE_HANDLERS = {
    Tokenizer.DATA: Tokenizer._state_data,
    Tokenizer.TAG_OPEN: Tokenizer._state_tag_open,
    Tokenizer.END_TAG_OPEN: Tokenizer._state_end_tag_open,
    Tokenizer.TAG_NAME: Tokenizer._state_tag_name,
    Tokenizer.BEFORE_ATTRIBUTE_NAME: Tokenizer._state_before_attribute_name,
    Tokenizer.ATTRIBUTE_NAME: Tokenizer._state_attribute_name,
    Tokenizer.AFTER_ATTRIBUTE_NAME: Tokenizer._state_after_attribute_name,
    Tokenizer.BEFORE_ATTRIBUTE_VALUE: Tokenizer._state_before_attribute_value,
    Tokenizer.ATTRIBUTE_VALUE_DOUBLE: Tokenizer._state_attribute_value_double,
    Tokenizer.ATTRIBUTE_VALUE_SINGLE: Tokenizer._state_attribute_value_single,
    Tokenizer.ATTRIBUTE_VALUE_UNQUOTED: Tokenizer._state_attribute_value_unquoted,
    Tokenizer.AFTER_ATTRIBUTE_VALUE_QUOTED: Tokenizer._state_after_attribute_value_quoted,
    Tokenizer.SELF_CLOSING_START_TAG: Tokenizer._state_self_closing_start_tag,
    Tokenizer.MARKUP_DECLARATION_OPEN: Tokenizer._state_markup_declaration_open,
    Tokenizer.BOGUS_COMMENT: Tokenizer._state_bogus_comment,
    Tokenizer.RCDATA: Tokenizer._state_rcdata,
    Tokenizer.RAWTEXT: Tokenizer._state_rawtext,
    Tokenizer.PLAINTEXT: Tokenizer._state_plaintext,
    Tokenizer.SCRIPT_DATA: Tokenizer._state_script_data,
}
