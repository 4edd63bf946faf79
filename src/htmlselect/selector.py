# CSS selector compiler and matcher for htmlselect
# Supports the CSS Level 3 subset used for extracting elements from a parsed tree

from __future__ import annotations

import re
from typing import Any

from .errors import SelectorSyntaxError

_WHITESPACE = " \t\n\r\f"


# Token types for the CSS selector lexer
class TokenType:
    TAG: str = "TAG"  # div, span, etc.
    ID: str = "ID"  # #foo
    CLASS: str = "CLASS"  # .bar
    UNIVERSAL: str = "UNIVERSAL"  # *
    ATTR_START: str = "ATTR_START"  # [
    ATTR_END: str = "ATTR_END"  # ]
    ATTR_OP: str = "ATTR_OP"  # =, ~=, |=, ^=, $=, *=
    STRING: str = "STRING"  # "value" or 'value' or unquoted
    COMBINATOR: str = "COMBINATOR"  # >, +, ~, or whitespace (descendant)
    COMMA: str = "COMMA"  # ,
    COLON: str = "COLON"  # :
    PAREN_OPEN: str = "PAREN_OPEN"  # (
    PAREN_CLOSE: str = "PAREN_CLOSE"  # )
    EOF: str = "EOF"


class Token:
    __slots__ = ("type", "value")

    type: str
    value: str | None

    def __init__(self, token_type: str, value: str | None = None) -> None:
        self.type = token_type
        self.value = value

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r})"


class SelectorTokenizer:
    """Tokenizes a CSS selector string into tokens."""

    __slots__ = ("length", "pos", "selector", "source")

    selector: str
    source: str
    pos: int
    length: int

    def __init__(self, selector: str, source: str | None = None) -> None:
        self.selector = selector
        # Text reported in errors; differs from `selector` for :not() arguments
        self.source = source if source is not None else selector
        self.pos = 0
        self.length = len(selector)

    def _error(self, reason: str) -> SelectorSyntaxError:
        return SelectorSyntaxError(self.source, reason)

    def _peek(self, offset: int = 0) -> str:
        pos = self.pos + offset
        if pos < self.length:
            return self.selector[pos]
        return ""

    def _skip_whitespace(self) -> None:
        while self.pos < self.length and self.selector[self.pos] in _WHITESPACE:
            self.pos += 1

    def _is_name_start(self, ch: str) -> bool:
        # CSS identifier start: letter, underscore, hyphen, escape or non-ASCII
        return ch.isalpha() or ch in "_-\\" or (ch != "" and ord(ch) > 127)

    def _is_name_char(self, ch: str) -> bool:
        return self._is_name_start(ch) or ch.isdigit()

    def _read_escape(self) -> str:
        # Positioned just after the backslash
        if self.pos >= self.length:
            raise self._error("incomplete escape sequence")
        start = self.pos
        while self.pos < self.length and self.pos - start < 6 and self.selector[self.pos] in "0123456789abcdefABCDEF":
            self.pos += 1
        if self.pos == start:
            ch = self.selector[self.pos]
            if ch == "\n":
                raise self._error("escaped newline in identifier")
            self.pos += 1
            return ch

        codepoint = int(self.selector[start : self.pos], 16)
        # A single whitespace character terminates a hex escape
        if self.pos < self.length and self.selector[self.pos] in _WHITESPACE:
            self.pos += 1
        if codepoint == 0 or codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
            return "\ufffd"
        return chr(codepoint)

    def _read_name(self) -> str:
        parts: list[str] = []
        while self.pos < self.length:
            ch = self.selector[self.pos]
            if ch == "\\":
                self.pos += 1
                parts.append(self._read_escape())
            elif self._is_name_char(ch):
                parts.append(ch)
                self.pos += 1
            else:
                break
        return "".join(parts)

    def _read_string(self, quote: str) -> str:
        # Skip opening quote
        self.pos += 1
        parts: list[str] = []

        while self.pos < self.length:
            ch = self.selector[self.pos]
            if ch == quote:
                self.pos += 1
                return "".join(parts)
            if ch == "\\":
                self.pos += 1
                if self.pos < self.length and self.selector[self.pos] == "\n":
                    # Escaped newline is a line continuation
                    self.pos += 1
                    continue
                parts.append(self._read_escape())
            elif ch == "\n":
                raise self._error("newline in quoted string")
            else:
                parts.append(ch)
                self.pos += 1

        raise self._error("unterminated string")

    def _read_pseudo_argument(self) -> str:
        # Positioned just after "("; reads up to the matching ")"
        depth = 1
        start = self.pos
        quote = ""
        while self.pos < self.length:
            ch = self.selector[self.pos]
            if quote:
                if ch == "\\":
                    self.pos += 1
                elif ch == quote:
                    quote = ""
            elif ch in "\"'":
                quote = ch
            elif ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    arg = self.selector[start : self.pos]
                    self.pos += 1
                    return arg.strip(_WHITESPACE)
            self.pos += 1
        if quote:
            raise self._error("unterminated string")
        raise self._error("unbalanced parentheses")

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        pending_whitespace = False

        while self.pos < self.length:
            ch = self.selector[self.pos]

            # Skip whitespace but remember it for combinator detection
            if ch in _WHITESPACE:
                pending_whitespace = True
                self._skip_whitespace()
                continue

            # Handle combinators: >, +, ~
            if ch in ">+~":
                pending_whitespace = False
                self.pos += 1
                self._skip_whitespace()
                tokens.append(Token(TokenType.COMBINATOR, ch))
                continue

            # Whitespace between two compounds is a descendant combinator.
            # Combinators and commas consume trailing whitespace, so
            # pending_whitespace is always False after them.
            if pending_whitespace and tokens and ch != ",":
                tokens.append(Token(TokenType.COMBINATOR, " "))
            pending_whitespace = False

            # Universal selector
            if ch == "*":
                self.pos += 1
                tokens.append(Token(TokenType.UNIVERSAL))
                continue

            # ID selector
            if ch == "#":
                self.pos += 1
                name = self._read_name()
                if not name:
                    raise self._error(f"expected identifier after # at position {self.pos}")
                tokens.append(Token(TokenType.ID, name))
                continue

            # Class selector
            if ch == ".":
                self.pos += 1
                name = self._read_name()
                if not name:
                    raise self._error(f"expected identifier after . at position {self.pos}")
                tokens.append(Token(TokenType.CLASS, name))
                continue

            # Attribute selector
            if ch == "[":
                self._tokenize_attribute(tokens)
                continue

            # Comma (selector grouping)
            if ch == ",":
                self.pos += 1
                self._skip_whitespace()
                tokens.append(Token(TokenType.COMMA))
                continue

            # Pseudo-class
            if ch == ":":
                self.pos += 1
                if self._peek() == ":":
                    raise self._error("pseudo-elements are not supported")
                tokens.append(Token(TokenType.COLON))
                name = self._read_name()
                if not name:
                    raise self._error(f"expected pseudo-class name after : at position {self.pos}")
                tokens.append(Token(TokenType.TAG, name.lower()))

                # Functional pseudo-class
                if self._peek() == "(":
                    self.pos += 1
                    tokens.append(Token(TokenType.PAREN_OPEN))
                    tokens.append(Token(TokenType.STRING, self._read_pseudo_argument()))
                    tokens.append(Token(TokenType.PAREN_CLOSE))
                continue

            # Tag name
            if self._is_name_start(ch):
                name = self._read_name()
                tokens.append(Token(TokenType.TAG, name.lower()))  # Tags are case-insensitive
                continue

            if ch in ")]":
                raise self._error(f"unbalanced {ch!r} at position {self.pos}")
            raise self._error(f"unexpected character {ch!r} at position {self.pos}")

        tokens.append(Token(TokenType.EOF))
        return tokens

    def _tokenize_attribute(self, tokens: list[Token]) -> None:
        self.pos += 1
        tokens.append(Token(TokenType.ATTR_START))
        self._skip_whitespace()

        attr_name = self._read_name()
        if not attr_name:
            if self.pos >= self.length:
                raise self._error("unbalanced '['")
            raise self._error(f"expected attribute name at position {self.pos}")
        tokens.append(Token(TokenType.TAG, attr_name.lower()))  # Reuse TAG for attr name
        self._skip_whitespace()

        ch = self._peek()
        if ch == "]":
            self.pos += 1
            tokens.append(Token(TokenType.ATTR_END))
            return
        if ch == "":
            raise self._error("unbalanced '['")

        if ch == "=":
            self.pos += 1
            tokens.append(Token(TokenType.ATTR_OP, "="))
        elif ch in "~|^$*":
            self.pos += 1
            if self._peek() != "=":
                raise self._error(f"expected = after {ch} at position {self.pos}")
            self.pos += 1
            tokens.append(Token(TokenType.ATTR_OP, ch + "="))
        else:
            raise self._error(f"unexpected character in attribute selector: {ch!r}")

        self._skip_whitespace()
        ch = self._peek()
        if ch in ("'", '"'):
            value = self._read_string(ch)
        else:
            value = self._read_name()
            if not value:
                if ch == "":
                    raise self._error("unbalanced '['")
                raise self._error(f"expected attribute value at position {self.pos}")
        tokens.append(Token(TokenType.STRING, value))

        self._skip_whitespace()
        if self._peek() != "]":
            if self.pos >= self.length:
                raise self._error("unbalanced '['")
            raise self._error(f"expected ] at position {self.pos}")
        self.pos += 1
        tokens.append(Token(TokenType.ATTR_END))


# AST node types for compiled selectors


class SimpleSelector:
    """A single simple selector (tag, id, class, attribute, or pseudo-class)."""

    __slots__ = ("arg", "name", "operator", "type", "value")

    TYPE_TAG: str = "tag"
    TYPE_ID: str = "id"
    TYPE_CLASS: str = "class"
    TYPE_UNIVERSAL: str = "universal"
    TYPE_ATTR: str = "attr"
    TYPE_PSEUDO: str = "pseudo"

    type: str
    name: str | None
    operator: str | None
    value: str | None
    arg: Any

    def __init__(
        self,
        selector_type: str,
        name: str | None = None,
        operator: str | None = None,
        value: str | None = None,
        arg: Any = None,
    ) -> None:
        self.type = selector_type
        self.name = name
        self.operator = operator
        self.value = value
        # (a, b) for the nth-* pseudo-classes, a CompoundSelector for :not()
        self.arg = arg

    def __repr__(self) -> str:
        parts = [f"SimpleSelector({self.type!r}"]
        if self.name:
            parts.append(f", name={self.name!r}")
        if self.operator:
            parts.append(f", op={self.operator!r}")
        if self.value is not None:
            parts.append(f", value={self.value!r}")
        if self.arg is not None:
            parts.append(f", arg={self.arg!r}")
        parts.append(")")
        return "".join(parts)


class CompoundSelector:
    """A sequence of simple selectors (e.g., div.foo#bar)."""

    __slots__ = ("selectors",)

    selectors: tuple[SimpleSelector, ...]

    def __init__(self, selectors: tuple[SimpleSelector, ...]) -> None:
        self.selectors = selectors

    def __repr__(self) -> str:
        return f"CompoundSelector({list(self.selectors)!r})"


class ComplexSelector:
    """A chain of compound selectors joined by combinators.

    `parts` holds ``(combinator, compound)`` pairs left to right; the first
    pair's combinator is None.
    """

    __slots__ = ("parts",)

    parts: tuple[tuple[str | None, CompoundSelector], ...]

    def __init__(self, parts: tuple[tuple[str | None, CompoundSelector], ...]) -> None:
        self.parts = parts

    def __repr__(self) -> str:
        return f"ComplexSelector({list(self.parts)!r})"


class CompiledSelector:
    """A validated, reusable selector list together with its source text."""

    __slots__ = ("selectors", "source")

    selectors: tuple[ComplexSelector, ...]
    source: str

    def __init__(self, source: str, selectors: tuple[ComplexSelector, ...]) -> None:
        self.source = source
        self.selectors = selectors

    def __repr__(self) -> str:
        return f"CompiledSelector({self.source!r})"


_SIMPLE_PSEUDOS = frozenset(
    {
        "root",
        "empty",
        "first-child",
        "last-child",
        "only-child",
        "first-of-type",
        "last-of-type",
        "only-of-type",
    }
)
_NTH_PSEUDOS = frozenset({"nth-child", "nth-last-child", "nth-of-type", "nth-last-of-type"})

_NTH_PATTERN = re.compile(
    r"(?:(?P<a>[+-]?\d*)n(?:\s*(?P<sign>[+-])\s*(?P<b>\d+))?|(?P<only_b>[+-]?\d+))",
)


def parse_nth_expression(expr: str) -> tuple[int, int] | None:
    """Parse an An+B expression like '2n+1', 'odd', 'even', '3'.

    Returns ``(a, b)`` or None when the expression is malformed.
    """
    expr = expr.strip(_WHITESPACE).lower()
    if expr == "odd":
        return (2, 1)
    if expr == "even":
        return (2, 0)

    match = _NTH_PATTERN.fullmatch(expr)
    if match is None:
        return None
    if match.group("only_b") is not None:
        return (0, int(match.group("only_b")))

    a_part = match.group("a")
    if a_part in ("", "+"):
        a = 1
    elif a_part == "-":
        a = -1
    else:
        a = int(a_part)
    b = 0
    if match.group("b") is not None:
        b = int(match.group("b"))
        if match.group("sign") == "-":
            b = -b
    return (a, b)


class SelectorParser:
    """Parses a list of tokens into a selector AST."""

    __slots__ = ("pos", "source", "tokens")

    tokens: list[Token]
    pos: int
    source: str

    def __init__(self, tokens: list[Token], source: str) -> None:
        self.tokens = tokens
        self.pos = 0
        self.source = source

    def _error(self, reason: str) -> SelectorSyntaxError:
        return SelectorSyntaxError(self.source, reason)

    def _peek(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return Token(TokenType.EOF)

    def _advance(self) -> Token:
        token = self._peek()
        self.pos += 1
        return token

    def _expect(self, token_type: str) -> Token:
        token = self._peek()
        if token.type != token_type:
            raise self._error(f"expected {token_type}, got {token.type}")
        return self._advance()

    def parse(self) -> tuple[ComplexSelector, ...]:
        """Parse a complete selector list."""
        selectors: list[ComplexSelector] = []
        while True:
            selectors.append(self._parse_complex_selector())
            token = self._peek()
            if token.type == TokenType.EOF:
                break
            if token.type != TokenType.COMMA:
                raise self._error(f"unexpected token: {token}")
            self._advance()
            if self._peek().type == TokenType.EOF:
                raise self._error("expected selector after ','")
        return tuple(selectors)

    def parse_compound_only(self) -> CompoundSelector:
        """Parse a single compound selector, as used by :not()."""
        compound = self._parse_compound_selector()
        if compound is None or self._peek().type != TokenType.EOF:
            raise self._error(":not() accepts a simple or compound selector")
        return compound

    def _parse_complex_selector(self) -> ComplexSelector:
        """Parse a complex selector (compound selectors with combinators)."""
        compound = self._parse_compound_selector()
        if compound is None:
            token = self._peek()
            if token.type == TokenType.COMBINATOR:
                raise self._error(f"selector cannot start with combinator {token.value!r}")
            if token.type == TokenType.COMMA:
                raise self._error("expected selector before ','")
            raise self._error(f"unexpected token: {token}")
        parts: list[tuple[str | None, CompoundSelector]] = [(None, compound)]

        while self._peek().type == TokenType.COMBINATOR:
            combinator = self._advance().value
            compound = self._parse_compound_selector()
            if compound is None:
                raise self._error(f"expected selector after combinator {combinator!r}")
            parts.append((combinator, compound))

        return ComplexSelector(tuple(parts))

    def _parse_compound_selector(self) -> CompoundSelector | None:
        """Parse a compound selector (sequence of simple selectors)."""
        simple_selectors: list[SimpleSelector] = []

        while True:
            token = self._peek()

            if token.type in (TokenType.TAG, TokenType.UNIVERSAL):
                if simple_selectors:
                    raise self._error("type selector must come first in a compound selector")
                self._advance()
                if token.type == TokenType.TAG:
                    simple_selectors.append(SimpleSelector(SimpleSelector.TYPE_TAG, name=token.value))
                else:
                    simple_selectors.append(SimpleSelector(SimpleSelector.TYPE_UNIVERSAL))

            elif token.type == TokenType.ID:
                self._advance()
                simple_selectors.append(SimpleSelector(SimpleSelector.TYPE_ID, name=token.value))

            elif token.type == TokenType.CLASS:
                self._advance()
                simple_selectors.append(SimpleSelector(SimpleSelector.TYPE_CLASS, name=token.value))

            elif token.type == TokenType.ATTR_START:
                simple_selectors.append(self._parse_attribute_selector())

            elif token.type == TokenType.COLON:
                simple_selectors.append(self._parse_pseudo_selector())

            else:
                break

        if not simple_selectors:
            return None
        return CompoundSelector(tuple(simple_selectors))

    def _parse_attribute_selector(self) -> SimpleSelector:
        """Parse an attribute selector [attr], [attr=value], etc."""
        self._expect(TokenType.ATTR_START)

        attr_name = self._expect(TokenType.TAG).value

        if self._peek().type == TokenType.ATTR_END:
            self._advance()
            return SimpleSelector(SimpleSelector.TYPE_ATTR, name=attr_name)

        operator = self._expect(TokenType.ATTR_OP).value
        value = self._expect(TokenType.STRING).value
        self._expect(TokenType.ATTR_END)

        return SimpleSelector(SimpleSelector.TYPE_ATTR, name=attr_name, operator=operator, value=value)

    def _parse_pseudo_selector(self) -> SimpleSelector:
        """Parse a pseudo-class selector like :first-child or :not(selector)."""
        self._expect(TokenType.COLON)
        name = self._expect(TokenType.TAG).value or ""

        arg: str | None = None
        if self._peek().type == TokenType.PAREN_OPEN:
            self._advance()
            arg = self._expect(TokenType.STRING).value
            self._expect(TokenType.PAREN_CLOSE)

        if name in _SIMPLE_PSEUDOS:
            if arg is not None:
                raise self._error(f":{name} does not take an argument")
            return SimpleSelector(SimpleSelector.TYPE_PSEUDO, name=name)

        if name in _NTH_PSEUDOS:
            if arg is None:
                raise self._error(f":{name}() requires an argument")
            nth = parse_nth_expression(arg)
            if nth is None:
                raise self._error(f"invalid :{name}() argument {arg!r}")
            return SimpleSelector(SimpleSelector.TYPE_PSEUDO, name=name, arg=nth)

        if name == "not":
            if not arg:
                raise self._error(":not() requires an argument")
            tokens = SelectorTokenizer(arg, source=self.source).tokenize()
            inner = SelectorParser(tokens, self.source).parse_compound_only()
            if any(simple.type == SimpleSelector.TYPE_PSEUDO and simple.name == "not" for simple in inner.selectors):
                raise self._error(":not() cannot be nested")
            return SimpleSelector(SimpleSelector.TYPE_PSEUDO, name=name, arg=inner)

        raise self._error(f"unsupported pseudo-class :{name}")


class _MatchCache:
    """Memo for one `select` call.

    `results` holds match outcomes keyed by (selector parts, node, position).
    `siblings` holds each parent's element children (optionally of one tag
    name) with an index map, so sibling lookups are built once per parent.
    `preceding` holds, per (parts, position, parent), prefix flags telling
    whether any earlier sibling matched; it makes `~` linear in the number
    of siblings.
    """

    __slots__ = ("preceding", "results", "siblings")

    def __init__(self) -> None:
        self.results: dict[tuple[int, int, int], bool] = {}
        self.siblings: dict[tuple[int, str | None], tuple[list[Any], dict[int, int]]] = {}
        self.preceding: dict[tuple[int, int, int], list[bool]] = {}

    def siblings_of(self, node: Any, type_name: str | None = None) -> tuple[list[Any], dict[int, int]]:
        """Element children of `node`'s parent (`node` included) and their positions."""
        parent = node.parent
        if parent is None:
            return [], {}
        key = (id(parent), type_name)
        entry = self.siblings.get(key)
        if entry is None:
            elements = [
                child
                for child in parent.children
                if child.is_element and (type_name is None or child.name.lower() == type_name)
            ]
            entry = (elements, {id(element): index for index, element in enumerate(elements)})
            self.siblings[key] = entry
        return entry


class SelectorMatcher:
    """Matches compiled selectors against tree nodes.

    Complex selectors are matched right to left. Descendant and general
    sibling combinators try every candidate to their left, and results are
    memoized per (node, position) so the search stays polynomial.
    """

    __slots__ = ()

    def matches_complex(self, node: Any, selector: ComplexSelector, cache: _MatchCache) -> bool:
        return self._match_at(node, selector.parts, len(selector.parts) - 1, cache)

    def _match_at(
        self,
        node: Any,
        parts: tuple[tuple[str | None, CompoundSelector], ...],
        index: int,
        cache: _MatchCache,
    ) -> bool:
        key = (id(parts), id(node), index)
        cached = cache.results.get(key)
        if cached is not None:
            return cached

        combinator, compound = parts[index]
        result = self.matches_compound(node, compound, cache)
        if result and index > 0:
            if combinator == "~":
                result = self._any_preceding_sibling_matches(node, parts, index - 1, cache)
            else:
                result = any(
                    self._match_at(candidate, parts, index - 1, cache)
                    for candidate in self._candidates(node, combinator, cache)
                )
        cache.results[key] = result
        return result

    def _candidates(self, node: Any, combinator: str | None, cache: _MatchCache) -> list[Any]:
        """Return the nodes the left-hand compound may match for `combinator`."""
        if combinator == " ":  # Descendant
            ancestors = []
            parent = node.parent
            while parent is not None and parent.is_element:
                ancestors.append(parent)
                parent = parent.parent
            return ancestors

        if combinator == ">":  # Child
            parent = node.parent
            return [parent] if parent is not None and parent.is_element else []

        # combinator == "+" - Adjacent sibling
        siblings, positions = cache.siblings_of(node)
        position = positions.get(id(node), 0)
        return [siblings[position - 1]] if position > 0 else []

    def _any_preceding_sibling_matches(
        self,
        node: Any,
        parts: tuple[tuple[str | None, CompoundSelector], ...],
        index: int,
        cache: _MatchCache,
    ) -> bool:
        siblings, positions = cache.siblings_of(node)
        position = positions.get(id(node), 0)
        key = (id(parts), index, id(node.parent))
        # found[i] is True when one of siblings[:i] matches parts[index]
        found = cache.preceding.get(key)
        if found is None:
            found = cache.preceding[key] = [False]
        while len(found) <= position:
            earlier = len(found) - 1
            found.append(found[earlier] or self._match_at(siblings[earlier], parts, index, cache))
        return found[position]

    def matches_compound(self, node: Any, compound: CompoundSelector, cache: _MatchCache) -> bool:
        """Match a compound selector (all simple selectors must match)."""
        if not node.is_element:
            return False
        return all(self._matches_simple(node, simple, cache) for simple in compound.selectors)

    def _matches_simple(self, node: Any, selector: SimpleSelector, cache: _MatchCache) -> bool:
        sel_type = selector.type

        if sel_type == SimpleSelector.TYPE_UNIVERSAL:
            return True

        if sel_type == SimpleSelector.TYPE_TAG:
            # HTML tag names are case-insensitive
            return bool(node.name.lower() == selector.name)

        if sel_type == SimpleSelector.TYPE_ID:
            return bool(node.id == selector.name)

        if sel_type == SimpleSelector.TYPE_CLASS:
            return selector.name in node.classes

        if sel_type == SimpleSelector.TYPE_ATTR:
            return self._matches_attribute(node, selector)

        return self._matches_pseudo(node, selector, cache)

    def _matches_attribute(self, node: Any, selector: SimpleSelector) -> bool:
        """Match an attribute selector."""
        attr_value: str | None = None
        for name, value in node.attrs.items():
            # Attribute names are case-insensitive in HTML
            if name.lower() == selector.name:
                attr_value = value
                break

        if attr_value is None:
            return False

        # Presence check only
        if selector.operator is None:
            return True

        value = selector.value or ""
        op = selector.operator

        if op == "=":
            return attr_value == value

        if op == "~=":
            # Whitespace-separated word match
            return bool(value) and not any(c in value for c in _WHITESPACE) and value in attr_value.split()

        if op == "|=":
            # Hyphen-separated prefix match (e.g., lang|="en" matches lang="en-US")
            return attr_value == value or attr_value.startswith(value + "-")

        if op == "^=":
            return bool(value) and attr_value.startswith(value)

        if op == "$=":
            return bool(value) and attr_value.endswith(value)

        # op == "*="
        return bool(value) and value in attr_value

    def _matches_pseudo(self, node: Any, selector: SimpleSelector, cache: _MatchCache) -> bool:
        name = selector.name

        if name == "not":
            return not self.matches_compound(node, selector.arg, cache)

        if name == "root":
            parent = node.parent
            return parent is not None and parent.name == "#document"

        if name == "empty":
            # Comments do not count as content; text of any kind does
            for child in node.children:
                if child.is_element or (child.name == "#text" and child.data):
                    return False
            return True

        if name in ("first-of-type", "last-of-type", "only-of-type", "nth-of-type", "nth-last-of-type"):
            siblings, positions = cache.siblings_of(node, node.name.lower())
        else:
            siblings, positions = cache.siblings_of(node)
        position = positions.get(id(node))
        if position is None:
            return False

        if name in ("first-child", "first-of-type"):
            return position == 0
        if name in ("last-child", "last-of-type"):
            return position == len(siblings) - 1
        if name in ("only-child", "only-of-type"):
            return len(siblings) == 1

        if name in ("nth-last-child", "nth-last-of-type"):
            index = len(siblings) - position
        else:
            index = position + 1
        a, b = selector.arg
        return _matches_nth(index, a, b)


def _matches_nth(index: int, a: int, b: int) -> bool:
    """Check if 1-based index matches the An+B formula for some n >= 0."""
    if a == 0:
        return index == b
    diff = index - b
    if a > 0:
        return diff >= 0 and diff % a == 0
    return diff <= 0 and diff % a == 0


def compile(selector: str) -> CompiledSelector:  # noqa: A001
    """Compile a CSS selector string.

    Raises:
        SelectorSyntaxError: If the selector is empty or invalid
    """
    if not selector.strip(_WHITESPACE):
        raise SelectorSyntaxError(selector, "empty selector")

    tokens = SelectorTokenizer(selector.strip(_WHITESPACE), source=selector).tokenize()
    return CompiledSelector(selector, SelectorParser(tokens, selector).parse())


# Global matcher instance
_matcher: SelectorMatcher = SelectorMatcher()


def select(root: Any, selector: CompiledSelector) -> list[Any]:
    """
    Return every element below `root` matching `selector`, in document order.

    The root itself is never a candidate (matching browser behavior for
    querySelectorAll), and each element appears at most once.

    Raises:
        TypeError: If `selector` is not a CompiledSelector
    """
    if not isinstance(selector, CompiledSelector):
        raise TypeError(f"select() expects a CompiledSelector, got {type(selector).__name__}")

    cache = _MatchCache()
    results: list[Any] = []
    for node in root.iter_descendants():
        if not node.is_element:
            continue
        for complex_selector in selector.selectors:
            if _matcher.matches_complex(node, complex_selector, cache):
                results.append(node)
                break
    return results


def matches(node: Any, selector: CompiledSelector | str) -> bool:
    """
    Check if a node matches a CSS selector.

    Args:
        node: The node to check
        selector: A compiled selector or a CSS selector string

    Returns:
        True if the node matches, False otherwise
    """
    if isinstance(selector, str):
        selector = compile(selector)
    elif not isinstance(selector, CompiledSelector):
        raise TypeError(f"matches() expects a CompiledSelector, got {type(selector).__name__}")
    cache = _MatchCache()
    return any(_matcher.matches_complex(node, complex_selector, cache) for complex_selector in selector.selectors)


def query(root: Any, selector_string: str) -> list[Any]:
    """Compile `selector_string` and select from `root`."""
    return select(root, compile(selector_string))
