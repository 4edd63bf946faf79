"""Exception types and parse diagnostic messages.

Every failure the pipeline can surface is a subclass of `HtmlSelectError`,
one class per kind, each carrying its own payload. Recoverable markup
problems are not exceptions: the parser records them as diagnostics whose
human-readable text comes from `generate_error_message`.
"""

from __future__ import annotations


class HtmlSelectError(Exception):
    """Base class for all errors surfaced by htmlselect."""


class ArgumentError(HtmlSelectError):
    """Raised when the command line is malformed."""

    message: str

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ParseError(HtmlSelectError):
    """Raised when the input cannot be turned into a document."""


class InputEmptyError(ParseError):
    """Raised when the HTML input is empty or whitespace-only."""

    def __init__(self) -> None:
        super().__init__("Failed to parse the provided HTML content.")


class SelectorSyntaxError(HtmlSelectError, ValueError):
    """Raised when a CSS selector is invalid.

    `selector` is the full selector text as given, `reason` says what was
    wrong with it.
    """

    selector: str
    reason: str

    def __init__(self, selector: str, reason: str) -> None:
        self.selector = selector
        self.reason = reason
        super().__init__(f"Failed to parse the provided CSS selector: {selector} ({reason})")


class IoError(HtmlSelectError):
    """Raised when an input or output file cannot be opened, read or written."""

    path: str | None
    reason: str

    def __init__(self, path: str | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        target = path if path is not None else "<stdio>"
        super().__init__(f"{target}: {reason}")


def generate_error_message(code: str, tag_name: str | None = None) -> str:
    """Return the human-readable message for a parse diagnostic code.

    Unknown codes fall back to the code itself.
    """
    messages = {
        # Tokenizer
        "eof-in-tag": "Unexpected end of file in tag",
        "eof-before-tag-name": "Unexpected end of file before tag name",
        "eof-in-comment": "Unexpected end of file in comment",
        "eof-in-doctype": "Unexpected end of file in DOCTYPE declaration",
        "eof-in-script-html-comment-like-text": "Unexpected end of file in an escaped script section",
        "empty-end-tag": "Empty end tag </> is not allowed",
        "invalid-first-character-of-tag-name": "Invalid first character of tag name",
        "unexpected-question-mark-instead-of-tag-name": "Unexpected ? instead of tag name",
        "unexpected-character-after-solidus-in-tag": "Unexpected character after / in tag",
        "duplicate-attribute": "Duplicate attribute name",
        "missing-attribute-value": "Missing attribute value",
        "unexpected-character-in-attribute-name": "Unexpected character in attribute name",
        "unexpected-character-in-unquoted-attribute-value": "Unexpected character in unquoted attribute value",
        "missing-whitespace-between-attributes": "Missing whitespace between attributes",
        "unexpected-equals-sign-before-attribute-name": "Unexpected = before attribute name",
        "abrupt-closing-of-empty-comment": "Comment ended abruptly with -->",
        "incorrectly-closed-comment": "Comment ended with --!> instead of -->",
        "incorrectly-opened-comment": "Incorrectly opened comment",
        "cdata-in-html-content": "CDATA section only allowed in SVG/MathML content",
        "unexpected-null-character": "Unexpected NULL character (U+0000)",
        "missing-semicolon-after-character-reference": "Missing semicolon after character reference",
        "unknown-named-character-reference": "Unknown named character reference",
        "absence-of-digits-in-numeric-character-reference": "Numeric character reference has no digits",
        "null-character-reference": "Character reference to U+0000",
        "character-reference-outside-unicode-range": "Character reference outside the Unicode range",
        "surrogate-character-reference": "Character reference to a surrogate code point",
        "control-character-reference": "Character reference to a control character",
        "end-tag-with-attributes": "End tag has attributes",
        "end-tag-with-trailing-solidus": "End tag has a trailing /",
        # Tree builder
        "unexpected-doctype": "Unexpected DOCTYPE declaration",
        "unknown-doctype": "Unknown DOCTYPE (expected <!DOCTYPE html>)",
        "expected-doctype-but-got-chars": "Expected DOCTYPE but got text content",
        "expected-doctype-but-got-start-tag": f"Expected DOCTYPE but got <{tag_name}> tag",
        "expected-doctype-but-got-end-tag": f"Expected DOCTYPE but got </{tag_name}> tag",
        "expected-doctype-but-got-eof": "Expected DOCTYPE but reached end of file",
        "unexpected-start-tag": f"Unexpected <{tag_name}> start tag",
        "unexpected-start-tag-ignored": f"<{tag_name}> start tag ignored in current context",
        "unexpected-start-tag-implies-end-tag": f"<{tag_name}> start tag implicitly closes previous element",
        "unexpected-end-tag": f"Unexpected </{tag_name}> end tag",
        "end-tag-too-early": f"</{tag_name}> end tag closed early (unclosed children)",
        "expected-closing-tag-but-got-eof": f"Expected </{tag_name}> closing tag but reached end of file",
        "foster-parenting-character": "Text content in table requires foster parenting",
        "foster-parenting-start-tag": f"<{tag_name}> start tag in table requires foster parenting",
        "adoption-agency-1.3": f"Misnested <{tag_name}> tags require adoption agency algorithm",
        "unexpected-token-after-body": "Unexpected content after </body>",
        "non-void-html-element-start-tag-with-trailing-solidus": f"<{tag_name}/> self-closing syntax on non-void element",
    }
    return messages.get(code, code)
