"""HTML5 character reference decoding.

Named references come from Python's complete HTML5 table. Its keys carry
the trailing semicolon (``"amp;"``); the legacy references that may appear
without a semicolon are also present without it (``"amp"``), so the same
table answers both lookups.
"""

from __future__ import annotations

import html.entities
from collections.abc import Callable

NAMED_ENTITIES: dict[str, str] = html.entities.html5

# Longest key without its semicolon, bounds the lookahead
_LONGEST_NAME: int = max(len(name.rstrip(";")) for name in NAMED_ENTITIES)

# Windows-1252 code points that numeric references remap
NUMERIC_REPLACEMENTS: dict[int, str] = {
    0x80: "€",
    0x82: "‚",
    0x83: "ƒ",
    0x84: "„",
    0x85: "…",
    0x86: "†",
    0x87: "‡",
    0x88: "ˆ",
    0x89: "‰",
    0x8A: "Š",
    0x8B: "‹",
    0x8C: "Œ",
    0x8E: "Ž",
    0x91: "‘",
    0x92: "’",
    0x93: "“",
    0x94: "”",
    0x95: "•",
    0x96: "–",
    0x97: "—",
    0x98: "˜",
    0x99: "™",
    0x9A: "š",
    0x9B: "›",
    0x9C: "œ",
    0x9E: "ž",
    0x9F: "Ÿ",
}

ErrorCallback = Callable[[str], None]


def _is_ascii_alnum(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


def decode_numeric_entity(codepoint: int, report: ErrorCallback | None = None) -> str:
    """Map a numeric reference code point to the character it produces."""
    if codepoint == 0:
        if report:
            report("null-character-reference")
        return "\ufffd"
    if codepoint > 0x10FFFF:
        if report:
            report("character-reference-outside-unicode-range")
        return "\ufffd"
    if 0xD800 <= codepoint <= 0xDFFF:
        if report:
            report("surrogate-character-reference")
        return "\ufffd"
    if codepoint in NUMERIC_REPLACEMENTS:
        if report:
            report("control-character-reference")
        return NUMERIC_REPLACEMENTS[codepoint]
    if (codepoint < 0x20 and codepoint not in (0x09, 0x0A, 0x0C)) or 0x7F <= codepoint <= 0x9F:
        if report:
            report("control-character-reference")
    return chr(codepoint)


def _decode_numeric(text: str, start: int, report: ErrorCallback | None) -> tuple[str, int]:
    # `start` points just past "&#"
    pos = start
    length = len(text)
    is_hex = pos < length and text[pos] in "xX"
    if is_hex:
        pos += 1
        digits = "0123456789abcdefABCDEF"
    else:
        digits = "0123456789"

    digit_start = pos
    while pos < length and text[pos] in digits:
        pos += 1

    if pos == digit_start:
        if report:
            report("absence-of-digits-in-numeric-character-reference")
        # Nothing consumed: the ampersand and what follows stay literal
        return "&", start - 1

    significant = text[digit_start:pos].lstrip("0") or "0"
    if pos < length and text[pos] == ";":
        pos += 1
    elif report:
        report("missing-semicolon-after-character-reference")

    # Anything longer than eight digits is out of range in either base
    codepoint = int(significant, 16 if is_hex else 10) if len(significant) <= 8 else 0x110000
    return decode_numeric_entity(codepoint, report), pos


def _decode_named(
    text: str, start: int, in_attribute: bool, report: ErrorCallback | None
) -> tuple[str, int] | None:
    # `start` points just past "&"; returns None when nothing matched
    length = len(text)
    end = start
    while end < length and end - start < _LONGEST_NAME and _is_ascii_alnum(text[end]):
        end += 1
    if end == start:
        return None

    run = text[start:end]
    if end < length and text[end] == ";" and run + ";" in NAMED_ENTITIES:
        return NAMED_ENTITIES[run + ";"], end + 1

    for k in range(len(run), 0, -1):
        name = run[:k]
        if name not in NAMED_ENTITIES:
            continue
        after = start + k
        next_char = text[after] if after < length else ""
        if in_attribute and next_char and (next_char == "=" or _is_ascii_alnum(next_char)):
            return None
        if report:
            report("missing-semicolon-after-character-reference")
        return NAMED_ENTITIES[name], after

    if end < length and text[end] == ";" and report:
        report("unknown-named-character-reference")
    return None


def decode_entities_in_text(
    text: str,
    in_attribute: bool = False,
    report: ErrorCallback | None = None,
) -> str:
    """Decode every character reference in `text`.

    Args:
        text: Raw text or attribute value as it appeared in the source
        in_attribute: Apply the stricter attribute-value rule for
            references that lack a semicolon
        report: Called with a diagnostic code for each malformed reference

    Returns:
        The decoded text. Unrecognized references are left as written.
    """
    if "&" not in text:
        return text

    result: list[str] = []
    pos = 0
    length = len(text)
    while pos < length:
        amp = text.find("&", pos)
        if amp == -1:
            result.append(text[pos:])
            break
        if amp > pos:
            result.append(text[pos:amp])

        if amp + 1 < length and text[amp + 1] == "#":
            decoded, pos = _decode_numeric(text, amp + 2, report)
            result.append(decoded)
            continue

        named = _decode_named(text, amp + 1, in_attribute, report)
        if named is None:
            result.append("&")
            pos = amp + 1
            continue
        decoded, pos = named
        result.append(decoded)

    return "".join(result)
