"""HTML serialization of parsed nodes (outer HTML, no pretty-printing)."""

from __future__ import annotations

from typing import Any

from .constants import RAW_TEXT_SERIALIZATION, VOID_ELEMENTS


def _escape_text(text: str | None) -> str:
    if not text:
        return ""
    return text.replace("&", "&amp;").replace("\xa0", "&nbsp;").replace("<", "&lt;").replace(">", "&gt;")


def _escape_attr_value(value: str | None) -> str:
    if not value:
        return ""
    return value.replace("&", "&amp;").replace("\xa0", "&nbsp;").replace('"', "&quot;")


def serialize_start_tag(name: str, attrs: dict[str, str] | None) -> str:
    parts: list[str] = ["<", name]
    for key, value in (attrs or {}).items():
        parts.extend([" ", key, '="', _escape_attr_value(value), '"'])
    parts.append(">")
    return "".join(parts)


def serialize_end_tag(name: str) -> str:
    return f"</{name}>"


def _is_void(node: Any) -> bool:
    return node.namespace == "html" and node.name in VOID_ELEMENTS


def _is_raw_text_parent(node: Any) -> bool:
    return node is not None and node.namespace == "html" and node.name in RAW_TEXT_SERIALIZATION


def _doctype_to_html(node: Any) -> str:
    doctype = node.data
    name = doctype.name if doctype is not None else None
    if name:
        return f"<!DOCTYPE {name}>"
    return "<!DOCTYPE>"


def serialize(node: Any) -> str:
    """Serialize `node` including its own tags.

    A ``#document`` node renders as the concatenation of its children.
    The walk uses an explicit stack, so arbitrarily deep trees serialize
    without hitting the recursion limit.
    """
    parts: list[str] = []
    # Entries are nodes to render, or end tag strings to emit verbatim
    stack: list[Any] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, str):
            parts.append(current)
            continue

        name: str = current.name
        if name == "#text":
            if _is_raw_text_parent(current.parent):
                parts.append(current.data or "")
            else:
                parts.append(_escape_text(current.data))
            continue
        if name == "#comment":
            parts.append(f"<!--{current.data or ''}-->")
            continue
        if name == "!doctype":
            parts.append(_doctype_to_html(current))
            continue
        if name == "#document":
            stack.extend(reversed(current.children))
            continue

        parts.append(serialize_start_tag(name, current.attrs))
        if _is_void(current):
            continue
        stack.append(serialize_end_tag(name))
        stack.extend(reversed(current.children))
    return "".join(parts)
