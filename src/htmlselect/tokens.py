from __future__ import annotations

from typing import Literal


class Tag:
    __slots__ = ("attrs", "kind", "name", "self_closing")

    START: Literal[0] = 0
    END: Literal[1] = 1

    kind: int
    name: str
    attrs: dict[str, str]
    self_closing: bool

    def __init__(
        self,
        kind: int,
        name: str,
        attrs: dict[str, str] | None = None,
        self_closing: bool = False,
    ) -> None:
        self.kind = kind
        self.name = name
        self.attrs = attrs if attrs is not None else {}
        self.self_closing = bool(self_closing)

    def __repr__(self) -> str:
        slash = "/" if self.kind == Tag.END else ""
        return f"Tag(<{slash}{self.name}>, attrs={self.attrs!r})"


class CharacterTokens:
    __slots__ = ("data",)

    data: str

    def __init__(self, data: str) -> None:
        self.data = data


class CommentToken:
    __slots__ = ("data",)

    data: str

    def __init__(self, data: str) -> None:
        self.data = data


class Doctype:
    __slots__ = ("force_quirks", "name", "public_id", "system_id")

    name: str | None
    public_id: str | None
    system_id: str | None
    force_quirks: bool

    def __init__(
        self,
        name: str | None = None,
        public_id: str | None = None,
        system_id: str | None = None,
        force_quirks: bool = False,
    ) -> None:
        self.name = name
        self.public_id = public_id
        self.system_id = system_id
        self.force_quirks = bool(force_quirks)


class DoctypeToken:
    __slots__ = ("doctype",)

    doctype: Doctype

    def __init__(self, doctype: Doctype) -> None:
        self.doctype = doctype


class EOFToken:
    __slots__ = ()


Token = Tag | CharacterTokens | CommentToken | DoctypeToken | EOFToken


class ParseDiagnostic:
    """A recoverable parse error with its source location."""

    __slots__ = ("code", "column", "line", "message")

    code: str
    line: int | None
    column: int | None
    message: str

    __hash__ = None  # type: ignore[assignment]

    def __init__(
        self,
        code: str,
        line: int | None = None,
        column: int | None = None,
        message: str | None = None,
    ) -> None:
        self.code = code
        self.line = line
        self.column = column
        self.message = message or code

    def __repr__(self) -> str:
        if self.line is not None and self.column is not None:
            return f"ParseDiagnostic({self.code!r}, line={self.line}, column={self.column})"
        return f"ParseDiagnostic({self.code!r})"

    def __str__(self) -> str:
        if self.line is not None and self.column is not None:
            return f"({self.line},{self.column}): {self.code} - {self.message}"
        return f"{self.code} - {self.message}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseDiagnostic):
            return NotImplemented
        return self.code == other.code and self.line == other.line and self.column == other.column
