from importlib.metadata import PackageNotFoundError, version

from .config import Config
from .errors import (
    ArgumentError,
    HtmlSelectError,
    InputEmptyError,
    IoError,
    ParseError,
    SelectorSyntaxError,
)
from .node import ElementNode, SimpleDomNode, TextNode
from .parser import Document, parse
from .selector import CompiledSelector, compile, matches, select
from .serialize import serialize
from .tokens import ParseDiagnostic

try:
    __version__ = version("htmlselect")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "dev"

__all__ = [
    "ArgumentError",
    "CompiledSelector",
    "Config",
    "Document",
    "ElementNode",
    "HtmlSelectError",
    "InputEmptyError",
    "IoError",
    "ParseDiagnostic",
    "ParseError",
    "SelectorSyntaxError",
    "SimpleDomNode",
    "TextNode",
    "compile",
    "matches",
    "parse",
    "select",
    "serialize",
]
