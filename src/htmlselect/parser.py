"""HTML parser entry point."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .errors import InputEmptyError
from .selector import select
from .tokenizer import Tokenizer
from .treebuilder import TreeBuilder

if TYPE_CHECKING:
    from .node import SimpleDomNode
    from .selector import CompiledSelector
    from .tokens import ParseDiagnostic


class Document:
    """A parsed HTML document.

    `root` is the ``#document`` node; `errors` lists the recoverable parse
    diagnostics from the tokenizer and the tree builder, in that order.
    """

    __slots__ = ("errors", "root")

    errors: list[ParseDiagnostic]
    root: SimpleDomNode

    def __init__(self, root: SimpleDomNode, errors: list[ParseDiagnostic]) -> None:
        self.root = root
        self.errors = errors

    def __repr__(self) -> str:
        return f"<Document errors={len(self.errors)}>"

    def select(self, selector: CompiledSelector) -> list[Any]:
        """Return the elements matching a compiled selector, in document order."""
        return select(self.root, selector)

    def query(self, selector: str) -> list[Any]:
        """Query the document using a CSS selector. Delegates to root.query()."""
        return self.root.query(selector)

    def to_html(self) -> str:
        """Serialize the document to HTML. Delegates to root.to_html()."""
        return self.root.to_html()

    def to_text(self, separator: str = " ", strip: bool = True) -> str:
        """Return the document's concatenated text.

        Delegates to `root.to_text(separator=..., strip=...)`.
        """
        return self.root.to_text(separator=separator, strip=strip)


def parse(html: str) -> Document:
    """Parse an HTML string into a `Document`.

    Malformed markup is repaired, never rejected; each repair is recorded
    in `Document.errors`.

    Raises:
        InputEmptyError: If `html` is empty or whitespace-only
    """
    if not html.strip():
        raise InputEmptyError()

    tree_builder = TreeBuilder()
    tokenizer = Tokenizer(tree_builder)
    # Link tokenizer to tree_builder for position info
    tree_builder.tokenizer = tokenizer

    tokenizer.run(html)
    root = tree_builder.finish()
    return Document(root, tokenizer.errors + tree_builder.errors)
