from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .selector import query
from .serialize import serialize

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .tokens import Doctype


def _to_text_collect(node: Any, parts: list[str], strip: bool) -> None:
    # Explicit stack, children pushed in reverse to keep document order
    stack = [node]
    while stack:
        current = stack.pop()
        if current.name == "#text":
            data: str = current.data or ""
            if strip:
                data = data.strip()
            if data:
                parts.append(data)
            continue
        if current.children:
            stack.extend(reversed(current.children))


class SimpleDomNode:
    """A tree node: the document root, a comment or a doctype.

    Elements and text runs have their own subclasses. `name` is the tag
    name for elements and one of ``#document``, ``#comment``, ``#text`` or
    ``!doctype`` otherwise.
    """

    __slots__ = ("attrs", "children", "data", "name", "namespace", "parent")

    name: str
    parent: SimpleDomNode | None
    attrs: dict[str, str] | None
    children: list[Any] | None
    data: str | Doctype | None
    namespace: str | None

    def __init__(
        self,
        name: str,
        attrs: dict[str, str] | None = None,
        data: str | Doctype | None = None,
        namespace: str | None = None,
    ) -> None:
        self.name = name
        self.parent = None
        self.data = data
        self.namespace = namespace
        if name in ("#comment", "!doctype"):
            self.children = None
            self.attrs = None
        else:
            self.children = []
            self.attrs = attrs if attrs is not None else {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    @property
    def is_element(self) -> bool:
        return not (self.name.startswith("#") or self.name == "!doctype")

    # Tree construction. These are used by the tree builder while the
    # document is being built; a finished document is not modified.

    def append_child(self, node: Any) -> None:
        if self.children is not None:
            self.children.append(node)
            node.parent = self

    def insert_before(self, node: Any, reference_node: Any | None) -> None:
        """Insert `node` before `reference_node`, or append when it is None."""
        if self.children is None:
            raise ValueError(f"Node {self.name} cannot have children")
        if reference_node is None:
            self.append_child(node)
            return
        try:
            index = self.children.index(reference_node)
        except ValueError:
            raise ValueError("Reference node is not a child of this node") from None
        self.children.insert(index, node)
        node.parent = self

    def remove_child(self, node: Any) -> None:
        if self.children is not None:
            self.children.remove(node)
            node.parent = None

    # Read-only navigation

    @property
    def element_children(self) -> list[ElementNode]:
        """Children that are elements, in source order."""
        return [child for child in self.children or () if isinstance(child, ElementNode)]

    def iter_descendants(self) -> Iterator[Any]:
        """Yield every node below this one in document order (pre-order)."""
        stack: list[Any] = list(reversed(self.children or ()))
        while stack:
            node = stack.pop()
            yield node
            if node.children:
                stack.extend(reversed(node.children))

    def query(self, selector: str) -> list[Any]:
        """
        Query this subtree using a CSS selector.

        Args:
            selector: A CSS selector string

        Returns:
            A list of matching elements in document order

        Raises:
            SelectorSyntaxError: If the selector is invalid
        """
        return query(self, selector)

    def to_html(self) -> str:
        """Serialize this node and its subtree to HTML."""
        return serialize(self)

    def to_text(self, separator: str = " ", strip: bool = True) -> str:
        """Return the concatenated text of this node's descendants.

        - `separator` controls how text nodes are joined (default: a single space).
        - `strip=True` strips each text node and drops empty segments.
        """
        parts: list[str] = []
        _to_text_collect(self, parts, strip=strip)
        return separator.join(parts)


class ElementNode(SimpleDomNode):
    __slots__ = ()

    children: list[Any]
    attrs: dict[str, str]

    def __init__(self, name: str, attrs: dict[str, str] | None, namespace: str | None = "html") -> None:
        self.name = name
        self.parent = None
        self.data = None
        self.namespace = namespace
        self.children = []
        self.attrs = attrs if attrs is not None else {}

    def __repr__(self) -> str:
        return f"<ElementNode {self.name} {self.attrs!r}>"

    @property
    def id(self) -> str | None:
        return self.attrs.get("id")

    @property
    def classes(self) -> list[str]:
        return self.attrs.get("class", "").split()


class TextNode:
    __slots__ = ("data", "name", "namespace", "parent")

    data: str
    name: str
    namespace: None
    parent: SimpleDomNode | None

    def __init__(self, data: str) -> None:
        self.data = data
        self.parent = None
        self.name = "#text"
        self.namespace = None

    def __repr__(self) -> str:
        return f"<TextNode {self.data!r}>"

    is_element = False

    @property
    def children(self) -> list[Any]:
        """Return empty list for TextNode (leaf node)."""
        return []

    def to_text(self, separator: str = " ", strip: bool = True) -> str:  # noqa: ARG002
        return self.data.strip() if strip else self.data

    def to_html(self) -> str:
        return serialize(self)
