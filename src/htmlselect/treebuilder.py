"""HTML tree construction.

`TreeBuilder` receives tokens from the tokenizer and maintains the stack of
open elements, the list of active formatting elements and the current
insertion mode. The per-mode token handling lives in
`TreeBuilderModesMixin`; this module holds the state and the shared
algorithms (scopes, implied end tags, formatting reconstruction, the
adoption agency, foster parenting).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .constants import (
    BUTTON_SCOPE_TERMINATORS,
    DEFAULT_SCOPE_TERMINATORS,
    FOREIGN_BREAKOUT_ELEMENTS,
    HTML_ANNOTATION_ENCODINGS,
    HTML_INTEGRATION_POINTS,
    IMPLIED_END_TAGS,
    LIST_ITEM_SCOPE_TERMINATORS,
    MATHML_ATTRIBUTE_ADJUSTMENTS,
    MATHML_TEXT_INTEGRATION_POINTS,
    SPECIAL_ELEMENTS,
    SVG_ATTRIBUTE_ADJUSTMENTS,
    SVG_TAG_NAME_ADJUSTMENTS,
    TABLE_FOSTER_TARGETS,
    TABLE_SCOPE_TERMINATORS,
)
from .errors import generate_error_message
from .node import ElementNode, SimpleDomNode, TextNode
from .tokens import CharacterTokens, CommentToken, DoctypeToken, EOFToken, ParseDiagnostic, Tag
from .treebuilder_modes import TreeBuilderModesMixin
from .treebuilder_utils import FORMAT_MARKER, InsertionMode

if TYPE_CHECKING:
    from collections.abc import Callable

    from .tokenizer import Tokenizer


class TreeBuilder(TreeBuilderModesMixin):
    __slots__ = (
        "active_formatting",
        "document",
        "errors",
        "form_element",
        "head_element",
        "ignore_lf",
        "insert_from_table",
        "mode",
        "open_elements",
        "original_mode",
        "quirks_mode",
        "tokenizer",
    )

    _mode_handlers: dict[InsertionMode, Callable[[TreeBuilder, Any], Any]]

    active_formatting: list[Any]
    document: SimpleDomNode
    errors: list[ParseDiagnostic]
    form_element: ElementNode | None
    head_element: ElementNode | None
    ignore_lf: bool
    insert_from_table: bool
    mode: InsertionMode
    open_elements: list[ElementNode]
    original_mode: InsertionMode | None
    quirks_mode: str
    tokenizer: Tokenizer | None

    def __init__(self) -> None:
        self.document = SimpleDomNode("#document")
        self.mode = InsertionMode.INITIAL
        self.original_mode = None
        self.quirks_mode = "no-quirks"
        self.open_elements = []
        self.active_formatting = []
        self.head_element = None
        self.form_element = None
        self.insert_from_table = False
        self.ignore_lf = False
        self.errors = []
        self.tokenizer = None

    def _parse_error(self, code: str, tag_name: str | None = None) -> None:
        line = column = None
        if self.tokenizer is not None:
            line, column = self.tokenizer.location()
        self.errors.append(ParseDiagnostic(code, line, column, generate_error_message(code, tag_name)))

    # ---------------------
    # Token entry points
    # ---------------------

    def process_token(self, token: Any) -> None:
        self.ignore_lf = False
        if isinstance(token, DoctypeToken):
            self._handle_doctype(token)
            return
        self._dispatch(token)

    def process_characters(self, data: str) -> None:
        if self.ignore_lf:
            self.ignore_lf = False
            if data.startswith("\n"):
                data = data[1:]
        if data:
            self._dispatch(CharacterTokens(data))

    def _dispatch(self, token: Any) -> None:
        if self._should_use_foreign_content(token):
            token = self._process_foreign_content(token)
            if token is None:
                return
        while True:
            result = self._mode_handlers[self.mode](self, token)
            if result is None:
                return
            _, mode, token = result
            self.mode = mode

    def finish(self) -> SimpleDomNode:
        return self.document

    # ---------------------
    # Insertion
    # ---------------------

    def _current_node(self) -> ElementNode | None:
        return self.open_elements[-1] if self.open_elements else None

    def _appropriate_insertion_location(self, override_target: Any = None) -> tuple[Any, Any | None]:
        """Return (parent, before) for the next insertion, applying foster parenting."""
        target = override_target if override_target is not None else self._current_node()
        if target is None:
            return self.document, None
        if not (self.insert_from_table and target.name in TABLE_FOSTER_TARGETS):
            return target, None

        for index in range(len(self.open_elements) - 1, -1, -1):
            node = self.open_elements[index]
            if node.name == "table":
                if node.parent is not None:
                    return node.parent, node
                return self.open_elements[index - 1], None
        return self.open_elements[0], None

    def _create_root(self, attrs: dict[str, str]) -> ElementNode:
        node = ElementNode("html", dict(attrs))
        self.document.append_child(node)
        self.open_elements.append(node)
        return node

    def _insert_element(self, tag: Tag, *, push: bool, namespace: str = "html") -> ElementNode:
        node = ElementNode(tag.name, dict(tag.attrs), namespace)
        parent, before = self._appropriate_insertion_location()
        parent.insert_before(node, before)
        if push:
            self.open_elements.append(node)
        return node

    def _insert_phantom(self, name: str) -> ElementNode:
        return self._insert_element(Tag(Tag.START, name), push=True)

    def _append_text(self, text: str) -> None:
        if not text:
            return
        parent, before = self._appropriate_insertion_location()
        siblings = parent.children
        if before is None:
            previous = siblings[-1] if siblings else None
        else:
            index = siblings.index(before)
            previous = siblings[index - 1] if index else None
        if isinstance(previous, TextNode):
            previous.data += text
            return
        parent.insert_before(TextNode(text), before)

    def _append_comment(self, text: str, parent: Any | None = None) -> None:
        node = SimpleDomNode("#comment", data=text)
        if parent is not None:
            parent.append_child(node)
            return
        target, before = self._appropriate_insertion_location()
        target.insert_before(node, before)

    def _append_comment_to_document(self, text: str) -> None:
        self._append_comment(text, parent=self.document)

    def _add_missing_attributes(self, node: ElementNode, attrs: dict[str, str]) -> None:
        for name, value in attrs.items():
            node.attrs.setdefault(name, value)

    # ---------------------
    # Stack of open elements
    # ---------------------

    def _pop_current(self) -> ElementNode:
        return self.open_elements.pop()

    def _pop_until_inclusive(self, name: str) -> None:
        while self.open_elements:
            node = self.open_elements.pop()
            if node.name == name and node.namespace == "html":
                return

    def _pop_until_any_inclusive(self, names: frozenset[str] | set[str]) -> None:
        while self.open_elements:
            node = self.open_elements.pop()
            if node.name in names and node.namespace == "html":
                return

    def _clear_stack_until(self, names: frozenset[str] | set[str]) -> None:
        while self.open_elements and self.open_elements[-1].name not in names:
            self.open_elements.pop()

    def _remove_from_open_elements(self, node: Any) -> bool:
        for index, current in enumerate(self.open_elements):
            if current is node:
                del self.open_elements[index]
                return True
        return False

    def _is_special_element(self, node: Any) -> bool:
        if node.namespace == "html":
            return node.name in SPECIAL_ELEMENTS
        if node.namespace == "math":
            return node.name == "annotation-xml" or node.name in MATHML_TEXT_INTEGRATION_POINTS
        return (node.namespace, node.name) in HTML_INTEGRATION_POINTS

    def _has_element_in_scope(
        self,
        target: str,
        terminators: frozenset[str] = DEFAULT_SCOPE_TERMINATORS,
        check_integration_points: bool = True,
    ) -> bool:
        for node in reversed(self.open_elements):
            if node.namespace == "html":
                if node.name == target:
                    return True
                if node.name in terminators:
                    return False
            elif check_integration_points and (
                self._is_html_integration_point(node) or self._is_mathml_text_integration_point(node)
            ):
                return False
        return False

    def _has_any_in_scope(self, names: frozenset[str] | set[str]) -> bool:
        return any(self._has_element_in_scope(name) for name in names)

    def _has_element_in_button_scope(self, target: str) -> bool:
        return self._has_element_in_scope(target, BUTTON_SCOPE_TERMINATORS)

    def _has_in_list_item_scope(self, target: str) -> bool:
        return self._has_element_in_scope(target, LIST_ITEM_SCOPE_TERMINATORS)

    def _has_in_table_scope(self, target: str) -> bool:
        return self._has_element_in_scope(target, TABLE_SCOPE_TERMINATORS, check_integration_points=False)

    def _has_in_select_scope(self, target: str) -> bool:
        for node in reversed(self.open_elements):
            if node.name == target:
                return True
            if node.name not in ("optgroup", "option"):
                return False
        return False

    def _generate_implied_end_tags(self, exclude: str | None = None) -> None:
        while self.open_elements:
            name = self.open_elements[-1].name
            if name not in IMPLIED_END_TAGS or name == exclude:
                return
            self.open_elements.pop()

    def _close_p_element(self) -> bool:
        if not self._has_element_in_button_scope("p"):
            return False
        self._generate_implied_end_tags("p")
        if self.open_elements[-1].name != "p":
            self._parse_error("end-tag-too-early", tag_name="p")
        self._pop_until_inclusive("p")
        return True

    def _close_element_by_name(self, name: str) -> None:
        self._generate_implied_end_tags()
        if self.open_elements[-1].name != name:
            self._parse_error("end-tag-too-early", tag_name=name)
        self._pop_until_inclusive(name)

    def _any_other_end_tag(self, name: str) -> None:
        for index in range(len(self.open_elements) - 1, -1, -1):
            node = self.open_elements[index]
            if node.name == name:
                self._generate_implied_end_tags(exclude=name)
                if self.open_elements[-1] is not node:
                    self._parse_error("end-tag-too-early", tag_name=name)
                del self.open_elements[index:]
                return
            if self._is_special_element(node):
                self._parse_error("unexpected-end-tag", tag_name=name)
                return

    def _reset_insertion_mode(self) -> None:
        for index in range(len(self.open_elements) - 1, -1, -1):
            node = self.open_elements[index]
            last = index == 0
            name = node.name
            if name == "select":
                self.mode = InsertionMode.IN_SELECT
                for ancestor in reversed(self.open_elements[:index]):
                    if ancestor.name == "table":
                        self.mode = InsertionMode.IN_SELECT_IN_TABLE
                        break
                return
            if name in ("td", "th") and not last:
                self.mode = InsertionMode.IN_CELL
                return
            if name == "tr":
                self.mode = InsertionMode.IN_ROW
                return
            if name in ("tbody", "thead", "tfoot"):
                self.mode = InsertionMode.IN_TABLE_BODY
                return
            if name == "caption":
                self.mode = InsertionMode.IN_CAPTION
                return
            if name == "colgroup":
                self.mode = InsertionMode.IN_COLUMN_GROUP
                return
            if name == "table":
                self.mode = InsertionMode.IN_TABLE
                return
            if name == "head" and not last:
                self.mode = InsertionMode.IN_HEAD
                return
            if name == "body":
                self.mode = InsertionMode.IN_BODY
                return
            if name == "html":
                self.mode = InsertionMode.BEFORE_HEAD if self.head_element is None else InsertionMode.AFTER_HEAD
                return
        self.mode = InsertionMode.IN_BODY

    # ---------------------
    # Active formatting elements
    # ---------------------

    def _push_formatting_marker(self) -> None:
        self.active_formatting.append(FORMAT_MARKER)

    def _clear_active_formatting_up_to_marker(self) -> None:
        while self.active_formatting:
            if self.active_formatting.pop() is FORMAT_MARKER:
                return

    def _find_active_formatting_index(self, name: str) -> int | None:
        for index in range(len(self.active_formatting) - 1, -1, -1):
            entry = self.active_formatting[index]
            if entry is FORMAT_MARKER:
                return None
            if entry.name == name:
                return index
        return None

    def _append_active_formatting_entry(self, node: ElementNode) -> None:
        # At most three identical entries after the last marker
        matches: list[int] = []
        for index in range(len(self.active_formatting) - 1, -1, -1):
            entry = self.active_formatting[index]
            if entry is FORMAT_MARKER:
                break
            if entry.name == node.name and entry.namespace == node.namespace and entry.attrs == node.attrs:
                matches.append(index)
        if len(matches) >= 3:
            del self.active_formatting[matches[-1]]
        self.active_formatting.append(node)

    def _reconstruct_active_formatting_elements(self) -> None:
        active = self.active_formatting
        if not active:
            return
        last = active[-1]
        if last is FORMAT_MARKER or any(node is last for node in self.open_elements):
            return

        index = len(active) - 1
        while index > 0:
            index -= 1
            entry = active[index]
            if entry is FORMAT_MARKER or any(node is entry for node in self.open_elements):
                index += 1
                break

        for position in range(index, len(active)):
            entry = active[position]
            active[position] = self._insert_element(Tag(Tag.START, entry.name, entry.attrs), push=True)

    def _adoption_agency(self, subject: str) -> bool:
        """Run the adoption agency algorithm for end tag `subject`.

        Returns False when the caller should fall back to the "any other
        end tag" steps instead.
        """
        current = self.open_elements[-1]
        if current.name == subject and not any(entry is current for entry in self.active_formatting):
            self.open_elements.pop()
            return True

        for _ in range(8):
            fe_index = self._find_active_formatting_index(subject)
            if fe_index is None:
                return False
            formatting_element = self.active_formatting[fe_index]

            if not any(node is formatting_element for node in self.open_elements):
                self._parse_error("adoption-agency-1.3", tag_name=subject)
                del self.active_formatting[fe_index]
                return True
            if not self._has_element_in_scope(formatting_element.name):
                self._parse_error("adoption-agency-1.3", tag_name=subject)
                return True
            if formatting_element is not self.open_elements[-1]:
                self._parse_error("adoption-agency-1.3", tag_name=subject)

            fe_stack_index = next(i for i, node in enumerate(self.open_elements) if node is formatting_element)
            furthest_block = None
            for node in self.open_elements[fe_stack_index + 1 :]:
                if self._is_special_element(node):
                    furthest_block = node
                    break

            if furthest_block is None:
                del self.open_elements[fe_stack_index:]
                del self.active_formatting[fe_index]
                return True

            common_ancestor = self.open_elements[fe_stack_index - 1]
            bookmark = fe_index
            last_node = furthest_block
            node_index = next(i for i, node in enumerate(self.open_elements) if node is furthest_block)
            inner = 0
            while True:
                inner += 1
                node_index -= 1
                node = self.open_elements[node_index]
                if node is formatting_element:
                    break
                active_index = next((i for i, e in enumerate(self.active_formatting) if e is node), None)
                if inner > 3 and active_index is not None:
                    del self.active_formatting[active_index]
                    if active_index < bookmark:
                        bookmark -= 1
                    active_index = None
                if active_index is None:
                    del self.open_elements[node_index]
                    continue

                replacement = ElementNode(node.name, dict(node.attrs), node.namespace)
                self.active_formatting[active_index] = replacement
                self.open_elements[node_index] = replacement
                if last_node is furthest_block:
                    bookmark = active_index + 1
                if last_node.parent is not None:
                    last_node.parent.remove_child(last_node)
                replacement.append_child(last_node)
                last_node = replacement

            if last_node.parent is not None:
                last_node.parent.remove_child(last_node)
            parent, before = self._appropriate_insertion_location(common_ancestor)
            parent.insert_before(last_node, before)

            new_element = ElementNode(formatting_element.name, dict(formatting_element.attrs), formatting_element.namespace)
            for child in list(furthest_block.children):
                furthest_block.remove_child(child)
                new_element.append_child(child)
            furthest_block.append_child(new_element)

            fe_active = next(i for i, e in enumerate(self.active_formatting) if e is formatting_element)
            del self.active_formatting[fe_active]
            if fe_active < bookmark:
                bookmark -= 1
            self.active_formatting.insert(bookmark, new_element)

            self._remove_from_open_elements(formatting_element)
            fb_index = next(i for i, node in enumerate(self.open_elements) if node is furthest_block)
            self.open_elements.insert(fb_index + 1, new_element)
        return True

    # ---------------------
    # Foreign content
    # ---------------------

    def _foreign_attributes(self, namespace: str, attrs: dict[str, str]) -> dict[str, str]:
        if not attrs:
            return {}
        if namespace == "svg":
            adjustments = SVG_ATTRIBUTE_ADJUSTMENTS
        elif namespace == "math":
            adjustments = MATHML_ATTRIBUTE_ADJUSTMENTS
        else:
            return dict(attrs)
        return {adjustments.get(name, name): value for name, value in attrs.items()}

    def _is_html_integration_point(self, node: Any) -> bool:
        if node.namespace == "math" and node.name == "annotation-xml":
            encoding = node.attrs.get("encoding")
            return encoding is not None and encoding.lower() in HTML_ANNOTATION_ENCODINGS
        return (node.namespace, node.name) in HTML_INTEGRATION_POINTS

    def _is_mathml_text_integration_point(self, node: Any) -> bool:
        return node.namespace == "math" and node.name in MATHML_TEXT_INTEGRATION_POINTS

    def _should_use_foreign_content(self, token: Any) -> bool:
        current = self._current_node()
        if current is None or current.namespace == "html" or isinstance(token, EOFToken):
            return False
        is_start = isinstance(token, Tag) and token.kind == Tag.START
        if self._is_mathml_text_integration_point(current):
            if isinstance(token, CharacterTokens):
                return False
            if is_start and token.name not in ("mglyph", "malignmark"):
                return False
        if current.namespace == "math" and current.name == "annotation-xml" and is_start and token.name == "svg":
            return False
        if self._is_html_integration_point(current):
            if isinstance(token, CharacterTokens):
                return False
            if is_start:
                return False
        return True

    def _pop_until_html_or_integration_point(self) -> None:
        while self.open_elements:
            node = self.open_elements[-1]
            if node.namespace == "html" or self._is_html_integration_point(node):
                return
            self.open_elements.pop()

    def _process_foreign_content(self, token: Any) -> Any | None:
        """Handle a token inside svg/math content.

        Returns None when the token was consumed, or the token itself when
        it has to be reprocessed by the current HTML insertion mode.
        """
        if isinstance(token, CharacterTokens):
            self._append_text(token.data)
            return None
        if isinstance(token, CommentToken):
            self._append_comment(token.data)
            return None

        if token.kind == Tag.START:
            breaks_out = token.name in FOREIGN_BREAKOUT_ELEMENTS or (
                token.name == "font" and any(attr in token.attrs for attr in ("color", "face", "size"))
            )
            if breaks_out:
                self._parse_error("unexpected-start-tag", tag_name=token.name)
                self._pop_until_html_or_integration_point()
                return token
            namespace = self.open_elements[-1].namespace or "html"
            name = token.name
            if namespace == "svg":
                name = SVG_TAG_NAME_ADJUSTMENTS.get(name, name)
            attrs = self._foreign_attributes(namespace, token.attrs)
            self._insert_element(Tag(Tag.START, name, attrs), push=True, namespace=namespace)
            if token.self_closing:
                self.open_elements.pop()
            return None

        if token.name in ("br", "p"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            self._pop_until_html_or_integration_point()
            return token

        for index in range(len(self.open_elements) - 1, 0, -1):
            node = self.open_elements[index]
            if node.namespace == "html":
                return token
            if node.name.lower() == token.name:
                del self.open_elements[index:]
                return None
        return None
