from __future__ import annotations

# mypy: disable-error-code="attr-defined, has-type"

from typing import TYPE_CHECKING, Any

from .constants import (
    BLOCK_END_ELEMENTS,
    CLOSES_P_ELEMENTS,
    FORMATTING_ELEMENTS,
    HEADING_ELEMENTS,
    TABLE_CELL_ELEMENTS,
    TABLE_SECTION_ELEMENTS,
    VOID_ELEMENTS,
)
from .node import SimpleDomNode
from .tokens import CharacterTokens, CommentToken, EOFToken, Tag
from .treebuilder_utils import InsertionMode, doctype_error_and_quirks, is_all_whitespace, split_leading_whitespace

if TYPE_CHECKING:
    from collections.abc import Callable

_HEAD_CONTENT_IN_BODY = frozenset(
    {"base", "basefont", "bgsound", "link", "meta", "noframes", "script", "style", "title"}
)
_HEAD_CONTENT_AFTER_HEAD = _HEAD_CONTENT_IN_BODY - {"basefont", "bgsound"}
_TABLE_STRUCTURE = frozenset({"caption", "col", "colgroup", "tbody", "td", "tfoot", "th", "thead", "tr"})
_SELECT_IN_TABLE_BREAKOUT = frozenset({"caption", "table", "tbody", "tfoot", "thead", "tr", "td", "th"})
_TABLE_MODES = frozenset(
    {
        InsertionMode.IN_TABLE,
        InsertionMode.IN_CAPTION,
        InsertionMode.IN_TABLE_BODY,
        InsertionMode.IN_ROW,
        InsertionMode.IN_CELL,
    }
)
_ALLOWED_OPEN_AT_EOF = frozenset(
    {"dd", "dt", "li", "optgroup", "option", "p", "rb", "rp", "rt", "rtc", "tbody", "td", "tfoot", "th", "thead", "tr", "body", "html"}
)


def _is_start(token: Any, *names: str) -> bool:
    return isinstance(token, Tag) and token.kind == Tag.START and (not names or token.name in names)


def _is_end(token: Any, *names: str) -> bool:
    return isinstance(token, Tag) and token.kind == Tag.END and (not names or token.name in names)


class TreeBuilderModesMixin:
    def _handle_doctype(self, token: Any) -> None:
        if self.mode != InsertionMode.INITIAL:
            self._parse_error("unexpected-doctype")
            return
        parse_error, self.quirks_mode = doctype_error_and_quirks(token.doctype)
        if parse_error:
            self._parse_error("unknown-doctype")
        node = SimpleDomNode("!doctype", data=token.doctype)
        self.document.append_child(node)
        self.mode = InsertionMode.BEFORE_HTML

    # ---------------------
    # Before <body>
    # ---------------------

    def _mode_initial(self, token: Any) -> Any:
        if isinstance(token, CharacterTokens):
            _, rest = split_leading_whitespace(token.data)
            if not rest:
                return None
            self._parse_error("expected-doctype-but-got-chars")
            self.quirks_mode = "quirks"
            return ("reprocess", InsertionMode.BEFORE_HTML, CharacterTokens(rest))
        if isinstance(token, CommentToken):
            self._append_comment_to_document(token.data)
            return None
        if isinstance(token, EOFToken):
            self._parse_error("expected-doctype-but-got-eof")
        elif token.kind == Tag.START:
            self._parse_error("expected-doctype-but-got-start-tag", tag_name=token.name)
        else:
            self._parse_error("expected-doctype-but-got-end-tag", tag_name=token.name)
        self.quirks_mode = "quirks"
        return ("reprocess", InsertionMode.BEFORE_HTML, token)

    def _mode_before_html(self, token: Any) -> Any:
        if isinstance(token, CharacterTokens):
            _, rest = split_leading_whitespace(token.data)
            if not rest:
                return None
            token = CharacterTokens(rest)
        elif isinstance(token, CommentToken):
            self._append_comment_to_document(token.data)
            return None
        elif _is_start(token, "html"):
            self._create_root(token.attrs)
            self.mode = InsertionMode.BEFORE_HEAD
            return None
        elif _is_end(token) and token.name not in ("head", "body", "html", "br"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None

        self._create_root({})
        return ("reprocess", InsertionMode.BEFORE_HEAD, token)

    def _mode_before_head(self, token: Any) -> Any:
        if isinstance(token, CharacterTokens):
            _, rest = split_leading_whitespace(token.data)
            if not rest:
                return None
            token = CharacterTokens(rest)
        elif isinstance(token, CommentToken):
            self._append_comment(token.data)
            return None
        elif _is_start(token, "html"):
            self._add_missing_attributes(self.open_elements[0], token.attrs)
            return None
        elif _is_start(token, "head"):
            self.head_element = self._insert_element(token, push=True)
            self.mode = InsertionMode.IN_HEAD
            return None
        elif _is_end(token) and token.name not in ("head", "body", "html", "br"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None

        self.head_element = self._insert_phantom("head")
        return ("reprocess", InsertionMode.IN_HEAD, token)

    def _mode_in_head(self, token: Any) -> Any:
        if isinstance(token, CharacterTokens):
            leading, rest = split_leading_whitespace(token.data)
            self._append_text(leading)
            if not rest:
                return None
            self._pop_current()
            return ("reprocess", InsertionMode.AFTER_HEAD, CharacterTokens(rest))
        if isinstance(token, CommentToken):
            self._append_comment(token.data)
            return None
        if _is_start(token, "html"):
            return self._handle_body_start_html(token)
        if _is_start(token, "base", "basefont", "bgsound", "link", "meta"):
            self._insert_element(token, push=False)
            return None
        if _is_start(token, "title", "noscript", "noframes", "style", "script"):
            self._insert_element(token, push=True)
            self.original_mode = self.mode
            self.mode = InsertionMode.TEXT
            return None
        if _is_start(token, "head"):
            self._parse_error("unexpected-start-tag-ignored", tag_name=token.name)
            return None
        if _is_end(token, "head"):
            self._pop_current()
            self.mode = InsertionMode.AFTER_HEAD
            return None
        if _is_end(token) and token.name not in ("body", "html", "br"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None

        self._pop_current()
        return ("reprocess", InsertionMode.AFTER_HEAD, token)

    def _mode_after_head(self, token: Any) -> Any:
        if isinstance(token, CharacterTokens):
            leading, rest = split_leading_whitespace(token.data)
            self._append_text(leading)
            if not rest:
                return None
            token = CharacterTokens(rest)
        elif isinstance(token, CommentToken):
            self._append_comment(token.data)
            return None
        elif _is_start(token, "html"):
            return self._handle_body_start_html(token)
        elif _is_start(token, "body"):
            self._insert_element(token, push=True)
            self.mode = InsertionMode.IN_BODY
            return None
        elif _is_start(token) and token.name in _HEAD_CONTENT_AFTER_HEAD:
            self._parse_error("unexpected-start-tag", tag_name=token.name)
            head = self.head_element
            self.open_elements.append(head)
            self._mode_in_head(token)
            self._remove_from_open_elements(head)
            return None
        elif _is_start(token, "head"):
            self._parse_error("unexpected-start-tag-ignored", tag_name=token.name)
            return None
        elif _is_end(token) and token.name not in ("body", "html", "br"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None

        self._insert_phantom("body")
        return ("reprocess", InsertionMode.IN_BODY, token)

    def _mode_text(self, token: Any) -> Any:
        if isinstance(token, CharacterTokens):
            self._append_text(token.data)
            return None
        if isinstance(token, EOFToken):
            self._parse_error("expected-closing-tag-but-got-eof", tag_name=self.open_elements[-1].name)
            self._pop_current()
            return ("reprocess", self.original_mode, token)
        # Only the matching end tag can arrive here
        self._pop_current()
        self.mode = self.original_mode
        return None

    # ---------------------
    # In body
    # ---------------------

    def _mode_in_body(self, token: Any) -> Any:
        if isinstance(token, CharacterTokens):
            self._reconstruct_active_formatting_elements()
            self._append_text(token.data)
            return None
        if isinstance(token, CommentToken):
            self._append_comment(token.data)
            return None
        if isinstance(token, EOFToken):
            return self._handle_eof_in_body(token)

        if token.kind == Tag.START:
            if token.self_closing and token.name not in VOID_ELEMENTS:
                self._parse_error("non-void-html-element-start-tag-with-trailing-solidus", tag_name=token.name)
            handler = _BODY_START_HANDLERS.get(token.name, TreeBuilderModesMixin._handle_body_start_default)
            return handler(self, token)

        handler = _BODY_END_HANDLERS.get(token.name)
        if handler is not None:
            return handler(self, token)
        if token.name in FORMATTING_ELEMENTS:
            if not self._adoption_agency(token.name):
                self._any_other_end_tag(token.name)
            return None
        self._any_other_end_tag(token.name)
        return None

    def _handle_eof_in_body(self, token: Any) -> Any:
        for node in self.open_elements:
            if node.name not in _ALLOWED_OPEN_AT_EOF:
                self._parse_error("expected-closing-tag-but-got-eof", tag_name=node.name)
                break
        return None

    def _handle_body_start_html(self, token: Any) -> Any:
        self._parse_error("unexpected-start-tag", tag_name=token.name)
        self._add_missing_attributes(self.open_elements[0], token.attrs)
        return None

    def _handle_body_start_body(self, token: Any) -> Any:
        self._parse_error("unexpected-start-tag", tag_name=token.name)
        if len(self.open_elements) > 1 and self.open_elements[1].name == "body":
            self._add_missing_attributes(self.open_elements[1], token.attrs)
        return None

    def _handle_body_start_in_head(self, token: Any) -> Any:
        return self._mode_in_head(token)

    def _handle_body_start_ignored(self, token: Any) -> Any:
        self._parse_error("unexpected-start-tag-ignored", tag_name=token.name)
        return None

    def _handle_body_start_block_with_p(self, token: Any) -> Any:
        self._close_p_element()
        self._insert_element(token, push=True)
        return None

    def _handle_body_start_heading(self, token: Any) -> Any:
        self._close_p_element()
        if self.open_elements[-1].name in HEADING_ELEMENTS:
            self._parse_error("unexpected-start-tag-implies-end-tag", tag_name=token.name)
            self._pop_current()
        self._insert_element(token, push=True)
        return None

    def _handle_body_start_pre_listing(self, token: Any) -> Any:
        self._close_p_element()
        self._insert_element(token, push=True)
        self.ignore_lf = True
        return None

    def _handle_body_start_form(self, token: Any) -> Any:
        if self.form_element is not None:
            self._parse_error("unexpected-start-tag-ignored", tag_name=token.name)
            return None
        self._close_p_element()
        self.form_element = self._insert_element(token, push=True)
        return None

    def _handle_body_start_list_item(self, token: Any) -> Any:
        # <li> closes an open <li>; <dd>/<dt> close an open <dd> or <dt>
        closes = ("li",) if token.name == "li" else ("dd", "dt")
        for node in reversed(self.open_elements):
            if node.name in closes:
                self._generate_implied_end_tags(exclude=node.name)
                if self.open_elements[-1].name != node.name:
                    self._parse_error("unexpected-start-tag-implies-end-tag", tag_name=token.name)
                self._pop_until_inclusive(node.name)
                break
            if self._is_special_element(node) and node.name not in ("address", "div", "p"):
                break
        self._close_p_element()
        self._insert_element(token, push=True)
        return None

    def _handle_body_start_plaintext(self, token: Any) -> Any:
        self._close_p_element()
        self._insert_element(token, push=True)
        return None

    def _handle_body_start_button(self, token: Any) -> Any:
        if self._has_element_in_scope("button"):
            self._parse_error("unexpected-start-tag-implies-end-tag", tag_name=token.name)
            self._generate_implied_end_tags()
            self._pop_until_inclusive("button")
        self._reconstruct_active_formatting_elements()
        self._insert_element(token, push=True)
        return None

    def _handle_body_start_a(self, token: Any) -> Any:
        index = self._find_active_formatting_index("a")
        if index is not None:
            self._parse_error("unexpected-start-tag-implies-end-tag", tag_name=token.name)
            existing = self.active_formatting[index]
            self._adoption_agency("a")
            for position, entry in enumerate(self.active_formatting):
                if entry is existing:
                    del self.active_formatting[position]
                    break
            self._remove_from_open_elements(existing)
        return self._handle_body_start_formatting(token)

    def _handle_body_start_nobr(self, token: Any) -> Any:
        self._reconstruct_active_formatting_elements()
        if self._has_element_in_scope("nobr"):
            self._parse_error("unexpected-start-tag-implies-end-tag", tag_name=token.name)
            self._adoption_agency("nobr")
        return self._handle_body_start_formatting(token)

    def _handle_body_start_formatting(self, token: Any) -> Any:
        self._reconstruct_active_formatting_elements()
        node = self._insert_element(token, push=True)
        self._append_active_formatting_entry(node)
        return None

    def _handle_body_start_applet_like(self, token: Any) -> Any:
        self._reconstruct_active_formatting_elements()
        self._insert_element(token, push=True)
        self._push_formatting_marker()
        return None

    def _handle_body_start_table(self, token: Any) -> Any:
        if self.quirks_mode != "quirks":
            self._close_p_element()
        self._insert_element(token, push=True)
        self.mode = InsertionMode.IN_TABLE
        return None

    def _handle_body_start_void_with_formatting(self, token: Any) -> Any:
        if token.name == "image":
            self._parse_error("unexpected-start-tag", tag_name=token.name)
            token = Tag(Tag.START, "img", token.attrs, token.self_closing)
        self._reconstruct_active_formatting_elements()
        self._insert_element(token, push=False)
        return None

    def _handle_body_start_simple_void(self, token: Any) -> Any:
        self._insert_element(token, push=False)
        return None

    def _handle_body_start_hr(self, token: Any) -> Any:
        self._close_p_element()
        self._insert_element(token, push=False)
        return None

    def _handle_body_start_textarea(self, token: Any) -> Any:
        self._insert_element(token, push=True)
        self.ignore_lf = True
        self.original_mode = self.mode
        self.mode = InsertionMode.TEXT
        return None

    def _handle_body_start_rawtext(self, token: Any) -> Any:
        if token.name == "xmp":
            self._close_p_element()
            self._reconstruct_active_formatting_elements()
        self._insert_element(token, push=True)
        self.original_mode = self.mode
        self.mode = InsertionMode.TEXT
        return None

    def _handle_body_start_select(self, token: Any) -> Any:
        self._reconstruct_active_formatting_elements()
        self._insert_element(token, push=True)
        self.mode = InsertionMode.IN_SELECT_IN_TABLE if self.mode in _TABLE_MODES else InsertionMode.IN_SELECT
        return None

    def _handle_body_start_option(self, token: Any) -> Any:
        if self.open_elements[-1].name == "option":
            self._pop_current()
        self._reconstruct_active_formatting_elements()
        self._insert_element(token, push=True)
        return None

    def _handle_body_start_ruby_base(self, token: Any) -> Any:
        if self._has_element_in_scope("ruby"):
            self._generate_implied_end_tags(exclude="rtc" if token.name in ("rp", "rt") else None)
        self._insert_element(token, push=True)
        return None

    def _handle_body_start_foreign(self, token: Any) -> Any:
        self._reconstruct_active_formatting_elements()
        namespace = "svg" if token.name == "svg" else "math"
        attrs = self._foreign_attributes(namespace, token.attrs)
        self._insert_element(Tag(Tag.START, token.name, attrs), push=True, namespace=namespace)
        if token.self_closing:
            self._pop_current()
        return None

    def _handle_body_start_default(self, token: Any) -> Any:
        self._reconstruct_active_formatting_elements()
        self._insert_element(token, push=True)
        return None

    def _handle_body_end_body(self, token: Any) -> Any:
        if not self._has_element_in_scope("body"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        self.mode = InsertionMode.AFTER_BODY
        return None

    def _handle_body_end_html(self, token: Any) -> Any:
        if not self._has_element_in_scope("body"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        return ("reprocess", InsertionMode.AFTER_BODY, token)

    def _handle_body_end_block(self, token: Any) -> Any:
        if not self._has_element_in_scope(token.name):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        self._close_element_by_name(token.name)
        return None

    def _handle_body_end_form(self, token: Any) -> Any:
        node = self.form_element
        self.form_element = None
        if node is None or not self._has_element_in_scope("form"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        self._generate_implied_end_tags()
        if self.open_elements[-1] is not node:
            self._parse_error("end-tag-too-early", tag_name=token.name)
        self._remove_from_open_elements(node)
        return None

    def _handle_body_end_p(self, token: Any) -> Any:
        if not self._has_element_in_button_scope("p"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            self._insert_phantom("p")
        self._close_p_element()
        return None

    def _handle_body_end_li(self, token: Any) -> Any:
        if not self._has_in_list_item_scope("li"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        self._generate_implied_end_tags(exclude="li")
        if self.open_elements[-1].name != "li":
            self._parse_error("end-tag-too-early", tag_name=token.name)
        self._pop_until_inclusive("li")
        return None

    def _handle_body_end_dd_dt(self, token: Any) -> Any:
        if not self._has_element_in_scope(token.name):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        self._generate_implied_end_tags(exclude=token.name)
        if self.open_elements[-1].name != token.name:
            self._parse_error("end-tag-too-early", tag_name=token.name)
        self._pop_until_inclusive(token.name)
        return None

    def _handle_body_end_heading(self, token: Any) -> Any:
        if not self._has_any_in_scope(HEADING_ELEMENTS):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        self._generate_implied_end_tags()
        if self.open_elements[-1].name != token.name:
            self._parse_error("end-tag-too-early", tag_name=token.name)
        self._pop_until_any_inclusive(HEADING_ELEMENTS)
        return None

    def _handle_body_end_applet_like(self, token: Any) -> Any:
        if not self._has_element_in_scope(token.name):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        self._close_element_by_name(token.name)
        self._clear_active_formatting_up_to_marker()
        return None

    def _handle_body_end_br(self, token: Any) -> Any:
        self._parse_error("unexpected-end-tag", tag_name=token.name)
        return self._handle_body_start_void_with_formatting(Tag(Tag.START, "br"))

    # ---------------------
    # Tables
    # ---------------------

    def _foster_in_body(self, token: Any) -> Any:
        self.insert_from_table = True
        try:
            return self._mode_in_body(token)
        finally:
            self.insert_from_table = False

    def _mode_in_table(self, token: Any) -> Any:
        if isinstance(token, CharacterTokens):
            if self.open_elements[-1].name in ("table", "tbody", "tfoot", "thead", "tr"):
                if is_all_whitespace(token.data):
                    self._append_text(token.data)
                    return None
                self._parse_error("foster-parenting-character")
                return self._foster_in_body(token)
            return self._mode_in_body(token)
        if isinstance(token, CommentToken):
            self._append_comment(token.data)
            return None
        if isinstance(token, EOFToken):
            return self._mode_in_body(token)

        name = token.name
        if token.kind == Tag.START:
            if name == "caption":
                self._clear_stack_until({"table", "template", "html"})
                self._push_formatting_marker()
                self._insert_element(token, push=True)
                self.mode = InsertionMode.IN_CAPTION
                return None
            if name == "colgroup":
                self._clear_stack_until({"table", "template", "html"})
                self._insert_element(token, push=True)
                self.mode = InsertionMode.IN_COLUMN_GROUP
                return None
            if name == "col":
                self._clear_stack_until({"table", "template", "html"})
                self._insert_phantom("colgroup")
                return ("reprocess", InsertionMode.IN_COLUMN_GROUP, token)
            if name in TABLE_SECTION_ELEMENTS:
                self._clear_stack_until({"table", "template", "html"})
                self._insert_element(token, push=True)
                self.mode = InsertionMode.IN_TABLE_BODY
                return None
            if name in ("td", "th", "tr"):
                self._clear_stack_until({"table", "template", "html"})
                self._insert_phantom("tbody")
                return ("reprocess", InsertionMode.IN_TABLE_BODY, token)
            if name == "table":
                self._parse_error("unexpected-start-tag-implies-end-tag", tag_name=name)
                if not self._has_in_table_scope("table"):
                    return None
                self._pop_until_inclusive("table")
                self._reset_insertion_mode()
                return ("reprocess", self.mode, token)
            if name in ("style", "script"):
                return self._mode_in_head(token)
            if name == "input" and token.attrs.get("type", "").lower() == "hidden":
                self._parse_error("unexpected-start-tag", tag_name=name)
                self._insert_element(token, push=False)
                return None
            if name == "form":
                self._parse_error("unexpected-start-tag", tag_name=name)
                if self.form_element is None:
                    self.form_element = self._insert_element(token, push=False)
                return None
            self._parse_error("foster-parenting-start-tag", tag_name=name)
            return self._foster_in_body(token)

        if name == "table":
            if not self._has_in_table_scope("table"):
                self._parse_error("unexpected-end-tag", tag_name=name)
                return None
            self._pop_until_inclusive("table")
            self._reset_insertion_mode()
            return None
        if name in _TABLE_STRUCTURE or name in ("body", "html"):
            self._parse_error("unexpected-end-tag", tag_name=name)
            return None
        self._parse_error("unexpected-end-tag", tag_name=name)
        return self._foster_in_body(token)

    def _mode_in_caption(self, token: Any) -> Any:
        if _is_end(token, "caption"):
            self._close_caption_element()
            return None
        if (_is_start(token) and token.name in _TABLE_STRUCTURE) or _is_end(token, "table"):
            if self._close_caption_element():
                return ("reprocess", InsertionMode.IN_TABLE, token)
            return None
        if _is_end(token) and token.name in (_TABLE_STRUCTURE - {"caption"}) | {"body", "html"}:
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        return self._mode_in_body(token)

    def _close_caption_element(self) -> bool:
        if not self._has_in_table_scope("caption"):
            self._parse_error("unexpected-end-tag", tag_name="caption")
            return False
        self._close_element_by_name("caption")
        self._clear_active_formatting_up_to_marker()
        self.mode = InsertionMode.IN_TABLE
        return True

    def _mode_in_column_group(self, token: Any) -> Any:
        if isinstance(token, CharacterTokens):
            leading, rest = split_leading_whitespace(token.data)
            self._append_text(leading)
            if not rest:
                return None
            token = CharacterTokens(rest)
        elif isinstance(token, CommentToken):
            self._append_comment(token.data)
            return None
        elif isinstance(token, EOFToken):
            return self._mode_in_body(token)
        elif _is_start(token, "col"):
            self._insert_element(token, push=False)
            return None
        elif _is_end(token, "col"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        elif _is_end(token, "colgroup"):
            if self.open_elements[-1].name != "colgroup":
                self._parse_error("unexpected-end-tag", tag_name=token.name)
                return None
            self._pop_current()
            self.mode = InsertionMode.IN_TABLE
            return None

        if self.open_elements[-1].name != "colgroup":
            self._parse_error("unexpected-start-tag-ignored", tag_name=getattr(token, "name", None))
            return None
        self._pop_current()
        return ("reprocess", InsertionMode.IN_TABLE, token)

    def _mode_in_table_body(self, token: Any) -> Any:
        if _is_start(token, "tr"):
            self._clear_stack_until({"tbody", "tfoot", "thead", "template", "html"})
            self._insert_element(token, push=True)
            self.mode = InsertionMode.IN_ROW
            return None
        if _is_start(token, "td", "th"):
            self._parse_error("unexpected-start-tag", tag_name=token.name)
            self._clear_stack_until({"tbody", "tfoot", "thead", "template", "html"})
            self._insert_phantom("tr")
            return ("reprocess", InsertionMode.IN_ROW, token)
        if _is_end(token) and token.name in TABLE_SECTION_ELEMENTS:
            if not self._has_in_table_scope(token.name):
                self._parse_error("unexpected-end-tag", tag_name=token.name)
                return None
            self._clear_stack_until({"tbody", "tfoot", "thead", "template", "html"})
            self._pop_current()
            self.mode = InsertionMode.IN_TABLE
            return None
        if (_is_start(token) and token.name in ("caption", "col", "colgroup", "tbody", "tfoot", "thead")) or _is_end(
            token, "table"
        ):
            if not any(self._has_in_table_scope(name) for name in TABLE_SECTION_ELEMENTS):
                self._parse_error("unexpected-end-tag" if token.kind == Tag.END else "unexpected-start-tag", tag_name=token.name)
                return None
            self._clear_stack_until({"tbody", "tfoot", "thead", "template", "html"})
            self._pop_current()
            return ("reprocess", InsertionMode.IN_TABLE, token)
        if _is_end(token, "body", "caption", "col", "colgroup", "html", "td", "th", "tr"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        return self._mode_in_table(token)

    def _mode_in_row(self, token: Any) -> Any:
        if _is_start(token) and token.name in TABLE_CELL_ELEMENTS:
            self._clear_stack_until({"tr", "template", "html"})
            self._insert_element(token, push=True)
            self._push_formatting_marker()
            self.mode = InsertionMode.IN_CELL
            return None
        if _is_end(token, "tr"):
            self._end_tr_element()
            return None
        if (_is_start(token) and token.name in ("caption", "col", "colgroup", "tbody", "tfoot", "thead", "tr")) or _is_end(
            token, "table"
        ):
            if self._end_tr_element():
                return ("reprocess", InsertionMode.IN_TABLE_BODY, token)
            return None
        if _is_end(token) and token.name in TABLE_SECTION_ELEMENTS:
            if not self._has_in_table_scope(token.name):
                self._parse_error("unexpected-end-tag", tag_name=token.name)
                return None
            if self._end_tr_element():
                return ("reprocess", InsertionMode.IN_TABLE_BODY, token)
            return None
        if _is_end(token, "body", "caption", "col", "colgroup", "html", "td", "th"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        return self._mode_in_table(token)

    def _end_tr_element(self) -> bool:
        if not self._has_in_table_scope("tr"):
            self._parse_error("unexpected-end-tag", tag_name="tr")
            return False
        self._clear_stack_until({"tr", "template", "html"})
        self._pop_current()
        self.mode = InsertionMode.IN_TABLE_BODY
        return True

    def _mode_in_cell(self, token: Any) -> Any:
        if _is_end(token) and token.name in TABLE_CELL_ELEMENTS:
            if not self._has_in_table_scope(token.name):
                self._parse_error("unexpected-end-tag", tag_name=token.name)
                return None
            self._end_table_cell(token.name)
            return None
        if _is_start(token) and token.name in _TABLE_STRUCTURE:
            if not (self._has_in_table_scope("td") or self._has_in_table_scope("th")):
                self._parse_error("unexpected-start-tag-ignored", tag_name=token.name)
                return None
            self._close_table_cell()
            return ("reprocess", self.mode, token)
        if _is_end(token, "body", "caption", "col", "colgroup", "html"):
            self._parse_error("unexpected-end-tag", tag_name=token.name)
            return None
        if _is_end(token, "table", "tbody", "tfoot", "thead", "tr"):
            if not self._has_in_table_scope(token.name):
                self._parse_error("unexpected-end-tag", tag_name=token.name)
                return None
            self._close_table_cell()
            return ("reprocess", self.mode, token)
        return self._mode_in_body(token)

    def _end_table_cell(self, name: str) -> None:
        self._close_element_by_name(name)
        self._clear_active_formatting_up_to_marker()
        self.mode = InsertionMode.IN_ROW

    def _close_table_cell(self) -> None:
        self._end_table_cell("td" if self._has_in_table_scope("td") else "th")

    # ---------------------
    # Select
    # ---------------------

    def _mode_in_select(self, token: Any) -> Any:
        if isinstance(token, CharacterTokens):
            self._append_text(token.data)
            return None
        if isinstance(token, CommentToken):
            self._append_comment(token.data)
            return None
        if isinstance(token, EOFToken):
            return self._mode_in_body(token)

        name = token.name
        current = self.open_elements[-1]
        if token.kind == Tag.START:
            if name == "html":
                return self._handle_body_start_html(token)
            if name == "option":
                if current.name == "option":
                    self._pop_current()
                self._insert_element(token, push=True)
                return None
            if name in ("optgroup", "hr"):
                if self.open_elements[-1].name == "option":
                    self._pop_current()
                if self.open_elements[-1].name == "optgroup":
                    self._pop_current()
                self._insert_element(token, push=name == "optgroup")
                return None
            if name in ("select", "input", "keygen", "textarea"):
                self._parse_error("unexpected-start-tag-implies-end-tag", tag_name=name)
                if not self._has_in_select_scope("select"):
                    return None
                self._pop_until_inclusive("select")
                self._reset_insertion_mode()
                if name == "select":
                    return None
                return ("reprocess", self.mode, token)
            if name in ("script", "template"):
                return self._mode_in_head(token)
            self._parse_error("unexpected-start-tag-ignored", tag_name=name)
            return None

        if name == "optgroup":
            if current.name == "option" and len(self.open_elements) > 1 and self.open_elements[-2].name == "optgroup":
                self._pop_current()
            if self.open_elements[-1].name == "optgroup":
                self._pop_current()
            else:
                self._parse_error("unexpected-end-tag", tag_name=name)
            return None
        if name == "option":
            if current.name == "option":
                self._pop_current()
            else:
                self._parse_error("unexpected-end-tag", tag_name=name)
            return None
        if name == "select":
            if not self._has_in_select_scope("select"):
                self._parse_error("unexpected-end-tag", tag_name=name)
                return None
            self._pop_until_inclusive("select")
            self._reset_insertion_mode()
            return None
        self._parse_error("unexpected-end-tag", tag_name=name)
        return None

    def _mode_in_select_in_table(self, token: Any) -> Any:
        if isinstance(token, Tag) and token.name in _SELECT_IN_TABLE_BREAKOUT:
            if token.kind == Tag.START:
                self._parse_error("unexpected-start-tag-implies-end-tag", tag_name=token.name)
            else:
                self._parse_error("unexpected-end-tag", tag_name=token.name)
                if not self._has_in_table_scope(token.name):
                    return None
            self._pop_until_inclusive("select")
            self._reset_insertion_mode()
            return ("reprocess", self.mode, token)
        return self._mode_in_select(token)

    # ---------------------
    # After <body>
    # ---------------------

    def _mode_after_body(self, token: Any) -> Any:
        if isinstance(token, CharacterTokens) and is_all_whitespace(token.data):
            return self._mode_in_body(token)
        if isinstance(token, CommentToken):
            self._append_comment(token.data, parent=self.open_elements[0])
            return None
        if isinstance(token, EOFToken):
            return None
        if _is_start(token, "html"):
            return self._handle_body_start_html(token)
        if _is_end(token, "html"):
            self.mode = InsertionMode.AFTER_AFTER_BODY
            return None
        self._parse_error("unexpected-token-after-body")
        return ("reprocess", InsertionMode.IN_BODY, token)

    def _mode_after_after_body(self, token: Any) -> Any:
        if isinstance(token, CommentToken):
            self._append_comment_to_document(token.data)
            return None
        if isinstance(token, EOFToken):
            return None
        if (isinstance(token, CharacterTokens) and is_all_whitespace(token.data)) or _is_start(token, "html"):
            return self._mode_in_body(token)
        self._parse_error("unexpected-token-after-body")
        return ("reprocess", InsertionMode.IN_BODY, token)


_BODY_START_HANDLERS: dict[str, Callable[[Any, Any], Any]] = {
    "html": TreeBuilderModesMixin._handle_body_start_html,
    "body": TreeBuilderModesMixin._handle_body_start_body,
    "form": TreeBuilderModesMixin._handle_body_start_form,
    "li": TreeBuilderModesMixin._handle_body_start_list_item,
    "dd": TreeBuilderModesMixin._handle_body_start_list_item,
    "dt": TreeBuilderModesMixin._handle_body_start_list_item,
    "pre": TreeBuilderModesMixin._handle_body_start_pre_listing,
    "listing": TreeBuilderModesMixin._handle_body_start_pre_listing,
    "plaintext": TreeBuilderModesMixin._handle_body_start_plaintext,
    "button": TreeBuilderModesMixin._handle_body_start_button,
    "a": TreeBuilderModesMixin._handle_body_start_a,
    "nobr": TreeBuilderModesMixin._handle_body_start_nobr,
    "table": TreeBuilderModesMixin._handle_body_start_table,
    "hr": TreeBuilderModesMixin._handle_body_start_hr,
    "textarea": TreeBuilderModesMixin._handle_body_start_textarea,
    "select": TreeBuilderModesMixin._handle_body_start_select,
    "option": TreeBuilderModesMixin._handle_body_start_option,
    "optgroup": TreeBuilderModesMixin._handle_body_start_option,
    "svg": TreeBuilderModesMixin._handle_body_start_foreign,
    "math": TreeBuilderModesMixin._handle_body_start_foreign,
}
_BODY_START_HANDLERS.update(dict.fromkeys(_HEAD_CONTENT_IN_BODY, TreeBuilderModesMixin._handle_body_start_in_head))
_BODY_START_HANDLERS.update(
    dict.fromkeys(CLOSES_P_ELEMENTS, TreeBuilderModesMixin._handle_body_start_block_with_p)
)
_BODY_START_HANDLERS.update(dict.fromkeys(HEADING_ELEMENTS, TreeBuilderModesMixin._handle_body_start_heading))
_BODY_START_HANDLERS.update(
    dict.fromkeys(FORMATTING_ELEMENTS - {"a", "nobr"}, TreeBuilderModesMixin._handle_body_start_formatting)
)
_BODY_START_HANDLERS.update(
    dict.fromkeys(("applet", "marquee", "object"), TreeBuilderModesMixin._handle_body_start_applet_like)
)
_BODY_START_HANDLERS.update(
    dict.fromkeys(
        ("area", "br", "embed", "img", "image", "keygen", "wbr", "input"),
        TreeBuilderModesMixin._handle_body_start_void_with_formatting,
    )
)
_BODY_START_HANDLERS.update(
    dict.fromkeys(("param", "source", "track"), TreeBuilderModesMixin._handle_body_start_simple_void)
)
_BODY_START_HANDLERS.update(
    dict.fromkeys(("xmp", "iframe", "noembed", "noscript"), TreeBuilderModesMixin._handle_body_start_rawtext)
)
_BODY_START_HANDLERS.update(
    dict.fromkeys(("rb", "rtc", "rp", "rt"), TreeBuilderModesMixin._handle_body_start_ruby_base)
)
_BODY_START_HANDLERS.update(
    dict.fromkeys(_TABLE_STRUCTURE | {"frame", "frameset", "head"}, TreeBuilderModesMixin._handle_body_start_ignored)
)

_BODY_END_HANDLERS: dict[str, Callable[[Any, Any], Any]] = {
    "body": TreeBuilderModesMixin._handle_body_end_body,
    "html": TreeBuilderModesMixin._handle_body_end_html,
    "form": TreeBuilderModesMixin._handle_body_end_form,
    "p": TreeBuilderModesMixin._handle_body_end_p,
    "li": TreeBuilderModesMixin._handle_body_end_li,
    "dd": TreeBuilderModesMixin._handle_body_end_dd_dt,
    "dt": TreeBuilderModesMixin._handle_body_end_dd_dt,
    "br": TreeBuilderModesMixin._handle_body_end_br,
}
_BODY_END_HANDLERS.update(dict.fromkeys(BLOCK_END_ELEMENTS, TreeBuilderModesMixin._handle_body_end_block))
_BODY_END_HANDLERS.update(dict.fromkeys(HEADING_ELEMENTS, TreeBuilderModesMixin._handle_body_end_heading))
_BODY_END_HANDLERS.update(
    dict.fromkeys(("applet", "marquee", "object"), TreeBuilderModesMixin._handle_body_end_applet_like)
)

TreeBuilderModesMixin._mode_handlers = {
    InsertionMode.INITIAL: TreeBuilderModesMixin._mode_initial,
    InsertionMode.BEFORE_HTML: TreeBuilderModesMixin._mode_before_html,
    InsertionMode.BEFORE_HEAD: TreeBuilderModesMixin._mode_before_head,
    InsertionMode.IN_HEAD: TreeBuilderModesMixin._mode_in_head,
    InsertionMode.AFTER_HEAD: TreeBuilderModesMixin._mode_after_head,
    InsertionMode.TEXT: TreeBuilderModesMixin._mode_text,
    InsertionMode.IN_BODY: TreeBuilderModesMixin._mode_in_body,
    InsertionMode.AFTER_BODY: TreeBuilderModesMixin._mode_after_body,
    InsertionMode.AFTER_AFTER_BODY: TreeBuilderModesMixin._mode_after_after_body,
    InsertionMode.IN_TABLE: TreeBuilderModesMixin._mode_in_table,
    InsertionMode.IN_CAPTION: TreeBuilderModesMixin._mode_in_caption,
    InsertionMode.IN_COLUMN_GROUP: TreeBuilderModesMixin._mode_in_column_group,
    InsertionMode.IN_TABLE_BODY: TreeBuilderModesMixin._mode_in_table_body,
    InsertionMode.IN_ROW: TreeBuilderModesMixin._mode_in_row,
    InsertionMode.IN_CELL: TreeBuilderModesMixin._mode_in_cell,
    InsertionMode.IN_SELECT: TreeBuilderModesMixin._mode_in_select,
    InsertionMode.IN_SELECT_IN_TABLE: TreeBuilderModesMixin._mode_in_select_in_table,
}
