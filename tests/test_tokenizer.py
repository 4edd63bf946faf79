"""
Tests for the HTML tokenizer, driven through a recording sink.
"""

from htmlselect.tokenizer import Tokenizer
from htmlselect.tokens import CommentToken, DoctypeToken, EOFToken, Tag


class RecordingSink:
    """Collects tokens; adjacent character runs are merged."""

    def __init__(self):
        self.open_elements = []
        self.tokens = []

    def process_token(self, token):
        self.tokens.append(token)

    def process_characters(self, data):
        if self.tokens and isinstance(self.tokens[-1], str):
            self.tokens[-1] += data
        else:
            self.tokens.append(data)


def tokenize(html):
    sink = RecordingSink()
    tokenizer = Tokenizer(sink)
    tokenizer.run(html)
    return sink.tokens, tokenizer


def error_codes(tokenizer):
    return [e.code for e in tokenizer.errors]


class TestTags:
    def test_start_and_end_tags(self):
        tokens, _ = tokenize("<p>x</p>")
        assert isinstance(tokens[0], Tag)
        assert (tokens[0].kind, tokens[0].name) == (Tag.START, "p")
        assert tokens[1] == "x"
        assert (tokens[2].kind, tokens[2].name) == (Tag.END, "p")
        assert isinstance(tokens[3], EOFToken)

    def test_names_are_lowercased(self):
        tokens, _ = tokenize("<DIV CLASS=a></DiV>")
        assert tokens[0].name == "div"
        assert tokens[0].attrs == {"class": "a"}
        assert tokens[1].name == "div"

    def test_attribute_forms(self):
        tokens, _ = tokenize("<a HREF='x' data-x=1 title=\"t t\" b>")
        assert tokens[0].attrs == {"href": "x", "data-x": "1", "title": "t t", "b": ""}

    def test_attributes_keep_source_order(self):
        tokens, _ = tokenize('<p z="1" a="2" m="3">')
        assert list(tokens[0].attrs) == ["z", "a", "m"]

    def test_duplicate_attribute_keeps_first(self):
        tokens, tokenizer = tokenize("<a x=1 x=2>")
        assert tokens[0].attrs == {"x": "1"}
        assert "duplicate-attribute" in error_codes(tokenizer)

    def test_self_closing_flag(self):
        tokens, _ = tokenize("<br/>")
        assert tokens[0].self_closing is True

    def test_entities_in_attribute_values(self):
        tokens, _ = tokenize('<a href="?a=1&amp;b=2&copy=3">')
        assert tokens[0].attrs["href"] == "?a=1&b=2&copy=3"

    def test_empty_end_tag_is_dropped(self):
        tokens, tokenizer = tokenize("a</>b")
        assert tokens[0] == "ab"
        assert "empty-end-tag" in error_codes(tokenizer)

    def test_lone_less_than_is_text(self):
        tokens, tokenizer = tokenize("a < b")
        assert tokens[0] == "a < b"
        assert "invalid-first-character-of-tag-name" in error_codes(tokenizer)

    def test_eof_in_tag(self):
        tokens, tokenizer = tokenize("<div class=")
        assert [type(t) for t in tokens] == [EOFToken]
        assert "eof-in-tag" in error_codes(tokenizer)


class TestComments:
    def test_comment(self):
        tokens, _ = tokenize("<!--hi-->")
        assert isinstance(tokens[0], CommentToken)
        assert tokens[0].data == "hi"

    def test_abruptly_closed_comment(self):
        tokens, tokenizer = tokenize("<!-->x")
        assert tokens[0].data == ""
        assert tokens[1] == "x"
        assert "abrupt-closing-of-empty-comment" in error_codes(tokenizer)

    def test_incorrectly_closed_comment(self):
        tokens, tokenizer = tokenize("<!--a--!>b")
        assert tokens[0].data == "a"
        assert tokens[1] == "b"
        assert "incorrectly-closed-comment" in error_codes(tokenizer)

    def test_processing_instruction_becomes_bogus_comment(self):
        tokens, _ = tokenize('<?xml version="1.0"?>')
        assert isinstance(tokens[0], CommentToken)
        assert tokens[0].data == '?xml version="1.0"?'

    def test_cdata_outside_foreign_content_is_a_comment(self):
        tokens, tokenizer = tokenize("<![CDATA[x]]>")
        assert isinstance(tokens[0], CommentToken)
        assert "cdata-in-html-content" in error_codes(tokenizer)

    def test_unterminated_comment(self):
        tokens, tokenizer = tokenize("<!--abc")
        assert tokens[0].data == "abc"
        assert "eof-in-comment" in error_codes(tokenizer)


class TestDoctype:
    def test_html5_doctype(self):
        tokens, _ = tokenize("<!DOCTYPE html>")
        assert isinstance(tokens[0], DoctypeToken)
        assert tokens[0].doctype.name == "html"
        assert tokens[0].doctype.force_quirks is False

    def test_public_and_system_identifiers(self):
        tokens, _ = tokenize(
            '<!doctype HTML PUBLIC "-//W3C//DTD HTML 4.01//EN" "http://www.w3.org/TR/html4/strict.dtd">'
        )
        doctype = tokens[0].doctype
        assert doctype.name == "html"
        assert doctype.public_id == "-//W3C//DTD HTML 4.01//EN"
        assert doctype.system_id == "http://www.w3.org/TR/html4/strict.dtd"

    def test_keyword_without_identifier_forces_quirks(self):
        tokens, _ = tokenize("<!DOCTYPE html PUBLIC>")
        assert tokens[0].doctype.force_quirks is True


class TestInputNormalization:
    def test_newlines_are_normalized(self):
        tokens, _ = tokenize("a\r\nb\rc")
        assert tokens[0] == "a\nb\nc"

    def test_leading_bom_is_dropped(self):
        tokens, _ = tokenize("\ufeffabc")
        assert tokens[0] == "abc"

    def test_null_in_data_is_dropped(self):
        tokens, tokenizer = tokenize("a\0b")
        assert tokens[0] == "ab"
        assert "unexpected-null-character" in error_codes(tokenizer)

    def test_character_references_in_text(self):
        tokens, _ = tokenize("&amp;&lt;&#65;&#x42;")
        assert tokens[0] == "&<AB"


class TestLocation:
    def test_location_is_one_based(self):
        _, tokenizer = tokenize("ab\ncd")
        assert tokenizer.location(0) == (1, 1)
        assert tokenizer.location(1) == (1, 2)
        assert tokenizer.location(3) == (2, 1)
        assert tokenizer.location(4) == (2, 2)

    def test_errors_carry_position(self):
        _, tokenizer = tokenize("<p>\n<a x=1 x=2>")
        error = next(e for e in tokenizer.errors if e.code == "duplicate-attribute")
        assert error.line == 2
