"""
Tests for character reference decoding.
"""

import pytest

from htmlselect.entities import decode_entities_in_text, decode_numeric_entity


def decode_with_errors(text, in_attribute=False):
    errors = []
    result = decode_entities_in_text(text, in_attribute=in_attribute, report=errors.append)
    return result, errors


class TestNamedReferences:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("&amp;", "&"),
            ("&lt;p&gt;", "<p>"),
            ("&copy; 2024", "\xa9 2024"),
            ("&NotEqualTilde;", "\u2242\u0338"),
            ("a&nbsp;b", "a\xa0b"),
        ],
    )
    def test_decodes_named_references(self, text, expected):
        assert decode_entities_in_text(text) == expected

    def test_text_without_ampersand_is_returned_unchanged(self):
        text = "plain text"
        assert decode_entities_in_text(text) is text

    def test_legacy_reference_without_semicolon(self):
        result, errors = decode_with_errors("&amp")
        assert result == "&"
        assert errors == ["missing-semicolon-after-character-reference"]

    def test_longest_legacy_prefix_wins(self):
        assert decode_entities_in_text("&notit;") == "\xacit;"

    def test_unknown_reference_is_left_alone(self):
        result, errors = decode_with_errors("&nosuchthing;")
        assert result == "&nosuchthing;"
        assert errors == ["unknown-named-character-reference"]

    def test_bare_ampersand(self):
        assert decode_entities_in_text("a & b") == "a & b"


class TestAttributeValues:
    def test_legacy_reference_before_alnum_is_not_decoded(self):
        assert decode_entities_in_text("?a=1&copy2", in_attribute=True) == "?a=1&copy2"

    def test_legacy_reference_before_equals_is_not_decoded(self):
        assert decode_entities_in_text("?x&amp=1", in_attribute=True) == "?x&amp=1"

    def test_same_text_is_decoded_outside_attributes(self):
        assert decode_entities_in_text("&copy2") == "\xa92"

    def test_terminated_reference_is_decoded(self):
        assert decode_entities_in_text("?a=1&amp;b=2", in_attribute=True) == "?a=1&b=2"


class TestNumericReferences:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("&#65;", "A"),
            ("&#x41;", "A"),
            ("&#X41;", "A"),
            ("&#00065;", "A"),
            ("&#x1F600;", "\U0001f600"),
        ],
    )
    def test_decodes_numeric_references(self, text, expected):
        assert decode_entities_in_text(text) == expected

    def test_windows_1252_replacement(self):
        result, errors = decode_with_errors("&#128;")
        assert result == "\u20ac"
        assert errors == ["control-character-reference"]

    @pytest.mark.parametrize(
        ("text", "code"),
        [
            ("&#0;", "null-character-reference"),
            ("&#xD800;", "surrogate-character-reference"),
            ("&#x110000;", "character-reference-outside-unicode-range"),
            ("&#99999999999;", "character-reference-outside-unicode-range"),
        ],
    )
    def test_invalid_code_points_become_replacement_character(self, text, code):
        result, errors = decode_with_errors(text)
        assert result == "\ufffd"
        assert errors == [code]

    def test_missing_digits_leave_text_alone(self):
        result, errors = decode_with_errors("&#;")
        assert result == "&#;"
        assert errors == ["absence-of-digits-in-numeric-character-reference"]

    def test_missing_semicolon_is_reported(self):
        result, errors = decode_with_errors("&#65 ")
        assert result == "A "
        assert errors == ["missing-semicolon-after-character-reference"]

    def test_decode_numeric_entity_passes_through_normal_code_points(self):
        assert decode_numeric_entity(0x263A) == "\u263a"
