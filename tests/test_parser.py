"""
Tests for HTML parsing and tree construction.
"""

import pytest

from htmlselect import Document, InputEmptyError, ParseError, compile, parse, select, serialize
from htmlselect.tokens import Doctype
from htmlselect.treebuilder_utils import doctype_error_and_quirks


def body_html(html):
    doc = parse(html)
    return doc.query("body")[0].to_html()


class TestParseInput:
    @pytest.mark.parametrize("html", ["", "   ", "\n\t \r\n"])
    def test_blank_input_is_rejected(self, html):
        with pytest.raises(InputEmptyError) as excinfo:
            parse(html)
        assert str(excinfo.value) == "Failed to parse the provided HTML content."

    def test_input_empty_error_is_a_parse_error(self):
        with pytest.raises(ParseError):
            parse("")

    def test_returns_document(self):
        doc = parse("<p>x</p>")
        assert isinstance(doc, Document)
        assert doc.root.name == "#document"

    def test_text_only_input_parses(self):
        doc = parse("just text")
        assert doc.to_text() == "just text"


class TestImpliedStructure:
    def test_fragment_gets_html_head_body(self):
        doc = parse("<p>Hello")
        assert serialize(doc.root) == "<html><head></head><body><p>Hello</p></body></html>"

    def test_full_document_round_trips(self):
        html = "<html><head></head><body><p>Hello, world!</p></body></html>"
        assert serialize(parse(html).root) == html

    def test_head_content_goes_to_head(self):
        doc = parse("<title>T</title><meta charset=utf-8><p>x")
        head = doc.query("head")[0]
        assert [child.name for child in head.element_children] == ["title", "meta"]

    def test_doctype_is_kept(self):
        doc = parse("<!DOCTYPE html><p>x</p>")
        assert serialize(doc.root).startswith("<!DOCTYPE html><html>")
        assert doc.errors == []

    def test_comment_before_html_attaches_to_document(self):
        doc = parse("<!-- c --><p>x</p>")
        assert doc.root.children[0].name == "#comment"
        assert doc.root.children[0].data == " c "


class TestErrorRecovery:
    def test_block_closes_open_paragraph(self):
        assert body_html("<p>a<div>b</div>") == "<body><p>a</p><div>b</div></body>"

    def test_list_items_auto_close(self):
        assert body_html("<ul><li>a<li>b</ul>") == "<body><ul><li>a</li><li>b</li></ul></body>"

    def test_stray_p_end_tag_creates_empty_paragraph(self):
        assert body_html("<div></p></div>") == "<body><div><p></p></div></body>"

    def test_br_end_tag_becomes_br(self):
        assert body_html("<div></br></div>") == "<body><div><br></div></body>"

    def test_unmatched_end_tag_is_ignored(self):
        assert body_html("<div>a</span>b</div>") == "<body><div>ab</div></body>"

    def test_misnested_formatting_uses_adoption_agency(self):
        assert body_html("<b>1<p>2</b>3</p>") == "<body><b>1</b><p><b>2</b>3</p></body>"

    def test_table_gets_implied_tbody(self):
        html = "<table><tr><td>a</td></tr></table>"
        assert body_html(html) == "<body><table><tbody><tr><td>a</td></tr></tbody></table></body>"

    def test_text_in_table_is_foster_parented(self):
        html = "<table>x<tr><td>y</td></tr></table>"
        assert body_html(html) == "<body>x<table><tbody><tr><td>y</td></tr></tbody></table></body>"

    def test_void_elements_take_no_children(self):
        assert body_html("<p>a<br>b<img src=x>c</p>") == '<body><p>a<br>b<img src="x">c</p></body>'

    def test_content_after_body_is_moved_into_body(self):
        doc = parse("<html><body><p>a</p></body></html><p>b</p>")
        assert [p.to_text() for p in doc.query("p")] == ["a", "b"]

    def test_svg_subtree_gets_its_namespace(self):
        doc = parse("<svg><circle/></svg><p>x</p>")
        svg = doc.query("svg")[0]
        assert svg.namespace == "svg"
        assert doc.query("circle")[0].namespace == "svg"
        assert svg.to_html() == "<svg><circle></circle></svg>"
        assert doc.query("p")[0].namespace == "html"

    def test_entities_are_decoded(self):
        doc = parse("<p>a &amp; b &lt;</p>")
        assert doc.query("p")[0].to_text(strip=False) == "a & b <"


class TestQuirksMode:
    def test_table_stays_inside_paragraph_without_doctype(self):
        doc = parse("<p><table><tr><td>x</td></tr></table>")
        assert [node.to_html() for node in select(doc.root, compile("p"))] == [
            "<p><table><tbody><tr><td>x</td></tr></tbody></table></p>"
        ]

    def test_table_closes_paragraph_in_standards_mode(self):
        html = "<!DOCTYPE html><p><table><tr><td>x</td></tr></table>"
        assert body_html(html) == "<body><p></p><table><tbody><tr><td>x</td></tr></tbody></table></body>"

    def test_legacy_doctype_selects_quirks(self):
        html = '<!DOCTYPE HTML PUBLIC "-//W3C//DTD HTML 4.0 Transitional//EN"><p><table></table>'
        assert body_html(html) == "<body><p><table></table></p></body>"

    def test_limited_quirks_doctype_closes_paragraph(self):
        html = (
            '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" '
            '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd"><p><table></table>'
        )
        assert body_html(html) == "<body><p></p><table></table></body>"

    @pytest.mark.parametrize(
        ("doctype", "expected"),
        [
            (Doctype("html"), (False, "no-quirks")),
            (Doctype("html", force_quirks=True), (False, "quirks")),
            (Doctype("svg"), (True, "quirks")),
            (Doctype("html", "-//IETF//DTD HTML 2.0//EN"), (True, "quirks")),
            (Doctype("html", "-//W3C//DTD XHTML 1.0 Frameset//EN"), (True, "limited-quirks")),
            (Doctype("html", "-//W3C//DTD HTML 4.01 Transitional//EN"), (True, "quirks")),
            (
                Doctype("html", "-//W3C//DTD HTML 4.01 Transitional//EN", "http://www.w3.org/TR/html4/loose.dtd"),
                (True, "limited-quirks"),
            ),
            (Doctype("html", None, "about:legacy-compat"), (False, "no-quirks")),
        ],
    )
    def test_doctype_classification(self, doctype, expected):
        assert doctype_error_and_quirks(doctype) == expected

    def test_unknown_doctype_is_reported(self):
        doc = parse("<!DOCTYPE foo><p>x</p>")
        assert "unknown-doctype" in [e.code for e in doc.errors]


class TestSelect:
    def test_table_tags_are_ignored_in_select_outside_table(self):
        doc = parse("<!DOCTYPE html><select><option>a<td>b</select>")
        assert [node.to_html() for node in doc.query("option")] == ["<option>ab</option>"]

    def test_table_end_tag_is_ignored_in_select_outside_table(self):
        doc = parse("<!DOCTYPE html><select><option>a</table>b</select><p>c")
        assert doc.query("select")[0].to_html() == "<select><option>ab</option></select>"
        assert doc.query("select + p")

    def test_cell_start_tag_closes_select_inside_table(self):
        doc = parse("<!DOCTYPE html><table><tr><td><select><option>a<td>b</table>")
        assert [td.to_html() for td in doc.query("td")] == [
            "<td><select><option>a</option></select></td>",
            "<td>b</td>",
        ]

    def test_table_end_tag_closes_select_inside_table(self):
        doc = parse("<!DOCTYPE html><table><tr><td><select><option>a</table><p>b")
        assert doc.query("table select option")
        assert doc.query("table + p")[0].to_text() == "b"


class TestForeignContent:
    def test_svg_attribute_case_is_restored(self):
        doc = parse("<svg viewBox='0 0 1 1'></svg>")
        assert [node.to_html() for node in doc.query("svg")] == ['<svg viewBox="0 0 1 1"></svg>']

    def test_nested_svg_tag_and_attribute_case(self):
        doc = parse('<svg><lineargradient gradientunits="userSpaceOnUse"/></svg>')
        assert doc.query("svg")[0].to_html() == (
            '<svg><linearGradient gradientUnits="userSpaceOnUse"></linearGradient></svg>'
        )

    def test_mathml_attribute_case_is_restored(self):
        doc = parse('<math definitionurl="u"></math>')
        assert doc.query("math")[0].to_html() == '<math definitionURL="u"></math>'

    def test_annotation_xml_with_html_encoding_holds_html(self):
        doc = parse('<math><annotation-xml encoding="text/html"><div>x</div></annotation-xml></math>')
        divs = doc.query("annotation-xml > div")
        assert [div.to_html() for div in divs] == ["<div>x</div>"]
        assert divs[0].namespace == "html"

    def test_annotation_xml_without_encoding_lets_div_break_out(self):
        doc = parse("<math><annotation-xml><div>x</div></annotation-xml></math>")
        assert doc.query("annotation-xml > div") == []
        assert doc.query("math + div")

    def test_svg_inside_annotation_xml_is_svg(self):
        doc = parse("<math><annotation-xml><svg><circle/></svg></annotation-xml></math>")
        svg = doc.query("annotation-xml > svg")[0]
        assert svg.namespace == "svg"
        assert doc.query("circle")[0].namespace == "svg"

    def test_mathml_text_integration_point(self):
        doc = parse("<math><mi>x<b>y</b><mglyph/></mi></math>")
        assert doc.query("mi > b")[0].namespace == "html"
        assert doc.query("mi > mglyph")[0].namespace == "math"


class TestScriptData:
    def test_nested_script_inside_escaped_comment(self):
        doc = parse("<script>a<!--<script></script>-->q</script>z")
        assert doc.query("script")[0].to_html() == "<script>a<!--<script></script>-->q</script>"
        assert doc.query("body")[0].to_html() == "<body>z</body>"

    def test_end_tag_inside_escaped_comment_closes_script(self):
        doc = parse("<script><!--a</script>b")
        assert doc.query("script")[0].to_html() == "<script><!--a</script>"
        assert doc.query("body")[0].to_text() == "b"

    def test_comment_close_ends_double_escape(self):
        doc = parse("<script><!--<script>--></script>b")
        assert doc.query("script")[0].to_html() == "<script><!--<script>--></script>"
        assert doc.query("body")[0].to_text() == "b"

    def test_unterminated_escaped_script_is_reported(self):
        doc = parse("<script><!--<script></script>x")
        assert doc.query("script")[0].to_html() == "<script><!--<script></script>x</script>"
        assert "eof-in-script-html-comment-like-text" in [e.code for e in doc.errors]


class TestDiagnostics:
    def test_missing_doctype_is_reported(self):
        doc = parse("<p>x</p>")
        assert doc.errors[0].code == "expected-doctype-but-got-start-tag"

    def test_errors_carry_location(self):
        doc = parse("<!DOCTYPE html><p>\n</div>")
        matching = [e for e in doc.errors if e.code == "unexpected-end-tag"]
        assert len(matching) == 1
        assert (matching[0].line, matching[0].column) == (2, 1)
        assert "</div>" in matching[0].message

    def test_diagnostic_str_includes_position_and_code(self):
        error = parse("<p>x</p>").errors[0]
        assert str(error).startswith("(1,")
        assert "expected-doctype-but-got-start-tag" in str(error)

    def test_diagnostics_compare_by_code_and_position(self):
        html = "<div><b>x</div></b>"
        assert parse(html).errors == parse(html).errors

    def test_errors_never_stop_the_parse(self):
        doc = parse("<p><b><i>x</b></i></p></x></y>")
        assert doc.errors
        assert doc.query("p")


class TestTreeIntegrity:
    @pytest.mark.parametrize(
        "html",
        [
            "<p>Hello",
            "<b>1<p>2</b>3</p>",
            "<table>x<tr><td>y<table><td>z</table></table>",
            "<a><p><a>x</a></p></a>",
            "<select><option>a<option>b</select>",
            "<ul><li><ul><li>deep</ul></li></ul>",
            "<svg><p>breakout</p></svg>",
        ],
    )
    def test_every_node_appears_once_with_correct_parent(self, html):
        doc = parse(html)
        seen = set()
        for node in doc.root.iter_descendants():
            assert id(node) not in seen
            seen.add(id(node))
            assert node.parent is not None
            assert any(child is node for child in node.parent.children)
