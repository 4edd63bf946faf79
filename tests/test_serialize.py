"""
Tests for outer-HTML serialization.
"""

from htmlselect import ElementNode, TextNode, parse, serialize


def first(html, selector):
    return parse(html).query(selector)[0]


class TestElements:
    def test_attributes_keep_source_order(self):
        assert first('<div z="1" a="2" m="3"></div>', "div").to_html() == '<div z="1" a="2" m="3"></div>'

    def test_attribute_values_are_double_quoted(self):
        assert first("<a href=x title='t'>y</a>", "a").to_html() == '<a href="x" title="t">y</a>'

    def test_empty_attribute(self):
        assert first("<input disabled>", "input").to_html() == '<input disabled="">'

    def test_attribute_value_escaping(self):
        node = first("<a title='say \"hi\" &amp; go'>x</a>", "a")
        assert node.to_html() == '<a title="say &quot;hi&quot; &amp; go">x</a>'

    def test_less_than_in_attribute_is_not_escaped(self):
        assert first('<a title="a<b">x</a>', "a").to_html() == '<a title="a<b">x</a>'

    def test_void_elements_have_no_end_tag(self):
        node = first('<p>a<br/>b<img src=a.png alt="">c</p>', "p")
        assert node.to_html() == '<p>a<br>b<img src="a.png" alt="">c</p>'

    def test_nested_elements(self):
        html = '<ul class="list"><li>One</li><li>Two</li></ul>'
        assert first(html, "ul").to_html() == html


class TestText:
    def test_text_escaping(self):
        node = first("<p>a &lt; b &amp;&nbsp;c &gt; d</p>", "p")
        assert node.to_html() == "<p>a &lt; b &amp;&nbsp;c &gt; d</p>"

    def test_quotes_in_text_are_not_escaped(self):
        assert first("<p>\"it's\"</p>", "p").to_html() == "<p>\"it's\"</p>"

    def test_script_content_is_raw(self):
        node = first("<script>if (a < b && c) {}</script>", "script")
        assert node.to_html() == "<script>if (a < b && c) {}</script>"

    def test_style_content_is_raw(self):
        node = first("<style>a > b { content: '&'; }</style>", "style")
        assert node.to_html() == "<style>a > b { content: '&'; }</style>"

    def test_textarea_content_is_escaped(self):
        node = first("<textarea><b>&amp;</b></textarea>", "textarea")
        assert node.to_html() == "<textarea>&lt;b&gt;&amp;&lt;/b&gt;</textarea>"

    def test_text_node(self):
        assert serialize(TextNode("a<b")) == "a&lt;b"


class TestOtherNodes:
    def test_comment(self):
        assert first("<p><!-- note --></p>", "p").to_html() == "<p><!-- note --></p>"

    def test_document_is_concatenation_of_children(self):
        doc = parse("<!DOCTYPE html><!--x--><p>a")
        assert serialize(doc.root) == "<!DOCTYPE html><!--x--><html><head></head><body><p>a</p></body></html>"

    def test_doctype_name_is_lowercased(self):
        doc = parse("<!DOCTYPE HTML><p>a")
        assert serialize(doc.root).startswith("<!DOCTYPE html>")

    def test_document_to_html(self):
        doc = parse("<p>a</p>")
        assert doc.to_html() == serialize(doc.root)


class TestDeepTrees:
    def test_deep_nesting_does_not_recurse(self):
        root = ElementNode("div", {})
        current = root
        for _ in range(5000):
            child = ElementNode("div", {})
            current.append_child(child)
            current = child
        current.append_child(TextNode("x"))

        html = serialize(root)
        assert html == "<div>" * 5001 + "x" + "</div>" * 5001

    def test_deep_nesting_to_text(self):
        root = ElementNode("div", {})
        current = root
        for index in range(5000):
            if index % 1000 == 0:
                current.append_child(TextNode(str(index)))
            child = ElementNode("span", {})
            current.append_child(child)
            current = child
        current.append_child(TextNode("end"))

        assert root.to_text() == "0 1000 2000 3000 4000 end"
