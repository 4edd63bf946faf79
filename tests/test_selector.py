"""
Tests for selector compilation and matching.
"""

import time

import pytest

from htmlselect import CompiledSelector, SelectorSyntaxError, compile, matches, parse, select

HTML = """<!DOCTYPE html>
<html>
<head><title>T</title></head>
<body>
<div id="main" class="content wide">
  <ul class="list">
    <li class="item first">One</li>
    <li class="item">Two</li>
    <li class="item last" data-kind="x-y">Three</li>
  </ul>
  <p lang="en-US">Para <a href="https://example.com/page.html" title="Link">link</a></p>
  <p></p>
</div>
<section><div><span>deep</span></div></section>
</body>
</html>
"""


@pytest.fixture(scope="module")
def doc():
    return parse(HTML)


def texts(doc, selector):
    return [node.to_text() for node in select(doc.root, compile(selector))]


def names(doc, selector):
    return [node.name for node in select(doc.root, compile(selector))]


class TestCompile:
    def test_returns_compiled_selector(self):
        compiled = compile("div > p")
        assert isinstance(compiled, CompiledSelector)
        assert compiled.source == "div > p"

    def test_selector_list(self):
        assert len(compile("a, b,c").selectors) == 3

    def test_compiled_selector_is_reusable(self, doc):
        compiled = compile("li")
        assert select(doc.root, compiled) == select(doc.root, compiled)

    @pytest.mark.parametrize(
        "selector",
        [
            "",
            "   ",
            "[",
            "[href",
            "a[title=\"x]",
            "div >",
            "> div",
            "div > > p",
            "a,,b",
            "a,",
            ",a",
            "div)",
            "div(",
            ":hover",
            "div:nth-child(foo)",
            "li:nth-child()",
            "li:first-child(2)",
            ":not(a b)",
            ":not(:not(a))",
            "::before",
            "*div",
            "#",
            ".",
            "[a~]",
        ],
    )
    def test_invalid_selectors_raise(self, selector):
        with pytest.raises(SelectorSyntaxError) as excinfo:
            compile(selector)
        assert excinfo.value.selector == selector

    def test_error_message_names_the_selector(self):
        with pytest.raises(SelectorSyntaxError) as excinfo:
            compile("div >")
        assert str(excinfo.value).startswith("Failed to parse the provided CSS selector: div >")
        assert excinfo.value.reason

    def test_syntax_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            compile("[")


class TestSimpleSelectors:
    def test_type(self, doc):
        assert texts(doc, "li") == ["One", "Two", "Three"]

    def test_type_is_case_insensitive(self, doc):
        assert texts(doc, "LI") == ["One", "Two", "Three"]

    def test_universal_excludes_text_and_comments(self, doc):
        assert all(node.is_element for node in select(doc.root, compile("*")))

    def test_id(self, doc):
        assert names(doc, "#main") == ["div"]

    def test_class(self, doc):
        assert texts(doc, ".item.first") == ["One"]

    def test_class_is_case_sensitive(self, doc):
        assert texts(doc, ".ITEM") == []

    def test_escaped_identifiers(self):
        doc = parse('<p id="a:b">x</p><p class="123">y</p>')
        assert [n.to_text() for n in select(doc.root, compile(r"#a\:b"))] == ["x"]
        assert [n.to_text() for n in select(doc.root, compile(r".\31 23"))] == ["y"]


class TestAttributeSelectors:
    @pytest.mark.parametrize(
        ("selector", "expected"),
        [
            ("[data-kind]", ["Three"]),
            ("[DATA-KIND]", ["Three"]),
            ("[title=Link]", ["link"]),
            ('[title="Link"]', ["link"]),
            ("[title=link]", []),
            ("[class~=wide]", ["div"]),
            ("[lang|=en]", ["p"]),
            ("[data-kind|=x]", ["Three"]),
            ("[href^=https]", ["link"]),
            ("[href$='.html']", ["link"]),
            ("[href*=example]", ["link"]),
            ("[href^='']", []),
        ],
    )
    def test_attribute_operators(self, doc, selector, expected):
        nodes = select(doc.root, compile(selector))
        found = [n.to_text() if n.name in ("li", "a") else n.name for n in nodes]
        assert found == expected


class TestCombinators:
    def test_child(self, doc):
        assert texts(doc, ".list > li") == ["One", "Two", "Three"]

    def test_descendant(self, doc):
        assert texts(doc, "section span") == ["deep"]

    def test_adjacent_sibling(self, doc):
        assert texts(doc, "li + li") == ["Two", "Three"]

    def test_general_sibling(self, doc):
        assert texts(doc, ".first ~ .last") == ["Three"]

    def test_child_does_not_match_grandchild(self, doc):
        assert texts(doc, "#main > li") == []

    def test_descendant_backtracks_past_nearest_ancestor(self):
        doc = parse('<div class="a"><div class="x"><div class="y"><span>x</span></div></div></div>')
        assert [n.to_text() for n in select(doc.root, compile(".a > div span"))] == ["x"]

    def test_general_sibling_backtracks(self):
        doc = parse('<p class="k"></p><h2></h2><p></p><h2></h2><span>s</span>')
        assert [n.to_text() for n in select(doc.root, compile(".k + h2 ~ span"))] == ["s"]


class TestPseudoClasses:
    def test_first_and_last_child(self, doc):
        assert texts(doc, "li:first-child") == ["One"]
        assert texts(doc, "li:last-child") == ["Three"]

    def test_only_child(self, doc):
        assert texts(doc, "span:only-child") == ["deep"]
        assert texts(doc, "li:only-child") == []

    @pytest.mark.parametrize(
        ("selector", "expected"),
        [
            ("li:nth-child(2)", ["Two"]),
            ("li:nth-child(odd)", ["One", "Three"]),
            ("li:nth-child(even)", ["Two"]),
            ("li:nth-child(2n+1)", ["One", "Three"]),
            ("li:nth-child(-n+2)", ["One", "Two"]),
            ("li:nth-child(n)", ["One", "Two", "Three"]),
            ("li:nth-last-child(1)", ["Three"]),
            ("li:nth-of-type(3)", ["Three"]),
            ("li:nth-last-of-type(3)", ["One"]),
        ],
    )
    def test_nth(self, doc, selector, expected):
        assert texts(doc, selector) == expected

    def test_of_type(self, doc):
        main_children = "#main > "
        assert len(select(doc.root, compile(main_children + "p:first-of-type"))) == 1
        assert texts(doc, main_children + "p:first-of-type") == ["Para link"]
        assert texts(doc, main_children + "p:last-of-type") == [""]
        assert texts(doc, "ul:only-of-type") == ["One Two Three"]

    def test_root(self, doc):
        assert names(doc, ":root") == ["html"]

    def test_empty(self, doc):
        assert texts(doc, "p:empty") == [""]

    def test_not(self, doc):
        assert texts(doc, "li:not(.first)") == ["Two", "Three"]
        assert texts(doc, "li:not(.item.last)") == ["One", "Two"]


class TestSelect:
    def test_results_in_document_order_without_duplicates(self, doc):
        assert texts(doc, "li.last, li.first, li") == ["One", "Two", "Three"]

    def test_root_is_not_a_candidate(self, doc):
        ul = select(doc.root, compile("ul"))[0]
        assert [n.to_text() for n in select(ul, compile("li"))] == ["One", "Two", "Three"]
        assert select(ul, compile("ul")) == []

    def test_no_matches(self, doc):
        assert select(doc.root, compile("table")) == []

    def test_requires_compiled_selector(self, doc):
        with pytest.raises(TypeError):
            select(doc.root, "li")

    def test_document_select(self, doc):
        assert [n.to_text() for n in doc.select(compile("li"))] == ["One", "Two", "Three"]

    def test_matches(self, doc):
        first = select(doc.root, compile("li"))[0]
        assert matches(first, compile(".item"))
        assert matches(first, "ul > li:first-child")
        assert not matches(first, ".last")

    def test_node_query(self, doc):
        assert [n.to_text() for n in doc.root.query(".item")] == ["One", "Two", "Three"]


class TestLongSiblingLists:
    @pytest.fixture(scope="class")
    def big_list(self):
        items = []
        for i in range(5000):
            classes = f"c{i % 3} mark" if i == 2500 else f"c{i % 3}"
            items.append(f'<li class="{classes}">{i}</li>')
        return parse("<ul>" + "".join(items) + "</ul>")

    @pytest.mark.parametrize(
        ("selector", "count"),
        [
            ("li + li", 4999),
            ("li ~ li", 4999),
            ("li:nth-child(2n)", 2500),
            ("li:nth-last-child(1)", 1),
            ("li.c1 + li.c2", 1666),
            (".mark ~ li", 2499),
            (".mark ~ li.c0", 833),
        ],
    )
    def test_sibling_selectors(self, big_list, selector, count):
        assert len(select(big_list.root, compile(selector))) == count

    def test_sibling_matching_is_not_quadratic(self, big_list):
        started = time.perf_counter()
        for selector in ("li + li", "li ~ li", "li:nth-child(2n)", "li:last-of-type"):
            select(big_list.root, compile(selector))
        assert time.perf_counter() - started < 5.0

    def test_of_type_counts_only_same_name(self):
        doc = parse("<div><p>1</p><span>x</span><p>2</p><span>y</span><p>3</p></div>")
        assert texts(doc, "p:nth-of-type(2)") == ["2"]
        assert texts(doc, "span:last-of-type") == ["y"]
        assert texts(doc, "span ~ p") == ["2", "3"]
