"""Tests for the default cascading style sheet."""

import pytest

from htmlview.style import StyleSheet, parse_declarations, parse_selector
from htmlview.tree import VirtualElement


def make_tree():
    """Build body > div#main.box > p.note.small."""
    body = VirtualElement("body")
    div = VirtualElement("div", {"id": "main", "class": "box"})
    p = VirtualElement("p", {"class": "note small"})
    body.append(div)
    div.append(p)
    return body, div, p


class TestDeclarations:
    """Test declaration block parsing."""

    def test_normal_and_important(self):
        """Test splitting normal and important declarations."""
        normal, important = parse_declarations(
            "Color: red; margin : 0 ;width:10px !important;; bogus"
        )
        assert normal == {"color": "red", "margin": "0"}
        assert important == {"width": "10px"}

    def test_empty_values_are_skipped(self):
        """Test that declarations without a value are ignored."""
        assert parse_declarations("color:; :red") == ({}, {})


class TestSelectors:
    """Test selector parsing and matching."""

    @pytest.mark.parametrize("text,specificity", [
        ("p", (0, 0, 1)),
        (".note", (0, 1, 0)),
        ("#main", (1, 0, 0)),
        ("div#main.box", (1, 1, 1)),
        ("body p.note.small", (0, 2, 2)),
        ("*", (0, 0, 0)),
    ])
    def test_specificity(self, text, specificity):
        """Test specificity of supported selectors."""
        assert parse_selector(text).specificity == specificity

    @pytest.mark.parametrize("text", ["", "a:hover", "a + b", "> p", "div >", "[href]"])
    def test_unsupported(self, text):
        """Test that unsupported selectors are rejected."""
        assert parse_selector(text) is None

    def test_descendant_and_child(self):
        """Test combinator matching."""
        body, div, p = make_tree()

        assert parse_selector("body p").matches(p)
        assert parse_selector("div > p").matches(p)
        assert not parse_selector("body > p").matches(p)
        assert parse_selector("#main .note").matches(p)
        assert not parse_selector("p div").matches(div)

    def test_compound(self):
        """Test compound selector constraints."""
        _, div, p = make_tree()

        assert parse_selector("P.note").matches(p)
        assert not parse_selector("p.box").matches(p)
        assert parse_selector("*.box").matches(div)


class TestStyleSheet:
    """Test rule ingestion and the cascade."""

    def test_ingest_skips_comments_and_at_rules(self):
        """Test rule extraction from style source."""
        sheet = StyleSheet()
        sheet.ingest(
            "@import url(x.css);\n/* p { color: blue } */\n"
            "@media print { p { color: green } }\n"
            "p, a:hover, .note { color: red }\n"
            "div {}",
            "http://example.com/",
        )

        assert len(sheet.rules) == 2
        assert all(rule.base_location == "http://example.com/" for rule in sheet.rules)
        assert [rule.order for rule in sheet.rules] == [0, 1]

    def test_ingest_unterminated_block(self):
        """Test that an unterminated block still yields its rule."""
        sheet = StyleSheet()
        sheet.ingest("p { color: red")
        assert len(sheet.rules) == 1

    def test_cascade_order(self):
        """Test specificity, source order, inline style and importance."""
        _, _, p = make_tree()
        sheet = StyleSheet()
        sheet.ingest(
            ".note { color: blue; margin: 1px }"
            "p { color: red; padding: 2px !important }"
            "p.note { margin: 3px }"
            "p { margin: 4px }"
        )
        p.set_attribute("style", "padding: 5px; border: thin !important")

        style = sheet.compute(p)

        assert style == {
            "color": "blue",
            "margin": "3px",
            "padding": "2px",
            "border": "thin",
        }

    def test_inline_important_wins(self):
        """Test that important inline declarations win over important rules."""
        _, _, p = make_tree()
        sheet = StyleSheet()
        sheet.ingest("p { color: red !important }")
        p.set_attribute("style", "color: green !important")

        assert sheet.compute(p)["color"] == "green"

    def test_matching_rules_order(self):
        """Test ascending cascade order of matching rules."""
        _, _, p = make_tree()
        sheet = StyleSheet()
        sheet.ingest("#main p { a: 1 } p { b: 2 } .note { c: 3 }")

        matching = sheet.matching_rules(p)
        assert [list(rule.declarations) for rule in matching] == [["b"], ["c"], ["a"]]

    def test_inheritance(self):
        """Test that only inherited properties pass to children."""
        body, div, p = make_tree()
        sheet = StyleSheet()
        sheet.ingest("div { color: red; border: thin } p { margin: inherit; color: inherit }")

        sheet.apply(body)

        assert div.computed_style == {"color": "red", "border": "thin"}
        assert p.computed_style == {"color": "red"}

    def test_inherit_keyword_with_parent_value(self):
        """Test the inherit keyword for a non-inherited property."""
        body, div, p = make_tree()
        sheet = StyleSheet()
        sheet.ingest("div { border: thin } p { border: inherit }")

        sheet.apply(div)
        assert p.computed_style == {"border": "thin"}

    def test_apply_with_inherited_style(self):
        """Test applying with an explicit parent style."""
        _, _, p = make_tree()
        sheet = StyleSheet()
        sheet.apply(p, {"color": "red", "width": "5px"})
        assert p.computed_style == {"color": "red"}
