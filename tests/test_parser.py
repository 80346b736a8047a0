"""Tests for the permissive markup parser."""

import pytest

from tamiz.errors import MarkupParseError, NestingLimitError
from tamiz.nodes import Element, Fragment, Node, Text
from tamiz.parser import parse_markup


def _depth(node: Node) -> int:
    deepest = 0
    stack: list[tuple[Node, int]] = [(node, 0)]
    while stack:
        current, level = stack.pop()
        if isinstance(current, Element):
            level += 1
            deepest = max(deepest, level)
        if isinstance(current, Element | Fragment):
            stack.extend((child, level) for child in current.children)
    return deepest


class TestBasicParsing:
    def test_empty(self) -> None:
        assert parse_markup("") == Fragment()

    def test_plain_text(self) -> None:
        assert parse_markup("hello") == Fragment((Text("hello"),))

    def test_element(self) -> None:
        tree = parse_markup("<b>hi</b>")
        assert tree == Fragment((Element("b", (), (Text("hi"),)),))

    def test_names_lowercased(self) -> None:
        tree = parse_markup('<B CLASS="x">hi</B>')
        element = tree.children[0]
        assert isinstance(element, Element)
        assert element.tag == "b"
        assert element.attributes == (("class", "x"),)

    def test_attribute_order_kept(self) -> None:
        element = parse_markup('<a id="1" href="/x" class="c">x</a>').children[0]
        assert isinstance(element, Element)
        assert [name for name, _ in element.attributes] == ["id", "href", "class"]

    def test_bare_attribute(self) -> None:
        element = parse_markup("<input disabled>").children[0]
        assert isinstance(element, Element)
        assert element.attributes == (("disabled", None),)

    def test_duplicate_attribute_keeps_first(self) -> None:
        element = parse_markup('<a href="/first" href="/second">x</a>').children[0]
        assert isinstance(element, Element)
        assert element.attributes == (("href", "/first"),)


class TestCharacterReferences:
    def test_named_entities_decoded(self) -> None:
        assert parse_markup("&lt;script&gt;") == Fragment((Text("<script>"),))

    def test_numeric_entities_decoded(self) -> None:
        assert parse_markup("&#60;b&#x3E;") == Fragment((Text("<b>"),))

    def test_attribute_entities_decoded(self) -> None:
        element = parse_markup('<a href="javascript&#58;alert(1)">x</a>').children[0]
        assert isinstance(element, Element)
        assert element.attributes == (("href", "javascript:alert(1)"),)

    def test_adjacent_text_merged(self) -> None:
        assert parse_markup("a &amp; b") == Fragment((Text("a & b"),))


class TestTreeRepair:
    def test_unclosed_elements_closed_at_end(self) -> None:
        tree = parse_markup("<b><i>x")
        assert tree == Fragment((Element("b", (), (Element("i", (), (Text("x"),)),)),))

    def test_unmatched_end_tag_ignored(self) -> None:
        assert parse_markup("</i>hi") == Fragment((Text("hi"),))

    def test_misnested_end_tag_closes_inner(self) -> None:
        tree = parse_markup("<b><i>x</b>y</i>")
        assert tree == Fragment(
            (
                Element("b", (), (Element("i", (), (Text("x"),)),)),
                Text("y"),
            )
        )

    def test_void_element_has_no_children(self) -> None:
        tree = parse_markup("a<br>b")
        assert tree == Fragment((Text("a"), Element("br"), Text("b")))

    def test_self_closing_void(self) -> None:
        assert parse_markup("<br/>") == Fragment((Element("br"),))

    def test_self_closing_non_void_opens(self) -> None:
        tree = parse_markup("<b/>x")
        assert tree == Fragment((Element("b", (), (Text("x"),)),))

    def test_paragraph_closed_by_paragraph(self) -> None:
        tree = parse_markup("<p>a<p>b")
        assert tree == Fragment(
            (
                Element("p", (), (Text("a"),)),
                Element("p", (), (Text("b"),)),
            )
        )

    def test_paragraph_closed_by_block(self) -> None:
        tree = parse_markup("<p>a<ul><li>b</li></ul>")
        assert tree.children[0] == Element("p", (), (Text("a"),))
        assert isinstance(tree.children[1], Element)
        assert tree.children[1].tag == "ul"

    def test_list_item_closed_by_sibling(self) -> None:
        tree = parse_markup("<ul><li>a<li>b</ul>")
        assert tree == Fragment(
            (
                Element(
                    "ul",
                    (),
                    (
                        Element("li", (), (Text("a"),)),
                        Element("li", (), (Text("b"),)),
                    ),
                ),
            )
        )

    def test_nested_list_item_does_not_close_outer(self) -> None:
        tree = parse_markup("<ul><li>a<ul><li>b</ul></ul>")
        outer = tree.children[0]
        assert isinstance(outer, Element)
        assert len(outer.children) == 1
        assert _depth(tree) == 4


class TestDroppedConstructs:
    def test_comment(self) -> None:
        assert parse_markup("a<!-- <script>x</script> -->b") == Fragment((Text("ab"),))

    def test_doctype(self) -> None:
        assert parse_markup("<!DOCTYPE html>x") == Fragment((Text("x"),))

    def test_processing_instruction(self) -> None:
        assert parse_markup("<?php echo 1 ?>y") == Fragment((Text("y"),))


class TestRawTextElements:
    def test_script_content_is_text(self) -> None:
        tree = parse_markup("<script>alert(1)</script>")
        assert tree == Fragment((Element("script", (), (Text("alert(1)"),)),))

    def test_markup_inside_script_not_parsed(self) -> None:
        tree = parse_markup("<script><b>x</b></script>")
        script = tree.children[0]
        assert isinstance(script, Element)
        assert script.children == (Text("<b>x</b>"),)

    def test_unclosed_script_keeps_remaining_input(self) -> None:
        tree = parse_markup("Great post! <script>alert(1)")
        assert tree == Fragment(
            (Text("Great post! "), Element("script", (), (Text("alert(1)"),)))
        )

    def test_unclosed_style_keeps_partial_end_tag(self) -> None:
        tree = parse_markup("<style>tail</sty")
        assert tree == Fragment((Element("style", (), (Text("tail</sty"),)),))


class TestNestingLimit:
    def test_at_limit(self) -> None:
        tree = parse_markup("<b>" * 64 + "x", max_depth=64)
        assert _depth(tree) == 64

    def test_over_limit(self) -> None:
        with pytest.raises(NestingLimitError) as exc_info:
            parse_markup("<b>" * 65 + "x", max_depth=64)
        assert exc_info.value.max_depth == 64
        assert exc_info.value.lineno == 1

    def test_is_parse_error(self) -> None:
        with pytest.raises(MarkupParseError):
            parse_markup("<i>" * 10, max_depth=3)

    def test_closed_siblings_do_not_accumulate(self) -> None:
        tree = parse_markup("<b>x</b>" * 500, max_depth=2)
        assert len(tree.children) == 500

    def test_void_elements_do_not_count(self) -> None:
        tree = parse_markup("<br>" * 500, max_depth=2)
        assert _depth(tree) == 1

    def test_deep_tree_without_recursion(self) -> None:
        tree = parse_markup("<span>" * 5000, max_depth=10_000)
        assert _depth(tree) == 5000
