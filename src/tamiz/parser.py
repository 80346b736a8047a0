"""Permissive markup parser for untrusted input.

Builds a ``Fragment`` tree from raw markup using the standard library's
``html.parser.HTMLParser`` as tokenizer. The tree builder is deliberately
forgiving:

- tag and attribute names are lowercased; character references are decoded,
  unknown ones stay literal text
- duplicate attributes keep the first occurrence (as browsers do)
- void elements (``br``, ``img``, ...) never receive children
- ``<b/>`` on a non-void element opens it, as in browsers
- an end tag closes the nearest matching open element; unmatched end tags
  are ignored; anything still open at end of input is closed
- an unterminated ``<script>`` or ``<style>`` keeps the rest of the input as
  its text
- ``<p>`` is closed by a following block-level start tag and ``<li>`` by a
  sibling ``<li>``
- comments, doctypes, declarations and processing instructions are dropped

The open-element stack is explicit and capped: nesting beyond ``max_depth``
raises ``NestingLimitError`` instead of growing without bound.

Example:
    >>> from tamiz.parser import parse_markup
    >>> parse_markup("<b>hi</b>").children[0].tag
    'b'
"""

from html.parser import HTMLParser

from tamiz.errors import MarkupParseError, NestingLimitError
from tamiz.nodes import Attribute, Element, Fragment, Node, Text
from tamiz.utils.text import unescape_html

DEFAULT_MAX_DEPTH = 64

VOID_ELEMENTS = frozenset(
    (
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    )
)

# Start tags that implicitly close an open <p>.
CLOSES_PARAGRAPH = frozenset(
    (
        "address",
        "article",
        "aside",
        "blockquote",
        "dd",
        "details",
        "div",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "li",
        "main",
        "nav",
        "ol",
        "p",
        "pre",
        "section",
        "table",
        "ul",
    )
)

# An implicit </li> never reaches past these.
_LIST_SCOPE = frozenset(("ol", "ul", "menu"))

# Raw-text elements whose content still decodes character references.
_ESCAPABLE_RAW_TEXT = frozenset(("textarea", "title"))


class _OpenElement:
    """Element under construction; frozen into an Element when closed."""

    __slots__ = ("attributes", "children", "tag")

    def __init__(self, tag: str, attributes: tuple[Attribute, ...]) -> None:
        self.tag = tag
        self.attributes = attributes
        self.children: list[Node] = []

    def freeze(self) -> Element:
        return Element(self.tag, self.attributes, tuple(self.children))


def _dedupe(attrs: list[tuple[str, str | None]]) -> tuple[Attribute, ...]:
    seen: set[str] = set()
    result: list[Attribute] = []
    for name, value in attrs:
        if name in seen:
            continue
        seen.add(name)
        result.append((name, value))
    return tuple(result)


class MarkupParser(HTMLParser):
    """HTMLParser subclass that builds a Tamiz tree.

    One instance parses one input; use ``parse_markup`` rather than driving
    it directly.

    Thread Safety:
        Instances hold per-parse state. Create one per call.
    """

    def __init__(self, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        super().__init__(convert_charrefs=True)
        self._max_depth = max_depth
        self._root: list[Node] = []
        self._stack: list[_OpenElement] = []

    # -- Tree building ---------------------------------------------------------

    def _siblings(self) -> list[Node]:
        return self._stack[-1].children if self._stack else self._root

    def _append(self, node: Node) -> None:
        siblings = self._siblings()
        if isinstance(node, Text) and siblings and isinstance(siblings[-1], Text):
            siblings[-1] = Text(siblings[-1].content + node.content)
        else:
            siblings.append(node)

    def _close_through(self, index: int) -> None:
        """Close every open element from the top of the stack down to ``index``."""
        while len(self._stack) > index:
            element = self._stack.pop().freeze()
            self._append(element)

    def _find_open(self, tag: str, *, boundary: frozenset[str] = frozenset()) -> int | None:
        for index in range(len(self._stack) - 1, -1, -1):
            open_tag = self._stack[index].tag
            if open_tag == tag:
                return index
            if open_tag in boundary:
                return None
        return None

    def _implied_end_tags(self, tag: str) -> None:
        if tag in CLOSES_PARAGRAPH:
            index = self._find_open("p")
            if index is not None:
                self._close_through(index)
        if tag == "li":
            index = self._find_open("li", boundary=_LIST_SCOPE)
            if index is not None:
                self._close_through(index)

    # -- HTMLParser callbacks --------------------------------------------------

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._implied_end_tags(tag)
        attributes = _dedupe(attrs)
        if tag in VOID_ELEMENTS:
            self._append(Element(tag, attributes))
            return
        if len(self._stack) >= self._max_depth:
            lineno, offset = self.getpos()
            raise NestingLimitError(self._max_depth, lineno, offset)
        self._stack.append(_OpenElement(tag, attributes))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        # The self-closing flag is ignored on non-void elements.
        self.handle_starttag(tag, attrs)

    def handle_endtag(self, tag: str) -> None:
        index = self._find_open(tag)
        if index is not None:
            self._close_through(index)

    def handle_data(self, data: str) -> None:
        if data:
            self._append(Text(data))

    def handle_comment(self, data: str) -> None:
        pass

    def handle_decl(self, decl: str) -> None:
        pass

    def handle_pi(self, data: str) -> None:
        pass

    def unknown_decl(self, data: str) -> None:
        pass

    def close(self) -> None:
        """Flush an unterminated raw-text element, then finish tokenizing.

        Inside ``<script>``, ``<style>`` and similar elements the tokenizer
        holds input back until it sees the end tag. Some interpreter
        releases discard that remainder on ``close()``; handing it over as
        text here makes the result the same on all of them.
        """
        if self.cdata_elem is not None and self.rawdata:
            remainder = self.rawdata
            if self.cdata_elem in _ESCAPABLE_RAW_TEXT:
                remainder = unescape_html(remainder)
            self.rawdata = ""
            self.clear_cdata_mode()
            self.handle_data(remainder)
        super().close()

    # -- Result ----------------------------------------------------------------

    def result(self) -> Fragment:
        """Close everything still open and return the finished tree."""
        self._close_through(0)
        return Fragment(tuple(self._root))


def parse_markup(raw: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Fragment:
    """Parse untrusted markup into a ``Fragment``.

    Args:
        raw: Markup source
        max_depth: Deepest element nesting accepted

    Returns:
        Fragment tree (empty for empty input)

    Raises:
        NestingLimitError: If elements nest deeper than ``max_depth``
        MarkupParseError: If the tokenizer fails on pathological input
    """
    if not raw:
        return Fragment()
    parser = MarkupParser(max_depth=max_depth)
    try:
        parser.feed(raw)
        parser.close()
    except MarkupParseError:
        raise
    except (AssertionError, ValueError, IndexError) as exc:
        lineno, offset = parser.getpos()
        raise MarkupParseError(f"tokenizer failed: {exc}", lineno, offset) from exc
    return parser.result()
