"""HTML renderer for filtered markup trees.

Serializes a ``Fragment`` back to markup with every piece of text encoded
on the way out, even though the source was markup to begin with. Text that
was promoted from a stripped tag therefore cannot reintroduce a tag.

Output rules:
- text: ``&``, ``<``, ``>``, ``"`` and ``'`` encoded
- attributes: double-quoted, value encoded; bare attributes stay bare
- void elements: start tag only

The walk keeps an explicit stack, so rendering depth is independent of the
Python recursion limit.

Thread Safety:
Renderers hold no per-render state. A single instance can be shared by
threads and render() called concurrently.
"""

from tamiz.nodes import Element, Fragment, Node, Text
from tamiz.parser import VOID_ELEMENTS
from tamiz.stringbuilder import StringBuilder
from tamiz.utils.text import escape_attribute, escape_html


class HtmlRenderer:
    """Render a markup tree to an encoded HTML string.

    Usage:
        >>> from tamiz.nodes import Element, Fragment, Text
        >>> tree = Fragment((Element("b", (), (Text("a < b"),)),))
        >>> HtmlRenderer().render(tree)
        '<b>a &lt; b</b>'

    """

    __slots__ = ()

    def render(self, node: Node) -> str:
        """Render ``node`` and its descendants.

        Args:
            node: Fragment, Element or Text

        Returns:
            Encoded HTML string
        """
        sb = StringBuilder()
        # Work items are nodes to open, or closing tags (plain strings).
        stack: list[Node | str] = [node]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                sb.append(item)
                continue
            match item:
                case Text(content=content):
                    sb.append(escape_html(content))
                case Fragment(children=children):
                    stack.extend(reversed(children))
                case Element(tag=tag, children=children):
                    sb.append(self.start_tag(item))
                    if tag in VOID_ELEMENTS:
                        continue
                    stack.append(f"</{tag}>")
                    stack.extend(reversed(children))
        return sb.build()

    def start_tag(self, element: Element) -> str:
        """Serialize the start tag of ``element``."""
        parts = ["<", element.tag]
        for name, value in element.attributes:
            if value is None:
                parts.extend((" ", name))
            else:
                parts.extend((" ", name, '="', escape_attribute(value), '"'))
        parts.append(">")
        return "".join(parts)
