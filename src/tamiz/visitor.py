"""Iterative text extraction for markup trees.

Trees come from attacker-controlled markup, so nothing here recurses at the
language level: the walk keeps its own explicit stack and runs in
constant Python stack depth however deep the tree is.

Example:
    >>> from tamiz.nodes import Element, Text
    >>> from tamiz.visitor import text_content
    >>> text_content(Element("p", (), (Text("a"), Element("b", (), (Text("b"),)))))
    'ab'

Thread Safety:
    All functions are pure and safe to call from any thread.

"""

from tamiz.nodes import Element, Fragment, Node, Text


def _children(node: Node) -> tuple[Node, ...]:
    match node:
        case Element(children=children) | Fragment(children=children):
            return children
        case _:
            return ()


def text_content(node: Node, *, skip_tags: frozenset[str] = frozenset()) -> str:
    """Concatenate all descendant text of ``node`` in document order.

    No separator is inserted between pieces. Subtrees rooted at an element
    whose tag is in ``skip_tags`` contribute nothing.

    Args:
        node: Root of the subtree
        skip_tags: Tags whose subtree text is discarded

    Returns:
        Concatenated text (empty if the subtree holds none)
    """
    parts: list[str] = []
    stack: list[Node] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Text):
            parts.append(current.content)
            continue
        if isinstance(current, Element) and current.tag in skip_tags:
            continue
        stack.extend(reversed(_children(current)))
    return "".join(parts)


__all__ = ["text_content"]
