"""Allowlist filtering of parsed markup trees.

``TreeFilter`` walks a ``Fragment`` depth-first and produces a new tree in
which every element and attribute is permitted by the policy:

- An element whose tag is not allowed becomes a text node holding its
  descendant text (see ``tamiz.policy`` for why), or disappears entirely if
  its tag is in ``drop_content_tags``.
- An allowed element keeps only allowlisted attributes. Attributes whose
  name starts with ``on`` are dropped regardless of the allowlist.
- URL-bearing attributes are classified as external links; a rejected URL
  drops the attribute, not the element, and an accepted one is replaced by
  its canonical form.
- Anchors with an absolute link get the policy's ``rel`` tokens.
- Children of a kept element are filtered after the element itself.

Every change is recorded as a ``Removal`` so callers can show or log what
the sanitizer did.

The walk uses an explicit stack of frames and a depth counter; trees
nested deeper than ``limits.max_depth`` raise ``NestingLimitError``.

Example:
    >>> from tamiz.parser import parse_markup
    >>> from tamiz.policy import DEFAULT_POLICY
    >>> result = TreeFilter(DEFAULT_POLICY).apply(parse_markup("<b onclick='x()'>hi</b>"))
    >>> result.removals[0].name
    'onclick'
"""

from dataclasses import dataclass
from enum import Enum

from tamiz.errors import NestingLimitError
from tamiz.nodes import Attribute, Element, Fragment, Node, Text
from tamiz.policy import AllowPolicy
from tamiz.urls import Mode, Verdict, classify
from tamiz.visitor import text_content


class RemovalKind(Enum):
    """What the filter took out."""

    TAG = "tag"
    CONTENT = "content"
    ATTRIBUTE = "attribute"
    EVENT_HANDLER = "event_handler"
    URL = "url"


@dataclass(frozen=True, slots=True)
class Removal:
    """One change made by the filter.

    Attributes:
        kind: Category of the change
        name: Tag or attribute name
        tag: Element the attribute belonged to (same as ``name`` for tags)
        reason: Classifier reason for URL removals, empty otherwise

    """

    kind: RemovalKind
    name: str
    tag: str
    reason: str = ""

    def __str__(self) -> str:
        match self.kind:
            case RemovalKind.TAG:
                return f"Removed disallowed tag: <{self.name}>"
            case RemovalKind.CONTENT:
                return f"Removed tag and content: <{self.name}>"
            case RemovalKind.EVENT_HANDLER:
                return f"Removed event handler: {self.name} on <{self.tag}>"
            case RemovalKind.URL:
                return f"Removed invalid URL in {self.name} on <{self.tag}>: {self.reason}"
            case _:
                return f"Removed attribute: {self.name} on <{self.tag}>"


@dataclass(frozen=True, slots=True)
class FilterResult:
    """Filtered tree plus the changes that produced it."""

    fragment: Fragment
    removals: tuple[Removal, ...]


class _Frame:
    """A kept element (or the root) whose children are being filtered."""

    __slots__ = ("attributes", "children", "index", "source")

    def __init__(self, source: Element | Fragment, attributes: tuple[Attribute, ...]) -> None:
        self.source = source
        self.attributes = attributes
        self.children: list[Node] = []
        self.index = 0


def _append(children: list[Node], node: Node) -> None:
    if isinstance(node, Text):
        if not node.content:
            return
        if children and isinstance(children[-1], Text):
            children[-1] = Text(children[-1].content + node.content)
            return
    children.append(node)


def _merge_rel(attributes: list[Attribute], tokens: frozenset[str]) -> list[Attribute]:
    forced = sorted(tokens)
    for index, (name, value) in enumerate(attributes):
        if name == "rel":
            existing = (value or "").split()
            missing = [t for t in forced if t not in existing]
            attributes[index] = ("rel", " ".join(existing + missing))
            return attributes
    attributes.append(("rel", " ".join(forced)))
    return attributes


class TreeFilter:
    """Apply an ``AllowPolicy`` to a markup tree.

    Thread Safety:
        Holds only the immutable policy. One instance may be shared across
        threads; each apply() call keeps its own stack and results.
    """

    __slots__ = ("_policy",)

    def __init__(self, policy: AllowPolicy) -> None:
        self._policy = policy

    @property
    def policy(self) -> AllowPolicy:
        return self._policy

    def apply(self, fragment: Fragment) -> FilterResult:
        """Filter ``fragment`` and return the new tree with its removals.

        Raises:
            NestingLimitError: If the tree nests deeper than the policy allows
        """
        max_depth = self._policy.limits.max_depth
        allowed_tags = self._policy.allowed_tags
        removals: list[Removal] = []
        stack: list[_Frame] = [_Frame(fragment, ())]

        while True:
            frame = stack[-1]
            source_children = frame.source.children
            if frame.index < len(source_children):
                child = source_children[frame.index]
                frame.index += 1
                match child:
                    case Text():
                        _append(frame.children, child)
                    case Element(tag=tag) if tag.lower() not in allowed_tags:
                        _append(frame.children, Text(self._textify(child, removals)))
                    case Element() | Fragment():
                        if len(stack) > max_depth:
                            raise NestingLimitError(max_depth)
                        attributes = (
                            self._filter_attributes(child, removals)
                            if isinstance(child, Element)
                            else ()
                        )
                        stack.append(_Frame(child, attributes))
                continue

            stack.pop()
            if not stack:
                return FilterResult(Fragment(tuple(frame.children)), tuple(removals))
            parent = stack[-1]
            if isinstance(frame.source, Element):
                kept = Element(frame.source.tag.lower(), frame.attributes, tuple(frame.children))
                _append(parent.children, kept)
            else:
                for node in frame.children:
                    _append(parent.children, node)

    def _textify(self, element: Element, removals: list[Removal]) -> str:
        tag = element.tag.lower()
        if tag in self._policy.drop_content_tags:
            removals.append(Removal(RemovalKind.CONTENT, tag, tag))
            return ""
        removals.append(Removal(RemovalKind.TAG, tag, tag))
        return text_content(element, skip_tags=self._policy.drop_content_tags)

    def _filter_attributes(self, element: Element, removals: list[Removal]) -> tuple[Attribute, ...]:
        policy = self._policy
        tag = element.tag.lower()
        kept: list[Attribute] = []
        seen: set[str] = set()
        absolute_link = False

        for raw_name, value in element.attributes:
            name = raw_name.lower()
            if name in seen:
                continue
            seen.add(name)
            if name.startswith("on"):
                removals.append(Removal(RemovalKind.EVENT_HANDLER, name, tag))
                continue
            if name not in policy.allowed_attributes:
                removals.append(Removal(RemovalKind.ATTRIBUTE, name, tag))
                continue
            if name in policy.url_attributes:
                result = classify(value or "", Mode.EXTERNAL_LINK, policy=policy)
                if not result.accepted:
                    removals.append(Removal(RemovalKind.URL, name, tag, result.reason))
                    continue
                value = result.value
                if tag == "a" and name == "href" and result.verdict is Verdict.ALLOWED:
                    absolute_link = True
            kept.append((name, value))

        if absolute_link and policy.force_link_rel:
            kept = _merge_rel(kept, policy.force_link_rel)
        return tuple(kept)
