"""Typed markup tree nodes for Tamiz.

All nodes are frozen dataclasses with slots for:
- Immutability: a filtered tree can be shared across threads
- Acyclicity: children are tuples built bottom-up, so a node can never
  contain itself
- Pattern matching: match statements work naturally

Node Hierarchy:
Node (base)
├── Fragment (root of a parsed input)
├── Element (tag, ordered attributes, children)
└── Text (character data, already entity-decoded)

Thread Safety:
All nodes are frozen (immutable) and safe to share across threads.

"""

from dataclasses import dataclass
from typing import TypeAlias

Attribute: TypeAlias = tuple[str, str | None]


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all markup tree nodes."""


@dataclass(frozen=True, slots=True)
class Text(Node):
    """Character data.

    ``content`` holds decoded text (``&lt;`` is stored as ``<``); encoding
    happens only when the tree is rendered.

    """

    content: str


@dataclass(frozen=True, slots=True)
class Element(Node):
    """An HTML element.

    Attributes keep source order. A value of ``None`` is a bare attribute
    (``<input disabled>``).

    """

    tag: str
    attributes: tuple[Attribute, ...] = ()
    children: tuple[Node, ...] = ()


@dataclass(frozen=True, slots=True)
class Fragment(Node):
    """Root of a parsed markup fragment."""

    children: tuple[Node, ...] = ()


__all__ = [
    "Attribute",
    "Element",
    "Fragment",
    "Node",
    "Text",
]
