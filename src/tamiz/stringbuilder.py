"""StringBuilder for O(n) output accumulation.

The renderer appends tag and text fragments to a list and joins once at the
end, so serializing a tree is linear in its size however many fragments it
produces.

Thread Safety:
StringBuilder instances are local to each render() call.
No shared mutable state.

"""

from __future__ import annotations


class StringBuilder:
    """List-backed string accumulator.

    Usage:
            >>> sb = StringBuilder()
            >>> sb.append("<b>").append("hi").append("</b>").build()
            '<b>hi</b>'

    """

    __slots__ = ("_parts",)

    def __init__(self) -> None:
        self._parts: list[str] = []

    def append(self, s: str) -> StringBuilder:
        """Append a string (empty strings are skipped) and return self."""
        if s:
            self._parts.append(s)
        return self

    def build(self) -> str:
        """Join all parts into the final string."""
        return "".join(self._parts)

    def __bool__(self) -> bool:
        return bool(self._parts)
