"""Exception classes for Tamiz.

Exceptions here signal programming errors (a broken policy at startup) or
internal parser conditions. None of them escapes the public sanitize and
validate functions: those absorb failures and return a safe default.
"""

from __future__ import annotations


class TamizError(Exception):
    """Base exception for all Tamiz errors.

    Subclass this for specific error categories.
    """

    pass


class PolicyError(TamizError):
    """Invalid allowlist policy or resource limits.

    Raised while constructing an ``AllowPolicy`` or ``Limits``, which happens
    once at process start. Never raised per request.
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize policy error.

        Args:
            field: Name of the offending policy field
            message: Description of the problem
        """
        self.field = field
        super().__init__(f"Policy field '{field}': {message}")


class MarkupParseError(TamizError):
    """Error while building a tree from untrusted markup.

    Carries the tokenizer position when one is known.
    """

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        col_offset: int | None = None,
    ) -> None:
        """Initialize parse error with optional location.

        Args:
            message: Error description
            lineno: Line number where error occurred (1-indexed)
            col_offset: Column offset where error occurred (0-indexed, as
                reported by the tokenizer)
        """
        self.message = message
        self.lineno = lineno
        self.col_offset = col_offset

        location = ""
        if lineno is not None:
            location = f"{lineno}:"
            if col_offset is not None:
                location += f"{col_offset}:"
            location = location.rstrip(":") + " "

        super().__init__(f"{location}{message}")


class NestingLimitError(MarkupParseError):
    """Markup nests deeper than the configured limit.

    A deeply nested tag bomb is converted into this error instead of
    unbounded memory or stack use.
    """

    def __init__(
        self,
        max_depth: int,
        lineno: int | None = None,
        col_offset: int | None = None,
    ) -> None:
        self.max_depth = max_depth
        super().__init__(f"nesting exceeds {max_depth} levels", lineno, col_offset)
