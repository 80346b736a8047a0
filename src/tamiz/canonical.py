"""Canonicalization of untrusted strings before policy checks.

Percent-encoding is the cheapest way to smuggle a forbidden token past a
naive check (``%6A%61%76%61script:``, ``%252F%252F``). Every URL candidate
is decoded to a fixed point, within a bounded number of passes, and then
stripped of control characters before the classifier looks at it.

Example:
    >>> from tamiz.canonical import canonicalize
    >>> canonicalize("%252Fdashboard")
    '/dashboard'
"""

import re
from dataclasses import dataclass
from urllib.parse import unquote

DEFAULT_MAX_ITERATIONS = 5

# C0 controls, DEL and C1 controls. NUL and friends truncate or split tokens
# differently in different consumers.
_CONTROL_CHARS = re.compile("[\x00-\x1f\x7f-\x9f]+")

# A percent sign that does not start a two-digit hex escape.
_BARE_PERCENT = re.compile("%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True, slots=True)
class Decoded:
    """Result of repeated percent-decoding.

    Attributes:
        value: Last successfully decoded string
        iterations: Decoding passes that changed the value
        settled: False when the pass cap was hit while the value was still
            changing (more encoding layers remain)
        malformed: True when a pass failed because a percent sign did not
            start a hex escape or an escape sequence did not decode to
            valid UTF-8; ``value`` is the last good value

    """

    value: str
    iterations: int
    settled: bool
    malformed: bool = False


def _decode_once(value: str) -> str | None:
    if _BARE_PERCENT.search(value):
        return None
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError:
        return None


def percent_decode(s: str, max_iterations: int = DEFAULT_MAX_ITERATIONS) -> Decoded:
    """Percent-decode ``s`` until it stops changing or the pass cap is reached.

    A pass that fails stops the loop and keeps the previous value. A pass
    fails on a percent sign that does not start a hex escape (``%zz``, a
    trailing ``%``) and on escape sequences that are not valid UTF-8.

    Args:
        s: Candidate string
        max_iterations: Maximum number of decoding passes

    Returns:
        Decoded value with pass count and how the loop ended

    Examples:
        >>> percent_decode("%2F%2Fevil.com").value
        '//evil.com'
        >>> percent_decode("%252F").iterations
        2
    """
    value = s or ""
    iterations = 0
    while iterations < max_iterations:
        if "%" not in value:
            return Decoded(value, iterations, settled=True)
        decoded = _decode_once(value)
        if decoded is None:
            return Decoded(value, iterations, settled=True, malformed=True)
        if decoded == value:
            return Decoded(value, iterations, settled=True)
        value = decoded
        iterations += 1

    if "%" not in value:
        return Decoded(value, iterations, settled=True)
    decoded = _decode_once(value)
    if decoded is None:
        return Decoded(value, iterations, settled=True, malformed=True)
    return Decoded(value, iterations, settled=decoded == value)


def strip_controls(s: str) -> str:
    """Remove control characters and surrounding whitespace.

    Examples:
        >>> strip_controls(" java\\tscript:x ")
        'javascript:x'
        >>> strip_controls("/a\\x00b")
        '/ab'
    """
    if not s:
        return ""
    return _CONTROL_CHARS.sub("", s).strip()


def canonicalize(s: str, max_iterations: int = DEFAULT_MAX_ITERATIONS) -> str:
    """Return the canonical form of an untrusted string.

    Decodes percent-encoding to a fixed point (at most ``max_iterations``
    passes), then strips control characters and surrounding whitespace.
    Never raises. A decoding failure keeps the last good value; callers
    that make a trust decision check ``percent_decode(...).malformed``
    instead of treating that value as clean.

    Args:
        s: Untrusted string
        max_iterations: Decoding pass cap

    Returns:
        Canonical string; empty for empty or degenerate input
    """
    return strip_controls(percent_decode(s, max_iterations).value)
