"""Text encoding utilities for Tamiz.

Canonical implementations of the escaping used on the way out of the
sanitizer. Everything that reaches output as text or as an attribute value
passes through one of these functions.

Example:
    >>> from tamiz.utils.text import escape_html
    >>> escape_html('<b title="x">')
    '&lt;b title=&quot;x&quot;&gt;'
"""

from __future__ import annotations

import html as html_module


def escape_html(text: str) -> str:
    """Encode text for an HTML text context.

    Escapes ``&``, ``<``, ``>``, ``"`` and ``'``. Quotes are encoded even in
    text so that promoted text can never close an attribute.

    Examples:
        >>> escape_html("foo & bar")
        'foo &amp; bar'
        >>> escape_html("")
        ''
    """
    if not text:
        return ""
    return html_module.escape(text, quote=True)


def escape_attribute(value: str) -> str:
    """Encode a value for a double-quoted HTML attribute.

    Examples:
        >>> escape_attribute('a"b')
        'a&quot;b'
    """
    return html_module.escape(value, quote=True)


def unescape_html(text: str) -> str:
    """Decode HTML character references (``&amp;`` -> ``&``).

    Unknown named references are left as literal text.
    """
    return html_module.unescape(text)
