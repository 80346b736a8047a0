"""Lightweight formatting for user comments.

Comments are plain text with three inline forms:

- ``**bold**`` renders as ``<strong>``
- ``*italic*`` renders as ``<em>``
- ``[label](url)`` renders as a link when the URL passes the external-link
  policy, otherwise as the label alone

The whole input is HTML-encoded first, so any markup the author typed shows
up as text. The formatted result then goes through ``sanitize_markup`` like
any other markup: there is one sanitizer, and this module cannot produce
output that bypasses it.

Example:
    >>> format_comment("**Great** read, see [docs](https://python.org/doc)").raw()
    '<strong>Great</strong> read, see <a href="https://python.org/doc" rel="noopener noreferrer">docs</a>'
"""

import re

from tamiz.api import sanitize_markup
from tamiz.config import resolve_policy
from tamiz.policy import AllowPolicy
from tamiz.safe import SafeMarkup
from tamiz.urls import Mode, classify
from tamiz.utils.text import escape_attribute, escape_html, unescape_html

_LINK = re.compile(r"\[([^\[\]\n]+?)\]\(([^()\s]+?)\)")
_BOLD = re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*")
_ITALIC = re.compile(r"\*(?=\S)([^*]+?)(?<=\S)\*")


def _emphasis(encoded: str) -> str:
    encoded = _BOLD.sub(r"<strong>\1</strong>", encoded)
    return _ITALIC.sub(r"<em>\1</em>", encoded)


def format_comment(text: str, *, policy: AllowPolicy | None = None) -> SafeMarkup:
    """Render comment text with bold, italic and link syntax.

    Args:
        text: Untrusted comment text
        policy: Policy to apply (defaults to the context policy)

    Returns:
        SafeMarkup produced by ``sanitize_markup``
    """
    if not text:
        return sanitize_markup("", policy=policy)
    policy = resolve_policy(policy)

    encoded = escape_html(text)
    pieces: list[str] = []
    position = 0
    for match in _LINK.finditer(encoded):
        pieces.append(_emphasis(encoded[position : match.start()]))
        label = _emphasis(match.group(1))
        result = classify(unescape_html(match.group(2)), Mode.EXTERNAL_LINK, policy=policy)
        if result.accepted:
            pieces.append(f'<a href="{escape_attribute(result.value)}">{label}</a>')
        else:
            pieces.append(label)
        position = match.end()
    pieces.append(_emphasis(encoded[position:]))

    return sanitize_markup("".join(pieces), policy=policy)
