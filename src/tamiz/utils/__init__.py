"""Utility modules for Tamiz.

Provides:
- text: escape_html, escape_attribute, unescape_html for output encoding
- logger: get_logger for logging
"""

from tamiz.utils.logger import get_logger
from tamiz.utils.text import escape_attribute, escape_html, unescape_html

__all__ = [
    "escape_attribute",
    "escape_html",
    "get_logger",
    "unescape_html",
]
