"""Renderers for Tamiz markup trees.

Currently provides:
- HtmlRenderer: encoded HTML output for sanitized trees
"""

from tamiz.renderers.html import HtmlRenderer

__all__ = ["HtmlRenderer"]
