"""
Tamiz: Allowlist Sanitizer and Redirect Validator for Untrusted Content

Decides, by an immutable allowlist policy, what part of attacker-controlled
text is safe to render (comments, profile bios) or follow (redirect
targets, share links). Zero runtime dependencies.

Quick Start:
    >>> from tamiz import sanitize_markup, validate_redirect
    >>> sanitize_markup('<b onclick="x()">hi</b>').raw()
    '<b>hi</b>'
    >>> validate_redirect("%2F%2Fevil.com").path
    '/'

Custom Policies:
    >>> from tamiz import AllowPolicy, policy_context
    >>> bios = AllowPolicy(
    ...     allowed_tags=["b", "i"],
    ...     allowed_attributes=[],
    ...     allowed_protocols=["https"],
    ...     allowed_domains=[],
    ...     allowed_paths=["/"],
    ... )
    >>> with policy_context(bios):
    ...     sanitize_markup("<b>bold</b> <a href='/x'>link</a>").raw()
    '<b>bold</b> link'

Untrusted and validated strings are different types: rendering code should
accept ``SafeMarkup`` / ``SafePath`` / ``SafeUrl``, which only this package
can create.
"""

from tamiz.api import (
    SanitizeReport,
    inspect_markup,
    sanitize_markup,
    validate_external_link,
    validate_redirect,
)
from tamiz.canonical import Decoded, canonicalize, percent_decode
from tamiz.comments import format_comment
from tamiz.config import get_policy, policy_context, reset_policy, set_policy
from tamiz.errors import MarkupParseError, NestingLimitError, PolicyError, TamizError
from tamiz.filter import FilterResult, Removal, RemovalKind, TreeFilter
from tamiz.nodes import Element, Fragment, Node, Text
from tamiz.parser import parse_markup
from tamiz.policy import DEFAULT_POLICY, AllowPolicy, Limits
from tamiz.renderers.html import HtmlRenderer
from tamiz.safe import SafeMarkup, SafePath, SafeUrl
from tamiz.urls import Classification, ClassifiedUrl, Mode, Verdict, classify

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_POLICY",
    "AllowPolicy",
    "Classification",
    "ClassifiedUrl",
    "Decoded",
    "Element",
    "FilterResult",
    "Fragment",
    "HtmlRenderer",
    "Limits",
    "MarkupParseError",
    "Mode",
    "NestingLimitError",
    "Node",
    "PolicyError",
    "Removal",
    "RemovalKind",
    "SafeMarkup",
    "SafePath",
    "SafeUrl",
    "SanitizeReport",
    "TamizError",
    "Text",
    "TreeFilter",
    "Verdict",
    "__version__",
    "canonicalize",
    "classify",
    "format_comment",
    "get_policy",
    "inspect_markup",
    "parse_markup",
    "percent_decode",
    "policy_context",
    "reset_policy",
    "sanitize_markup",
    "set_policy",
    "validate_external_link",
    "validate_redirect",
]
