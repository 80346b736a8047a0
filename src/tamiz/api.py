"""Public entry points: sanitize markup, validate redirects and links.

Every function here is total. Malformed or hostile input never raises; it
yields a safe default (empty or literal-text markup, the default redirect
path, no link). Only a broken policy raises, and that happens when the
policy is constructed, not here.

Thread Safety:
    Each call allocates its own tree and builder and reads an immutable
    policy. Safe to call concurrently from any number of threads.
"""

from dataclasses import dataclass

from tamiz.config import resolve_policy
from tamiz.errors import MarkupParseError, NestingLimitError
from tamiz.filter import Removal, TreeFilter
from tamiz.parser import parse_markup
from tamiz.policy import AllowPolicy
from tamiz.renderers.html import HtmlRenderer
from tamiz.safe import SafeMarkup, SafePath, SafeUrl, _seal_markup, _seal_path, _seal_url
from tamiz.urls import Mode, classify
from tamiz.utils.logger import get_logger
from tamiz.utils.text import escape_html

logger = get_logger(__name__)

_RENDERER = HtmlRenderer()


@dataclass(frozen=True, slots=True)
class SanitizeReport:
    """Sanitized markup together with what was taken out.

    Attributes:
        markup: The sanitized output
        removals: Tags, attributes and URLs removed, in document order
        rejected_reason: Why the whole input was rejected or degraded to
            literal text; None when it was filtered normally

    """

    markup: SafeMarkup
    removals: tuple[Removal, ...] = ()
    rejected_reason: str | None = None

    @property
    def rejected(self) -> bool:
        return self.rejected_reason is not None


def inspect_markup(raw: str, *, policy: AllowPolicy | None = None) -> SanitizeReport:
    """Sanitize ``raw`` and report every change made.

    Args:
        raw: Untrusted markup
        policy: Policy to apply (defaults to the context policy)

    Returns:
        SanitizeReport. Input over the length or depth limit yields empty
        markup; a tokenizer failure yields the input as encoded literal text.
    """
    policy = resolve_policy(policy)
    limits = policy.limits

    if not raw:
        return SanitizeReport(_seal_markup(""))
    if len(raw) > limits.max_markup_length:
        reason = f"markup longer than {limits.max_markup_length} characters"
        logger.debug("Rejected markup: %s", reason)
        return SanitizeReport(_seal_markup(""), (), reason)

    try:
        fragment = parse_markup(raw, max_depth=limits.max_depth)
        result = TreeFilter(policy).apply(fragment)
    except NestingLimitError as exc:
        logger.debug("Rejected markup: %s", exc)
        return SanitizeReport(_seal_markup(""), (), str(exc))
    except MarkupParseError as exc:
        logger.warning("Markup parsing failed, emitting literal text: %s", exc)
        return SanitizeReport(_seal_markup(escape_html(raw)), (), str(exc))

    if result.removals:
        logger.debug("Sanitizer removed %d item(s)", len(result.removals))
    return SanitizeReport(_seal_markup(_RENDERER.render(result.fragment)), result.removals)


def sanitize_markup(raw: str, *, policy: AllowPolicy | None = None) -> SafeMarkup:
    """Sanitize untrusted markup for direct output.

    Disallowed elements are replaced by their text, disallowed and event
    handler attributes are dropped, rejected link targets are removed, and
    all text is encoded.

    Args:
        raw: Untrusted markup
        policy: Policy to apply (defaults to the context policy)

    Returns:
        SafeMarkup; ``.raw()`` gives the encoded string

    Example:
        >>> sanitize_markup('<a href="javascript:alert(1)">go</a>').raw()
        '<a>go</a>'
    """
    return inspect_markup(raw, policy=policy).markup


def validate_redirect(raw: str, *, policy: AllowPolicy | None = None) -> SafePath:
    """Validate an untrusted redirect target.

    Args:
        raw: Untrusted target (``returnUrl``, ``next``, ...)
        policy: Policy to apply (defaults to the context policy)

    Returns:
        SafePath whose path is inside ``allowed_paths``; the policy's
        ``default_redirect`` (``/``) on any rejection

    Example:
        >>> validate_redirect("https://evil.com").path
        '/'
        >>> validate_redirect("/dashboard?tab=1").path
        '/dashboard?tab=1'
    """
    policy = resolve_policy(policy)
    result = classify(raw, Mode.REDIRECT_TARGET, policy=policy)
    if result.accepted:
        return _seal_path(result.value)
    return _seal_path(policy.default_redirect)


def validate_external_link(raw: str, *, policy: AllowPolicy | None = None) -> SafeUrl | None:
    """Validate an untrusted link target (share links, profile websites).

    Args:
        raw: Untrusted URL
        policy: Policy to apply (defaults to the context policy)

    Returns:
        SafeUrl holding the canonical URL, or None if rejected
    """
    result = classify(raw, Mode.EXTERNAL_LINK, policy=policy)
    if result.accepted:
        return _seal_url(result.value)
    return None
