"""URL classification against the allowlist policy.

A candidate URL is canonicalized, screened for structural smuggling and
dangerous schemes, parsed, and classified in one of two modes:

- ``Mode.EXTERNAL_LINK``: link targets in rendered markup and share links.
  Absolute URLs need an allowlisted protocol and, for network schemes, an
  allowlisted host. Relative URLs are accepted as ``RELATIVE_ALLOWED``.
- ``Mode.REDIRECT_TARGET``: server-side redirect targets. Only local paths
  inside ``allowed_paths`` are accepted; any absolute or protocol-relative
  URL is rejected.

Rejection is a value, never an exception. The ``reason`` is informational
(logging, telemetry) and never changes the fallback a caller applies.

Example:
    >>> from tamiz.urls import Mode, classify
    >>> classify("https://docs.python.org/3/", Mode.EXTERNAL_LINK).verdict
    <Verdict.ALLOWED: 'allowed'>
    >>> classify("https://evil.com", Mode.REDIRECT_TARGET).accepted
    False
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urljoin, urlsplit

from tamiz.canonical import percent_decode, strip_controls
from tamiz.config import resolve_policy
from tamiz.policy import DANGEROUS_SCHEMES, AllowPolicy
from tamiz.utils.logger import get_logger

logger = get_logger(__name__)

# Relative candidates are resolved against this origin; it can never be
# a real host, so a resolved URL that leaves it was not relative.
FIXED_ORIGIN = "https://tamiz.invalid"
_ORIGIN_NETLOC = urlsplit(FIXED_ORIGIN).netloc

# Schemes whose URLs name a host that must be allowlisted.
NETWORK_SCHEMES = frozenset(("http", "https", "ws", "wss", "ftp"))

_SCHEME = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")
_STRUCTURAL = ("\\", "\r", "\n")


class Mode(Enum):
    """What the classified URL will be used for."""

    EXTERNAL_LINK = "external_link"
    REDIRECT_TARGET = "redirect_target"


class Verdict(Enum):
    """Outcome of classifying one URL."""

    ALLOWED = "allowed"
    RELATIVE_ALLOWED = "relative_allowed"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class ClassifiedUrl:
    """Parsed parts of a candidate URL.

    Produced once per candidate and consumed immediately.

    Attributes:
        scheme: Lowercase scheme, None for relative and protocol-relative URLs
        host: Lowercase host, None when the URL names no host
        path: Path with query and fragment stripped
        is_relative: True when the URL has neither scheme nor host

    """

    scheme: str | None
    host: str | None
    path: str
    is_relative: bool


@dataclass(frozen=True, slots=True)
class Classification:
    """Verdict for one candidate plus the information behind it.

    Attributes:
        verdict: ALLOWED, RELATIVE_ALLOWED or REJECTED
        reason: Human-readable explanation (for logs only)
        value: Canonical form of the candidate; the string callers may use
            when the verdict is not REJECTED
        url: Parsed parts, None when rejected before parsing

    """

    verdict: Verdict
    reason: str
    value: str
    url: ClassifiedUrl | None = None

    @property
    def accepted(self) -> bool:
        return self.verdict is not Verdict.REJECTED


def host_allowed(host: str | None, domains: Iterable[str]) -> bool:
    """True if ``host`` is an allowlisted domain or a subdomain of one.

    Matching is on a dot boundary: ``docs.example.com`` matches
    ``example.com`` but ``notexample.com`` does not. A trailing dot on the
    host is ignored.

    Examples:
        >>> host_allowed("docs.example.com", {"example.com"})
        True
        >>> host_allowed("notexample.com", {"example.com"})
        False
    """
    if not host:
        return False
    host = host.lower().rstrip(".")
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in domains)


def path_allowed(path: str, paths: Iterable[str]) -> bool:
    """True if ``path`` equals an allowlisted path or is a sub-path of one.

    Case-sensitive. The root path ``/`` matches only itself; otherwise the
    sub-path must continue after a ``/`` (``/dashboard/x`` matches
    ``/dashboard``, ``/dashboards`` does not).

    Examples:
        >>> path_allowed("/dashboard/reports", {"/dashboard"})
        True
        >>> path_allowed("/admin", {"/"})
        False
    """
    for allowed in paths:
        if path == allowed:
            return True
        if allowed != "/" and path.startswith(allowed + "/"):
            return True
    return False


def _has_dot_segment(path: str) -> bool:
    return any(segment in (".", "..") for segment in path.split("/"))


def _reject(value: str, reason: str, url: ClassifiedUrl | None = None) -> Classification:
    logger.debug("Rejected URL candidate %r: %s", value[:200], reason)
    return Classification(Verdict.REJECTED, reason, value, url)


def classify(
    raw: str,
    mode: Mode,
    *,
    policy: AllowPolicy | None = None,
) -> Classification:
    """Classify an untrusted URL candidate.

    Args:
        raw: Untrusted candidate string
        mode: EXTERNAL_LINK or REDIRECT_TARGET
        policy: Policy to apply (defaults to the context policy)

    Returns:
        Classification; ``verdict`` is REJECTED on any failure

    Thread Safety:
        Pure function over an immutable policy. Safe from any thread.
    """
    policy = resolve_policy(policy)
    limits = policy.limits

    if not raw:
        return _reject("", "empty URL")
    if len(raw) > limits.max_url_length:
        return _reject(raw, f"URL longer than {limits.max_url_length} characters")

    decoded = percent_decode(raw, limits.max_decode_iterations)
    if decoded.malformed:
        return _reject(raw, "invalid percent-encoding")
    if not decoded.settled:
        return _reject(raw, "encoding depth exceeded")
    if any(ch in decoded.value for ch in _STRUCTURAL):
        return _reject(raw, "backslash or line break in URL")

    value = strip_controls(decoded.value)
    if not value:
        return _reject(raw, "empty URL after canonicalization")

    lowered = value.lower()
    for scheme in sorted(DANGEROUS_SCHEMES):
        if lowered.startswith(scheme + ":"):
            return _reject(value, f"dangerous scheme {scheme}:")

    if value.startswith("//"):
        return _classify_protocol_relative(value, mode, policy)

    match = _SCHEME.match(value)
    if match is not None:
        if mode is Mode.REDIRECT_TARGET:
            return _reject(value, "absolute URL not allowed as redirect target")
        return _classify_absolute(value, match.group(1).lower(), policy)

    return _classify_relative(value, mode, policy)


def _classify_protocol_relative(value: str, mode: Mode, policy: AllowPolicy) -> Classification:
    if mode is Mode.REDIRECT_TARGET:
        return _reject(value, "protocol-relative URL")
    try:
        parts = urlsplit(value)
        host = parts.hostname
        parts.port  # noqa: B018 - raises ValueError on a malformed port
    except ValueError:
        return _reject(value, "invalid URL")
    url = ClassifiedUrl(scheme=None, host=host, path=parts.path, is_relative=False)
    if parts.username is not None or parts.password is not None:
        return _reject(value, "credentials in URL", url)
    if not host_allowed(host, policy.allowed_domains):
        return _reject(value, f"protocol-relative URL to untrusted host {host!r}", url)
    return Classification(Verdict.ALLOWED, "protocol-relative URL to trusted host", value, url)


def _classify_absolute(value: str, scheme: str, policy: AllowPolicy) -> Classification:
    if scheme not in policy.allowed_protocols:
        return _reject(value, f"blocked protocol {scheme}:")
    try:
        parts = urlsplit(value)
        host = parts.hostname
        parts.port  # noqa: B018 - raises ValueError on a malformed port
    except ValueError:
        return _reject(value, "invalid URL")

    url = ClassifiedUrl(scheme=scheme, host=host, path=parts.path, is_relative=False)
    if scheme in NETWORK_SCHEMES:
        # "https:evil.com" has no authority here but browsers still
        # navigate to evil.com, so a network URL must name its host.
        if not parts.netloc or not host:
            return _reject(value, "network URL without host", url)
        if parts.username is not None or parts.password is not None:
            return _reject(value, "credentials in URL", url)
        if not host_allowed(host, policy.allowed_domains):
            return _reject(value, f"untrusted domain {host!r}", url)
    return Classification(Verdict.ALLOWED, "URL is safe", value, url)


def _classify_relative(value: str, mode: Mode, policy: AllowPolicy) -> Classification:
    try:
        resolved = urlsplit(urljoin(FIXED_ORIGIN + "/", value))
    except ValueError:
        return _reject(value, "invalid URL")
    if resolved.netloc != _ORIGIN_NETLOC:
        return _reject(value, "relative URL resolves off-origin")

    path = urlsplit(value).path
    url = ClassifiedUrl(scheme=None, host=None, path=path, is_relative=True)

    if mode is Mode.EXTERNAL_LINK:
        return Classification(Verdict.RELATIVE_ALLOWED, "relative URL", value, url)

    if not path.startswith("/"):
        return _reject(value, "redirect target must be an absolute path", url)
    if _has_dot_segment(path):
        return _reject(value, "dot segment in redirect path", url)
    if "//" in path:
        return _reject(value, "doubled slash in redirect path", url)
    if not path_allowed(path, policy.allowed_paths):
        return _reject(value, "path not in allowlist", url)
    return Classification(Verdict.RELATIVE_ALLOWED, "path in allowlist", value, url)
