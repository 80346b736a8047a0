"""Allowlist policy for Tamiz.

An ``AllowPolicy`` is data, not logic: closed sets of tags, attributes,
protocols, domains and paths that the sanitizer and the URL classifier
consult. Anything not listed is rejected.

Policies are frozen dataclasses built once at process start. Construction
normalizes iterables into frozensets and checks invariants, raising
``PolicyError`` for a configuration that could never be safe. After that
they are shared read-only across threads.

Disallowed elements:
    An element whose tag is not allowlisted is replaced by a single text
    node holding the concatenation of its descendant text. Tags are dropped,
    readable text is kept, and no separator is inserted between the pieces.
    The joined text is always HTML-encoded on output, so text that spells
    out a tag once its wrappers are gone (``<scr<b></b>ipt>``) renders as
    inert characters. Do not switch this to deleting the subtree or to
    emitting the pieces unencoded: both reopen bypasses. Tags listed in
    ``drop_content_tags`` are the one exception: their text is discarded.

Example:
    >>> from tamiz.policy import AllowPolicy
    >>> policy = AllowPolicy(
    ...     allowed_tags=["b", "a"],
    ...     allowed_attributes=["href"],
    ...     allowed_protocols=["https"],
    ...     allowed_domains=["example.com"],
    ...     allowed_paths=["/"],
    ... )
    >>> "b" in policy.allowed_tags
    True
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from tamiz.errors import PolicyError

# Elements that execute script, embed foreign documents, or switch the
# browser tokenizer into a raw-text state. Never allowlistable.
FORBIDDEN_TAGS = frozenset(
    (
        "embed",
        "iframe",
        "math",
        "noembed",
        "noframes",
        "noscript",
        "object",
        "plaintext",
        "script",
        "style",
        "svg",
        "template",
        "textarea",
        "title",
        "xmp",
    )
)

# Scheme prefixes rejected before any URL parsing.
DANGEROUS_SCHEMES = frozenset(("javascript", "data", "vbscript"))

# Attributes whose values are navigation or fetch targets.
DEFAULT_URL_ATTRIBUTES = frozenset(
    ("action", "background", "cite", "formaction", "href", "poster", "src", "xlink:href")
)

DEFAULT_LINK_REL = frozenset(("noopener", "noreferrer"))


def _lowered(values: Iterable[str]) -> frozenset[str]:
    return frozenset(str(v).strip().lower() for v in values)


@dataclass(frozen=True, slots=True)
class Limits:
    """Resource caps applied to every call.

    Attributes:
        max_markup_length: Longest markup input accepted, in characters
        max_url_length: Longest URL candidate accepted, in characters
        max_depth: Deepest element nesting accepted by the parser and filter
        max_decode_iterations: Percent-decoding passes before giving up

    """

    max_markup_length: int = 100_000
    max_url_length: int = 2_048
    max_depth: int = 64
    max_decode_iterations: int = 5

    def __post_init__(self) -> None:
        for name in ("max_markup_length", "max_url_length", "max_depth"):
            if getattr(self, name) < 1:
                raise PolicyError(name, "must be a positive integer")
        if self.max_decode_iterations < 2:
            # Fewer than two passes cannot see through double encoding.
            raise PolicyError("max_decode_iterations", "must be at least 2")


@dataclass(frozen=True, slots=True)
class AllowPolicy:
    """Immutable allowlist consulted by the sanitizer and URL classifier.

    Tag, attribute, protocol and domain names are compared lowercase. Paths
    are compared case-sensitively and must start with ``/``; a trailing
    slash is dropped (except for the root path).

    Attributes:
        allowed_tags: Elements kept in sanitized markup
        allowed_attributes: Attributes kept on allowed elements (any tag)
        allowed_protocols: URL schemes accepted for links, without ``:``
        allowed_domains: Hosts (and their subdomains) accepted for absolute links
        allowed_paths: Local paths (and their sub-paths) accepted as redirects
        url_attributes: Attributes validated as external links
        drop_content_tags: Disallowed tags whose text is discarded
        force_link_rel: ``rel`` tokens added to anchors with an absolute href
        default_redirect: Fallback for rejected redirects; must be an
            allowed path
        limits: Resource caps

    """

    allowed_tags: frozenset[str]
    allowed_attributes: frozenset[str]
    allowed_protocols: frozenset[str]
    allowed_domains: frozenset[str]
    allowed_paths: frozenset[str]
    url_attributes: frozenset[str] = DEFAULT_URL_ATTRIBUTES
    drop_content_tags: frozenset[str] = frozenset()
    force_link_rel: frozenset[str] = DEFAULT_LINK_REL
    default_redirect: str = "/"
    limits: Limits = field(default_factory=Limits)

    def __post_init__(self) -> None:
        for name in (
            "allowed_tags",
            "allowed_attributes",
            "allowed_protocols",
            "url_attributes",
            "drop_content_tags",
            "force_link_rel",
        ):
            object.__setattr__(self, name, _lowered(getattr(self, name)))
        domains = _lowered(self.allowed_domains)
        object.__setattr__(self, "allowed_domains", frozenset(d.rstrip(".") for d in domains))
        object.__setattr__(self, "allowed_paths", self._normalize_paths(self.allowed_paths))
        self._validate()

    @staticmethod
    def _normalize_paths(paths: Iterable[str]) -> frozenset[str]:
        normalized = set()
        for path in paths:
            path = str(path).strip()
            if not path.startswith("/"):
                raise PolicyError("allowed_paths", f"{path!r} must start with '/'")
            if "?" in path or "#" in path:
                raise PolicyError("allowed_paths", f"{path!r} must not carry a query or fragment")
            normalized.add(path.rstrip("/") or "/")
        return frozenset(normalized)

    def _validate(self) -> None:
        if not self.allowed_tags:
            raise PolicyError("allowed_tags", "must not be empty")
        if not self.allowed_protocols:
            raise PolicyError("allowed_protocols", "must not be empty")
        if not self.allowed_paths:
            raise PolicyError("allowed_paths", "must not be empty")
        if self.default_redirect not in self.allowed_paths:
            raise PolicyError("default_redirect", f"{self.default_redirect!r} is not an allowed path")

        forbidden = self.allowed_tags & FORBIDDEN_TAGS
        if forbidden:
            raise PolicyError("allowed_tags", f"cannot allow {', '.join(sorted(forbidden))}")

        handlers = sorted(a for a in self.allowed_attributes if a.startswith("on"))
        if handlers:
            raise PolicyError("allowed_attributes", f"cannot allow event handlers {', '.join(handlers)}")
        if "style" in self.allowed_attributes:
            raise PolicyError("allowed_attributes", "cannot allow style")

        schemes = {p.rstrip(":") for p in self.allowed_protocols}
        if schemes != self.allowed_protocols:
            raise PolicyError("allowed_protocols", "list schemes without the trailing ':'")
        dangerous = schemes & DANGEROUS_SCHEMES
        if dangerous:
            raise PolicyError("allowed_protocols", f"cannot allow {', '.join(sorted(dangerous))}")

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "AllowPolicy":
        """Create an AllowPolicy from a plain mapping.

        Only keys naming AllowPolicy fields are used; unknown keys are
        silently ignored. A nested ``limits`` mapping becomes ``Limits``.

        Example:
            >>> policy = AllowPolicy.from_dict({
            ...     "allowed_tags": ["b"],
            ...     "allowed_attributes": [],
            ...     "allowed_protocols": ["https"],
            ...     "allowed_domains": [],
            ...     "allowed_paths": ["/"],
            ...     "unknown_key": "ignored",
            ... })
            >>> sorted(policy.allowed_tags)
            ['b']

        """
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in config.items() if k in valid_fields}
        limits = filtered.get("limits")
        if isinstance(limits, Mapping):
            limit_fields = {f.name for f in Limits.__dataclass_fields__.values()}
            filtered["limits"] = Limits(**{k: v for k, v in limits.items() if k in limit_fields})
        return cls(**filtered)


DEFAULT_POLICY: AllowPolicy = AllowPolicy(
    allowed_tags=frozenset(
        ("a", "b", "br", "em", "i", "li", "ol", "p", "span", "strong", "u", "ul")
    ),
    # style is deliberately absent: CSS can carry url() and expression().
    allowed_attributes=frozenset(("class", "href", "id")),
    allowed_protocols=frozenset(("http", "https", "mailto", "tel")),
    allowed_domains=frozenset(("example.com", "github.com", "localhost", "python.org")),
    allowed_paths=frozenset(("/", "/account", "/dashboard", "/orders", "/profile", "/settings")),
)
