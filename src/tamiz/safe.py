"""Opaque wrappers for validated output.

Untrusted strings and validated strings are different types. Presentation
code that needs renderable markup or a navigation target accepts
``SafeMarkup``, ``SafePath`` or ``SafeUrl``, and only the sanitizer and the
URL validator can create them: each constructor demands a private seal and
raises ``TypeError`` without it.

``SafeMarkup`` implements ``__html__``, so template engines that honour that
protocol (Jinja2, MarkupSafe) insert it without escaping it again.

Example:
    >>> from tamiz import sanitize_markup
    >>> markup = sanitize_markup("<b onclick='x()'>hi</b>")
    >>> markup.raw()
    '<b>hi</b>'
    >>> SafeMarkup("<script>")
    Traceback (most recent call last):
      ...
    TypeError: SafeMarkup can only be created by tamiz.sanitize_markup
"""

from typing import Final

_SEAL: Final = object()


class _Sealed:
    """Immutable string holder that refuses construction without the seal."""

    __slots__ = ("_value",)

    _creator = "tamiz"

    def __init__(self, value: str, *, _seal: object = None) -> None:
        if _seal is not _SEAL:
            raise TypeError(f"{type(self).__name__} can only be created by {self._creator}")
        object.__setattr__(self, "_value", value)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __str__(self) -> str:
        return self._value

    def __reduce__(self) -> object:
        raise TypeError(f"{type(self).__name__} cannot be pickled")


class SafeMarkup(_Sealed):
    """Sanitized, fully encoded markup ready for direct output."""

    __slots__ = ()

    _creator = "tamiz.sanitize_markup"

    def raw(self) -> str:
        """Return the encoded markup string."""
        return self._value

    def __html__(self) -> str:
        return self._value

    def __bool__(self) -> bool:
        return bool(self._value)


class SafePath(_Sealed):
    """Local redirect target inside the path allowlist."""

    __slots__ = ()

    _creator = "tamiz.validate_redirect"

    @property
    def path(self) -> str:
        """The validated path, including any query and fragment."""
        return self._value


class SafeUrl(_Sealed):
    """Link target accepted by the external-link policy."""

    __slots__ = ()

    _creator = "tamiz.validate_external_link"

    @property
    def url(self) -> str:
        """The validated URL."""
        return self._value


def _seal_markup(value: str) -> SafeMarkup:
    """Wrap encoded output from the sanitizer. Internal to tamiz."""
    return SafeMarkup(value, _seal=_SEAL)


def _seal_path(value: str) -> SafePath:
    """Wrap a validated redirect path. Internal to tamiz."""
    return SafePath(value, _seal=_SEAL)


def _seal_url(value: str) -> SafeUrl:
    """Wrap a validated link target. Internal to tamiz."""
    return SafeUrl(value, _seal=_SEAL)
