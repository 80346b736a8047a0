"""ContextVar-based active policy for Tamiz.

The process-wide default is ``DEFAULT_POLICY``, fixed at import time. A
caller that serves several products can scope a different (equally
immutable) policy to the current context; the override never mutates a
shared object, so there is no runtime policy drift.

Thread Safety:
    ContextVars are thread-local by design. Each thread has independent storage,
    so no locks are needed and race conditions are impossible.

Usage:
    from tamiz.config import policy_context
    from tamiz.policy import AllowPolicy

    strict = AllowPolicy(allowed_tags=["b"], ...)
    with policy_context(strict):
        markup = sanitize_markup(comment)

Every public function also accepts ``policy=`` explicitly, which wins over
the context.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from tamiz.policy import DEFAULT_POLICY, AllowPolicy

_active_policy: ContextVar[AllowPolicy] = ContextVar(
    "active_policy",
    default=DEFAULT_POLICY,
)


def get_policy() -> AllowPolicy:
    """Get the policy active in the current context.

    Thread Safety:
        ContextVars are thread-local by design. Safe to call from any thread.

    """
    return _active_policy.get()


def resolve_policy(policy: AllowPolicy | None) -> AllowPolicy:
    """Return ``policy`` if given, else the context policy."""
    return policy if policy is not None else _active_policy.get()


def set_policy(policy: AllowPolicy) -> None:
    """Set the policy for the current context.

    Args:
        policy: AllowPolicy instance to use for this context.

    Raises:
        TypeError: If ``policy`` is not an AllowPolicy.

    Thread Safety:
        Only affects the current thread's context. Other threads are unaffected.

    """
    if not isinstance(policy, AllowPolicy):
        raise TypeError(f"expected AllowPolicy, got {type(policy).__name__}")
    _active_policy.set(policy)


def reset_policy() -> None:
    """Reset the current context to ``DEFAULT_POLICY``.

    Thread Safety:
        Only affects the current thread's context. Other threads are unaffected.

    """
    _active_policy.set(DEFAULT_POLICY)


@contextmanager
def policy_context(policy: AllowPolicy) -> Iterator[None]:
    """Context manager for a temporary policy.

    Args:
        policy: AllowPolicy to use within the context.

    Yields:
        None

    Thread Safety:
        Only affects the current thread's context. Properly restores the
        previous policy even if an exception is raised.

    """
    previous = _active_policy.get()
    set_policy(policy)
    try:
        yield
    finally:
        _active_policy.set(previous)


__all__ = [
    "get_policy",
    "policy_context",
    "reset_policy",
    "resolve_policy",
    "set_policy",
]
