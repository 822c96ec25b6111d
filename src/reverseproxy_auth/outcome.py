"""Terminal outcomes of a single authentication attempt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from reverseproxy_auth.auth.protocol import OutcomeHandlers

# Challenge reported by the core's own whitelist and header checks
DEFAULT_CHALLENGE = 401


@dataclass(frozen=True)
class AuthSuccess:
    """The request was authenticated.

    Attributes:
        identity: The principal produced by the verify hook.
        info: Optional extra information supplied by the hook.
    """

    identity: Any
    info: Any = None


@dataclass(frozen=True)
class AuthRejected:
    """The request failed to authenticate for a reportable reason.

    Attributes:
        challenge: Opaque challenge or reason value (a status code, a string
            or ``None``). The core's own checks always use 401.
    """

    challenge: Any = None


@dataclass(frozen=True)
class AuthErrored:
    """The verify hook signalled a system fault rather than a rejection."""

    cause: Any


Outcome = Union[AuthSuccess, AuthRejected, AuthErrored]


def dispatch_outcome(outcome: Outcome, handlers: OutcomeHandlers) -> None:
    """Invoke exactly one of ``handlers.success``/``fail``/``error``."""
    if isinstance(outcome, AuthSuccess):
        handlers.success(outcome.identity, outcome.info)
    elif isinstance(outcome, AuthRejected):
        handlers.fail(outcome.challenge)
    elif isinstance(outcome, AuthErrored):
        handlers.error(outcome.cause)
    else:
        raise TypeError(f"Unknown authentication outcome: {outcome!r}")
