"""Protocols connecting the strategy to its hosting framework."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from reverseproxy_auth.outcome import Outcome
from reverseproxy_auth.request import ProxyRequest


@runtime_checkable
class OutcomeHandlers(Protocol):
    """The three outcome callbacks a hosting framework supplies.

    Exactly one of them is called, once, per authentication attempt.
    """

    def success(self, identity: Any, info: Any = None) -> None: ...

    def fail(self, challenge: Any = None) -> None: ...

    def error(self, cause: Any) -> None: ...


@runtime_checkable
class Strategy(Protocol):
    """Protocol for authentication strategies.

    Implementations inspect one request and produce exactly one ``Outcome``.
    Per-request failures are reported as outcomes, never raised.
    """

    name: str

    async def authenticate(self, request: ProxyRequest, handlers: OutcomeHandlers | None = None) -> Outcome:
        """Authenticate ``request``.

        Args:
            request: Header lookup and peer address of the request.
            handlers: If given, receives the outcome through the matching callback.

        Returns:
            The ``AuthSuccess``, ``AuthRejected`` or ``AuthErrored`` outcome.
        """
        ...
