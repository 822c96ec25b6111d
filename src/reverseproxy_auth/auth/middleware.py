"""ASGI middleware that authenticates requests with a reverse proxy strategy."""

from __future__ import annotations

import json
import logging
from contextvars import ContextVar
from http import HTTPStatus
from typing import Any

from reverseproxy_auth.auth.protocol import Strategy
from reverseproxy_auth.outcome import AuthErrored, AuthRejected, AuthSuccess
from reverseproxy_auth.request import HeaderRequest

logger = logging.getLogger(__name__)

# Identity of the request being handled, visible to the downstream app
auth_identity_var: ContextVar[Any | None] = ContextVar("auth_identity", default=None)


class ReverseProxyAuthMiddleware:
    """ASGI middleware that runs a ``Strategy`` for every HTTP request.

    On success the identity is stored in ``auth_identity_var`` and in
    ``scope["user"]`` for the duration of the downstream call. Rejections
    are answered with a JSON 401 (or the challenge, when it is an HTTP
    error status); verify errors with a JSON 500.

    Args:
        app: The ASGI application to wrap.
        strategy: The authentication ``Strategy``.
        exempt_paths: Exact paths that bypass authentication.
        exempt_prefixes: Path prefixes that bypass authentication.
    """

    def __init__(
        self,
        app: Any,
        strategy: Strategy,
        *,
        exempt_paths: set[str] | None = None,
        exempt_prefixes: set[str] | None = None,
    ) -> None:
        self._app = app
        self._strategy = strategy
        self._exempt_paths = exempt_paths if exempt_paths is not None else {"/health"}
        self._exempt_prefixes = exempt_prefixes or set()

    def _is_exempt(self, path: str) -> bool:
        """Check if a path is exempt from authentication."""
        if path in self._exempt_paths:
            return True
        return any(path.startswith(prefix) for prefix in self._exempt_prefixes)

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        path = scope.get("path", "")
        if self._is_exempt(path):
            await self._app(scope, receive, send)
            return

        outcome = await self._strategy.authenticate(HeaderRequest.from_scope(scope))

        if isinstance(outcome, AuthSuccess):
            scope["user"] = outcome.identity
            token = auth_identity_var.set(outcome.identity)
            try:
                await self._app(scope, receive, send)
            finally:
                auth_identity_var.reset(token)
            return

        if isinstance(outcome, AuthRejected):
            await self._send_rejected(send, outcome.challenge)
            return

        cause = outcome.cause if isinstance(outcome, AuthErrored) else outcome
        logger.error(
            "Authentication error for %s",
            path,
            exc_info=cause if isinstance(cause, BaseException) else None,
        )
        await self._send_json(send, 500, {"error": "Internal Server Error", "detail": "Authentication failed"})

    @classmethod
    async def _send_rejected(cls, send: Any, challenge: Any) -> None:
        """Send the rejection response for ``challenge``."""
        status = HTTPStatus.UNAUTHORIZED
        if isinstance(challenge, int) and not isinstance(challenge, bool):
            try:
                status = HTTPStatus(challenge)
            except ValueError:
                logger.debug("Challenge %r is not an HTTP status; answering 401", challenge)
            if not 400 <= status < 600:
                status = HTTPStatus.UNAUTHORIZED
        detail = challenge if isinstance(challenge, str) else "Missing or invalid reverse proxy credentials"
        await cls._send_json(send, int(status), {"error": status.phrase, "detail": detail})

    @staticmethod
    async def _send_json(send: Any, status: int, payload: dict[str, Any]) -> None:
        body = json.dumps(payload).encode()
        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})
