"""Reverse proxy header authentication strategy."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from typing import Any

from reverseproxy_auth._types import IdentityRecord, RawHeaders, VerifyHook
from reverseproxy_auth.auth.protocol import OutcomeHandlers, Strategy
from reverseproxy_auth.config import ProxyAuthConfig
from reverseproxy_auth.errors import ConfigError, VerifyTimeoutError
from reverseproxy_auth.outcome import DEFAULT_CHALLENGE, AuthErrored, AuthRejected, Outcome, dispatch_outcome
from reverseproxy_auth.request import ProxyRequest
from reverseproxy_auth.verify import VerifyCallback, accept_identity

logger = logging.getLogger(__name__)


class ReverseProxyStrategy:
    """Authenticates requests from headers injected by a reverse proxy.

    The proxy is trusted to have authenticated the user already and to
    forward the result in request headers such as ``X-Forwarded-User``.
    Each configured header is extracted into a ``headers`` subset and an
    identity record (keyed by alias or header name), and both are handed to
    the ``verify`` hook, which decides the final identity by calling
    ``done(err, user, info)``.

    When a whitelist is configured, requests whose connection peer lies
    outside it are rejected before any header is read, so a client that
    bypasses the proxy cannot forge its headers.

    Args:
        options: A ``ProxyAuthConfig``, an options mapping with ``headers``
            and ``whitelist`` keys, or None for the defaults. A callable is
            taken as ``verify``.
        verify: Verify hook ``verify(headers, identity, done)``. Coroutine
            functions run on the event loop; plain functions run in a worker
            thread so a blocking hook neither stalls other requests nor
            escapes ``verify_timeout``. Defaults to accepting the identity
            as is.
        logger: Logger receiving configuration and rejection warnings.
        verify_timeout: Seconds to wait for ``done`` before reporting an
            ``AuthErrored`` outcome. None waits indefinitely.

    Raises:
        ConfigError: If the configuration is malformed.
    """

    name = "reverseproxy"

    def __init__(
        self,
        options: ProxyAuthConfig | Mapping[str, Any] | VerifyHook | None = None,
        verify: VerifyHook | None = None,
        *,
        logger: logging.Logger | None = None,
        verify_timeout: float | None = None,
    ) -> None:
        if callable(options) and not isinstance(options, (ProxyAuthConfig, Mapping)):
            options, verify = None, options

        self._log = logger or logging.getLogger(__name__)

        if verify is not None and not callable(verify):
            self._log.warning("Verify hook %r is not callable; accepting identities as is", verify)
            verify = None
        self._verify: VerifyHook = verify or accept_identity

        if verify_timeout is not None and verify_timeout <= 0:
            raise ConfigError(f"verify_timeout must be positive, got {verify_timeout!r}")
        self._verify_timeout = verify_timeout

        if isinstance(options, ProxyAuthConfig):
            self._config = options
        else:
            self._config = ProxyAuthConfig.from_mapping(options, logger=self._log)

    @property
    def config(self) -> ProxyAuthConfig:
        return self._config

    async def authenticate(self, request: ProxyRequest, handlers: OutcomeHandlers | None = None) -> Outcome:
        """Authenticate ``request`` and report the outcome to ``handlers``."""
        outcome = await self._authenticate(request)
        if handlers is not None:
            dispatch_outcome(outcome, handlers)
        return outcome

    async def _authenticate(self, request: ProxyRequest) -> Outcome:
        if not self._peer_allowed(request):
            return AuthRejected(DEFAULT_CHALLENGE)

        extracted = self.extract(request)
        if extracted is None:
            return AuthRejected(DEFAULT_CHALLENGE)

        headers, identity = extracted
        return await self._run_verify(headers, identity)

    def _peer_allowed(self, request: ProxyRequest) -> bool:
        whitelist = self._config.whitelist
        if whitelist is None:
            return True

        peer = request.remote_addr
        if not whitelist.contains(peer):
            self._log.warning(
                "Proxy server address %r is outside the allowed whitelist (%s); failing authentication",
                peer,
                whitelist,
            )
            return False
        return True

    def extract(self, request: ProxyRequest) -> tuple[RawHeaders, IdentityRecord] | None:
        """Extract the configured headers from ``request``.

        Returns:
            The raw header subset and the identity record, or None if a
            required header is missing or blank.
        """
        headers: RawHeaders = {}
        identity: IdentityRecord = {}

        for rule in self._config.headers:
            value = request.header(rule.lookup_name)
            headers[rule.header_name] = value

            if rule.required and (value is None or not value.strip()):
                self._log.warning(
                    "Required request header %r not found; failing authentication",
                    rule.header_name,
                )
                return None

            identity[rule.key] = value or ""

        return headers, identity

    async def _run_verify(self, headers: RawHeaders, identity: IdentityRecord) -> Outcome:
        done = VerifyCallback(logger=self._log)
        if self._verify_timeout is None:
            return await self._call_verify(headers, identity, done)
        try:
            return await asyncio.wait_for(self._call_verify(headers, identity, done), self._verify_timeout)
        except asyncio.TimeoutError:
            self._log.warning("Verify hook did not complete within %ss; failing with an error", self._verify_timeout)
            return AuthErrored(VerifyTimeoutError(self._verify_timeout))

    async def _call_verify(self, headers: RawHeaders, identity: IdentityRecord, done: VerifyCallback) -> Outcome:
        try:
            if inspect.iscoroutinefunction(self._verify):
                await self._verify(headers, identity, done)
            else:
                # Plain hooks may block; keep them off the event loop
                result = await asyncio.to_thread(self._verify, headers, identity, done)
                if inspect.isawaitable(result):
                    await result
        except Exception as exc:
            if done.called:
                self._log.exception("Verify hook raised after reporting its result")
            else:
                self._log.debug("Verify hook raised", exc_info=True)
                done(exc)
        return await done.wait()


# Verify protocol compliance at import time
assert isinstance(ReverseProxyStrategy.__new__(ReverseProxyStrategy), Strategy)
