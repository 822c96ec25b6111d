"""Verify hooks and the single-fire continuation they report through."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from reverseproxy_auth._types import RawHeaders, VerifyHook
from reverseproxy_auth.outcome import AuthErrored, AuthRejected, AuthSuccess, Outcome

logger = logging.getLogger(__name__)


class VerifyCallback:
    """The ``done`` continuation handed to a verify hook.

    Called as ``done(err, user=None, info=None)``: a truthy ``err`` reports
    an error, a falsy ``user`` a rejection with ``info`` as the challenge,
    anything else a success. Only the first call counts; later calls are
    logged and ignored. It may be called from the event loop thread or
    from any other thread.
    """

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._loop = asyncio.get_running_loop()
        self._future: asyncio.Future[Outcome] = self._loop.create_future()
        self._log = logger or logging.getLogger(__name__)
        self._called = False

    @property
    def called(self) -> bool:
        return self._called

    def __call__(self, err: Any = None, user: Any = None, info: Any = None) -> None:
        if self._called:
            self._log.warning("Verify callback invoked more than once; ignoring the extra call")
            return
        self._called = True
        self.resolve(to_outcome(err, user, info))

    def resolve(self, outcome: Outcome) -> None:
        """Settle the continuation with ``outcome`` unless already settled."""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._settle(outcome)
        else:
            self._loop.call_soon_threadsafe(self._settle, outcome)

    def _settle(self, outcome: Outcome) -> None:
        if not self._future.done():
            self._future.set_result(outcome)

    async def wait(self) -> Outcome:
        """Wait until the hook reports its result."""
        return await asyncio.shield(self._future)


def to_outcome(err: Any, user: Any, info: Any = None) -> Outcome:
    """Translate a ``(err, user, info)`` verify result into an ``Outcome``."""
    if err:
        return AuthErrored(err)
    if not user:
        return AuthRejected(info)
    return AuthSuccess(user, info)


def accept_identity(headers: RawHeaders, identity: dict[str, str], done: VerifyCallback) -> None:
    """Default verify hook: accept the identity built from the headers."""
    done(None, identity)


def pattern_verifier(header_name: str, pattern: str | re.Pattern[str], *, challenge: Any = 401) -> VerifyHook:
    """Build a verify hook that rejects unless a header matches ``pattern``.

    For example, to require the forwarded username to look like an email
    address::

        verify = pattern_verifier("X-Forwarded-User", r"^.*@.*$")

    Args:
        header_name: Configured name of the header to check.
        pattern: Regular expression searched in the raw header value.
        challenge: Challenge reported on mismatch.
    """
    regex = re.compile(pattern)

    def verify(headers: RawHeaders, identity: dict[str, str], done: VerifyCallback) -> None:
        value = headers.get(header_name)
        if value is None or not regex.search(value):
            logger.info("Header %s does not match %s; rejecting", header_name, regex.pattern)
            done(None, False, challenge)
            return
        done(None, identity)

    return verify
