"""Shared test fixtures for reverseproxy-auth tests."""

from __future__ import annotations

from typing import Any

import pytest

from reverseproxy_auth.request import HeaderRequest

# ---------------------------------------------------------------------------
# Outcome handler stub
# ---------------------------------------------------------------------------


class RecordingHandlers:
    """OutcomeHandlers implementation that records every callback."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def success(self, identity: Any, info: Any = None) -> None:
        self.calls.append(("success", (identity, info)))

    def fail(self, challenge: Any = None) -> None:
        self.calls.append(("fail", (challenge,)))

    def error(self, cause: Any) -> None:
        self.calls.append(("error", (cause,)))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


class TrackingRequest(HeaderRequest):
    """HeaderRequest that records which headers were looked up."""

    def __init__(self, headers: dict[str, str] | None = None, remote_addr: str | None = None) -> None:
        super().__init__(headers, remote_addr)
        self.lookups: list[str] = []

    def header(self, name: str) -> str | None:
        self.lookups.append(name)
        return super().header(name)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def handlers() -> RecordingHandlers:
    return RecordingHandlers()


@pytest.fixture
def john_request() -> HeaderRequest:
    """Request forwarded by a local proxy for john.doe@example.com."""
    return HeaderRequest({"x-forwarded-user": "john.doe@example.com"}, remote_addr="127.0.0.1")
