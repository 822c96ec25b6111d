"""Request capability consumed by the authenticator."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from starlette.requests import Request


@runtime_checkable
class ProxyRequest(Protocol):
    """What the authenticator needs from an incoming request.

    Implementations expose case-insensitive header lookup and the address
    of the immediate connection peer (the reverse proxy, when deployed
    correctly).
    """

    remote_addr: str | None

    def header(self, name: str) -> str | None:
        """Return the value of header ``name`` (lower-case), or None."""
        ...


class HeaderRequest:
    """A ``ProxyRequest`` over a plain header mapping.

    Args:
        headers: Header names mapped to values; names are lower-cased.
        remote_addr: Address of the connection peer, if known.
    """

    def __init__(self, headers: Mapping[str, str] | None = None, remote_addr: str | None = None) -> None:
        self._headers = {name.lower(): value for name, value in (headers or {}).items()}
        self.remote_addr = remote_addr

    def header(self, name: str) -> str | None:
        return self._headers.get(name.lower())

    def __repr__(self) -> str:
        return f"HeaderRequest(headers={self._headers!r}, remote_addr={self.remote_addr!r})"

    @classmethod
    def from_scope(cls, scope: dict[str, Any]) -> HeaderRequest:
        """Build from an ASGI HTTP scope.

        Repeated headers are joined with ``", "`` as in RFC 9110.
        """
        headers: dict[str, str] = {}
        for key_bytes, value_bytes in scope.get("headers", []):
            key = key_bytes.decode("latin-1").lower()
            value = value_bytes.decode("latin-1")
            headers[key] = f"{headers[key]}, {value}" if key in headers else value
        client = scope.get("client")
        return cls(headers, client[0] if client else None)

    @classmethod
    def from_starlette(cls, request: Request) -> HeaderRequest:
        """Build from a Starlette ``Request``."""
        headers = {key: ", ".join(request.headers.getlist(key)) for key in request.headers.keys()}
        return cls(headers, request.client.host if request.client else None)
