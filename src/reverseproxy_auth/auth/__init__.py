"""Authentication strategy and ASGI integration."""

from reverseproxy_auth.auth.middleware import ReverseProxyAuthMiddleware, auth_identity_var
from reverseproxy_auth.auth.protocol import OutcomeHandlers, Strategy
from reverseproxy_auth.auth.strategy import ReverseProxyStrategy

__all__ = [
    "Strategy",
    "OutcomeHandlers",
    "ReverseProxyStrategy",
    "ReverseProxyAuthMiddleware",
    "auth_identity_var",
]
