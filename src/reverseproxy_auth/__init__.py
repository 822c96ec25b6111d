"""reverseproxy-auth: authenticate requests from headers injected by a reverse proxy."""

from __future__ import annotations

from reverseproxy_auth.auth import (
    OutcomeHandlers,
    ReverseProxyAuthMiddleware,
    ReverseProxyStrategy,
    Strategy,
    auth_identity_var,
)
from reverseproxy_auth.config import DEFAULT_RULES, HeaderRule, ProxyAuthConfig, normalize_headers, parse_header_spec
from reverseproxy_auth.errors import ConfigError, VerifyTimeoutError
from reverseproxy_auth.outcome import AuthErrored, AuthRejected, AuthSuccess, Outcome, dispatch_outcome
from reverseproxy_auth.request import HeaderRequest, ProxyRequest
from reverseproxy_auth.verify import VerifyCallback, accept_identity, pattern_verifier
from reverseproxy_auth.whitelist import Whitelist

__all__ = [
    # Strategy
    "ReverseProxyStrategy",
    "Strategy",
    "OutcomeHandlers",
    # Configuration
    "ProxyAuthConfig",
    "HeaderRule",
    "Whitelist",
    "DEFAULT_RULES",
    "normalize_headers",
    "parse_header_spec",
    # Requests
    "ProxyRequest",
    "HeaderRequest",
    # Outcomes
    "AuthSuccess",
    "AuthRejected",
    "AuthErrored",
    "Outcome",
    "dispatch_outcome",
    # Verify hooks
    "VerifyCallback",
    "accept_identity",
    "pattern_verifier",
    # ASGI
    "ReverseProxyAuthMiddleware",
    "auth_identity_var",
    # Errors
    "ConfigError",
    "VerifyTimeoutError",
]

__version__ = "0.1.0"
