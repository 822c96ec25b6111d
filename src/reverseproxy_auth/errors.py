"""Exceptions raised by reverseproxy-auth."""

from __future__ import annotations


class ConfigError(ValueError):
    """Raised when the header or whitelist configuration is malformed.

    Construction fails as a whole; no partially configured strategy is
    ever returned.
    """


class VerifyTimeoutError(TimeoutError):
    """Reported as the cause of an ``AuthErrored`` outcome when the verify
    hook does not answer within the configured timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"verify hook did not complete within {timeout:g}s")
        self.timeout = timeout
