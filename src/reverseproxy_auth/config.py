"""Normalization of the header and whitelist configuration."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from reverseproxy_auth.errors import ConfigError
from reverseproxy_auth.whitelist import Whitelist

logger = logging.getLogger(__name__)

DEFAULT_HEADER = "X-Forwarded-User"
DEFAULT_ALIAS = "username"

_RULE_FIELDS = frozenset({"alias", "required"})
_OPTION_FIELDS = frozenset({"headers", "whitelist"})


@dataclass(frozen=True)
class HeaderRule:
    """How one request header participates in authentication.

    Attributes:
        header_name: The configured header name, as written by the user.
        alias: Identity key to store the value under instead of the header name.
        required: If True, a missing or blank header fails authentication.
    """

    header_name: str
    alias: str | None = None
    required: bool = False

    @property
    def lookup_name(self) -> str:
        """Canonical lower-case form matched against request headers."""
        return self.header_name.strip().lower()

    @property
    def key(self) -> str:
        """Identity record key for this header's value."""
        return self.alias if self.alias else self.header_name


DEFAULT_RULES: tuple[HeaderRule, ...] = (HeaderRule(DEFAULT_HEADER, alias=DEFAULT_ALIAS, required=True),)


def _to_rule(name: Any, value: Any) -> HeaderRule:
    if not isinstance(name, str) or not name.strip():
        raise ConfigError(f"header name must be a non-empty string, got {name!r}")

    if value is None:
        return HeaderRule(name)
    if isinstance(value, bool):
        return HeaderRule(name, required=value)
    if isinstance(value, str):
        return HeaderRule(name, alias=value or None)
    if isinstance(value, HeaderRule):
        return HeaderRule(name, alias=value.alias, required=value.required)
    if isinstance(value, Mapping):
        unknown = set(value) - _RULE_FIELDS
        if unknown:
            raise ConfigError(f"header {name!r}: unknown option(s) {sorted(unknown)}")
        alias = value.get("alias")
        required = value.get("required", False)
        if alias is not None and not isinstance(alias, str):
            raise ConfigError(f"header {name!r}: alias must be a string, got {alias!r}")
        if not isinstance(required, bool):
            raise ConfigError(f"header {name!r}: required must be a boolean, got {required!r}")
        return HeaderRule(name, alias=alias or None, required=required)

    raise ConfigError(f"header {name!r}: unsupported rule {value!r}")


def normalize_headers(
    headers: Mapping[str, Any] | None,
    *,
    logger: logging.Logger | None = None,
) -> tuple[HeaderRule, ...]:
    """Resolve a loosely-typed header configuration into ``HeaderRule`` s.

    Each value may be a ``bool`` (required flag), a ``str`` (alias of an
    optional header), a mapping with ``alias``/``required`` keys, a
    ``HeaderRule`` or ``None``. An absent or empty configuration falls back
    to a required ``X-Forwarded-User`` header aliased as ``username``.

    Raises:
        ConfigError: If a header name or rule has an unsupported shape.
    """
    log = logger or logging.getLogger(__name__)
    if headers is not None and not isinstance(headers, Mapping):
        raise ConfigError(f"headers must be a mapping, got {type(headers).__name__}")
    if not headers:
        log.warning(
            "Header configuration was empty; defaulting to the %s request header for authentication",
            DEFAULT_HEADER,
        )
        return DEFAULT_RULES

    rules: dict[str, HeaderRule] = {}
    for name, value in headers.items():
        rules[name] = _to_rule(name, value)
    return tuple(rules.values())


def parse_header_spec(spec: str) -> tuple[str, HeaderRule]:
    """Parse a ``Name[:alias][:required|optional]`` command-line header spec.

    >>> parse_header_spec("X-Forwarded-User:username:required")
    ('X-Forwarded-User', HeaderRule(header_name='X-Forwarded-User', alias='username', required=True))
    """
    name, *parts = [part.strip() for part in spec.split(":")]
    if not name:
        raise ConfigError(f"invalid header spec {spec!r}: missing header name")

    alias: str | None = None
    required = False
    for part in parts:
        flag = part.lower()
        if flag == "required":
            required = True
        elif flag == "optional":
            required = False
        elif part and alias is None:
            alias = part
        else:
            raise ConfigError(f"invalid header spec {spec!r}")
    return name, HeaderRule(name, alias=alias, required=required)


@dataclass(frozen=True)
class ProxyAuthConfig:
    """Immutable, normalized configuration of a ``ReverseProxyStrategy``.

    Attributes:
        headers: Header rules in evaluation order.
        whitelist: Allowed proxy address range, or None for no restriction.
    """

    headers: tuple[HeaderRule, ...] = DEFAULT_RULES
    whitelist: Whitelist | None = None

    @classmethod
    def build(
        cls,
        headers: Mapping[str, Any] | None = None,
        whitelist: str | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> ProxyAuthConfig:
        """Normalize ``headers`` and compile ``whitelist``."""
        rules = normalize_headers(headers, logger=logger)
        compiled = Whitelist.parse(whitelist) if whitelist else None
        return cls(headers=rules, whitelist=compiled)

    @classmethod
    def from_mapping(
        cls,
        options: Mapping[str, Any] | None,
        *,
        logger: logging.Logger | None = None,
    ) -> ProxyAuthConfig:
        """Build from an options mapping with ``headers`` and ``whitelist`` keys."""
        options = options or {}
        if not isinstance(options, Mapping):
            raise ConfigError(f"options must be a mapping, got {type(options).__name__}")
        unknown = set(options) - _OPTION_FIELDS
        if unknown:
            raise ConfigError(f"unknown option(s) {sorted(unknown)}")
        return cls.build(options.get("headers"), options.get("whitelist"), logger=logger)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        prefix: str = "REVERSEPROXY_AUTH_",
        logger: logging.Logger | None = None,
    ) -> ProxyAuthConfig:
        """Build from ``<prefix>HEADERS`` and ``<prefix>WHITELIST`` variables.

        ``<prefix>HEADERS`` is a comma-separated list of header specs in the
        format accepted by ``parse_header_spec``.
        """
        environ = os.environ if environ is None else environ
        headers: dict[str, HeaderRule] = {}
        for spec in environ.get(f"{prefix}HEADERS", "").split(","):
            if spec.strip():
                name, rule = parse_header_spec(spec)
                headers[name] = rule
        whitelist = environ.get(f"{prefix}WHITELIST", "").strip() or None
        return cls.build(headers, whitelist, logger=logger)
