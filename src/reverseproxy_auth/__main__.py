"""CLI entry point: python -m reverseproxy_auth."""

from __future__ import annotations

import argparse
import logging
import sys

from reverseproxy_auth.auth.strategy import ReverseProxyStrategy
from reverseproxy_auth.config import HeaderRule, ProxyAuthConfig, parse_header_spec
from reverseproxy_auth.demo import serve
from reverseproxy_auth.errors import ConfigError
from reverseproxy_auth.verify import pattern_verifier

logger = logging.getLogger(__name__)

EMAIL_PATTERN = r"^.*@.*$"


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the reverseproxy-auth demo server."""
    parser = argparse.ArgumentParser(
        prog="python -m reverseproxy_auth",
        description="Serve a demo app that echoes the identity forwarded by a reverse proxy.",
    )

    # Authentication options
    parser.add_argument(
        "--header",
        dest="headers",
        action="append",
        default=None,
        metavar="NAME[:ALIAS][:required]",
        help=(
            "Request header to authenticate with; repeatable "
            "(default: $REVERSEPROXY_AUTH_HEADERS, else X-Forwarded-User:username:required)."
        ),
    )
    parser.add_argument(
        "--whitelist",
        default=None,
        help=(
            "Address range of the reverse proxy, e.g. 127.0.0.1 or 10.0.0.0/8 "
            "(default: $REVERSEPROXY_AUTH_WHITELIST, else no restriction)."
        ),
    )
    parser.add_argument(
        "--require-email",
        action="store_true",
        default=False,
        help="Reject users whose first configured header is not an email address.",
    )
    parser.add_argument(
        "--verify-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the verify hook (default: no limit).",
    )

    # Server options
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host address to bind (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=3000,
        help="Port to bind (default: 3000, range: 1-65535).",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Logging level (default: INFO).",
    )

    return parser


def _validate_port(port: int, parser: argparse.ArgumentParser) -> None:
    """Validate port is in range 1-65535."""
    if port < 1 or port > 65535:
        parser.error(f"--port must be in range 1-65535, got {port}")


def build_strategy(args: argparse.Namespace) -> ReverseProxyStrategy:
    """Build the strategy described by parsed command-line arguments.

    Raises:
        ConfigError: If a header spec or the whitelist is invalid.
    """
    # Resolve configuration: --header/--whitelist → REVERSEPROXY_AUTH_* env vars
    if args.headers or args.whitelist:
        headers: dict[str, HeaderRule] = {}
        for spec in args.headers or []:
            name, rule = parse_header_spec(spec)
            headers[name] = rule
        config = ProxyAuthConfig.build(headers, args.whitelist)
    else:
        config = ProxyAuthConfig.from_env()

    verify = None
    if args.require_email:
        verify = pattern_verifier(config.headers[0].header_name, EMAIL_PATTERN)

    return ReverseProxyStrategy(config, verify, verify_timeout=args.verify_timeout)


def main() -> None:
    """CLI entry point for the reverseproxy-auth demo server.

    Exit codes:
        0 - Normal shutdown
        1 - Invalid configuration (bad header spec, whitelist or timeout)
        2 - Startup failure (argparse error, server exception)
    """
    parser = _build_parser()
    args = parser.parse_args()

    _validate_port(args.port, parser)

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        strategy = build_strategy(args)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    whitelist = strategy.config.whitelist
    logger.info(
        "Authenticating with header(s) %s; proxy whitelist: %s",
        ", ".join(rule.header_name for rule in strategy.config.headers),
        whitelist if whitelist is not None else "none",
    )

    try:
        serve(strategy, host=args.host, port=args.port, log_level=args.log_level.lower())
    except Exception:
        logger.exception("Server startup failed.")
        sys.exit(2)


if __name__ == "__main__":
    main()
