"""Demo application that echoes the identity forwarded by a reverse proxy."""

from __future__ import annotations

import logging

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from reverseproxy_auth.auth.middleware import ReverseProxyAuthMiddleware, auth_identity_var
from reverseproxy_auth.auth.protocol import Strategy

logger = logging.getLogger(__name__)


async def _whoami(request: Request) -> JSONResponse:
    return JSONResponse({"user": auth_identity_var.get()})


async def _health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def create_demo_app(strategy: Strategy) -> Starlette:
    """Build a Starlette app whose ``/`` route returns the authenticated identity.

    ``/health`` is exempt from authentication.
    """
    return Starlette(
        routes=[
            Route("/", _whoami),
            Route("/health", _health),
        ],
        middleware=[Middleware(ReverseProxyAuthMiddleware, strategy=strategy)],
    )


def serve(strategy: Strategy, *, host: str = "127.0.0.1", port: int = 3000, log_level: str = "info") -> None:
    """Serve the demo app with uvicorn until interrupted."""
    app = create_demo_app(strategy)
    logger.info("Serving reverse proxy auth demo on http://%s:%d/", host, port)
    config = uvicorn.Config(app, host=host, port=port, log_level=log_level)
    uvicorn.Server(config).run()
