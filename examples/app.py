"""Demo app protected by reverse proxy header authentication.

Usage (from the project root):
    uvicorn examples.app:app --port 3000

Then test with curl:
    curl -i http://127.0.0.1:3000/                                                  # 401
    curl -i -H "X-Forwarded-User: alice@example.com" http://127.0.0.1:3000/          # 200
    curl -i -H "X-Forwarded-User: alice@example.com" -H "X-Forwarded-UserId: 1" http://127.0.0.1:3000/
    curl -i -H "X-Forwarded-User: alice" http://127.0.0.1:3000/                      # 401 (not an email)
"""

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from reverseproxy_auth import ReverseProxyAuthMiddleware, ReverseProxyStrategy, auth_identity_var


def verify(headers, user, done):
    # The username must be an email address
    if "@" not in (headers["X-Forwarded-User"] or ""):
        return done(None, False, 401)
    return done(None, user)


# One required header and one optional header; only localhost may proxy requests
strategy = ReverseProxyStrategy(
    {
        "headers": {
            "X-Forwarded-User": {"alias": "username", "required": True},
            "X-Forwarded-UserId": {"alias": "id", "required": False},
        },
        "whitelist": "127.0.0.1/0",
    },
    verify,
)


async def index(request: Request) -> JSONResponse:
    user = auth_identity_var.get()
    return JSONResponse({"username": user["username"], "id": user["id"]})


app = Starlette(
    routes=[Route("/", index)],
    middleware=[Middleware(ReverseProxyAuthMiddleware, strategy=strategy)],
)
