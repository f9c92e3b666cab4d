"""
CORS Gate Module

Origin allow-listing for browser callers. Requests without an Origin header
(server-to-server calls, curl, Stripe webhooks) always pass; browser requests
from unknown origins are rejected before they reach a route.
"""

from collections.abc import Callable, Iterable

import structlog
from fastapi import Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging import BusinessEvents

log = structlog.get_logger(__name__)

ALLOWED_ORIGINS: tuple[str, ...] = (
    "http://localhost:5173",
    "http://localhost:3000",
    "https://pakbh.com",
    "https://www.pakbh.com",
    "https://delicate-banoffee-384c86.netlify.app",
    "https://blenhairs.netlify.app",
    "https://serveforpakbh.onrender.com",
)

CORS_REJECTION_MESSAGE = (
    "The CORS policy for this site does not allow access from the specified Origin."
)

PREFLIGHT_METHODS = "GET,HEAD,PUT,PATCH,POST,DELETE"


def is_origin_allowed(origin: str | None, allowed: Iterable[str]) -> bool:
    """Return True for absent origins and for origins on the allow-list."""
    if not origin:
        return True
    return origin in allowed


class CORSGateMiddleware(BaseHTTPMiddleware):
    """
    Reject cross-origin requests from origins not on the allow-list.

    CORS headers for allowed origins, preflights included, come from
    Starlette's CORSMiddleware, which must sit directly inside this gate.
    """

    def __init__(self, app, allowed_origins: Iterable[str] = ALLOWED_ORIGINS):
        super().__init__(app)
        self.allowed_origins = frozenset(allowed_origins)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        origin = request.headers.get("origin")
        allowed = is_origin_allowed(origin, self.allowed_origins)

        if request.method == "OPTIONS":
            is_preflight = "access-control-request-method" in request.headers
            if origin and allowed and is_preflight:
                return await call_next(request)
            # Any other OPTIONS request is accepted without reaching a route
            return self._options_response(request, origin if allowed else None)

        if not allowed:
            log.warning(
                BusinessEvents.CORS_REJECTED,
                origin=origin,
                method=request.method,
                path=request.url.path,
            )
            return JSONResponse(
                status_code=403,
                content={"success": False, "error": CORS_REJECTION_MESSAGE},
            )

        return await call_next(request)

    @staticmethod
    def _options_response(request: Request, origin: str | None) -> Response:
        headers = {
            "Access-Control-Allow-Methods": PREFLIGHT_METHODS,
            "Vary": "Origin",
        }
        if origin:
            headers["Access-Control-Allow-Origin"] = origin
            headers["Access-Control-Allow-Credentials"] = "true"
        elif "origin" not in request.headers:
            headers["Access-Control-Allow-Origin"] = "*"
        requested = request.headers.get("access-control-request-headers")
        if requested:
            headers["Access-Control-Allow-Headers"] = requested
        return Response(status_code=204, headers=headers)


def add_cors(app, allowed_origins: Iterable[str] = ALLOWED_ORIGINS) -> None:
    """Install the allow-list gate with Starlette's CORSMiddleware inside it."""
    origins = list(allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )
    app.add_middleware(CORSGateMiddleware, allowed_origins=origins)
