import time

import structlog
from fastapi import Request

from core.logging import BusinessEvents


async def log_api_entry(request: Request, call_next):
    """Log each request on the way in and its status on the way out."""
    # Fresh logger per request so test configurations are respected
    log = structlog.get_logger(__name__).bind(
        method=request.method,
        path=request.url.path,
    )

    log.info(
        BusinessEvents.API_ENTRY,
        origin=request.headers.get("origin"),
        client_host=request.client.host if request.client else None,
    )
    started = time.perf_counter()
    response = await call_next(request)
    log.info(
        BusinessEvents.API_EXIT,
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return response
