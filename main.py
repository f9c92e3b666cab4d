"""
Storefront Payments Server - Main Application Entry Point

This module initializes the FastAPI application and sets up the core routing.
It connects the Blen Hairs USA storefront to Stripe (card payments) and PayPal
and sends order confirmation emails.
"""

import sys
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from api import routes
from api.middleware import log_api_entry
from core.cors import ALLOWED_ORIGINS, add_cors
from core.dependencies import (
    build_services,
    clear_services,
    get_settings,
    init_services,
)
from core.logging import BusinessEvents, configure_logging
from core.metrics import add_metrics_auth_middleware, init_metrics
from core.settings import Settings
from core.tracing import init_tracer

log = structlog.get_logger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI application startup and shutdown events."""
    # Startup; Settings() raises RuntimeError without STRIPE_SECRET_KEY
    services = build_services()
    settings = services.settings
    init_services(app, services)

    init_tracer(settings.APP_NAME)

    if services.notifier.enabled and settings.EMAIL_VERIFY_ON_STARTUP:
        await services.notifier.verify_connection()

    log.info(
        BusinessEvents.STARTUP,
        port=settings.PORT,
        environment=settings.ENVIRONMENT,
        stripe="configured" if settings.stripe_key_configured else "missing",
        webhook="configured" if settings.webhook_configured else "missing",
        email="configured" if settings.email_configured else "not configured",
        paypal_verification=settings.paypal_verification_enabled,
        cors_origins=list(ALLOWED_ORIGINS),
    )

    yield
    # Shutdown
    clear_services(app)


app = FastAPI(
    title="Blen Hairs USA Payments",
    description="""
    ## Storefront payment backend

    - **Stripe**: PaymentIntent creation, retrieval, confirmation and webhooks
    - **PayPal**: confirmation of orders approved in the browser
    - **Email**: business notice and customer receipt for every completed payment
    """,
    version="1.0.0",
    lifespan=lifespan,
)


def server_error_response(request: Request, exc: Exception) -> JSONResponse:
    log.error(BusinessEvents.SERVER_ERROR, path=request.url.path, error=str(exc))
    services = getattr(request.app.state, "services", None)
    show_details = services.settings.show_error_details if services else False
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "message": str(exc) if show_details else "Something went wrong",
        },
    )


async def catch_unhandled_errors(request: Request, call_next):
    """Convert unexpected errors to the JSON 500 body inside the CORS layer."""
    try:
        return await call_next(request)
    except Exception as exc:
        return server_error_response(request, exc)


# Initialize FastAPI instrumentation
FastAPIInstrumentor.instrument_app(app)

# Initialize Prometheus metrics
init_metrics(app)

# Add metrics authentication middleware (for production)
add_metrics_auth_middleware(app)

app.middleware("http")(catch_unhandled_errors)

# Request logging middleware
app.middleware("http")(log_api_entry)

# CORS gate runs first so rejected origins never reach a route
add_cors(app, ALLOWED_ORIGINS)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request body",
            "details": jsonable_errors(exc),
        },
    )


# Last resort for errors raised outside catch_unhandled_errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    return server_error_response(request, exc)


@app.get("/")
async def root(settings: Settings = Depends(get_settings)):
    """Root endpoint listing the API."""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "endpoints": {
            "create_payment_intent": "POST /api/create-payment-intent",
            "process_paypal_payment": "POST /api/process-paypal-payment",
            "confirm_payment": "POST /api/confirm-payment",
            "webhook": "POST /api/webhook",
            "health": "GET /api/health",
            "payment_intent": "GET /api/payment-intent/{id}",
            "metrics": "GET /metrics",
        },
    }


app.include_router(routes.router, prefix=API_PREFIX)


# Registered last so every known /api route matches first
@app.api_route(
    API_PREFIX + "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"],
    include_in_schema=False,
)
async def api_not_found(path: str):
    return JSONResponse(
        status_code=404,
        content={"success": False, "error": "API endpoint not found"},
    )


def main():
    configure_logging()
    try:
        settings = Settings()
    except RuntimeError as e:
        log.error("server.config_invalid", error=str(e))
        sys.exit(1)

    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    main()
