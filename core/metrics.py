"""
Prometheus metrics instrumentation for the storefront payments server.

This module sets up FastAPI instrumentation to expose metrics in Prometheus format
at the /metrics endpoint with optional authentication.
"""

import os

from fastapi import Request, status
from fastapi.responses import JSONResponse
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

payment_intents_total = Counter(
    "storefront_payment_intents_total",
    "Stripe PaymentIntent creation attempts",
    ["outcome"],
)

payment_success = Counter(
    "storefront_payment_success_total",
    "Total number of payments confirmed",
    ["provider"],  # stripe, paypal
)

webhook_events_total = Counter(
    "storefront_webhook_events_total",
    "Verified webhook events by type",
    ["event_type"],
)

order_emails_total = Counter(
    "storefront_order_emails_total",
    "Order email send attempts",
    ["recipient", "outcome"],  # recipient: business/customer, outcome: sent/failed
)


def init_metrics(app):
    """
    Initialize Prometheus metrics instrumentation for the FastAPI app.

    Args:
        app: FastAPI application instance

    Returns:
        Instrumentator instance
    """
    inst = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
    )
    inst.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
    return inst


def add_metrics_auth_middleware(app):
    """
    Add middleware to protect the /metrics endpoint outside development.
    Set METRICS_AUTH_TOKEN and send it in the X-Metrics-Auth header.
    """

    @app.middleware("http")
    async def metrics_auth_middleware(request: Request, call_next):
        if request.url.path != "/metrics":
            return await call_next(request)

        if os.getenv("ENVIRONMENT", "development") == "development":
            return await call_next(request)

        expected_token = os.getenv("METRICS_AUTH_TOKEN")
        if expected_token and request.headers.get("X-Metrics-Auth") == expected_token:
            return await call_next(request)

        # Allow internal network access (VPN/private networks)
        client_ip = request.client.host if request.client else None
        if client_ip and client_ip.startswith(("10.", "192.168.", "172.")):
            return await call_next(request)

        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "error": "Metrics endpoint access denied"},
        )
