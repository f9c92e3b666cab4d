import logging
import os
import sys

import structlog
from opentelemetry.instrumentation.logging import LoggingInstrumentor


def get_log_level():
    """Get log level from environment or default to INFO"""
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_log_renderer():
    """Get log renderer based on environment"""
    env = os.getenv("ENVIRONMENT", "development")
    # Use JSON format for tests and production
    if env in ["test", "production"]:
        return structlog.processors.JSONRenderer()
    # Pretty printing for local development
    return structlog.dev.ConsoleRenderer(colors=True, sort_keys=False)


def configure_logging():
    """Set up structlog + OTEL context injection."""
    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            get_log_renderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    env = os.getenv("ENVIRONMENT", "development")
    if env == "test":
        # In test mode, write to stdout for easier capture
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]  # Replace any existing handlers
    root_logger.setLevel(get_log_level())

    # Silence Uvicorn noise; requests are logged by log_api_entry
    logging.getLogger("uvicorn.error").handlers.clear()
    logging.getLogger("uvicorn.access").handlers.clear()

    LoggingInstrumentor().instrument(set_logging_format=False)


# Business Event Log Names
class BusinessEvents:
    """Standard names for business event logs"""

    API_ENTRY = "api.request"
    API_EXIT = "api.response"
    STARTUP = "server.started"
    CORS_REJECTED = "cors.rejected"
    PAYMENT_INTENT_CREATED = "payment_intent.created"
    PAYMENT_INTENT_FAILED = "payment_intent.failed"
    PAYMENT_INTENT_RETRIEVED = "payment_intent.retrieved"
    PAYMENT_CONFIRMED = "payment.confirmed"
    PAYMENT_PENDING = "payment.pending"
    PAYPAL_PROCESSING = "paypal.processing"
    PAYPAL_PROCESSED = "paypal.processed"
    PAYPAL_UNVERIFIED = "paypal.unverified_confirmation"
    PAYPAL_VERIFICATION_FAILED = "paypal.verification_failed"
    WEBHOOK_RECEIVED = "webhook.received"
    WEBHOOK_SIGNATURE_FAILED = "webhook.signature_failed"
    WEBHOOK_PAYMENT_SUCCEEDED = "webhook.payment_succeeded"
    WEBHOOK_PAYMENT_FAILED = "webhook.payment_failed"
    WEBHOOK_UNHANDLED = "webhook.unhandled_event"
    WEBHOOK_FAILED = "webhook.processing_failed"
    EMAIL_DISABLED = "email.disabled"
    EMAIL_READY = "email.transport_ready"
    EMAIL_VERIFY_FAILED = "email.transport_verification_failed"
    EMAIL_SKIPPED = "email.skipped"
    EMAIL_SENT = "email.sent"
    EMAIL_FAILED = "email.failed"
    SERVER_ERROR = "server.error"


# Configure logging when module is imported
configure_logging()
