"""Test configuration and fixtures."""

import hashlib
import hmac
import json
import os
import time
from dataclasses import replace

import aiosmtplib
import pytest
import stripe
from fastapi.testclient import TestClient

# Logging and tracing read these at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DISABLE_TRACING", "true")

from notifications.email_service import EmailNotifier  # noqa: E402

WEBHOOK_SECRET = "whsec_test_secret"
BUSINESS_EMAIL = "orders@example.com"

TEST_ENV = {
    "STRIPE_SECRET_KEY": "sk_test_dummy",
    "STRIPE_WEBHOOK_SECRET": WEBHOOK_SECRET,
    "EMAIL_USER": "shop@example.com",
    "EMAIL_PASS": "app-password",
    "EMAIL_VERIFY_ON_STARTUP": "false",
    "BUSINESS_EMAIL": BUSINESS_EMAIL,
    "ENVIRONMENT": "test",
    "DISABLE_TRACING": "true",
    "PAYPAL_VERIFY_ORDERS": "false",
}


class MailOutbox:
    """In-memory SMTP transport recording every send attempt."""

    def __init__(self):
        self.attempts = []
        self.messages = []
        self.fail_for = set()

    async def __call__(self, message):
        self.attempts.append(message)
        if message["To"] in self.fail_for:
            raise aiosmtplib.SMTPException(f"mailbox unavailable: {message['To']}")
        self.messages.append(message)

    def sent_to(self, address):
        return [m for m in self.messages if m["To"] == address]

    def attempts_to(self, address):
        return [m for m in self.attempts if m["To"] == address]


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Setup test environment variables before each test."""
    for key in ("PAYPAL_CLIENT_ID", "PAYPAL_SECRET", "METRICS_AUTH_TOKEN"):
        monkeypatch.delenv(key, raising=False)
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    yield


@pytest.fixture
def mail_outbox():
    return MailOutbox()


@pytest.fixture
def make_client(mail_outbox, monkeypatch):
    """Build a started TestClient; keyword args override (or with None, unset) env vars."""
    from main import app

    started = []

    def _make(raise_server_exceptions=True, **env):
        for key, value in env.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, value)
        test_client = TestClient(app, raise_server_exceptions=raise_server_exceptions)
        test_client.__enter__()
        started.append(test_client)

        services = app.state.services
        app.state.services = replace(
            services,
            notifier=EmailNotifier(services.settings, transport=mail_outbox),
        )
        return test_client

    yield _make

    for test_client in reversed(started):
        test_client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


def make_payment_intent(**overrides):
    intent = {
        "id": "pi_test_123",
        "object": "payment_intent",
        "amount": 4999,
        "currency": "usd",
        "status": "succeeded",
        "created": 1700000000,
        "payment_method": "pm_test_1",
        "client_secret": "pi_test_123_secret_abc",
        "receipt_email": "buyer@example.com",
        "metadata": {
            "customer_email": "buyer@example.com",
            "customer_name": "Ana Royes",
            "items_count": "2",
        },
    }
    intent.update(overrides)
    return intent


def stripe_payment_intent(**overrides):
    """A PaymentIntent as the Stripe SDK returns it from retrieve()."""
    return stripe.PaymentIntent.construct_from(
        make_payment_intent(**overrides), TEST_ENV["STRIPE_SECRET_KEY"]
    )


def make_event_payload(event_type, data_object, event_id="evt_test_1"):
    return json.dumps(
        {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {"object": data_object},
        }
    ).encode()


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    """Build a Stripe-Signature header the way Stripe signs webhook deliveries."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def payment_intent():
    return make_payment_intent()
