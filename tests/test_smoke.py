"""
Simple smoke tests for the HTTP surface.
"""

import json
from unittest.mock import patch

from conftest import TEST_ENV


def test_app_startup(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "create_payment_intent" in response.json()["endpoints"]


def test_health_check(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert data["stripe_key_configured"] is True
    assert data["webhook_configured"] is True
    assert data["email_configured"] is True
    assert data["paypal_verification_enabled"] is False
    assert data["environment"] == "test"
    assert data["supported_payment_methods"] == ["stripe", "paypal"]
    assert "https://pakbh.com" in data["cors_allowed_origins"]
    assert "timestamp" in data


def test_health_check_never_exposes_secrets(make_client):
    client = make_client(PAYPAL_CLIENT_ID="paypal-client-id", PAYPAL_SECRET="paypal-secret")

    body = json.dumps(client.get("/api/health").json())

    for secret in (
        TEST_ENV["STRIPE_SECRET_KEY"],
        TEST_ENV["STRIPE_WEBHOOK_SECRET"],
        TEST_ENV["EMAIL_PASS"],
        "paypal-secret",
    ):
        assert secret not in body


def test_health_reports_missing_email(make_client):
    client = make_client(EMAIL_USER=None, EMAIL_PASS=None)

    assert client.get("/api/health").json()["email_configured"] is False


def test_unknown_api_route_returns_json_404(client):
    for method in ("get", "post", "delete"):
        response = getattr(client, method)("/api/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "API endpoint not found"}


def test_wrong_method_on_known_api_route_returns_404(client):
    response = client.get("/api/webhook")

    assert response.status_code == 404
    assert response.json()["error"] == "API endpoint not found"


def test_uncaught_error_includes_message_outside_production(make_client):
    client = make_client(raise_server_exceptions=False)

    with patch(
        "payments.stripe_service.StripeService.retrieve_payment_intent",
        side_effect=KeyError("surprise"),
    ):
        response = client.get("/api/payment-intent/pi_1")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Internal server error",
        "message": "'surprise'",
    }


def test_uncaught_error_hides_message_in_production(make_client):
    client = make_client(raise_server_exceptions=False, ENVIRONMENT="production")

    with patch(
        "payments.stripe_service.StripeService.retrieve_payment_intent",
        side_effect=KeyError("surprise"),
    ):
        response = client.get("/api/payment-intent/pi_1")

    assert response.status_code == 500
    assert response.json()["message"] == "Something went wrong"


def test_metrics_endpoint(make_client):
    client = make_client(ENVIRONMENT="development")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "storefront_order_emails_total" in response.text
