"""Order email notifier tests."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import aiosmtplib
import pytest

from conftest import MailOutbox, make_payment_intent
from core.settings import Settings
from notifications.email_service import EmailNotifier
from payments.records import (
    CardPayment,
    Customer,
    PayPalAmount,
    PayPalPayer,
    PayPalPayment,
    PayPalPaymentRecord,
    summarize,
)


def email_settings(**overrides):
    values = {
        "STRIPE_SECRET_KEY": "sk_test_unit",
        "EMAIL_USER": "shop@example.com",
        "EMAIL_PASS": "app-password",
        "BUSINESS_EMAIL": "orders@example.com",
    }
    values.update(overrides)
    return Settings(**values)


def paypal_record(email=None, value="19.99"):
    return PayPalPaymentRecord(
        id="O1",
        amount=PayPalAmount(value=value),
        payer=PayPalPayer(payer_id="P1", email_address=email),
    )


def test_summarize_card_payment():
    summary = summarize(CardPayment(payment_intent=make_payment_intent(amount=12345)))

    assert summary.customer_email == "buyer@example.com"
    assert summary.customer_name == "Ana Royes"
    assert summary.amount == "123.45"
    assert summary.payment_id == "pi_test_123"
    assert summary.payment_method == "Credit Card (Stripe)"


def test_summarize_card_payment_falls_back_to_metadata():
    intent = make_payment_intent(
        receipt_email=None, metadata={"customer_email": "meta@example.com"}
    )

    summary = summarize(CardPayment(payment_intent=intent))

    assert summary.customer_email == "meta@example.com"
    assert summary.customer_name == "Customer"


def test_summarize_paypal_prefers_customer_and_total():
    payment = PayPalPayment(
        record=paypal_record(email="payer@example.com", value="10.00"),
        customer=Customer(email="buyer@example.com", name="Ana"),
        total=19.5,
    )

    summary = summarize(payment)

    assert summary.customer_email == "buyer@example.com"
    assert summary.customer_name == "Ana"
    assert summary.amount == "19.50"
    assert summary.payment_method == "PayPal"


def test_summarize_paypal_uses_record_values():
    summary = summarize(PayPalPayment(record=paypal_record(email="payer@example.com")))

    assert summary.customer_email == "payer@example.com"
    assert summary.customer_name == "Customer"
    assert summary.amount == "19.99"


@pytest.mark.asyncio
async def test_notify_sends_business_and_customer_email():
    outbox = MailOutbox()
    notifier = EmailNotifier(email_settings(), transport=outbox)

    result = await notifier.notify(CardPayment(payment_intent=make_payment_intent()))

    assert result.sent == 2
    assert result.failed == 0
    business, = outbox.sent_to("orders@example.com")
    customer, = outbox.sent_to("buyer@example.com")
    assert business["From"] == "shop@example.com"
    assert business["Subject"] == "New Order - Payment pi_test_123"
    assert customer["Subject"] == "Order Confirmation - Payment pi_test_123"


@pytest.mark.asyncio
async def test_notify_skips_without_customer_email():
    outbox = MailOutbox()
    log = MagicMock()
    notifier = EmailNotifier(email_settings(), transport=outbox, log=log)

    result = await notifier.notify(PayPalPayment(record=paypal_record()))

    assert result.skipped_reason == "missing_customer_email"
    assert outbox.attempts == []
    log.warning.assert_called_once()


@pytest.mark.asyncio
async def test_notify_disabled_without_credentials():
    outbox = MailOutbox()
    log = MagicMock()
    notifier = EmailNotifier(
        email_settings(EMAIL_PASS=None), transport=outbox, log=log
    )

    result = await notifier.notify(CardPayment(payment_intent=make_payment_intent()))

    assert notifier.enabled is False
    assert result.skipped_reason == "email_not_configured"
    assert outbox.attempts == []
    log.warning.assert_called_once()


@pytest.mark.asyncio
async def test_send_failure_is_isolated():
    outbox = MailOutbox()
    outbox.fail_for.add("orders@example.com")
    log = MagicMock()
    notifier = EmailNotifier(email_settings(), transport=outbox, log=log)

    result = await notifier.notify(CardPayment(payment_intent=make_payment_intent()))

    assert result.sent == 1
    assert result.failed == 1
    assert len(outbox.sent_to("buyer@example.com")) == 1
    log.error.assert_called_once()
    assert log.error.call_args.kwargs["recipient"] == "business"


@pytest.mark.asyncio
async def test_notify_never_raises_on_malformed_intent():
    outbox = MailOutbox()
    notifier = EmailNotifier(email_settings(), transport=outbox, log=MagicMock())

    result = await notifier.notify(CardPayment(payment_intent={"object": "payment_intent"}))

    assert result.failed == 2
    assert outbox.attempts == []


def test_templates_escape_customer_values():
    notifier = EmailNotifier(email_settings(), transport=MailOutbox())
    intent = make_payment_intent(
        metadata={"customer_name": "<script>alert(1)</script>"},
    )

    business, customer = notifier.build_messages(
        summarize(CardPayment(payment_intent=intent)),
        order_date=datetime(2024, 3, 9),
    )

    html = business.get_body(preferencelist=("html",)).get_content()
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "03/09/2024" in html
    receipt = customer.get_body(preferencelist=("html",)).get_content()
    assert "https://wa.me/+33634549649" in receipt
    assert "Thank you for choosing PAKBH!" in receipt


@pytest.mark.asyncio
async def test_verify_connection_logs_in_once():
    notifier = EmailNotifier(email_settings(), transport=MailOutbox())

    with patch("notifications.email_service.aiosmtplib.SMTP") as mock_smtp:
        smtp = mock_smtp.return_value
        smtp.connect = AsyncMock()
        smtp.login = AsyncMock()
        smtp.quit = AsyncMock()

        assert await notifier.verify_connection() is True

    mock_smtp.assert_called_once_with(hostname="smtp.gmail.com", port=465, use_tls=True)
    smtp.login.assert_awaited_once_with("shop@example.com", "app-password")


@pytest.mark.asyncio
async def test_verify_connection_failure_is_not_fatal():
    notifier = EmailNotifier(email_settings(), transport=MailOutbox())

    with patch("notifications.email_service.aiosmtplib.SMTP") as mock_smtp:
        smtp = mock_smtp.return_value
        smtp.connect = AsyncMock()
        smtp.login = AsyncMock(
            side_effect=aiosmtplib.SMTPAuthenticationError(535, "bad credentials")
        )

        assert await notifier.verify_connection() is False


@pytest.mark.asyncio
async def test_verify_connection_skipped_when_disabled():
    notifier = EmailNotifier(email_settings(EMAIL_PASS=None), transport=MailOutbox())

    with patch("notifications.email_service.aiosmtplib.SMTP") as mock_smtp:
        assert await notifier.verify_connection() is False

    mock_smtp.assert_not_called()
