"""
Payment Records Module

Transient payment shapes passed from the payment flows to the email notifier.
Each completed payment path wraps its result in one variant of ``Payment``:
``CardPayment`` for Stripe PaymentIntents and ``PayPalPayment`` for locally
recorded PayPal confirmations. ``summarize`` turns either variant into the
``NormalizedOrderSummary`` the email templates render.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

CARD_PAYMENT_METHOD = "Credit Card (Stripe)"
PAYPAL_PAYMENT_METHOD = "PayPal"
DEFAULT_CUSTOMER_NAME = "Customer"


class Customer(BaseModel):
    email: str | None = None
    name: str | None = None

    model_config = ConfigDict(extra="allow")


class PayPalAmount(BaseModel):
    currency_code: str = "USD"
    value: str


class PayPalPayer(BaseModel):
    payer_id: str
    email_address: str | None = None


class PayPalPaymentRecord(BaseModel):
    """A PayPal payment recorded from the values the storefront reported."""

    id: str
    status: str = "COMPLETED"
    amount: PayPalAmount
    payer: PayPalPayer
    create_time: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(timespec="milliseconds")
    )
    payment_method: str = PAYPAL_PAYMENT_METHOD


class CardPayment(BaseModel):
    kind: Literal["card"] = "card"
    payment_intent: dict[str, Any]


class PayPalPayment(BaseModel):
    kind: Literal["paypal"] = "paypal"
    record: PayPalPaymentRecord
    customer: Customer | None = None
    total: float | None = None


Payment = Union[CardPayment, PayPalPayment]


class NormalizedOrderSummary(BaseModel):
    customer_email: str | None
    customer_name: str
    amount: str
    payment_id: str
    payment_method: str


def format_amount(value: float) -> str:
    return f"{value:.2f}"


def _summarize_card(payment: CardPayment) -> NormalizedOrderSummary:
    intent = payment.payment_intent
    metadata: Mapping[str, Any] = intent.get("metadata") or {}
    return NormalizedOrderSummary(
        customer_email=intent.get("receipt_email") or metadata.get("customer_email"),
        customer_name=metadata.get("customer_name") or DEFAULT_CUSTOMER_NAME,
        amount=format_amount((intent.get("amount") or 0) / 100),
        payment_id=intent["id"],
        payment_method=CARD_PAYMENT_METHOD,
    )


def _summarize_paypal(payment: PayPalPayment) -> NormalizedOrderSummary:
    customer = payment.customer or Customer()
    record = payment.record
    amount = (
        format_amount(payment.total) if payment.total else record.amount.value
    )
    return NormalizedOrderSummary(
        customer_email=customer.email or record.payer.email_address,
        customer_name=customer.name or DEFAULT_CUSTOMER_NAME,
        amount=amount,
        payment_id=record.id,
        payment_method=PAYPAL_PAYMENT_METHOD,
    )


def summarize(payment: Payment) -> NormalizedOrderSummary:
    """Build the email summary for a completed payment."""
    if isinstance(payment, CardPayment):
        return _summarize_card(payment)
    return _summarize_paypal(payment)
