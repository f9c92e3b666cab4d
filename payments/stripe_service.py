"""
Stripe Payment Service

This module handles all Stripe-related payment operations including:
- Creating payment intents
- Retrieving and confirming payment intents
- Verifying webhook event signatures
"""

import math
from collections.abc import Mapping
from typing import Any

import stripe
import structlog
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from core.logging import BusinessEvents
from core.metrics import payment_intents_total, payment_success
from core.settings import Settings
from notifications.email_service import EmailNotifier
from payments.errors import InvalidPaymentRequest, StripeError
from payments.records import CardPayment, Customer

log = structlog.get_logger(__name__)

MINIMUM_AMOUNT = 50  # minor units, Stripe's USD minimum charge


class ConfirmOutcome(BaseModel):
    success: bool
    status: str
    payment_intent: dict[str, Any] | None = None

    @property
    def message(self) -> str:
        return f"Payment status is {self.status}"


def to_plain(obj: Any) -> Any:
    """Recursively convert Stripe objects into plain dicts and lists."""
    # Newer SDK releases no longer subclass dict
    if isinstance(obj, stripe.StripeObject):
        obj = obj.to_dict()
    if isinstance(obj, Mapping):
        return {key: to_plain(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(value) for value in obj]
    return obj


def _error_message(exc: Exception, fallback: str) -> str:
    # user_message omits the request id prefix that str() adds to Stripe errors
    return getattr(exc, "user_message", None) or str(exc) or fallback


def _error_code(exc: Exception) -> str:
    error = getattr(exc, "error", None)
    return getattr(error, "type", None) or "unknown_error"


class StripeService:
    def __init__(self, settings: Settings):
        """
        Initialize StripeService.

        Args:
            settings: Application settings. The API key is sent with every
                call instead of being set on the ``stripe`` module.
        """
        self.api_key = settings.STRIPE_SECRET_KEY
        self.description = settings.PAYMENT_DESCRIPTION

    async def create_payment_intent(
        self,
        amount: float | None,
        currency: str = "usd",
        customer: Customer | None = None,
        items: list[Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> dict[str, str]:
        """
        Create a Stripe PaymentIntent for a storefront checkout.

        Args:
            amount: Charge amount in minor currency units (cents)
            currency: ISO currency code
            customer: Optional customer email/name
            items: Cart line items; only their count is recorded
            metadata: Extra metadata merged into the intent

        Returns:
            Dict containing client_secret and payment_intent_id

        Raises:
            InvalidPaymentRequest: amount missing or below the minimum charge
            StripeError: Stripe rejected the request
        """
        if not amount or not math.isfinite(amount) or amount < MINIMUM_AMOUNT:
            raise InvalidPaymentRequest(
                "Invalid amount", "Amount must be at least $0.50"
            )

        customer = customer or Customer()
        params: dict[str, Any] = {
            "amount": round(amount),
            "currency": currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": {
                **(metadata or {}),
                "customer_email": customer.email or "",
                "customer_name": customer.name or "",
                "items_count": str(len(items)) if items else "0",
            },
            "description": self.description,
        }
        if customer.email:
            params["receipt_email"] = customer.email

        try:
            intent = await run_in_threadpool(
                stripe.PaymentIntent.create, api_key=self.api_key, **params
            )
        except Exception as e:
            payment_intents_total.labels(outcome="failed").inc()
            log.error(
                BusinessEvents.PAYMENT_INTENT_FAILED,
                amount=params["amount"],
                currency=currency,
                error=str(e),
            )
            raise StripeError(
                _error_message(e, "Failed to create payment intent"), _error_code(e)
            ) from e

        payment_intents_total.labels(outcome="created").inc()
        log.info(
            BusinessEvents.PAYMENT_INTENT_CREATED,
            payment_intent_id=intent.id,
            amount=params["amount"],
            currency=currency,
        )
        return {
            "client_secret": intent.client_secret,
            "payment_intent_id": intent.id,
        }

    async def retrieve(self, payment_intent_id: str) -> dict[str, Any]:
        """Fetch the full PaymentIntent as a plain dict."""
        try:
            intent = await run_in_threadpool(
                stripe.PaymentIntent.retrieve, payment_intent_id, api_key=self.api_key
            )
        except Exception as e:
            raise StripeError(
                _error_message(e, "Failed to retrieve payment intent"), _error_code(e)
            ) from e
        return to_plain(intent)

    async def retrieve_payment_intent(self, payment_intent_id: str) -> dict[str, Any]:
        """Return the public snapshot of a PaymentIntent."""
        intent = await self.retrieve(payment_intent_id)
        log.info(
            BusinessEvents.PAYMENT_INTENT_RETRIEVED,
            payment_intent_id=payment_intent_id,
            status=intent.get("status"),
        )
        return {
            "id": intent.get("id"),
            "status": intent.get("status"),
            "amount": intent.get("amount"),
            "currency": intent.get("currency"),
            "created": intent.get("created"),
            "payment_method": intent.get("payment_method"),
        }

    async def confirm_payment(
        self, payment_intent_id: str | None, notifier: EmailNotifier
    ) -> ConfirmOutcome:
        """Send order emails if the intent has succeeded, else report its status."""
        if not payment_intent_id:
            raise InvalidPaymentRequest("Payment intent ID is required")

        intent = await self.retrieve(payment_intent_id)
        status = intent.get("status", "unknown")

        if status != "succeeded":
            log.info(
                BusinessEvents.PAYMENT_PENDING,
                payment_intent_id=payment_intent_id,
                status=status,
            )
            return ConfirmOutcome(success=False, status=status)

        await notifier.notify(CardPayment(payment_intent=intent))
        payment_success.labels(provider="stripe").inc()
        log.info(BusinessEvents.PAYMENT_CONFIRMED, payment_intent_id=payment_intent_id)
        return ConfirmOutcome(success=True, status=status, payment_intent=intent)


def construct_event(payload: bytes, signature: str | None, secret: str) -> dict[str, Any]:
    """
    Verify a Stripe webhook payload and return the event as a plain dict.

    Raises ValueError for unparsable payloads and
    stripe.SignatureVerificationError for bad or missing signatures.
    """
    event = stripe.Webhook.construct_event(payload, signature or "", secret)
    return to_plain(event)
