"""
Webhook handlers for payment providers
"""

import stripe
import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from core.dependencies import get_notifier, get_settings
from core.logging import BusinessEvents
from core.metrics import payment_success, webhook_events_total
from core.settings import Settings
from notifications.email_service import EmailNotifier
from payments.records import CardPayment
from payments.stripe_service import construct_event

log = structlog.get_logger(__name__)

router = APIRouter()


async def dispatch_event(event: dict, notifier: EmailNotifier) -> None:
    """React to a verified Stripe event. Unknown types are only logged."""
    event_type = event.get("type")
    payment_intent = (event.get("data") or {}).get("object") or {}

    if event_type == "payment_intent.succeeded":
        log.info(
            BusinessEvents.WEBHOOK_PAYMENT_SUCCEEDED,
            payment_intent_id=payment_intent.get("id"),
        )
        await notifier.notify(CardPayment(payment_intent=payment_intent))
        payment_success.labels(provider="stripe").inc()
    elif event_type == "payment_intent.payment_failed":
        log.info(
            BusinessEvents.WEBHOOK_PAYMENT_FAILED,
            payment_intent_id=payment_intent.get("id"),
        )
    else:
        log.info(BusinessEvents.WEBHOOK_UNHANDLED, event_type=event_type)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    notifier: EmailNotifier = Depends(get_notifier),
):
    if not settings.STRIPE_WEBHOOK_SECRET:
        log.error(BusinessEvents.WEBHOOK_FAILED, reason="STRIPE_WEBHOOK_SECRET is not configured")
        return JSONResponse(status_code=500, content={"error": "Webhook secret not configured"})

    # Signature is computed over the exact bytes Stripe sent
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        log.warning(BusinessEvents.WEBHOOK_SIGNATURE_FAILED, error=str(e))
        return PlainTextResponse(status_code=400, content=f"Webhook Error: {e}")

    webhook_events_total.labels(event_type=event.get("type", "unknown")).inc()
    log.info(BusinessEvents.WEBHOOK_RECEIVED, event_id=event.get("id"), event_type=event.get("type"))

    try:
        await dispatch_event(event, notifier)
    except Exception as e:
        # A 5xx makes Stripe redeliver the event later
        log.error(BusinessEvents.WEBHOOK_FAILED, event_id=event.get("id"), error=str(e))
        return JSONResponse(status_code=500, content={"error": "Failed to process webhook event"})

    return {"received": True}
