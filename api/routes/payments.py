"""
Payment Routes

Stripe PaymentIntent creation, retrieval and confirmation, and the PayPal
confirmation endpoint used by the storefront checkout.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api import schemas
from core.dependencies import get_notifier, get_paypal_service, get_stripe_service
from core.metrics import payment_success
from notifications.email_service import EmailNotifier
from payments.errors import InvalidPaymentRequest, PayPalError, StripeError
from payments.paypal_service import PayPalService
from payments.records import PayPalPayment
from payments.stripe_service import StripeService

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": schemas.ErrorResponse},
    500: {"model": schemas.ErrorResponse},
}


def invalid_request_response(exc: InvalidPaymentRequest, include_success: bool = True):
    content = {"error": exc.error}
    if include_success:
        content = {"success": False, **content}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=400, content=content)


def provider_error_response(message: str, code: str | None = None):
    content = {"success": False, "error": message}
    if code:
        content["code"] = code
    return JSONResponse(status_code=500, content=content)


@router.post(
    "/create-payment-intent",
    response_model=schemas.CreatePaymentIntentResponse,
    responses=ERROR_RESPONSES,
)
async def create_payment_intent(
    body: schemas.CreatePaymentIntentRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Create a Stripe PaymentIntent for the checkout total (in cents)."""
    try:
        result = await stripe_service.create_payment_intent(
            amount=body.amount,
            currency=body.currency,
            customer=body.customer,
            items=body.items,
            metadata=body.metadata,
        )
    except InvalidPaymentRequest as e:
        # The storefront reads {error, details} from this endpoint
        return invalid_request_response(e, include_success=False)
    except StripeError as e:
        return provider_error_response(e.message, e.code)

    return schemas.CreatePaymentIntentResponse(**result)


@router.post(
    "/process-paypal-payment",
    response_model=schemas.ProcessPayPalPaymentResponse,
    responses=ERROR_RESPONSES,
)
async def process_paypal_payment(
    body: schemas.ProcessPayPalPaymentRequest,
    paypal_service: PayPalService = Depends(get_paypal_service),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """Record a PayPal payment approved in the browser and send order emails."""
    try:
        record = await paypal_service.process_payment(
            order_id=body.order_id,
            payer_id=body.payer_id,
            amount=body.amount,
            customer=body.customer,
            items=body.items,
        )
    except InvalidPaymentRequest as e:
        return invalid_request_response(e)
    except PayPalError as e:
        return provider_error_response(str(e) or "Failed to process PayPal payment")

    await notifier.notify(
        PayPalPayment(record=record, customer=body.customer, total=body.amount)
    )
    payment_success.labels(provider="paypal").inc()
    return schemas.ProcessPayPalPaymentResponse(payment=record)


@router.post("/confirm-payment", responses=ERROR_RESPONSES)
async def confirm_payment(
    body: schemas.ConfirmPaymentRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """Send order emails once a PaymentIntent has succeeded."""
    try:
        outcome = await stripe_service.confirm_payment(body.payment_intent_id, notifier)
    except InvalidPaymentRequest as e:
        return invalid_request_response(e)
    except StripeError as e:
        return provider_error_response(e.message or "Failed to confirm payment")

    if outcome.success:
        return {"success": True, "payment_intent": outcome.payment_intent}
    return {"success": False, "status": outcome.status, "message": outcome.message}


@router.get("/payment-intent/{payment_intent_id}", responses=ERROR_RESPONSES)
async def get_payment_intent(
    payment_intent_id: str,
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Return status, amount and payment method of a PaymentIntent."""
    try:
        snapshot = await stripe_service.retrieve_payment_intent(payment_intent_id)
    except StripeError as e:
        return provider_error_response(e.message or "Failed to retrieve payment intent")
    return {"success": True, **snapshot}
