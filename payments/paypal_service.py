"""
PayPal Payment Service

Records PayPal payments that the storefront reports as approved. By default
the reported order is trusted as-is: the record is marked COMPLETED without
asking PayPal whether the order exists. Set PAYPAL_VERIFY_ORDERS (with
PAYPAL_CLIENT_ID and PAYPAL_SECRET) to check each order against the PayPal
Orders API before it is recorded.
"""

import math
from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

import requests
import structlog
import tenacity
from starlette.concurrency import run_in_threadpool

from core.logging import BusinessEvents
from core.settings import Settings
from payments.errors import InvalidPaymentRequest, PayPalError
from payments.records import (
    Customer,
    PayPalAmount,
    PayPalPayer,
    PayPalPaymentRecord,
    format_amount,
)

log = structlog.get_logger(__name__)

VERIFIED_ORDER_STATUSES = {"COMPLETED", "APPROVED"}
TOKEN_EXPIRY_MARGIN = timedelta(seconds=60)
REQUEST_TIMEOUT = 15


class PayPalService:
    def __init__(self, settings: Settings):
        self.base = settings.PAYPAL_BASE.rstrip("/")
        self.client = settings.PAYPAL_CLIENT_ID
        self.secret = settings.PAYPAL_SECRET
        self.verify_orders = settings.paypal_verification_enabled
        self._token_cache: tuple[str, datetime] | None = None

    @tenacity.retry(
        retry=tenacity.retry_if_exception_type(requests.ConnectionError),
        stop=tenacity.stop_after_attempt(3),
        wait=tenacity.wait_exponential(multiplier=0.5, max=4),
        reraise=True,
    )
    def _token(self) -> str:
        if self._token_cache and self._token_cache[1] > datetime.now(UTC):
            return self._token_cache[0]

        r = requests.post(
            f"{self.base}/v1/oauth2/token",
            auth=(self.client, self.secret),
            data={"grant_type": "client_credentials"},
            timeout=REQUEST_TIMEOUT,
        )
        r.raise_for_status()
        body = r.json()
        expires_in = timedelta(seconds=int(body.get("expires_in", 300)))
        self._token_cache = (
            body["access_token"],
            datetime.now(UTC) + expires_in - TOKEN_EXPIRY_MARGIN,
        )
        return self._token_cache[0]

    def fetch_order(self, order_id: str) -> dict[str, Any]:
        """Fetch an order from the PayPal Orders API."""
        try:
            r = requests.get(
                f"{self.base}/v2/checkout/orders/{order_id}",
                headers={
                    "Authorization": f"Bearer {self._token()}",
                    "Content-Type": "application/json",
                },
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise PayPalError(f"PayPal API error: {e}") from e

        if r.status_code == 404:
            raise PayPalError(f"PayPal order {order_id} not found")
        if r.status_code != 200:
            log.error(
                BusinessEvents.PAYPAL_VERIFICATION_FAILED,
                order_id=order_id,
                status_code=r.status_code,
                body=r.text[:500],
            )
            raise PayPalError(f"PayPal order lookup failed: {r.status_code}")
        return r.json()

    def verify_order(self, order_id: str, amount: float) -> None:
        """Raise PayPalError unless the order is approved for the claimed amount."""
        order = self.fetch_order(order_id)

        status = order.get("status")
        if status not in VERIFIED_ORDER_STATUSES:
            raise PayPalError(f"PayPal order {order_id} is {status}, not completed")

        units = order.get("purchase_units") or [{}]
        value = (units[0].get("amount") or {}).get("value")
        try:
            matches = Decimal(value) == Decimal(format_amount(amount))
        except (InvalidOperation, TypeError):
            matches = False
        if not matches:
            raise PayPalError(
                f"PayPal order {order_id} amount {value} does not match {format_amount(amount)}"
            )

    async def process_payment(
        self,
        order_id: str | None,
        payer_id: str | None,
        amount: float | None,
        customer: Customer | None = None,
        items: list[Any] | None = None,
    ) -> PayPalPaymentRecord:
        """
        Record a PayPal payment reported by the storefront.

        Raises:
            InvalidPaymentRequest: order id, payer id or amount missing
            PayPalError: verification is enabled and PayPal disagrees
        """
        if not order_id or not payer_id or not amount or not math.isfinite(amount):
            raise InvalidPaymentRequest("Missing required payment information")

        log.info(
            BusinessEvents.PAYPAL_PROCESSING,
            order_id=order_id,
            payer_id=payer_id,
            amount=amount,
            items_count=len(items) if items else 0,
        )

        if self.verify_orders:
            await run_in_threadpool(self.verify_order, order_id, amount)
        else:
            log.warning(BusinessEvents.PAYPAL_UNVERIFIED, order_id=order_id)

        record = PayPalPaymentRecord(
            id=order_id,
            amount=PayPalAmount(value=format_amount(amount)),
            payer=PayPalPayer(
                payer_id=payer_id,
                email_address=customer.email if customer else None,
            ),
        )
        log.info(BusinessEvents.PAYPAL_PROCESSED, order_id=order_id, verified=self.verify_orders)
        return record
