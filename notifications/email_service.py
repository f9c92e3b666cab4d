"""
Order Email Notifications

Sends the two order emails for a completed payment: a notice to the business
inbox and a receipt to the customer. Sending is best effort. ``notify`` never
raises; failures are logged and counted so a recorded payment is never undone
by a mail problem.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from email.message import EmailMessage

import aiosmtplib
import structlog
from pydantic import BaseModel

from core.logging import BusinessEvents
from core.metrics import order_emails_total
from core.settings import Settings
from notifications.templates import BUSINESS_ORDER_TEMPLATE, CUSTOMER_RECEIPT_TEMPLATE
from payments.records import NormalizedOrderSummary, Payment, summarize

Transport = Callable[[EmailMessage], Awaitable[object]]


class NotificationResult(BaseModel):
    sent: int = 0
    failed: int = 0
    skipped_reason: str | None = None


class EmailNotifier:
    """Order email sender, disabled when SMTP credentials are missing."""

    def __init__(
        self,
        settings: Settings,
        transport: Transport | None = None,
        log=None,
    ):
        self.settings = settings
        self.sender = settings.EMAIL_USER
        self.business_email = settings.BUSINESS_EMAIL
        self.log = log or structlog.get_logger(__name__)
        self._transport = transport or self._smtp_send

        if not self.enabled:
            self.log.warning(
                BusinessEvents.EMAIL_DISABLED,
                reason="EMAIL_USER/EMAIL_PASS not configured; order emails will not be sent",
            )

    @property
    def enabled(self) -> bool:
        return self.settings.email_configured

    async def _smtp_send(self, message: EmailMessage):
        return await aiosmtplib.send(
            message,
            hostname=self.settings.EMAIL_HOST,
            port=self.settings.EMAIL_PORT,
            username=self.settings.EMAIL_USER,
            password=self.settings.EMAIL_PASS,
            use_tls=True,
        )

    async def verify_connection(self) -> bool:
        """Log in to the SMTP server once and report whether it worked."""
        if not self.enabled:
            return False
        smtp = aiosmtplib.SMTP(
            hostname=self.settings.EMAIL_HOST,
            port=self.settings.EMAIL_PORT,
            use_tls=True,
        )
        try:
            await smtp.connect()
            await smtp.login(self.settings.EMAIL_USER, self.settings.EMAIL_PASS)
            await smtp.quit()
        except (aiosmtplib.SMTPException, OSError) as e:
            self.log.error(BusinessEvents.EMAIL_VERIFY_FAILED, error=str(e))
            return False
        self.log.info(BusinessEvents.EMAIL_READY, host=self.settings.EMAIL_HOST)
        return True

    def build_messages(
        self, summary: NormalizedOrderSummary, order_date: datetime | None = None
    ) -> tuple[EmailMessage, EmailMessage]:
        """Render the business notice and the customer receipt."""
        context = summary.model_dump()
        context.update(
            order_date=(order_date or datetime.now()).strftime("%m/%d/%Y"),
            store_name=self.settings.STORE_NAME,
            whatsapp_url=self.settings.SUPPORT_WHATSAPP_URL,
        )

        business = self._message(
            to=self.business_email,
            subject=f"New Order - Payment {summary.payment_id}",
            html=BUSINESS_ORDER_TEMPLATE.render(**context),
        )
        customer = self._message(
            to=summary.customer_email,
            subject=f"Order Confirmation - Payment {summary.payment_id}",
            html=CUSTOMER_RECEIPT_TEMPLATE.render(**context),
        )
        return business, customer

    def _message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(html, subtype="html")
        return message

    async def _send(self, recipient: str, message: EmailMessage, payment_id: str) -> bool:
        try:
            await self._transport(message)
        except Exception as e:
            order_emails_total.labels(recipient=recipient, outcome="failed").inc()
            self.log.error(
                BusinessEvents.EMAIL_FAILED,
                recipient=recipient,
                payment_id=payment_id,
                error=str(e),
            )
            return False
        order_emails_total.labels(recipient=recipient, outcome="sent").inc()
        return True

    async def notify(self, payment: Payment) -> NotificationResult:
        """Send order emails for a completed payment. Never raises."""
        if not self.enabled:
            return NotificationResult(skipped_reason="email_not_configured")

        try:
            summary = summarize(payment)
            if not summary.customer_email:
                self.log.warning(
                    BusinessEvents.EMAIL_SKIPPED,
                    reason="no customer email",
                    payment_id=summary.payment_id,
                )
                return NotificationResult(skipped_reason="missing_customer_email")
            business, customer = self.build_messages(summary)
        except Exception as e:
            self.log.error(BusinessEvents.EMAIL_FAILED, stage="render", error=str(e))
            return NotificationResult(failed=2)

        results = await asyncio.gather(
            self._send("business", business, summary.payment_id),
            self._send("customer", customer, summary.payment_id),
        )
        sent = sum(results)
        if sent == len(results):
            self.log.info(
                BusinessEvents.EMAIL_SENT,
                payment_id=summary.payment_id,
                payment_method=summary.payment_method,
            )
        return NotificationResult(sent=sent, failed=len(results) - sent)
