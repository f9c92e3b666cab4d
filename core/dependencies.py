from dataclasses import dataclass

from fastapi import FastAPI, Request

from core.settings import Settings
from notifications.email_service import EmailNotifier
from payments.paypal_service import PayPalService
from payments.stripe_service import StripeService


@dataclass(frozen=True)
class Services:
    """Process-wide collaborators built once at startup."""

    settings: Settings
    stripe: StripeService
    paypal: PayPalService
    notifier: EmailNotifier


def build_services(settings: Settings | None = None) -> Services:
    settings = settings or Settings()
    return Services(
        settings=settings,
        stripe=StripeService(settings),
        paypal=PayPalService(settings),
        notifier=EmailNotifier(settings),
    )


def init_services(app: FastAPI, services: Services) -> None:
    app.state.services = services


def clear_services(app: FastAPI) -> None:
    app.state.services = None


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    assert services is not None, "Services not initialized. Make sure lifespan ran."
    return services


def get_settings(request: Request) -> Settings:
    """Dependency that provides application settings."""
    return get_services(request).settings


def get_stripe_service(request: Request) -> StripeService:
    return get_services(request).stripe


def get_paypal_service(request: Request) -> PayPalService:
    return get_services(request).paypal


def get_notifier(request: Request) -> EmailNotifier:
    return get_services(request).notifier
