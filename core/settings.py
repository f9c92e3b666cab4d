import os
from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file automatically
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Stripe
    STRIPE_SECRET_KEY: str
    STRIPE_WEBHOOK_SECRET: str | None = None

    # Email (SMTP)
    EMAIL_USER: str | None = None
    EMAIL_PASS: str | None = None
    EMAIL_HOST: str = "smtp.gmail.com"
    EMAIL_PORT: int = 465
    EMAIL_VERIFY_ON_STARTUP: bool = True
    BUSINESS_EMAIL: str = "orders@pakbh.com"

    # PayPal order verification (optional)
    PAYPAL_CLIENT_ID: str | None = None
    PAYPAL_SECRET: str | None = None
    PAYPAL_BASE: str = "https://api-m.sandbox.paypal.com"
    PAYPAL_VERIFY_ORDERS: bool = False

    # App settings
    APP_NAME: str = "Blen Hairs USA Payments"
    PORT: int = 3001
    ENVIRONMENT: Literal["development", "test", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    # Storefront copy
    STORE_NAME: str = "PAKBH"
    PAYMENT_DESCRIPTION: str = "Premium Afro Kinky Bulk Hair - Blen Hairs USA"
    SUPPORT_WHATSAPP_URL: str = "https://wa.me/+33634549649"
    MARKET: str = "United States"
    LOCATION: str = "Miami, FL"

    # Metrics (Optional)
    METRICS_AUTH_TOKEN: str | None = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, frozen=True)

    def __init__(self, **kwargs):
        # Fail before pydantic so the message names the variable to set
        if not (kwargs.get("STRIPE_SECRET_KEY") or os.getenv("STRIPE_SECRET_KEY")):
            raise RuntimeError(
                "STRIPE_SECRET_KEY is required; add your Stripe secret key to .env"
            )
        super().__init__(**kwargs)

    @property
    def stripe_key_configured(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY)

    @property
    def webhook_configured(self) -> bool:
        return bool(self.STRIPE_WEBHOOK_SECRET)

    @property
    def email_configured(self) -> bool:
        return bool(self.EMAIL_USER and self.EMAIL_PASS)

    @property
    def paypal_verification_enabled(self) -> bool:
        return bool(
            self.PAYPAL_VERIFY_ORDERS and self.PAYPAL_CLIENT_ID and self.PAYPAL_SECRET
        )

    @property
    def show_error_details(self) -> bool:
        return self.ENVIRONMENT != "production"
