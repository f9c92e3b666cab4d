from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from core.cors import ALLOWED_ORIGINS
from core.dependencies import get_settings
from core.settings import Settings

router = APIRouter()

SUPPORTED_PAYMENT_METHODS = ["stripe", "paypal"]
SHIPPING_ZONES = ["US", "Canada", "Mexico", "Caribbean", "International"]


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Report service status and which integrations are configured (no secrets)."""
    return {
        "status": "OK",
        "timestamp": datetime.now(UTC).isoformat(),
        "market": settings.MARKET,
        "location": settings.LOCATION,
        "stripe_connected": settings.stripe_key_configured,
        "stripe_key_configured": settings.stripe_key_configured,
        "webhook_configured": settings.webhook_configured,
        "email_configured": settings.email_configured,
        "paypal_verification_enabled": settings.paypal_verification_enabled,
        "environment": settings.ENVIRONMENT,
        "supported_payment_methods": SUPPORTED_PAYMENT_METHODS,
        "shipping_zones": SHIPPING_ZONES,
        "cors_allowed_origins": list(ALLOWED_ORIGINS),
    }
