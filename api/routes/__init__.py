"""
API Routes Package

This module consolidates all API routes for the storefront payments server.
"""

from fastapi import APIRouter

from api import webhooks
from . import health
from . import payments

# Create main router
router = APIRouter()

# Include all route modules
router.include_router(payments.router, tags=["payments"])
router.include_router(webhooks.router, tags=["webhooks"])
router.include_router(health.router, tags=["health"])

# Export for use in main application
__all__ = ["router"]
