"""
API Schemas Module

This module defines Pydantic models for request/response validation.
Required payment fields are optional here so the routes can answer missing
values with the storefront's own 400 messages instead of a 422.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from payments.records import Customer, PayPalPaymentRecord


class CreatePaymentIntentRequest(BaseModel):
    amount: float | None = None
    currency: str = "usd"
    customer: Customer | None = None
    items: list[Any] | None = None
    metadata: dict[str, Any] | None = None


class CreatePaymentIntentResponse(BaseModel):
    success: bool = True
    client_secret: str
    payment_intent_id: str


class ProcessPayPalPaymentRequest(BaseModel):
    order_id: str | None = Field(default=None, alias="orderID")
    payer_id: str | None = Field(default=None, alias="payerID")
    amount: float | None = None
    customer: Customer | None = None
    items: list[Any] | None = None

    model_config = ConfigDict(populate_by_name=True)


class ProcessPayPalPaymentResponse(BaseModel):
    success: bool = True
    payment: PayPalPaymentRecord


class ConfirmPaymentRequest(BaseModel):
    payment_intent_id: str | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str | None = None
