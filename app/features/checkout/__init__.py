"""Checkout feature module"""

from app.features.checkout.schemas import CreateCheckoutSessionRequest, CreateCheckoutSessionResponse
from app.features.checkout.service import CheckoutService
from app.features.checkout.api import router

__all__ = [
    "router",
    "CheckoutService",
    "CreateCheckoutSessionRequest",
    "CreateCheckoutSessionResponse",
]
