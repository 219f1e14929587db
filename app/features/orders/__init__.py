"""Orders feature module"""

from app.features.orders.domain import CHECKOUT_SESSION_COMPLETED, OrderStatus, StockFailurePolicy
from app.features.orders.exceptions import (
    FulfillmentError,
    BadRequest,
    Misconfigured,
    VerificationFailed,
    StockUpdateFailed,
    OrderCreationFailed,
)
from app.features.orders.models import (
    Order,
    OrderCreate,
    OrderLineItem,
    CheckoutSession,
    CheckoutLineItem,
    WebhookDelivery,
    WebhookDeliveryCreate,
)
from app.features.orders.repositories import OrderRepository, WebhookDeliveryRepository
from app.features.orders.gateway import PaymentGateway, WebhookEvent
from app.features.orders.fulfillment_service import OrderFulfillmentService, StockAdjustment
from app.features.orders.api import webhook_router, orders_router

__all__ = [
    "webhook_router",
    "orders_router",
    "OrderFulfillmentService",
    "StockAdjustment",
    "PaymentGateway",
    "WebhookEvent",
    "CHECKOUT_SESSION_COMPLETED",
    "OrderStatus",
    "StockFailurePolicy",
    "FulfillmentError",
    "BadRequest",
    "Misconfigured",
    "VerificationFailed",
    "StockUpdateFailed",
    "OrderCreationFailed",
    "Order",
    "OrderCreate",
    "OrderLineItem",
    "CheckoutSession",
    "CheckoutLineItem",
    "WebhookDelivery",
    "WebhookDeliveryCreate",
    "OrderRepository",
    "WebhookDeliveryRepository",
]
