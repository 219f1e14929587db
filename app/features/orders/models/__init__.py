"""Orders feature models"""
from .order import Order, OrderCreate, OrderUpdate, OrderLineItem
from .webhook_delivery import WebhookDelivery, WebhookDeliveryCreate, WebhookDeliveryUpdate
from .checkout_session import CheckoutSession, CheckoutLineItem

__all__ = [
    "Order",
    "OrderCreate",
    "OrderUpdate",
    "OrderLineItem",
    "WebhookDelivery",
    "WebhookDeliveryCreate",
    "WebhookDeliveryUpdate",
    "CheckoutSession",
    "CheckoutLineItem",
]
