"""Orders feature repositories"""
from .orders import OrderRepository
from .webhook_deliveries import WebhookDeliveryRepository

__all__ = [
    "OrderRepository",
    "WebhookDeliveryRepository",
]
