"""Webhook delivery dedup record"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class WebhookDeliveryBase(BaseModel):
    """Base delivery fields"""
    stripe_checkout_session_id: str
    stripe_event_id: Optional[str] = None
    type: str


class WebhookDeliveryCreate(WebhookDeliveryBase):
    """Delivery claim model"""
    pass


class WebhookDeliveryUpdate(BaseModel):
    """Delivery update model - all fields optional"""
    processed_at: Optional[datetime] = None


class WebhookDelivery(WebhookDeliveryBase):
    """Complete delivery record from database"""
    id: int
    received_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
