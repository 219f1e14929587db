"""Order domain model"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from app.features.orders.domain import OrderStatus


class OrderLineItem(BaseModel):
    """One purchased product within an order"""
    key: str
    product_id: Optional[str] = None
    quantity: int = Field(0, ge=0)


class OrderBase(BaseModel):
    """Base order fields"""
    order_number: Optional[str] = None
    stripe_checkout_session_id: str
    stripe_payment_intent_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    clerk_user_id: Optional[str] = None
    customer_name: Optional[str] = None
    email: Optional[str] = None
    currency: Optional[str] = None
    amount_discount: float = 0
    total_price: float = 0
    products: List[OrderLineItem] = Field(default_factory=list)
    status: OrderStatus = OrderStatus.PAID
    order_date: datetime


class OrderCreate(OrderBase):
    """Order creation model"""
    pass


class OrderUpdate(BaseModel):
    """Orders are never updated after creation by the fulfillment flow"""
    status: Optional[OrderStatus] = None


class Order(OrderBase):
    """Complete order model from database"""
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
