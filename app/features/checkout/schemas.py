"""Request and response schemas for Checkout feature"""
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict

from app.features.catalog.schemas import BasketItem


class CreateCheckoutSessionRequest(BaseModel):
    """Request model for starting a Stripe checkout from the basket"""
    model_config = ConfigDict(populate_by_name=True)

    items: List[BasketItem] = Field(..., min_length=1)
    customer_name: str = Field("Unknown", alias="customerName")
    customer_email: Optional[str] = Field(None, alias="customerEmail")


class CreateCheckoutSessionResponse(BaseModel):
    """Response model for checkout session creation"""
    model_config = ConfigDict(populate_by_name=True)

    url: str
    session_id: str = Field(..., alias="sessionId")
    order_number: str = Field(..., alias="orderNumber")
