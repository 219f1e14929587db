"""Request and response schemas for Catalog feature"""
from typing import List

from pydantic import BaseModel, Field, ConfigDict


class ProductIdsRequest(BaseModel):
    """Request carrying a list of product ids"""
    model_config = ConfigDict(populate_by_name=True)

    product_ids: List[str] = Field(default_factory=list, alias="productIds")


class BasketItem(BaseModel):
    """One product-and-quantity pair in the client basket"""
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., alias="productId")
    quantity: int = Field(..., ge=0)


class BasketValidateRequest(BaseModel):
    """Request model for basket stock validation"""
    items: List[BasketItem]


class BasketAdjustment(BaseModel):
    """A basket item whose quantity had to be lowered to the available stock"""
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., alias="productId")
    requested_quantity: int = Field(..., alias="requestedQuantity")
    adjusted_quantity: int = Field(..., alias="adjustedQuantity")


class BasketValidateResponse(BaseModel):
    """Response model for basket stock validation"""
    adjustments: List[BasketAdjustment]
