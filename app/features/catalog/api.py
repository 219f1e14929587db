"""Catalog API endpoints for product lookups and basket stock"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.infra.supabase.client import get_supabase_client
from app.middleware.auth import get_current_user_id
from app.features.catalog.models.product import Product, ProductStock
from app.features.catalog.repositories.products import ProductRepository
from app.features.catalog.service import CatalogService
from app.features.catalog.schemas import (
    ProductIdsRequest,
    BasketValidateRequest,
    BasketValidateResponse,
)

logger = logging.getLogger(__name__)

products_router = APIRouter(
    prefix="/api/products",
    tags=["products"],
    dependencies=[Depends(get_current_user_id)],
)
basket_router = APIRouter(
    prefix="/api/basket",
    tags=["basket"],
    dependencies=[Depends(get_current_user_id)],
)


def get_catalog_service() -> CatalogService:
    return CatalogService(ProductRepository(get_supabase_client()))


@products_router.get("/search", response_model=List[Product])
async def search_products(
    q: str = Query(..., min_length=1),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Search products by name (case-insensitive), ordered by name"""
    return await catalog.search_products(q)


@products_router.post("/stock", response_model=List[ProductStock])
async def get_basket_stock(
    req: ProductIdsRequest,
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Current stock for the products in a basket"""
    return await catalog.get_basket_stock(req.product_ids)


@products_router.post("/slugs", response_model=List[Optional[str]])
async def get_purchased_product_slugs(
    req: ProductIdsRequest,
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Slugs of purchased products, for linking back from the success page"""
    return await catalog.get_purchased_product_slugs(req.product_ids)


@products_router.get("/{product_id}", response_model=Product)
async def get_product(
    product_id: str,
    catalog: CatalogService = Depends(get_catalog_service),
):
    product = await catalog.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@basket_router.post("/validate", response_model=BasketValidateResponse)
async def validate_basket(
    req: BasketValidateRequest,
    catalog: CatalogService = Depends(get_catalog_service),
):
    """
    Check basket quantities against current stock.

    Items requesting more than is in stock come back with the quantity the
    basket should be lowered to.
    """
    adjustments = await catalog.adjust_basket(req.items)
    return BasketValidateResponse(adjustments=adjustments)
