"""Catalog feature module"""

from app.features.catalog.models import Product, ProductCreate, ProductUpdate, ProductStock
from app.features.catalog.repositories import ProductRepository
from app.features.catalog.service import CatalogService
from app.features.catalog.api import products_router, basket_router

__all__ = [
    "products_router",
    "basket_router",
    "CatalogService",
    "ProductRepository",
    "Product",
    "ProductCreate",
    "ProductUpdate",
    "ProductStock",
]
