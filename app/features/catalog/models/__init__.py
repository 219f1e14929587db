"""Catalog feature models"""
from .product import Product, ProductCreate, ProductUpdate, ProductStock

__all__ = [
    "Product",
    "ProductCreate",
    "ProductUpdate",
    "ProductStock",
]
