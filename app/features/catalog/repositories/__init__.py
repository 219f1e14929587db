"""Catalog feature repositories"""
from .products import ProductRepository

__all__ = [
    "ProductRepository",
]
