"""Catalog service for product lookups and basket stock checks"""
import logging
from typing import List, Optional

from app.features.catalog.models.product import Product, ProductStock
from app.features.catalog.repositories.products import ProductRepository
from app.features.catalog.schemas import BasketAdjustment, BasketItem

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Read-side access to the product catalogue.

    Lookups degrade to empty results when the content store is unreachable;
    the storefront renders "not found" / "no results" rather than an error page.
    """

    def __init__(self, product_repo: ProductRepository):
        self.product_repo = product_repo

    async def get_product(self, product_id: str) -> Optional[Product]:
        try:
            return await self.product_repo.find_by_id(product_id)
        except Exception as e:
            logger.error(f"CatalogService: Error fetching product {product_id}: {e}", exc_info=True)
            return None

    async def search_products(self, term: str) -> List[Product]:
        term = term.strip()
        if not term:
            return []

        try:
            return await self.product_repo.search_by_name(term)
        except Exception as e:
            logger.error(f"CatalogService: Error searching products by name '{term}': {e}", exc_info=True)
            return []

    async def get_basket_stock(self, product_ids: List[str]) -> List[ProductStock]:
        try:
            return await self.product_repo.find_stock_by_ids(product_ids)
        except Exception as e:
            logger.error(f"CatalogService: Error fetching stock data: {e}", exc_info=True)
            return []

    async def get_purchased_product_slugs(self, product_ids: List[str]) -> List[Optional[str]]:
        if not product_ids:
            logger.warning("CatalogService: No product IDs provided for fetching slugs")
            return []

        try:
            return await self.product_repo.find_slugs_by_ids(product_ids)
        except Exception as e:
            logger.error(f"CatalogService: Error fetching product slugs: {e}", exc_info=True)
            return []

    async def adjust_basket(self, items: List[BasketItem]) -> List[BasketAdjustment]:
        """
        Compare basket quantities against current stock.

        Returns one adjustment per item whose requested quantity exceeds the
        available stock; the adjusted quantity is the stock itself (never below 0).
        """
        stock_levels = await self.get_basket_stock([item.product_id for item in items])
        stock_by_id = {s.id: s.stock for s in stock_levels}

        adjustments = []
        for item in items:
            stock = stock_by_id.get(item.product_id)
            if stock is None:
                continue
            if item.quantity > stock:
                adjustments.append(BasketAdjustment(
                    product_id=item.product_id,
                    requested_quantity=item.quantity,
                    adjusted_quantity=max(stock, 0),
                ))

        if adjustments:
            logger.info(f"CatalogService: Adjusted {len(adjustments)} basket item(s) due to limited stock")

        return adjustments
