"""Products repository"""
from typing import Any, Dict, List, Optional

from supabase import Client  # type: ignore

from app.features.catalog.models.product import Product, ProductCreate, ProductUpdate, ProductStock
from app.infra.supabase.repositories.base import BaseRepository


class ProductRepository(BaseRepository[Product, ProductCreate, ProductUpdate]):
    """Repository for product catalogue and stock operations"""

    def __init__(self, client: Client):
        super().__init__(client, "products", Product)

    async def get_stock_record(self, product_id: str) -> Optional[Dict[str, Any]]:
        """
        Read the raw stock row of a product.

        The row is returned untouched so callers can tell a malformed stock
        value apart from a valid one instead of having it coerced.
        """
        response = self._table().select("id, stock").eq("id", product_id).execute()

        if not response.data:
            return None

        return response.data[0]

    async def compare_and_set_stock(self, product_id: str, expected: int, new_stock: int) -> bool:
        """
        Set stock to new_stock only if it still equals expected.

        Returns:
            True if the row was updated, False if the stock changed (or the
            product disappeared) since it was read.
        """
        response = (
            self._table()
            .update({"stock": new_stock})
            .eq("id", product_id)
            .eq("stock", expected)
            .execute()
        )
        return bool(response.data)

    async def find_stock_by_ids(self, product_ids: List[str]) -> List[ProductStock]:
        """Fetch current stock for a set of products"""
        if not product_ids:
            return []

        response = self._table().select("id, stock").in_("id", product_ids).execute()
        return [ProductStock(**row) for row in response.data]

    async def find_by_ids(self, product_ids: List[str]) -> List[Product]:
        """Fetch full products for a set of ids"""
        if not product_ids:
            return []

        response = self._table().select("*").in_("id", product_ids).execute()
        return self._to_models(response.data)

    async def search_by_name(self, term: str) -> List[Product]:
        """Case-insensitive name search, ordered by name"""
        response = (
            self._table()
            .select("*")
            .ilike("name", f"%{term}%")
            .order("name")
            .execute()
        )
        return self._to_models(response.data)

    async def find_slugs_by_ids(self, product_ids: List[str]) -> List[Optional[str]]:
        """Fetch slugs for a set of products"""
        if not product_ids:
            return []

        response = self._table().select("slug").in_("id", product_ids).execute()
        return [row.get("slug") for row in response.data]
