"""Orders repository"""
from typing import List, Optional

from supabase import Client  # type: ignore

from app.features.orders.models.order import Order, OrderCreate, OrderUpdate
from app.infra.supabase.repositories.base import BaseRepository


class OrderRepository(BaseRepository[Order, OrderCreate, OrderUpdate]):
    """Repository for order operations"""

    def __init__(self, client: Client):
        super().__init__(client, "orders", Order)

    async def find_by_checkout_session_id(self, checkout_session_id: str) -> List[Order]:
        """All orders created for a checkout session (more than one means a duplicate delivery)"""
        return await self.find_by_filters({"stripe_checkout_session_id": checkout_session_id})

    async def find_by_order_number(self, order_number: str) -> Optional[Order]:
        results = await self.find_by_filters({"order_number": order_number}, limit=1)
        return results[0] if results else None

    async def find_by_clerk_user_id(self, clerk_user_id: str) -> List[Order]:
        """Orders placed by a user, newest first"""
        return await self.find_by_filters(
            {"clerk_user_id": clerk_user_id},
            order_by="order_date",
            descending=True,
        )
