"""Webhook deliveries repository"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from supabase import Client  # type: ignore

from app.features.orders.models.webhook_delivery import (
    WebhookDelivery,
    WebhookDeliveryCreate,
    WebhookDeliveryUpdate,
)
from app.infra.supabase.repositories.base import BaseRepository


class WebhookDeliveryRepository(BaseRepository[WebhookDelivery, WebhookDeliveryCreate, WebhookDeliveryUpdate]):
    """
    Repository for delivery dedup records.

    The table has a unique constraint on stripe_checkout_session_id, so a
    claim is an insert-if-absent: exactly one concurrent delivery wins.
    """

    def __init__(self, client: Client):
        super().__init__(client, "webhook_deliveries", WebhookDelivery)

    async def find_by_checkout_session_id(self, checkout_session_id: str) -> Optional[WebhookDelivery]:
        results = await self.find_by_filters({"stripe_checkout_session_id": checkout_session_id}, limit=1)
        return results[0] if results else None

    async def claim(self, data: WebhookDeliveryCreate, stale_after: Optional[timedelta] = None) -> bool:
        """
        Insert the delivery record unless one already exists.

        With stale_after set, an existing record that was never marked
        processed and was received longer ago than stale_after is taken over.

        Returns:
            True if this call now owns the record, False otherwise
        """
        response = (
            self._table()
            .upsert(
                data.model_dump(mode='json'),
                on_conflict="stripe_checkout_session_id",
                ignore_duplicates=True,
            )
            .execute()
        )
        if response.data:
            return True
        if stale_after is None:
            return False
        return await self._take_over_stale(data, stale_after)

    async def _take_over_stale(self, data: WebhookDeliveryCreate, stale_after: timedelta) -> bool:
        response = (
            self._table()
            .select("*")
            .eq("stripe_checkout_session_id", data.stripe_checkout_session_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return False

        row = response.data[0]
        delivery = self._to_model(row)
        if delivery.processed_at is not None or delivery.received_at is None:
            return False
        received_at = delivery.received_at
        if received_at.tzinfo is None:
            received_at = received_at.replace(tzinfo=timezone.utc)
        if datetime.now(timezone.utc) - received_at < stale_after:
            return False

        # Conditional on the old received_at so only one taker wins
        taken = (
            self._table()
            .update({
                "received_at": datetime.now(timezone.utc).isoformat(),
                "stripe_event_id": data.stripe_event_id,
            })
            .eq("id", row["id"])
            .eq("received_at", row["received_at"])
            .execute()
        )
        return bool(taken.data)

    async def mark_as_processed(self, checkout_session_id: str) -> Optional[WebhookDelivery]:
        """Stamp processed_at on the delivery record"""
        update_data = WebhookDeliveryUpdate(processed_at=datetime.now(timezone.utc))
        response = (
            self._table()
            .update(update_data.model_dump(exclude_unset=True, mode='json'))
            .eq("stripe_checkout_session_id", checkout_session_id)
            .execute()
        )
        if not response.data:
            return None
        return self._to_model(response.data[0])

    async def release(self, checkout_session_id: str) -> bool:
        """Delete a claim so a redelivery of the same session is processed again"""
        response = (
            self._table()
            .delete()
            .eq("stripe_checkout_session_id", checkout_session_id)
            .execute()
        )
        return len(response.data) > 0
