"""Order fulfillment for completed Stripe checkouts

Flow for a `checkout.session.completed` event:

1. Claim the delivery (insert-if-absent keyed by checkout session id) so a
   redelivered event is acknowledged without being processed twice.
2. Fetch the session's line items from Stripe.
3. Reconcile stock: decrement every referenced product by its quantity.
4. Create the order record.

Stock reconciliation is not transactional across products. If a later
product fails, earlier decrements stay committed under the default `leave`
policy; the `compensate` policy restores them before the error propagates.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import stripe
from pydantic import ValidationError

from app.features.catalog.repositories.products import ProductRepository
from app.features.orders.domain import (
    CHECKOUT_SESSION_COMPLETED,
    OrderStatus,
    StockFailurePolicy,
    is_valid_stock,
    to_major_units,
)
from app.features.orders.exceptions import (
    OrderCreationFailed,
    StockUpdateFailed,
)
from app.features.orders.gateway import PaymentGateway, WebhookEvent
from app.features.orders.models.checkout_session import CheckoutSession, stripe_field
from app.features.orders.models.order import Order, OrderCreate, OrderLineItem
from app.features.orders.models.webhook_delivery import WebhookDeliveryCreate
from app.features.orders.repositories.orders import OrderRepository
from app.features.orders.repositories.webhook_deliveries import WebhookDeliveryRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockAdjustment:
    """A stock decrement that has been committed to the content store"""
    product_id: str
    quantity: int
    previous_stock: int
    new_stock: int


class OrderFulfillmentService:
    """Turns a paid checkout session into stock decrements and an order record"""

    def __init__(
        self,
        gateway: PaymentGateway,
        product_repo: ProductRepository,
        order_repo: OrderRepository,
        delivery_repo: WebhookDeliveryRepository,
        dedup_enabled: bool = True,
        claim_stale_seconds: int = 600,
        max_stock_attempts: int = 3,
        failure_policy: StockFailurePolicy = StockFailurePolicy.LEAVE,
    ):
        if max_stock_attempts < 1:
            raise ValueError("max_stock_attempts must be at least 1")

        self.gateway = gateway
        self.product_repo = product_repo
        self.order_repo = order_repo
        self.delivery_repo = delivery_repo
        self.dedup_enabled = dedup_enabled
        self.claim_stale_after = timedelta(seconds=claim_stale_seconds) if claim_stale_seconds > 0 else None
        self.max_stock_attempts = max_stock_attempts
        self.failure_policy = StockFailurePolicy(failure_policy)

    async def handle_event(self, event: WebhookEvent) -> Optional[Order]:
        """
        Process a verified webhook event.

        Returns:
            The created order, or None when the event was ignored (other event
            type, or a delivery that was already claimed)

        Raises:
            StockUpdateFailed, OrderCreationFailed
        """
        if event.type != CHECKOUT_SESSION_COMPLETED:
            logger.debug(f"OrderFulfillmentService: Ignoring event {event.id} of type {event.type}")
            return None

        try:
            session = CheckoutSession.from_stripe(event.data_object)
        except ValidationError as e:
            session_id = stripe_field(event.data_object, "id") or "unknown"
            logger.error(f"OrderFulfillmentService: Malformed checkout session in event {event.id}: {e}")
            raise OrderCreationFailed(session_id, "malformed checkout session") from e

        logger.info(f"OrderFulfillmentService: Processing checkout session {session.id} (event {event.id})")
        return await self.fulfill_checkout(session, event_id=event.id)

    async def fulfill_checkout(self, session: CheckoutSession, event_id: Optional[str] = None) -> Optional[Order]:
        if self.dedup_enabled and not await self._claim_delivery(session, event_id):
            logger.info(f"OrderFulfillmentService: Checkout session {session.id} already claimed, skipping")
            return None

        try:
            line_items = self._fetch_order_lines(session.id)
            await self.reconcile_stock(line_items, session.id)
            order = await self.persist_order(session, line_items)
        except BaseException:
            # Any abort, including cancellation, must leave the session retryable
            if self.dedup_enabled:
                await self._release_delivery(session.id)
            raise

        if self.dedup_enabled:
            await self._mark_delivery_processed(session.id)

        logger.info(
            f"OrderFulfillmentService: Created order {order.id} "
            f"(order number {order.order_number}) for checkout session {session.id}"
        )
        return order

    # ============================================================================
    # STOCK RECONCILIATION
    # ============================================================================

    async def reconcile_stock(self, line_items: List[OrderLineItem], checkout_session_id: str) -> List[StockAdjustment]:
        """
        Decrement stock for each line item, in order.

        Items without a product id or quantity, unknown products and products
        with malformed stock are skipped. The first failed write aborts the
        whole reconciliation with StockUpdateFailed.
        """
        applied: List[StockAdjustment] = []

        for item in line_items:
            if not item.product_id or not item.quantity:
                continue

            try:
                adjustment = await self._decrement_stock(item.product_id, item.quantity)
            except StockUpdateFailed:
                logger.error(
                    f"OrderFulfillmentService: Stock reconciliation aborted for checkout session "
                    f"{checkout_session_id} at product {item.product_id}; "
                    f"{len(applied)} earlier decrement(s) already committed",
                    exc_info=True,
                )
                if self.failure_policy == StockFailurePolicy.COMPENSATE:
                    await self._compensate(applied, checkout_session_id)
                raise

            if adjustment:
                applied.append(adjustment)

        return applied

    async def _decrement_stock(self, product_id: str, quantity: int) -> Optional[StockAdjustment]:
        """
        Read-modify-write a product's stock with a compare-and-set.

        A lost race re-reads and retries; the result is not
        clamped at zero.
        """
        for attempt in range(1, self.max_stock_attempts + 1):
            try:
                record = await self.product_repo.get_stock_record(product_id)
            except Exception as e:
                raise StockUpdateFailed(product_id, str(e)) from e

            if record is None:
                logger.warning(f"OrderFulfillmentService: Product with ID {product_id} not found, skipping")
                return None

            current = record.get("stock")
            if not is_valid_stock(current):
                logger.warning(
                    f"OrderFulfillmentService: Product with ID {product_id} has invalid stock {current!r}, skipping"
                )
                return None

            new_stock = current - quantity
            if new_stock < 0:
                # TODO: confirm with the product owner whether negative stock should mean backorder or be rejected
                logger.warning(
                    f"OrderFulfillmentService: Stock for product ID {product_id} goes negative "
                    f"({current} - {quantity} = {new_stock})"
                )

            try:
                updated = await self.product_repo.compare_and_set_stock(product_id, current, new_stock)
            except Exception as e:
                raise StockUpdateFailed(product_id, str(e)) from e

            if updated:
                logger.info(f"OrderFulfillmentService: Updated stock for product ID {product_id}: {new_stock}")
                return StockAdjustment(product_id, quantity, current, new_stock)

            logger.warning(
                f"OrderFulfillmentService: Stock for product ID {product_id} changed concurrently "
                f"(attempt {attempt}/{self.max_stock_attempts})"
            )

        raise StockUpdateFailed(product_id, "stock changed concurrently on every attempt")

    async def _compensate(self, applied: List[StockAdjustment], checkout_session_id: str) -> None:
        """Give back already-committed decrements, newest first. Failures are logged, not raised."""
        for adjustment in reversed(applied):
            try:
                restored = await self._restore_stock(adjustment)
            except Exception:
                restored = False
                logger.error(
                    f"OrderFulfillmentService: Error restoring stock for product ID {adjustment.product_id}",
                    exc_info=True,
                )

            if restored:
                logger.info(
                    f"OrderFulfillmentService: Restored {adjustment.quantity} unit(s) of product ID "
                    f"{adjustment.product_id} for checkout session {checkout_session_id}"
                )
            else:
                logger.error(
                    f"OrderFulfillmentService: Manual reconciliation needed: product ID {adjustment.product_id} "
                    f"was decremented by {adjustment.quantity} for checkout session {checkout_session_id}"
                )

    async def _restore_stock(self, adjustment: StockAdjustment) -> bool:
        for _ in range(self.max_stock_attempts):
            record = await self.product_repo.get_stock_record(adjustment.product_id)
            if record is None or not isinstance(record.get("stock"), int):
                return False

            current = record["stock"]
            if await self.product_repo.compare_and_set_stock(
                adjustment.product_id, current, current + adjustment.quantity
            ):
                return True
        return False

    # ============================================================================
    # ORDER PERSISTENCE
    # ============================================================================

    def _fetch_order_lines(self, checkout_session_id: str) -> List[OrderLineItem]:
        """Line items re-keyed for storage on the order"""
        try:
            line_items = self.gateway.list_line_items(checkout_session_id)
        except (stripe.StripeError, ValidationError) as e:
            logger.error(
                f"OrderFulfillmentService: Failed to list line items for checkout session {checkout_session_id}: {e}"
            )
            raise OrderCreationFailed(checkout_session_id, "could not fetch line items") from e

        return [
            OrderLineItem(key=str(uuid.uuid4()), product_id=item.product_id, quantity=item.quantity)
            for item in line_items
        ]

    async def persist_order(self, session: CheckoutSession, line_items: List[OrderLineItem]) -> Order:
        """Create the order record for a reconciled checkout session"""
        order_data = OrderCreate(
            order_number=session.order_number,
            stripe_checkout_session_id=session.id,
            stripe_payment_intent_id=session.payment_intent_id,
            stripe_customer_id=session.customer_id,
            clerk_user_id=session.clerk_user_id,
            customer_name=session.customer_name,
            email=session.customer_email,
            currency=session.currency,
            amount_discount=to_major_units(session.amount_discount),
            total_price=to_major_units(session.amount_total),
            products=line_items,
            status=OrderStatus.PAID,
            order_date=datetime.now(timezone.utc),
        )

        try:
            return await self.order_repo.create(order_data)
        except Exception as e:
            logger.error(
                f"OrderFulfillmentService: Error creating order for checkout session {session.id}: {e}",
                exc_info=True,
            )
            raise OrderCreationFailed(session.id, str(e)) from e

    # ============================================================================
    # DELIVERY DEDUP
    # ============================================================================

    async def _claim_delivery(self, session: CheckoutSession, event_id: Optional[str]) -> bool:
        try:
            return await self.delivery_repo.claim(
                WebhookDeliveryCreate(
                    stripe_checkout_session_id=session.id,
                    stripe_event_id=event_id,
                    type=CHECKOUT_SESSION_COMPLETED,
                ),
                stale_after=self.claim_stale_after,
            )
        except Exception as e:
            logger.error(f"OrderFulfillmentService: Failed to claim delivery for {session.id}", exc_info=True)
            raise OrderCreationFailed(session.id, "could not record webhook delivery") from e

    async def _release_delivery(self, checkout_session_id: str) -> None:
        try:
            await self.delivery_repo.release(checkout_session_id)
        except Exception:
            logger.error(
                f"OrderFulfillmentService: Failed to release delivery claim for {checkout_session_id}; "
                f"redeliveries will be skipped until the record is removed",
                exc_info=True,
            )

    async def _mark_delivery_processed(self, checkout_session_id: str) -> None:
        try:
            await self.delivery_repo.mark_as_processed(checkout_session_id)
        except Exception:
            # The order exists at this point; the claim alone still blocks reprocessing
            logger.error(
                f"OrderFulfillmentService: Failed to mark delivery {checkout_session_id} as processed",
                exc_info=True,
            )
