"""Order API endpoints: Stripe fulfillment webhook and order history"""
import logging
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from app import config
from app.infra.supabase.client import get_supabase_client
from app.middleware.auth import get_current_user_id
from app.features.catalog.repositories.products import ProductRepository
from app.features.orders.domain import StockFailurePolicy
from app.features.orders.exceptions import FulfillmentError, Misconfigured
from app.features.orders.fulfillment_service import OrderFulfillmentService
from app.features.orders.gateway import PaymentGateway
from app.features.orders.models.order import Order
from app.features.orders.repositories.orders import OrderRepository
from app.features.orders.repositories.webhook_deliveries import WebhookDeliveryRepository

logger = logging.getLogger(__name__)

webhook_router = APIRouter(tags=["webhooks"])
orders_router = APIRouter(prefix="/api/orders", tags=["orders"])


def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway()


def get_webhook_secret() -> Optional[str]:
    return config.STRIPE_WEBHOOK_SECRET


def get_order_repository() -> OrderRepository:
    return OrderRepository(get_supabase_client())


def build_fulfillment_service(gateway: PaymentGateway) -> OrderFulfillmentService:
    client = get_supabase_client()
    return OrderFulfillmentService(
        gateway=gateway,
        product_repo=ProductRepository(client),
        order_repo=OrderRepository(client),
        delivery_repo=WebhookDeliveryRepository(client),
        dedup_enabled=config.WEBHOOK_DEDUP_ENABLED,
        claim_stale_seconds=config.WEBHOOK_CLAIM_STALE_SECONDS,
        max_stock_attempts=config.STOCK_UPDATE_MAX_ATTEMPTS,
        failure_policy=StockFailurePolicy(config.STOCK_FAILURE_POLICY),
    )


def get_fulfillment_service_factory() -> Callable[[PaymentGateway], OrderFulfillmentService]:
    return build_fulfillment_service


# ============================================================================
# STRIPE WEBHOOK ENDPOINT
# ============================================================================

@webhook_router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    webhook_secret: Optional[str] = Depends(get_webhook_secret),
    make_service: Callable[[PaymentGateway], OrderFulfillmentService] = Depends(get_fulfillment_service_factory),
):
    """
    Stripe webhook endpoint for completed checkouts

    Responses:
    - 200 {"received": true}: processed, or event type not handled
    - 400 {"error": ...}: missing signature, missing secret, verification failed
    - 500 {"error": ...}: stock reconciliation or order creation failed (Stripe retries)
    """
    payload = await request.body()
    logger.info(f"Received Stripe webhook request (payload size: {len(payload)} bytes)")

    try:
        event = gateway.verify_and_parse(payload, stripe_signature, webhook_secret)
    except Misconfigured as e:
        logger.critical(f"Stripe webhook rejected because the service is misconfigured: {e.message}")
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    except FulfillmentError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    # Built only after verification so rejected requests never touch the store
    service = make_service(gateway)

    try:
        order = await service.handle_event(event)
    except FulfillmentError as e:
        logger.error(f"Error processing webhook {event.type} (ID: {event.id}): {e.message}")
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    if order is not None:
        logger.info(f"Order created: {order.id} (order number {order.order_number})")

    return {"received": True}


# ============================================================================
# ORDER HISTORY
# ============================================================================

@orders_router.get("", response_model=List[Order])
async def list_my_orders(
    user_id: str = Depends(get_current_user_id),
    order_repo: OrderRepository = Depends(get_order_repository),
):
    """Orders placed by the authenticated user, newest first"""
    return await order_repo.find_by_clerk_user_id(user_id)
