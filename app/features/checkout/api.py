"""Checkout API endpoints"""
import logging

from fastapi import APIRouter, Depends

from app.infra.supabase.client import get_supabase_client
from app.middleware.auth import get_current_user_id
from app.features.catalog.repositories.products import ProductRepository
from app.features.checkout.service import CheckoutService
from app.features.checkout.schemas import CreateCheckoutSessionRequest, CreateCheckoutSessionResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


def get_checkout_service() -> CheckoutService:
    return CheckoutService(ProductRepository(get_supabase_client()))


@router.post("/session", response_model=CreateCheckoutSessionResponse)
async def create_checkout_session(
    req: CreateCheckoutSessionRequest,
    user_id: str = Depends(get_current_user_id),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """
    Start a Stripe Checkout for the basket

    The returned URL is where the storefront redirects the shopper. Once
    payment completes, Stripe calls the /webhook endpoint which decrements
    stock and records the order.
    """
    logger.info(f"Creating checkout session for user {user_id} with {len(req.items)} item(s)")
    return await checkout.create_checkout_session(
        items=req.items,
        customer_name=req.customer_name,
        customer_email=req.customer_email,
        user_id=user_id,
    )
