"""Checkout service for creating Stripe checkout sessions from a basket"""
import logging
import uuid
from typing import List, Optional

import stripe
from fastapi import HTTPException

from app.config import CLIENT_URL, STRIPE_CURRENCY, STRIPE_SECRET_KEY
from app.features.catalog.models.product import Product
from app.features.catalog.repositories.products import ProductRepository
from app.features.catalog.schemas import BasketItem
from app.features.checkout.schemas import CreateCheckoutSessionResponse

logger = logging.getLogger(__name__)

# Initialize Stripe
stripe.api_key = STRIPE_SECRET_KEY


def is_email_address(value: Optional[str]) -> bool:
    """Loose shape check; Stripe does the real validation"""
    if not value:
        return False
    local, _, domain = value.strip().partition("@")
    return bool(local) and "." in domain and " " not in value.strip()


class CheckoutService:
    """
    Builds Stripe checkout sessions for basket contents.

    Prices come from the content store, never from the client. Each Stripe
    product carries the content store id in metadata.id; the fulfillment
    webhook uses it to find the product whose stock to decrement.
    """

    def __init__(
        self,
        product_repo: ProductRepository,
        client_url: str = CLIENT_URL,
        currency: str = STRIPE_CURRENCY,
    ):
        self.product_repo = product_repo
        self.client_url = client_url.rstrip("/")
        self.currency = currency

    # ============================================================================
    # VALIDATION
    # ============================================================================

    def validate_items(self, items: List[BasketItem]) -> None:
        if not items:
            raise HTTPException(status_code=400, detail="Basket is empty")

        zero = [item.product_id for item in items if item.quantity <= 0]
        if zero:
            raise HTTPException(
                status_code=400,
                detail=f"Remove items with zero quantity before checkout: {', '.join(zero)}"
            )

    async def load_products(self, items: List[BasketItem]) -> dict:
        product_ids = [item.product_id for item in items]
        products = {p.id: p for p in await self.product_repo.find_by_ids(product_ids)}

        missing = [pid for pid in product_ids if pid not in products]
        if missing:
            raise HTTPException(status_code=400, detail=f"Unknown product(s): {', '.join(missing)}")

        unpriced = [pid for pid, p in products.items() if p.price is None]
        if unpriced:
            raise HTTPException(status_code=400, detail=f"Product(s) without a price: {', '.join(unpriced)}")

        return products

    # ============================================================================
    # STRIPE OPERATIONS
    # ============================================================================

    def build_line_item(self, product: Product, quantity: int) -> dict:
        product_data = {
            "name": product.name or "Unnamed Product",
            "metadata": {"id": product.id},
        }
        if product.description:
            product_data["description"] = product.description
        if product.image:
            product_data["images"] = [product.image]

        return {
            "price_data": {
                "currency": self.currency,
                "unit_amount": round(product.price * 100),
                "product_data": product_data,
            },
            "quantity": quantity,
        }

    def find_customer_id(self, email: str) -> Optional[str]:
        """Reuse an existing Stripe customer with this email, if any"""
        try:
            customers = stripe.Customer.list(email=email, limit=1)
        except stripe.StripeError as e:
            logger.warning(f"CheckoutService: Customer lookup failed for {email}: {e}")
            return None
        return customers.data[0].id if customers.data else None

    async def create_checkout_session(
        self,
        items: List[BasketItem],
        customer_name: str,
        customer_email: Optional[str],
        user_id: str,
    ) -> CreateCheckoutSessionResponse:
        """
        Create a Stripe Checkout Session for the basket.

        Raises:
            HTTPException(400): empty basket, zero quantities, unknown or unpriced products
            HTTPException(500): Stripe error
        """
        self.validate_items(items)
        products = await self.load_products(items)

        order_number = str(uuid.uuid4())
        email = customer_email.strip() if is_email_address(customer_email) else None
        customer_id = self.find_customer_id(email) if email else None
        if customer_id:
            customer_params = {"customer": customer_id}
        elif email:
            customer_params = {"customer_creation": "always", "customer_email": email}
        else:
            # Checkout collects the email itself
            customer_params = {"customer_creation": "always"}

        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                **customer_params,
                allow_promotion_codes=True,
                line_items=[self.build_line_item(products[item.product_id], item.quantity) for item in items],
                metadata={
                    "orderNumber": order_number,
                    "customerName": customer_name,
                    "customerEmail": email or "Unknown",
                    "clerkUserId": user_id,
                },
                success_url=(
                    f"{self.client_url}/success?sessionId={{CHECKOUT_SESSION_ID}}&orderNumber={order_number}"
                ),
                cancel_url=f"{self.client_url}/basket",
            )
        except stripe.StripeError as e:
            logger.error(f"CheckoutService: Failed to create checkout session: {e}")
            raise HTTPException(
                status_code=500,
                detail=f"Failed to create checkout session: {str(e)}"
            )

        logger.info(f"CheckoutService: Created checkout session {session.id} for order {order_number}")
        return CreateCheckoutSessionResponse(url=session.url, session_id=session.id, order_number=order_number)
