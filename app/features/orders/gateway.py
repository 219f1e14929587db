"""Stripe adapter: webhook verification and checkout line item lookup"""
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import stripe

from app.config import STRIPE_SECRET_KEY
from app.features.orders.exceptions import BadRequest, Misconfigured, VerificationFailed
from app.features.orders.models.checkout_session import CheckoutLineItem

logger = logging.getLogger(__name__)

# Initialize Stripe
stripe.api_key = STRIPE_SECRET_KEY


@dataclass(frozen=True)
class WebhookEvent:
    """A verified Stripe event"""
    id: str
    type: str
    data_object: Any


class PaymentGateway:
    """Thin wrapper over the Stripe SDK calls the fulfillment flow needs"""

    def verify_and_parse(
        self,
        payload: bytes,
        signature: Optional[str],
        secret: Optional[str],
    ) -> WebhookEvent:
        """
        Verify the Stripe-Signature header and parse the event.

        Raises:
            BadRequest: no signature header
            Misconfigured: no webhook secret configured
            VerificationFailed: signature mismatch or malformed payload
        """
        if not signature:
            logger.error("PaymentGateway: No Stripe signature found in headers")
            raise BadRequest("No signature")

        if not secret:
            logger.error("PaymentGateway: Stripe webhook secret is not set - check deployment configuration")
            raise Misconfigured("Stripe webhook secret is not set")

        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except ValueError as e:
            logger.error(f"PaymentGateway: Invalid webhook payload: {e}")
            raise VerificationFailed(f"Webhook Error: Invalid payload: {e}")
        except stripe.SignatureVerificationError as e:
            logger.error(f"PaymentGateway: Webhook signature verification failed: {e}")
            raise VerificationFailed(f"Webhook Error: {e}")

        logger.info(f"PaymentGateway: Verified event {event.get('id')} of type {event.get('type')}")
        return WebhookEvent(
            id=event.get("id", "unknown"),
            type=event["type"],
            data_object=event["data"]["object"],
        )

    def list_line_items(self, checkout_session_id: str) -> List[CheckoutLineItem]:
        """
        Fetch all line items of a checkout session with products expanded.

        Raises:
            stripe.StripeError: lookup failed
        """
        line_items = stripe.checkout.Session.list_line_items(
            checkout_session_id,
            expand=["data.price.product"],
        )
        return [CheckoutLineItem.from_stripe(item) for item in line_items.auto_paging_iter()]
