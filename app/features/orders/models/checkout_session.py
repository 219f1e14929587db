"""Stripe checkout session and line item views used by fulfillment"""
from typing import Any, Optional
from pydantic import BaseModel


def stripe_field(obj: Any, key: str) -> Any:
    """Read a key from a Stripe object, a plain dict, or None"""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _id_of(value: Any) -> Optional[str]:
    """Stripe fields like payment_intent are either an id or an expanded object"""
    if value is None or isinstance(value, str):
        return value
    return stripe_field(value, "id")


class CheckoutSession(BaseModel):
    """The parts of a completed checkout session that end up on the order"""
    id: str
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    payment_intent_id: Optional[str] = None
    customer_id: Optional[str] = None
    amount_discount: Optional[int] = None
    order_number: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    clerk_user_id: Optional[str] = None

    @classmethod
    def from_stripe(cls, session: Any) -> "CheckoutSession":
        metadata = stripe_field(session, "metadata")
        total_details = stripe_field(session, "total_details")
        return cls(
            id=stripe_field(session, "id"),
            amount_total=stripe_field(session, "amount_total"),
            currency=stripe_field(session, "currency"),
            payment_intent_id=_id_of(stripe_field(session, "payment_intent")),
            customer_id=_id_of(stripe_field(session, "customer")),
            amount_discount=stripe_field(total_details, "amount_discount"),
            order_number=stripe_field(metadata, "orderNumber"),
            customer_name=stripe_field(metadata, "customerName"),
            customer_email=stripe_field(metadata, "customerEmail"),
            clerk_user_id=stripe_field(metadata, "clerkUserId"),
        )


class CheckoutLineItem(BaseModel):
    """
    One purchased line of a checkout session.

    product_id is the content store id carried in the Stripe product's
    metadata; it is None when the product was not expanded or lacks it.
    """
    product_id: Optional[str] = None
    quantity: int = 0

    @classmethod
    def from_stripe(cls, item: Any) -> "CheckoutLineItem":
        product = stripe_field(stripe_field(item, "price"), "product")
        product_id = stripe_field(stripe_field(product, "metadata"), "id")
        return cls(
            product_id=product_id or None,
            quantity=stripe_field(item, "quantity") or 0,
        )
