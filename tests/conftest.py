# tests/conftest.py
import hashlib
import hmac
import json
import time

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.features.catalog.repositories.products import ProductRepository
from app.features.orders.domain import CHECKOUT_SESSION_COMPLETED
from app.features.orders.fulfillment_service import OrderFulfillmentService
from app.features.orders.gateway import WebhookEvent
from app.features.orders.models.checkout_session import CheckoutLineItem
from app.features.orders.repositories.orders import OrderRepository
from app.features.orders.repositories.webhook_deliveries import WebhookDeliveryRepository
from app.middleware.auth import get_current_user_id
from tests.mocks.supabase import FakeSupabaseClient

WEBHOOK_SECRET = "whsec_test_secret"
TEST_USER_ID = "user_2abc"


class FakeGateway:
    """PaymentGateway stand-in returning canned line items per checkout session"""

    def __init__(self):
        self.line_items = {}
        self.error = None
        self.calls = []

    def list_line_items(self, checkout_session_id):
        self.calls.append(checkout_session_id)
        if self.error:
            raise self.error
        return list(self.line_items.get(checkout_session_id, []))


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Build a Stripe-Signature header the way Stripe does"""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_session_payload(session_id="cs_test_123", amount_total=12345, amount_discount=500, **metadata):
    return {
        "id": session_id,
        "object": "checkout.session",
        "amount_total": amount_total,
        "currency": "gbp",
        "payment_intent": "pi_test_123",
        "customer": "cus_test_123",
        "total_details": {"amount_discount": amount_discount},
        "metadata": {
            "orderNumber": metadata.get("order_number", "order-0001"),
            "customerName": metadata.get("customer_name", "Ada Lovelace"),
            "customerEmail": metadata.get("customer_email", "ada@example.com"),
            "clerkUserId": metadata.get("clerk_user_id", TEST_USER_ID),
        },
    }


def event_payload(event_type=CHECKOUT_SESSION_COMPLETED, event_id="evt_test_1", data_object=None) -> str:
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": data_object or checkout_session_payload()},
    })


@pytest.fixture
def fake_supabase():
    return FakeSupabaseClient()


@pytest.fixture
def seeded_supabase(fake_supabase):
    """Three products: plenty of stock, little stock, malformed stock"""
    fake_supabase.seed(
        "products",
        {"id": "prod_guitar", "name": "Guitar", "slug": "guitar", "price": 499.99, "stock": 10},
        {"id": "prod_amp", "name": "Amplifier", "slug": "amplifier", "price": 250.0, "stock": 5},
        {"id": "prod_strings", "name": "Strings", "slug": "strings", "price": 9.5, "stock": "lots"},
    )
    return fake_supabase


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def product_repo(seeded_supabase):
    return ProductRepository(seeded_supabase)


@pytest.fixture
def make_service(seeded_supabase, fake_gateway):
    """Build an OrderFulfillmentService over the fake store with overridable options"""
    def _make(**kwargs):
        return OrderFulfillmentService(
            gateway=fake_gateway,
            product_repo=ProductRepository(seeded_supabase),
            order_repo=OrderRepository(seeded_supabase),
            delivery_repo=WebhookDeliveryRepository(seeded_supabase),
            **kwargs,
        )
    return _make


@pytest.fixture
def completed_event():
    return WebhookEvent(
        id="evt_test_1",
        type=CHECKOUT_SESSION_COMPLETED,
        data_object=checkout_session_payload(),
    )


@pytest.fixture
def line_items():
    def _items(*pairs):
        return [CheckoutLineItem(product_id=pid, quantity=qty) for pid, qty in pairs]
    return _items


@pytest.fixture
def api_client_factory(mocker, seeded_supabase):
    """TestClient over a bare app with the given routers, backed by the fake store"""
    for module in ("app.features.orders.api", "app.features.catalog.api", "app.features.checkout.api"):
        mocker.patch(f"{module}.get_supabase_client", return_value=seeded_supabase)

    def _factory(*routers, authenticated=True):
        app = FastAPI()
        for router in routers:
            app.include_router(router)
        if authenticated:
            app.dependency_overrides[get_current_user_id] = lambda: TEST_USER_ID
        return TestClient(app)

    return _factory
