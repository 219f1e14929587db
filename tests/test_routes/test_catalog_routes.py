# tests/test_routes/test_catalog_routes.py
import pytest

from app.features.catalog.api import basket_router, products_router


@pytest.fixture
def client(api_client_factory):
    return api_client_factory(products_router, basket_router)


def test_get_product(client):
    response = client.get("/api/products/prod_guitar")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "prod_guitar"
    assert body["slug"] == "guitar"
    assert body["stock"] == 10


def test_get_unknown_product_is_404(client):
    response = client.get("/api/products/prod_nope")

    assert response.status_code == 404


def test_search_products(client):
    response = client.get("/api/products/search", params={"q": "amp"})

    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == ["prod_amp"]


def test_search_requires_query(client):
    response = client.get("/api/products/search")

    assert response.status_code == 422


def test_basket_stock(client):
    response = client.post("/api/products/stock", json={"productIds": ["prod_guitar", "prod_amp"]})

    assert response.status_code == 200
    assert sorted(response.json(), key=lambda s: s["id"]) == [
        {"id": "prod_amp", "stock": 5},
        {"id": "prod_guitar", "stock": 10},
    ]


def test_purchased_slugs(client):
    response = client.post("/api/products/slugs", json={"productIds": ["prod_guitar"]})

    assert response.status_code == 200
    assert response.json() == ["guitar"]


def test_validate_basket(client):
    response = client.post("/api/basket/validate", json={
        "items": [
            {"productId": "prod_guitar", "quantity": 1},
            {"productId": "prod_amp", "quantity": 6},
        ]
    })

    assert response.status_code == 200
    assert response.json() == {
        "adjustments": [{"productId": "prod_amp", "requestedQuantity": 6, "adjustedQuantity": 5}]
    }


def test_catalog_requires_authentication(api_client_factory):
    client = api_client_factory(products_router, authenticated=False)

    response = client.get("/api/products/prod_guitar")

    assert response.status_code == 401
