from fastapi import APIRouter
from app.api import health
from app.features.catalog import products_router, basket_router
from app.features.checkout import router as checkout_router
from app.features.orders import webhook_router, orders_router

api_router = APIRouter()

# Include all sub-routers
api_router.include_router(health.router)
api_router.include_router(products_router)
api_router.include_router(basket_router)
api_router.include_router(checkout_router)
api_router.include_router(orders_router)
api_router.include_router(webhook_router)
