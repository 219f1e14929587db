import logging

# Log configuration (before other imports)
# ruff: noqa: E402
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    force=True
)

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from app.api.base import api_router  # noqa: E402
from app.config import CLIENT_URL, RATE_LIMIT_WINDOW_SECONDS, RATE_LIMIT_MAX_REQUESTS  # noqa: E402
from app.middleware.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware  # noqa: E402

app = FastAPI(
    title="Storefront Backend API",
    description="Backend API for the storefront - catalogue, checkout and order fulfillment",
    version="1.0.0"
)

# Fixed-window rate limiting; the Stripe webhook and health checks are exempt
app.add_middleware(
    RateLimitMiddleware,
    limiter=FixedWindowRateLimiter(RATE_LIMIT_WINDOW_SECONDS, RATE_LIMIT_MAX_REQUESTS),
)

# Configure CORS (added last so it wraps the rate limiter)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include all API routes
app.include_router(api_router)


@app.get("/")
def read_root():
    return {
        "message": "Storefront Backend API",
        "docs": "/docs",
        "version": "1.0.0"
    }
