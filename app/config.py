import os
from dotenv import load_dotenv

load_dotenv(dotenv_path=".env")


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "gbp")

# Supabase (client is created lazily, see app.infra.supabase.client)
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

# Storefront
CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")

# Rate limiting (fixed window, per client)
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "3600"))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "10"))

# Order fulfillment
WEBHOOK_DEDUP_ENABLED = _get_bool("WEBHOOK_DEDUP_ENABLED", True)
# Unprocessed claims older than this are taken over by a redelivery (0 disables)
WEBHOOK_CLAIM_STALE_SECONDS = int(os.getenv("WEBHOOK_CLAIM_STALE_SECONDS", "600"))
STOCK_UPDATE_MAX_ATTEMPTS = int(os.getenv("STOCK_UPDATE_MAX_ATTEMPTS", "3"))
STOCK_FAILURE_POLICY = os.getenv("STOCK_FAILURE_POLICY", "leave")
