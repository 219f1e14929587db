"""
Supabase JWT Authentication

Storefront shoppers sign in through Supabase Auth; every API route except the
payment webhook and health checks requires a valid bearer token. Tokens are
verified against the project's JWKS (public keys), which are cached for an hour.
"""
import time
import logging
from typing import Optional, Tuple
from fastapi import HTTPException, Header, Request
from jose import jwt, jwk
import httpx

from app.config import SUPABASE_URL

logger = logging.getLogger(__name__)

_jwks_cache: Optional[dict] = None
_jwks_cache_time: float = 0
JWKS_CACHE_DURATION = 60 * 60  # 1 hour in seconds

JWT_AUDIENCE = "authenticated"
SUPPORTED_ALGORITHMS = ["ES256", "RS256"]


def get_supabase_url() -> str:
    if not SUPABASE_URL:
        raise ValueError("SUPABASE_URL must be set")
    return SUPABASE_URL


def get_jwks_url() -> str:
    return f"{get_supabase_url()}/auth/v1/.well-known/jwks.json"


def get_jwt_issuer() -> str:
    return f"{get_supabase_url()}/auth/v1"


def reset_jwks_cache():
    """Drop cached JWKS (useful for testing and key rotation)"""
    global _jwks_cache, _jwks_cache_time
    _jwks_cache = None
    _jwks_cache_time = 0


async def get_jwks() -> dict:
    """
    Fetch and cache JWKS from Supabase.

    A stale cache is served if the refresh fails.
    """
    global _jwks_cache, _jwks_cache_time

    now = time.time()
    if _jwks_cache and (now - _jwks_cache_time) < JWKS_CACHE_DURATION:
        return _jwks_cache

    jwks_url = get_jwks_url()
    logger.info(f"Fetching JWKS from Supabase: {jwks_url}")

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(jwks_url, timeout=10.0)
            response.raise_for_status()
            _jwks_cache = response.json()
            _jwks_cache_time = now
            return _jwks_cache
    except Exception as e:
        logger.error(f"Failed to fetch JWKS: {e}")
        if _jwks_cache:
            logger.warning("Using expired JWKS cache due to fetch failure")
            return _jwks_cache
        raise HTTPException(
            status_code=500,
            detail="Failed to fetch authentication keys"
        )


async def verify_token(token: str) -> dict:
    """
    Verify a Supabase JWT and return its payload.

    Raises:
        HTTPException(401): token is malformed, expired, or not signed by a
        key in the project's JWKS
    """
    try:
        jwks = await get_jwks()

        unverified_header = jwt.get_unverified_header(token)
        kid = unverified_header.get("kid")
        if not kid:
            raise HTTPException(status_code=401, detail="Token missing key ID (kid)")

        key_data = next((k for k in jwks.get("keys", []) if k.get("kid") == kid), None)
        if not key_data:
            raise HTTPException(status_code=401, detail=f"Key with ID '{kid}' not found in JWKS")

        return jwt.decode(
            token,
            jwk.construct(key_data),
            algorithms=SUPPORTED_ALGORITHMS,
            audience=JWT_AUDIENCE,
            issuer=get_jwt_issuer(),
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.JWTClaimsError as e:
        raise HTTPException(status_code=401, detail=f"Token validation failed: {str(e)}")
    except jwt.JWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {str(e)}")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Token verification error: {e}", exc_info=True)
        raise HTTPException(status_code=401, detail="Token verification failed")


def parse_bearer_token(authorization: Optional[str]) -> Tuple[str, str]:
    """Split an Authorization header into (scheme, token)"""
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header missing")

    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization header format. Expected 'Bearer <token>'"
        )

    if scheme.lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization scheme. Expected 'Bearer'"
        )
    return scheme, token


async def get_current_user_id(
    request: Request,
    authorization: Optional[str] = Header(None)
) -> str:
    """
    FastAPI dependency: verify the bearer token and return the user ID.

    The user ID is also stored on request.state for downstream consumers.
    """
    _, token = parse_bearer_token(authorization)
    payload = await verify_token(token)

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: no user ID")

    request.state.user_id = user_id
    return user_id
