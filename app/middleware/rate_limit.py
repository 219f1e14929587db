"""
Fixed-window rate limiting

Each client gets `max_requests` requests per `window_seconds`; the counter
resets when the window rolls over. Clients are keyed by bearer token when one
is presented, otherwise by IP address.
"""
import hashlib
import math
import time
import logging
from typing import Callable, Dict, Iterable, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Payment webhooks and health probes must never be throttled
DEFAULT_EXEMPT_PATHS = ("/webhook", "/api/health")


def client_key(request: Request) -> str:
    """
    Rate-limit key: digest of the whole bearer token, forwarded IP, or peer IP.

    Tokens issued by one project share their JWT header, so only the full
    token tells two shoppers apart. Forged tokens still get 401 from
    get_current_user_id before any handler runs.
    """
    authorization = request.headers.get("authorization")
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        if token:
            return f"bearer:{hashlib.sha256(token.encode()).hexdigest()}"

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"

    if request.client:
        return f"ip:{request.client.host}"
    return "ip:unknown"


class FixedWindowRateLimiter:
    """In-process fixed window counters, one per client key"""

    def __init__(
        self,
        window_seconds: float,
        max_requests: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")

        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        # key -> (window_start, count)
        self._windows: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> Tuple[bool, float]:
        """
        Record one request for key.

        Returns:
            (allowed, retry_after_seconds)
        """
        now = self._clock()
        start, count = self._windows.get(key, (now, 0))

        if now - start >= self.window_seconds:
            start, count = now, 0

        if count >= self.max_requests:
            return False, max(0.0, start + self.window_seconds - now)

        self._windows[key] = (start, count + 1)
        self._prune(now)
        return True, 0.0

    def remaining(self, key: str) -> int:
        now = self._clock()
        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window_seconds:
            return self.max_requests
        return max(0, self.max_requests - count)

    def _prune(self, now: float) -> None:
        if len(self._windows) < 1024:
            return
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self.window_seconds]
        for k in expired:
            del self._windows[k]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests over the limit with 429 and a Retry-After header"""

    def __init__(
        self,
        app,
        limiter: FixedWindowRateLimiter,
        exempt_paths: Optional[Iterable[str]] = None,
        key_func: Callable[[Request], str] = client_key,
    ):
        super().__init__(app)
        self.limiter = limiter
        self.exempt_paths = tuple(exempt_paths if exempt_paths is not None else DEFAULT_EXEMPT_PATHS)
        self.key_func = key_func

    def _is_exempt(self, path: str) -> bool:
        return any(path == p or path.startswith(p.rstrip("/") + "/") for p in self.exempt_paths)

    async def dispatch(self, request: Request, call_next):
        if self._is_exempt(request.url.path):
            return await call_next(request)

        key = self.key_func(request)
        allowed, retry_after = self.limiter.hit(key)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {key} on {request.method} {request.url.path}")
            return JSONResponse(
                status_code=429,
                content={"error": "Too many requests"},
                headers={"Retry-After": str(math.ceil(retry_after))},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(self.limiter.remaining(key))
        return response
