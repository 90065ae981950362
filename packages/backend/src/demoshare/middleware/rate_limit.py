"""Rate limiting middleware — Redis-based fixed window per minute.

Each IP gets a counter key like "demoshare:rl:{ip}:{bucket}:{minute}".
Payment endpoints (tips, checkout) get a stricter limit than the rest of
the API. The Stripe webhook is exempt: Stripe retries from a small set of
addresses and every call is signature-checked anyway.

Skips rate limiting when Redis is unavailable (e.g., in tests).
"""

import time
from typing import Optional

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from demoshare.errors import RateLimited
from demoshare.realtime.pubsub import get_redis

logger = structlog.get_logger()

PAYMENT_PREFIXES = ("/api/v1/tips/crypto", "/api/v1/tips/checkout")
EXEMPT_PREFIXES = ("/api/v1/webhooks", "/api/v1/health")


def bucket_for(path: str) -> Optional[str]:
    if path.startswith(EXEMPT_PREFIXES):
        return None
    if path.startswith(PAYMENT_PREFIXES):
        return "payments"
    return "api"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 100, payments_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.payments_rpm = payments_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        redis = get_redis()
        bucket = bucket_for(request.url.path)
        if redis is None or bucket is None:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        rpm = self.payments_rpm if bucket == "payments" else self.default_rpm
        window = int(time.time() // 60)
        key = f"demoshare:rl:{client_ip}:{bucket}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except RedisError as e:
            logger.warning("rate_limit.redis_error", error=str(e))
            return await call_next(request)

        if count > rpm:
            logger.warning("rate_limit.exceeded", client_ip=client_ip, bucket=bucket)
            err = RateLimited("Rate limit exceeded. Try again later.")
            return JSONResponse(
                status_code=err.status_code,
                content={"detail": err.message, "kind": err.kind},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
