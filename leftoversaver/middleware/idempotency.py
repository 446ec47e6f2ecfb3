"""
LeftoverSaver — Idempotency Key Middleware

Booking creation is retried by flaky mobile clients, often while the first
attempt is still parked on its payment outcome. Redis-backed, per user:
  - Key claimed     → SET NX an in-flight marker, run the handler, store the result
  - Still in flight → 409 + Retry-After, nothing stored
  - Result stored   → replay it, no business logic
  - Handler 5xx     → key released so the retry runs for real
"""
import json
import logging
import re
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from leftoversaver.core.config import get_settings
from leftoversaver.core.redis_client import get_redis

settings = get_settings()
logger = logging.getLogger(__name__)

IDEMPOTENCY_PREFIX = "idempotent:"
IN_FLIGHT_MARKER = "__in_flight__"
BOOKING_PATH = re.compile(r"^/offers/[^/]+/bookings/?$")


def idempotency_cache_key(request: Request, idem_key: str) -> str:
    user = getattr(request.state, "user", None) or {}
    return f"{IDEMPOTENCY_PREFIX}{user.get('sub', '-')}:{idem_key}"


def _in_flight_response() -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"detail": "A request with this Idempotency-Key is still being processed."},
        headers={"Retry-After": "1", "X-Idempotency-Status": "in-flight"},
    )


def _replay(cached: str) -> JSONResponse:
    data = json.loads(cached)
    return JSONResponse(
        content=data["body"],
        status_code=data["status_code"],
        headers={"X-Idempotency-Replay": "true"},
    )


class IdempotencyMiddleware(BaseHTTPMiddleware):
    """Applies to POST booking creation carrying an Idempotency-Key header."""

    async def dispatch(self, request: Request, call_next) -> Response:
        idem_key = request.headers.get("Idempotency-Key")
        if request.method != "POST" or not idem_key or not BOOKING_PATH.match(request.url.path):
            return await call_next(request)

        redis = get_redis()
        cache_key = idempotency_cache_key(request, idem_key)

        claimed = await redis.set(
            cache_key, IN_FLIGHT_MARKER, nx=True, ex=settings.IDEMPOTENCY_IN_FLIGHT_TTL_SECONDS
        )
        if not claimed:
            cached = await redis.get(cache_key)
            if cached is None or cached == IN_FLIGHT_MARKER:
                return _in_flight_response()
            return _replay(cached)

        try:
            response = await call_next(request)
        except Exception:
            await redis.delete(cache_key)
            raise

        body_bytes = b""
        async for chunk in response.body_iterator:
            body_bytes += chunk

        if response.status_code >= 500:
            await redis.delete(cache_key)
            logger.info("Released idempotency key %s after HTTP %d", cache_key, response.status_code)
        else:
            try:
                body = json.loads(body_bytes)
            except ValueError:
                body = body_bytes.decode("utf-8", errors="replace")
            await redis.setex(
                cache_key,
                settings.IDEMPOTENCY_KEY_TTL_SECONDS,
                json.dumps({"body": body, "status_code": response.status_code}),
            )

        return Response(
            content=body_bytes,
            status_code=response.status_code,
            media_type=response.media_type,
            headers=dict(response.headers),
        )
