"""SlowAPI rate limiting for endpoints that spend upstream API quota."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(key_func=get_remote_address)


def fetch_reviews_rate() -> str:
    """Limit string for manual ingestion, read lazily so tests can override it."""

    return settings.FETCH_REVIEWS_RATE


async def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": f"Too many review fetch requests ({exc.detail}), retry later"},
        headers={"Retry-After": "60"},
    )


def init_rate_limiter(app: FastAPI) -> None:
    """Attach the limiter, its middleware and the 429 handler to the app."""

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
