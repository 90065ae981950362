"""FastAPI application factory.

create_app() returns a configured FastAPI instance. Lifespan manages
startup/shutdown (Redis, database engine). Middleware, CORS, exception
handlers and routers are all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from demoshare import __version__
from demoshare.api import api_router
from demoshare.config import settings
from demoshare.errors import AppError, Internal, InvalidInput, Unauthenticated

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "demoshare.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from demoshare.realtime.pubsub import close_redis, init_redis
    try:
        await init_redis()
        logger.info("demoshare.redis_connected", url=settings.redis_url)
    except (RedisError, OSError) as e:
        # Redis is optional: no rate limiting, no live notifications
        logger.warning("demoshare.redis_unavailable", error=str(e))
        await close_redis()

    yield

    logger.info("demoshare.shutdown")
    await close_redis()

    from demoshare.db.engine import engine
    await engine.dispose()


def _error_body(kind: str, detail: str) -> dict:
    return {"detail": detail, "kind": kind}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    if exc.status_code >= 500:
        logger.error("request.failed", path=request.url.path, kind=exc.kind, error=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.kind, exc.message),
        headers=headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body/query parse failures are plain invalid_input, not FastAPI's 422."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        detail = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        detail = "Invalid request"
    return JSONResponse(
        status_code=InvalidInput.status_code,
        content=_error_body(InvalidInput.kind, detail),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unhandled_error", path=request.url.path)
    return JSONResponse(
        status_code=Internal.status_code,
        content=_error_body(Internal.kind, "Internal server error"),
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="DemoShare",
        description="Share unreleased music: projects, timestamped feedback, tips",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from demoshare.middleware.rate_limit import RateLimitMiddleware
    from demoshare.middleware.request_id import RequestIdMiddleware
    from demoshare.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        payments_rpm=settings.rate_limit_payments_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: demoshare.main:app)
app = create_app()
