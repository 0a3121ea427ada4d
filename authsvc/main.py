from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from authsvc.api.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from authsvc.api.responses import register_exception_handlers
from authsvc.api.routers import auth, health, oauth
from authsvc.infrastructure.db.engine import create_schema, get_engine
from authsvc.shared.config import get_settings
from authsvc.shared.logging import configure_logging


logger = logging.getLogger(__name__)

settings = get_settings()

rate_limiter = FixedWindowRateLimiter(
    max_requests=settings.rate_limit_max_requests,
    window_seconds=settings.rate_limit_window_seconds,
)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    configure_logging(settings.log_level)
    logger.info("main: startup env=%s store=%s", settings.app_env, settings.auth_store)
    if settings.db_auto_create and settings.auth_store == "postgres" and settings.postgres_dsn:
        create_schema(get_engine(settings.postgres_dsn))
        logger.info("main: schema_ready")
    yield
    logger.info("main: shutdown")


app = FastAPI(title="Auth API", lifespan=lifespan)
if settings.rate_limit_enabled:
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)
register_exception_handlers(app, expose_internal_errors=settings.is_development)

app.include_router(auth.router)
app.include_router(oauth.router)
app.include_router(health.router)
