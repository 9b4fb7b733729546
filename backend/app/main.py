# backend/app/main.py

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from . import models  # noqa: F401  (registers tables on Base.metadata)
from .api import (
    api_booking,
    api_job,
    api_message,
    api_payment,
    api_provider,
    api_subscription,
)
from .core.config import settings
from .core.observability import setup_logging
from .database import Base, engine, get_db_session
from .utils.errors import MarketplaceError, http_status_for
from .utils.status_logger import register_status_listeners

setup_logging()
logger = logging.getLogger(__name__)

register_status_listeners()

# Schema migrations are managed outside this service; create what is missing.
Base.metadata.create_all(bind=engine)

# Always use ORJSONResponse for JSON payloads to ensure consistent, fast
# serialization across all endpoints.
app = FastAPI(title="Service Marketplace API", default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors in the shared ``{message, field_errors}`` shape."""
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    field_errors = {
        ".".join(str(part) for part in err.get("loc", ()) if part != "body"): err.get("msg", "invalid")
        for err in errors
    }
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": {"message": "Validation failed", "field_errors": field_errors}},
    )


@app.exception_handler(MarketplaceError)
async def marketplace_exception_handler(request: Request, exc: MarketplaceError):
    """Domain failures raised outside an endpoint body (e.g. from a dependency)."""
    logger.warning("%s at %s: %s", exc.kind.value, request.url.path, exc.message)
    return ORJSONResponse(
        status_code=http_status_for(exc),
        content={"detail": {"message": exc.message, "field_errors": {}, "kind": exc.kind.value}},
    )


api_prefix = settings.API_V1_STR  # usually "/api/v1"

app.include_router(api_booking.router, prefix=f"{api_prefix}/bookings", tags=["bookings"])
app.include_router(api_payment.router, prefix=f"{api_prefix}/payments", tags=["payments"])
app.include_router(
    api_subscription.router,
    prefix=f"{api_prefix}/subscriptions",
    tags=["subscriptions"],
)
app.include_router(api_message.router, prefix=f"{api_prefix}/messages", tags=["messages"])
app.include_router(api_job.router, prefix=f"{api_prefix}/job-posts", tags=["job-posts"])
app.include_router(api_provider.router, prefix=f"{api_prefix}/providers", tags=["providers"])


@app.get("/healthz", tags=["health"])
def healthz():
    """Liveness plus a cheap database round trip."""
    try:
        with get_db_session() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check DB ping failed: %s", exc)
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "degraded", "db": "unavailable"},
        )
    return {"status": "ok", "db": "ok"}


# ─── A simple root check ─────────────────────────────────────────────────────────────
@app.get("/")
def root():
    return {"message": "Welcome to Service Marketplace API"}
