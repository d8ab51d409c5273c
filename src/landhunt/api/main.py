"""Landhunt API — FastAPI application for parcel enrichment and site passports.

Run:
    uvicorn landhunt.api.main:app --reload
    # or
    landhunt-api
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware

from landhunt.api.routes import router
from landhunt.config import settings
from landhunt.core.errors import LandhuntError
from landhunt.observability.logging import correlation_id, setup_logging
from landhunt.observability.tracing import enable_async_logging, set_experiment, set_tracking_uri
from landhunt.services import build_services
from landhunt.storage.db import init_db

logger = logging.getLogger(__name__)

DB_INIT_TIMEOUT = 15  # seconds


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build services and initialize DB on startup, close them on shutdown."""
    setup_logging(json_format=settings.log_json, level=settings.log_level)

    try:
        set_tracking_uri(settings.mlflow_tracking_uri)
        set_experiment(settings.mlflow_experiment_name)
        enable_async_logging()
    except Exception as e:
        logger.warning("MLflow setup failed, traces will not be exported: %s", e)

    services = build_services(settings)
    app.state.services = services

    logger.info("Initializing database...")
    try:
        await asyncio.wait_for(init_db(services.engine), timeout=DB_INIT_TIMEOUT)
    except asyncio.TimeoutError:
        logger.error("Database init timed out after %ds, starting without it", DB_INIT_TIMEOUT)
    except Exception as e:
        logger.error("Database init failed, starting without it: %s", e)

    logger.info("Landhunt API ready")
    yield
    logger.info("Shutting down")
    await services.aclose()


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Set correlation ID from X-Request-ID header or generate a new one."""

    async def dispatch(self, request: Request, call_next):
        cid = request.headers.get("x-request-id", str(uuid.uuid4()))
        token = correlation_id.set(cid)
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = cid
            return response
        finally:
            correlation_id.reset(token)


app = FastAPI(
    title="Landhunt",
    description="AI enrichment for UK land parcels: suitability scores, "
    "planning-decision summaries and Digital Site Passports.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.exception_handler(LandhuntError)
async def landhunt_error_handler(request: Request, exc: LandhuntError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message,
                     exc_info=exc)
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message,
                    extra={"error_type": exc.error_type})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are caller errors: 400, same shape as ValidationError."""
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = f"{field}: {first.get('msg', 'invalid request')}" if field else "invalid request"
    return JSONResponse(status_code=400, content={"detail": detail, "error_type": "validation_error"})


@app.get("/health")
async def health(request: Request):
    """Health check — verifies DB connectivity and MLflow."""
    checks = {}

    services = request.app.state.services
    try:
        async with services.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    # MLflow connectivity
    try:
        import mlflow

        mlflow.search_experiments(max_results=1)
        checks["mlflow"] = "ok"
    except Exception as e:
        checks["mlflow"] = f"error: {e}"

    status = "healthy" if checks.get("database") == "ok" else "degraded"
    return {"status": status, "checks": checks}


def run():
    """Entry point for landhunt-api console script."""
    uvicorn.run("landhunt.api.main:app", host="0.0.0.0", port=8000, reload=True)
