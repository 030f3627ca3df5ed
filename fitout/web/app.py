"""FastAPI application for the Fitout Portal: admin API and client wizard."""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import IntegrityError
from starlette.middleware.base import BaseHTTPMiddleware

from fitout.config import get_config
from fitout.core.logging import configure_logging
from fitout.db.connection import close_db, init_db
from fitout.errors import ConflictError, NotFoundError
from fitout.startup_validation import validate_pricing_config, validate_upload_dir
from fitout.storage.uploads import resolve_public_path
from fitout.web.routes import (
    auth,
    catalog,
    dashboard,
    health,
    invitations,
    portal,
    projects,
    sales_lists,
    submissions,
    units,
    versions,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    configure_logging(config.log_format, config.log_level)
    validate_pricing_config()
    validate_upload_dir(config.portal.upload_dir)
    if config.db.auto_create:
        await init_db()
    logger.info("app_started", environment=config.environment)
    yield
    await close_db()
    logger.info("app_stopped")


app = FastAPI(
    title="Fitout Portal",
    description="Apartment fit-out selections: admin console API and client wizard",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                status_code=response.status_code,
            )
            return response

        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise


app.add_middleware(RequestLoggingMiddleware)

# Prometheus Metrics
Instrumentator().instrument(app).expose(app)


# Exception Handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("integrity_error", path=request.url.path, error=str(exc.orig))
    return JSONResponse(
        status_code=409,
        content={"detail": "The change conflicts with existing data"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Include Routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(projects.router)
app.include_router(catalog.router)
app.include_router(units.router)
app.include_router(sales_lists.router)
app.include_router(versions.router)
app.include_router(invitations.router)
app.include_router(submissions.router)
app.include_router(dashboard.router)
app.include_router(portal.router)


@app.get("/floor-plans/{name}", include_in_schema=False)
async def floor_plan_file(name: str):
    """Serve an uploaded floor plan."""
    path = resolve_public_path(get_config().portal.upload_dir, name)
    if path is None or not path.is_file():
        raise HTTPException(status_code=404, detail="Floor plan not found")
    return FileResponse(path)
