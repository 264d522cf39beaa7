"""Main application module.

This module initializes the FastAPI application, includes routes,
and configures middleware and exception handlers.
"""

import os
import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shortlink.api import api_router
from shortlink.core.config import settings
from shortlink.core.logging import setup_logging
from shortlink.services.exceptions import InternalError, PersistenceError
from shortlink.services.redirect import INTERNAL_ERROR_MESSAGE

# Ensure logs directory exists
if settings.LOG_TO_FILE:
    os.makedirs(settings.LOG_DIR, exist_ok=True)

# Setup logging
logger = setup_logging()

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


# Add exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed information."""
    logger.warning(f"Request validation error: {exc}")
    return JSONResponse(
        status_code=422,
        content={"error": "Validation error", "errors": exc.errors()}
    )


@app.exception_handler(PersistenceError)
async def persistence_exception_handler(request: Request, exc: PersistenceError):
    logger.error(f"Store failure in {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(InternalError)
async def internal_exception_handler(request: Request, exc: InternalError):
    """Log an unanticipated failure and answer with a generic 500."""
    error_id = f"error-{time.time()}"
    error_location = f"{request.method} {request.url.path}"
    cause = exc.cause or exc

    logger.bind(
        error_id=error_id,
        url=str(request.url),
        method=request.method,
        path_params=request.path_params,
        client_host=request.client.host if request.client else None
    ).opt(exception=cause).error(f"{exc} in {error_location}")

    return JSONResponse(
        status_code=500,
        content={
            "error": str(cause) if settings.DEBUG else INTERNAL_ERROR_MESSAGE,
            "error_id": error_id,
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to catch and log all unhandled exceptions."""
    return await internal_exception_handler(
        request, InternalError("Unhandled exception", cause=exc)
    )


@app.on_event("startup")
async def startup_event():
    """Run startup tasks."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")


@app.on_event("shutdown")
async def shutdown_event():
    """Run cleanup tasks."""
    logger.info(f"Shutting down {settings.APP_NAME}")

    from shortlink.db.base import dispose_engine
    await dispose_engine()
