# src/mysociety/main.py
"""Main entry point for the mySociety messaging service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from mysociety.api.v1 import auth_router, messages_router
from mysociety.core.logging import setup_logging
from mysociety.core.settings import settings
from mysociety.services.errors import MessagingError

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="mySociety API",
    description="Threaded messaging between property administrators and residents",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(messages_router, prefix="/api/v1")


@app.exception_handler(MessagingError)
async def messaging_error_handler(request: Request, exc: MessagingError) -> JSONResponse:
    """Render domain errors as JSON with the status each error declares."""
    logger.info(
        "Request failed",
        extra={"path": request.url.path, "error": type(exc).__name__, "status": exc.status_code},
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


@app.on_event("startup")
async def on_startup() -> None:
    setup_logging(settings.log_level)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "mySociety API",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("mysociety.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
