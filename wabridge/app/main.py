"""
wabridge - REST bridge for a WhatsApp multi-device session

FastAPI application entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wabridge import __version__
from wabridge.app.api import docs_router, media_router, messages_router, session_router
from wabridge.app.api.schemas import envelope
from wabridge.app.dependencies import get_settings, initialize_services, shutdown_services
from wabridge.client import ProtocolClient
from wabridge.config.schemas import AppSettings
from wabridge.errors import ClientLoadError, WABridgeError

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"

    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid request body"

    message = str(first.get("msg", "Invalid request body")).removeprefix("Value error, ")
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {message}" if location else message


async def wabridge_error_handler(request: Request, exc: WABridgeError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(exc.message, exc.details(), success=False),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=envelope("Internal server error", success=False),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=envelope(_validation_message(exc), success=False),
    )


def create_app(
    app_settings: AppSettings | None = None,
    client: ProtocolClient | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Settings to use instead of the environment
        client: Protocol client to use instead of WABRIDGE_CLIENT_FACTORY
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Handles startup and shutdown events.
        """
        # Startup
        logger.info("Starting wabridge services...")
        try:
            await initialize_services(app_settings, client)
            logger.info("wabridge services initialized successfully")
        except ClientLoadError as e:
            logger.critical(f"Cannot start without a protocol client: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Failed to initialize services: {e}", exc_info=True)
            raise

        yield

        # Shutdown
        logger.info("Shutting down wabridge services...")
        try:
            await shutdown_services()
            logger.info("wabridge services shut down successfully")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)

    app = FastAPI(
        title="wabridge",
        description="REST API for WhatsApp Web integration: pairing, sending, and inbound webhooks",
        version=__version__,
        lifespan=lifespan,
        debug=app_settings.debug,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(WABridgeError, wabridge_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    app.include_router(session_router)
    app.include_router(messages_router)
    app.include_router(media_router)
    app.include_router(docs_router)

    @app.get("/", tags=["root"])
    async def root() -> dict[str, Any]:
        """Root endpoint with service info."""
        return {
            "service": app_settings.service_name,
            "version": __version__,
            "status": "running",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "wabridge.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
