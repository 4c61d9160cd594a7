"""
Matter Bridge - FastAPI Backend
HTTP/JSON front end for chip-tool discovery, pairing and commissioning
"""

import os
import sys
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

# Add project directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from api import commissioning, devices, discovery, logs, pairing
from services.command_runner import ChipToolRunner
from services.config_service import BridgeConfig, ConfigService
from services.device_registry import DeviceRegistry
from services.errors import BridgeError, ErrorKind, ValidationError
from services.log_service import setup_logging

logger = logging.getLogger(__name__)

# Seconds uvicorn waits for in-flight requests after SIGINT/SIGTERM before forcing exit
SHUTDOWN_GRACE_PERIOD = 10


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    config: BridgeConfig = app.state.config
    setup_logging(config.log_path, config.log_level)

    logger.info(f"Matter Bridge Server running on port {config.port}")
    logger.info(f"Matter SDK Path: {config.sdk_path}")
    logger.info(f"Chip Tool Path: {config.chip_tool}")
    if not app.state.runner.is_available():
        logger.warning(f"chip-tool not found at {config.chip_tool}")

    yield

    logger.info(f"Matter Bridge Server stopped ({len(app.state.registry)} devices known)")


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(location)
        if error.get("type") == "missing":
            messages.append(f"Missing required field '{field}'" if field else "Request body is required")
        elif field:
            messages.append(f"Invalid field '{field}': {error.get('msg')}")
        else:
            messages.append(str(error.get("msg")))
    return "; ".join(messages) or "Invalid request"


async def bridge_error_handler(request: Request, exc: BridgeError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed [{exc.kind.value}]: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected [{exc.kind.value}]: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return await bridge_error_handler(request, ValidationError(_validation_message(exc)))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    error = BridgeError(f"Unexpected error: {exc}", kind=ErrorKind.UNKNOWN)
    return JSONResponse(status_code=500, content=error.to_dict())


def create_app(config: Optional[BridgeConfig] = None,
               runner: Optional[ChipToolRunner] = None,
               registry: Optional[DeviceRegistry] = None) -> FastAPI:
    """
    Build the FastAPI application

    Services are created once here and shared by all requests through app.state.
    """
    config = config or ConfigService().get_config()

    app = FastAPI(
        title="Matter Bridge",
        description="Discovery, pairing and commissioning of Matter devices via chip-tool",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.config = config
    app.state.runner = runner if runner is not None else ChipToolRunner(config)
    app.state.registry = registry if registry is not None else DeviceRegistry()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BridgeError, bridge_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include API routers
    app.include_router(discovery.router)
    app.include_router(pairing.router)
    app.include_router(commissioning.router)
    app.include_router(devices.router)
    app.include_router(logs.router)

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "chip_tool_available": app.state.runner.is_available(),
            "devices_count": len(app.state.registry),
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=app.state.config.port,
        reload=os.getenv("MODE") == "development",
        timeout_graceful_shutdown=SHUTDOWN_GRACE_PERIOD,
        log_level="info"
    )
