"""
FastAPI Name Screening API Server

Provides REST API endpoints around the file-backed screening service.

Usage:
    uvicorn api.server:app --reload --port 3000
"""

import os
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from functools import partial
from typing import Optional

from fastapi import Body, Depends, FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from api.models import (
    ErrorResponse,
    HealthResponse,
    ProcessRequest,
    ProcessResponse,
)
from api.middleware import (
    setup_cors,
    setup_exception_handlers,
    RequestLoggingMiddleware,
)
from config_manager import get_config, ConfigManager
from log_utils import sanitize_for_logging, setup_logging
from screening_service import ScreeningService, InvalidRequestError

logger = logging.getLogger(__name__)

# Environment variables with defaults
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", os.getenv("PORT", "3000")))
CONFIG_PATH = os.getenv("CONFIG_PATH")

# Global state
_service: Optional[ScreeningService] = None
_config: Optional[ConfigManager] = None
_executor = ThreadPoolExecutor(max_workers=4)  # File I/O and scoring off the event loop


def get_config_instance() -> ConfigManager:
    """Dependency to get the config instance."""
    global _config
    if _config is None:
        _config = get_config(CONFIG_PATH)
    return _config


def get_service(config: ConfigManager = Depends(get_config_instance)) -> ScreeningService:
    """Dependency to get the screening service instance."""
    global _service
    if _service is None:
        _service = ScreeningService(config=config)
    return _service


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config_instance()
    setup_logging(config)
    service = get_service(config)
    logger.info(
        "Mini Name Screening Service started: port=%d endpoint=POST /process/{user_id}/{request_id} watchlist=%s",
        API_PORT,
        service.watchlist_path,
    )
    yield
    logger.info("Shutting down Name Screening API...")


app = FastAPI(
    title="Mini Name Screening API",
    description="Screens names and aliases against a watchlist",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

setup_cors(app)
app.add_middleware(RequestLoggingMiddleware)
setup_exception_handlers(app)


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root():
    return "Backend is working fine."


@app.get(
    "/api/v1/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(
    service: ScreeningService = Depends(get_service),
    config: ConfigManager = Depends(get_config_instance),
):
    """Report whether the watchlist is in place. Always returns HTTP 200."""
    watchlist_path = service.watchlist_path
    present = watchlist_path.is_file()
    return HealthResponse(
        status="healthy" if present else "degraded",
        watchlist_file=str(watchlist_path),
        watchlist_present=present,
        algorithm_version=config.algorithm.version,
    )


@app.post(
    "/process/{user_id}/{request_id}",
    response_model=ProcessResponse,
    response_model_by_alias=True,
    responses={
        200: {"model": ProcessResponse, "description": "Screening completed or existing output reused"},
        400: {"model": ErrorResponse, "description": "Request could not be processed"},
        422: {"model": ErrorResponse, "description": "Validation error"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Screen one request",
)
async def process(
    user_id: str,
    request_id: str,
    body: Optional[ProcessRequest] = Body(default=None),
    service: ScreeningService = Depends(get_service),
):
    """Screen a request's names against the watchlist.

    Names come from the body when it carries ``fullName`` or ``aliases``,
    otherwise from ``data/<user_id>/<request_id>/input/input.json``.
    """
    body_input = body.model_dump(by_alias=True) if body is not None else None
    log_prefix = (body_input or {}).get("requestId") or request_id

    try:
        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(
            _executor,
            partial(service.process_request, user_id, request_id, log_prefix, body_input),
        )
    except InvalidRequestError:
        # Re-raise to be handled by exception handler
        raise
    except Exception as e:
        logger.error(
            "Unhandled error in /process: type=%s message=%s request_id=%s",
            type(e).__name__,
            sanitize_for_logging(str(e)),
            sanitize_for_logging(log_prefix),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Internal server error").model_dump(),
        )

    if not outcome.ok:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error=outcome.error).model_dump(),
        )

    return ProcessResponse(
        success=True,
        outputPath=str(outcome.output_dir),
        output=outcome.consolidated,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=API_HOST, port=API_PORT)
