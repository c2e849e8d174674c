#!/usr/bin/env python3
"""
Error handlers for the web application.

Every error leaves as {"success": false, "error": ..., "type": ...}.
"""

import logging
from typing import Dict, Type

from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.errors import (
    PipelineError,
    ValidationError,
    NotFoundError,
    AnalysisInProgress,
    UpstreamServiceError,
    ParseError,
    PersistenceError,
    InvalidTransition,
)

logger = logging.getLogger(__name__)

STATUS_CODES: Dict[Type[PipelineError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
    AnalysisInProgress: 409,
    InvalidTransition: 409,
    UpstreamServiceError: 502,
    ParseError: 502,
    PersistenceError: 500,
}


def _error_response(status_code: int, error: str, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "type": error_type
        }
    )


def status_code_for(exc: PipelineError) -> int:
    for error_class in type(exc).__mro__:
        if error_class in STATUS_CODES:
            return STATUS_CODES[error_class]
    return 500


async def pipeline_exception_handler(
    request: Request,
    exc: PipelineError
) -> JSONResponse:
    """
    Handle pipeline errors.

    Client errors are logged as warnings, everything else with a traceback.
    """
    status_code = status_code_for(exc)
    if status_code < 500:
        logger.warning(f"{exc.__class__.__name__} in {request.url.path}: {exc}")
    else:
        logger.error(f"Pipeline error in {request.url.path}: {exc}", exc_info=True)

    return _error_response(status_code, str(exc), exc.__class__.__name__)


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Report malformed request bodies as 400 ValidationError.

    The handler runs before any route logic, so nothing has been mutated.
    """
    messages = []
    for error in exc.errors():
        field = next((str(part) for part in reversed(error.get('loc', ())) if part != 'body'), 'body')
        if error.get('type') == 'missing':
            messages.append(f"{field} is required")
        else:
            messages.append(f"{field}: {error.get('msg')}")

    logger.warning(f"Rejected request to {request.url.path}: {'; '.join(messages)}")
    return _error_response(400, "; ".join(messages) or "Invalid request", "ValidationError")


async def http_exception_handler(
    request: Request,
    exc: HTTPException
) -> JSONResponse:
    """
    Handle FastAPI HTTP exceptions with consistent format.
    """
    return _error_response(exc.status_code, exc.detail, "HTTPException")


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.
    """
    logger.exception(f"Unexpected error in {request.url.path}")

    return _error_response(500, "Internal server error", "InternalError")
