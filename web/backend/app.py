#!/usr/bin/env python3
"""
TalentScout API - FastAPI Application

HTTP entry points for candidate analysis, job matching, notification
retries and the interview reminder sweep.

Usage:
    talentscout-web

Then open:
    - http://localhost:8080/docs - API Documentation (Swagger UI)
    - http://localhost:8080/redoc - Alternative API Documentation
"""

import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from core.errors import PipelineError
from .config import get_config
from .exceptions import (
    pipeline_exception_handler,
    request_validation_handler,
    http_exception_handler,
    general_exception_handler
)
from .models.responses import HealthResponse
from .routers import (
    analysis_router,
    matches_router,
    notifications_router,
    reminders_router
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load configuration
config = get_config()

# Create FastAPI app
app = FastAPI(
    title="TalentScout API",
    description="Candidate evaluation and notification pipeline",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Pre-flight OPTIONS requests are answered here, before any route runs
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.web.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Register exception handlers
app.add_exception_handler(PipelineError, pipeline_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Include routers
app.include_router(analysis_router)
app.include_router(matches_router)
app.include_router(notifications_router)
app.include_router(reminders_router)


@app.get("/health", response_model=HealthResponse)
def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", service="talentscout-api")


def main():
    """Run the web server."""
    import uvicorn

    logger.info(f"Starting TalentScout API on {config.web.host}:{config.web.port}")
    logger.info(f"API Docs: http://{config.web.host}:{config.web.port}/docs")

    uvicorn.run(
        "web.backend.app:app",
        host=config.web.host,
        port=config.web.port,
        reload=False,
        log_level="info"
    )


if __name__ == "__main__":
    main()
