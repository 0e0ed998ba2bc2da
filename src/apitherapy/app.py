"""
FastAPI application factory and main app configuration.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.errors import APIError
from .api.routers import catalog, health, session
from .api.schemas.common import ErrorResponse
from .core.config import get_settings
from .core.structured_logger import setup_logging
from .domain.errors import (
    DomainError,
    InvalidPatientDataError,
    UnknownPointError,
    UnknownProtocolError,
)
from .middleware.request_id_middleware import RequestIDMiddleware

logger = logging.getLogger(__name__)


def _domain_error_status(exc: DomainError) -> int:
    if isinstance(exc, (UnknownProtocolError, UnknownPointError)):
        return 404
    if isinstance(exc, InvalidPatientDataError):
        return 422
    # Precondition, finalized-session and reset-confirmation errors
    return 409


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    setup_logging(settings.logging)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.app_env}, debug: {settings.debug}")
    if settings.azure_openai.is_configured:
        logger.info(f"Azure OpenAI deployment: {settings.azure_openai.deployment_name}")
    else:
        logger.info("Azure OpenAI not configured, protocol recommendations use keyword rules")
    yield
    logger.info(f"Shutting down {settings.app_name}")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Caretaker apitherapy session backend: intake, protocol selection and point mapping",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allowed_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-ID"],
        max_age=600,
    )
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(session.router)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        req_id = getattr(request.state, "request_id", None)
        status_code = _domain_error_status(exc)
        logger.warning(f"DomainError: {exc.error_code} ({status_code}) {exc.message} | request_id={req_id}")
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=exc.error_code or "DOMAIN_ERROR",
                message=exc.message,
                request_id=req_id or "",
                details=exc.details or {},
            ).model_dump(),
        )

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        req_id = getattr(request.state, "request_id", None)
        logger.error(f"APIError: {exc.code} ({exc.http_status}) {exc.message} | request_id={req_id}")
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorResponse(
                error=exc.code,
                message=exc.message,
                request_id=req_id or "",
                details=exc.details or {},
            ).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def pydantic_error_handler(request: Request, exc: RequestValidationError):
        req_id = getattr(request.state, "request_id", None)
        error_details = exc.errors()
        logger.error(f"ValidationError on {request.method} {request.url.path}: {error_details} | request_id={req_id}")

        error_messages = []
        for error in error_details:
            loc = " -> ".join(str(x) for x in error.get("loc", []))
            msg = error.get("msg", "Validation error")
            error_messages.append(f"{loc}: {msg}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error="INVALID_INPUT",
                message=f"Input validation failed: {'; '.join(error_messages)}",
                request_id=req_id or "",
                details={"errors": [str(e.get("msg")) for e in error_details], "path": request.url.path},
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        req_id = getattr(request.state, "request_id", None)
        logger.error(f"Unhandled error: {type(exc).__name__}: {exc} | request_id={req_id}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                message="An unexpected error has occurred. Please try again later.",
                request_id=req_id or "",
            ).model_dump(),
        )

    @app.get("/", tags=["health"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_env,
            "status": "running",
            "docs": "/docs",
            "endpoints": {
                "health": "GET /health",
                "protocols": "GET /catalog/protocols",
                "points": "GET /catalog/points",
                "session": "GET /session",
                "submit_patient": "POST /session/patient",
                "recommend_protocol": "GET /session/recommendation",
                "select_protocol": "POST /session/protocol",
                "toggle_point": "POST /session/points/{point_id}/toggle",
                "finalize": "POST /session/finalize",
                "summary": "GET /session/summary",
                "reset": "POST /session/reset",
                "set_view": "PUT /session/view",
                "export": "GET /session/export",
            },
        }

    return app


# Create the app instance
app = create_app()
