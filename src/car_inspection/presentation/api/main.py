"""FastAPI main application module."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ...domain.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ...infrastructure.logging import LoggingConfig, get_logger
from ...infrastructure.services import initialize_services, shutdown_services
from .config import get_settings
from .middleware.auth import AuthenticationError
from .middleware.logging import RequestResponseLoggingMiddleware, mask_path
from .routes import auth, car_parts, health, inspections


logger = get_logger(__name__)

DOMAIN_ERROR_STATUS = {
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    ConflictError: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    settings = get_settings()
    LoggingConfig(
        log_level=settings.log_level,
        log_dir=settings.log_dir or None,
        enable_file=settings.log_to_file
    ).setup_logging()

    logger.info("Starting Car Inspection Reports API")
    await initialize_services()

    yield

    logger.info("Shutting down Car Inspection Reports API")
    await shutdown_services()


def add_exception_handlers(app: FastAPI) -> None:
    """Add custom exception handlers to the FastAPI application."""

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        """Handle authentication errors."""
        logger.warning(f"Authentication error on {mask_path(request.url.path)}: {str(exc)}")
        return JSONResponse(
            status_code=401,
            content={
                "detail": str(exc),
                "type": "authentication_error"
            },
            headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        """Map domain errors to their HTTP status codes."""
        status_code = next(
            (code for error_cls, code in DOMAIN_ERROR_STATUS.items() if isinstance(exc, error_cls)),
            400
        )
        logger.warning(f"{type(exc).__name__} on {mask_path(request.url.path)}: {str(exc)}")
        return JSONResponse(
            status_code=status_code,
            content={
                "detail": str(exc),
                "type": exc.error_type
            }
        )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Car Inspection Reports",
        description="API for inspection reports, car part records and public report sharing",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    add_exception_handlers(app)

    app.add_middleware(
        RequestResponseLoggingMiddleware,
        log_request_body=settings.log_request_body
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(
        auth.router,
        prefix=f"{settings.api_prefix}/auth",
        tags=["authentication"]
    )
    app.include_router(
        inspections.router,
        prefix=f"{settings.api_prefix}/inspections",
        tags=["inspections"]
    )
    app.include_router(
        car_parts.router,
        prefix=f"{settings.api_prefix}/car-parts",
        tags=["car-parts"]
    )

    return app


# Create app instance
app = create_app()
