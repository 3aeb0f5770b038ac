"""FastAPI application entry point for GeoDrop."""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from geodrop.api.v1.router import router as v1_router
from geodrop.config import get_settings
from geodrop.dependencies import _check_local_mode
from geodrop.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from geodrop.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

# Get settings
settings = get_settings()

# Configure logging
configure_logging(debug=settings.debug, service=settings.app_name, environment=settings.environment)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown events."""
    logger.info(f"Starting {settings.app_name} API {settings.api_version}")
    logger.info(f"Running in {settings.environment} mode")
    logger.info(f"Debug mode: {settings.debug}")
    if _check_local_mode():
        logger.info("Using in-memory stores; data is lost on restart")

    yield

    logger.info(f"Shutting down {settings.app_name} API")


def create_app() -> FastAPI:
    """Build the application with middleware, handlers and routers."""
    application = FastAPI(
        title=settings.app_name,
        description="Geo-anchored, secret-protected file drops with tiered access control",
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    register_exception_handlers(application)

    # ── Middleware (order matters: last-added = outermost = first to run) ──

    # 1. Error handler added first → innermost layer
    application.add_middleware(ErrorHandlerMiddleware)

    # 2. CORS added last → outermost layer (processes OPTIONS preflight first)
    allow_all = settings.cors_origins == ["*"]
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=not allow_all,  # Cannot use credentials with allow_origins=["*"]
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(v1_router)

    @application.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health check endpoint",
    )
    async def health_check() -> JSONResponse:
        """Health check endpoint for monitoring."""
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={
                "success": True,
                "status": "healthy",
                "service": settings.app_name,
                "version": settings.api_version,
            },
        )

    return application


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "geodrop.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
