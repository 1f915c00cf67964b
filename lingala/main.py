"""Lingala.cd learning core API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lingala.access.playback import PlaybackSigner
from lingala.access.router import router as access_router
from lingala.access.service import AccessService
from lingala.config import get_settings
from lingala.core.context import get_request_id
from lingala.core.database import init_async_cassandra, shutdown_async_cassandra
from lingala.core.errors import LingalaError, status_for_error
from lingala.core.logging import configure_structlog, get_logger
from lingala.core.middleware import RequestContextMiddleware
from lingala.core.redis import init_redis, shutdown_redis
from lingala.courses.service import CourseService
from lingala.enrollments.router import admin_router as enrollments_admin_router
from lingala.enrollments.router import router as enrollments_router
from lingala.enrollments.service import EnrollmentService
from lingala.health import router as health_router
from lingala.progress.locks import ProgressLocks, lease_for
from lingala.progress.router import router as progress_router
from lingala.progress.service import ProgressService
from lingala.subscriptions.router import router as subscription_router
from lingala.subscriptions.service import SubscriptionService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def init_services(app: FastAPI, session, redis_client=None) -> None:
    """Build the service graph on ``app.state``."""
    settings = get_settings()
    common = {
        "session": session,
        "keyspace": settings.cassandra_keyspace,
        "request_timeout": settings.cassandra_request_timeout,
    }

    app.state.cassandra_session = session
    app.state.course_service = CourseService(**common)
    app.state.enrollment_service = EnrollmentService(**common)
    app.state.subscription_service = SubscriptionService(**common)
    app.state.progress_service = ProgressService(
        **common,
        course_service=app.state.course_service,
        locks=ProgressLocks(
            redis=redis_client,
            timeout=settings.progress_lock_timeout_seconds,
            lease_seconds=lease_for(settings.cassandra_request_timeout),
        ),
        completion_threshold=settings.progress_completion_threshold,
    )
    app.state.access_service = AccessService(
        course_service=app.state.course_service,
        enrollment_service=app.state.enrollment_service,
        subscription_service=app.state.subscription_service,
        signer=PlaybackSigner(
            signing_key=settings.playback_signing_key,
            expiry_seconds=settings.playback_token_expiry_seconds,
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Redis is optional: progress locks fall back to process-local ones
    redis_client = None
    try:
        redis_client = await init_redis()
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - progress locks are process-local",
        )

    try:
        session = await init_async_cassandra()
        init_services(app, session, redis_client)
        logger.info(
            "services_initialized",
            redis_enabled=redis_client is not None,
            playback_signing=settings.playback_signing_configured,
        )
    except Exception as e:
        logger.error(
            "database_init_failed",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Stack traces never reach responses; handlers below log them instead
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Lingala.cd learning core - access control and progress API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(LingalaError)
    async def domain_exception_handler(
        request: Request, exc: LingalaError
    ) -> ORJSONResponse:
        """Render domain errors with their machine-readable code."""
        status_code = status_for_error(exc)

        if exc.retryable:
            log_method = logger.error
        elif exc.code == "invalid_lesson_structure":
            log_method = logger.warning
        else:
            log_method = logger.info
        log_method(
            "domain_error",
            code=exc.code,
            status_code=status_code,
            path=request.url.path,
            method=request.method,
        )

        headers = None
        if status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}

        return ORJSONResponse(
            status_code=status_code,
            headers=headers,
            content={
                "error": True,
                "code": exc.code,
                "message": exc.message,
                "status_code": status_code,
                "retryable": exc.retryable,
                "request_id": _get_request_id_safe(request),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "code": "http_error",
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "retryable": False,
                "request_id": _get_request_id_safe(request),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Malformed bodies and parameters are reported as 400 invalid_input."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": True,
                "code": "invalid_input",
                "message": "Validation error",
                "status_code": status.HTTP_400_BAD_REQUEST,
                "retryable": False,
                "request_id": _get_request_id_safe(request),
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Details are logged internally, never returned.
        """
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "code": "internal_error",
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
                "retryable": False,
                "request_id": _get_request_id_safe(request),
            },
        )

    app.include_router(health_router)
    app.include_router(access_router)
    app.include_router(progress_router)
    app.include_router(enrollments_router)
    app.include_router(enrollments_admin_router)
    app.include_router(subscription_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        return {
            "message": "Lingala.cd API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn (``lingala-api`` console script)."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "lingala.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.api_reload and settings.is_development,
        log_config=None,
    )
