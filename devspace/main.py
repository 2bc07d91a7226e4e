"""Cosmic DevSpace API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from devspace.comments.router import router as comments_router
from devspace.comments.service import CommentService
from devspace.config import get_settings
from devspace.core.context import get_request_id
from devspace.core.database import init_async_cassandra, shutdown_async_cassandra
from devspace.core.logging import configure_structlog, get_logger
from devspace.core.middleware import RequestContextMiddleware
from devspace.core.redis import init_redis, shutdown_redis


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings)

logger = get_logger(__name__)

ERROR_TITLES = {
    status.HTTP_400_BAD_REQUEST: "Bad Request",
    status.HTTP_404_NOT_FOUND: "Not Found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method Not Allowed",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "Validation Error",
    status.HTTP_429_TOO_MANY_REQUESTS: "Too Many Requests",
    status.HTTP_503_SERVICE_UNAVAILABLE: "Service Unavailable",
}


def failure_content(
    status_code: int,
    message: str,
    request_id: str | None,
    **extra: Any,
) -> dict[str, Any]:
    """Build the failure envelope shared by every error response."""
    return {
        "success": False,
        "error": ERROR_TITLES.get(status_code, "Internal Server Error"),
        "message": message,
        "request_id": request_id,
        **extra,
    }


def first_validation_message(errors: list[dict[str, Any]]) -> str:
    """Pick the first message raised by our own validators, if any."""
    for err in errors:
        ctx_error = err.get("ctx", {}).get("error")
        if ctx_error is not None:
            return str(ctx_error)
    return "Validation error"


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

    # Redis is optional: without it posts are not rate limited
    redis_client = None
    try:
        redis_client = await init_redis()
        logger.info("redis_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - comment rate limiting disabled",
        )

    try:
        session = await init_async_cassandra()
        app.state.comment_service = CommentService(
            session=session,
            keyspace=settings.cassandra_keyspace,
            redis=redis_client,
            comments_per_minute=settings.comments_per_minute,
            comments_per_hour=settings.comments_per_hour,
        )
        logger.info(
            "comment_service_initialized", redis_enabled=redis_client is not None
        )
    except Exception as e:
        app.state.comment_service = None
        logger.warning(
            "database_init_skipped",
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

    # debug stays off so Starlette never renders stack traces
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Cosmic DevSpace - portfolio comments API",
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
        trusted_proxy_hops=settings.trusted_proxy_hops,
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
        return get_request_id() or None

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

        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = "This cosmic location does not exist in our universe!"
        elif exc.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
            message = "Internal server error"
        else:
            message = str(exc.detail)

        return ORJSONResponse(
            status_code=exc.status_code,
            content=failure_content(
                exc.status_code, message, _get_request_id_safe(request)
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors; validator messages are safe to expose."""
        errors = list(exc.errors())
        logger.warning(
            "validation_error",
            errors=[err.get("msg") for err in errors],
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=failure_content(
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                first_validation_message(errors),
                _get_request_id_safe(request),
                details=[
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in errors
                ],
            ),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler: details are logged, never returned."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=failure_content(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Houston, we have a problem! Our space engineers are investigating.",
                _get_request_id_safe(request),
            ),
        )

    app.include_router(comments_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Cosmic DevSpace API is in orbit!",
            "version": settings.app_version,
        }

    return app


app = create_app()
