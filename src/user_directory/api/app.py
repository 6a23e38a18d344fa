"""FastAPI application factory."""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from user_directory.api.envelope import (
    INTERNAL_SERVER_ERROR,
    SECURITY_HEADERS,
    error_response,
)
from user_directory.api.users import router as users_router
from user_directory.app_logging import configure_logging
from user_directory.config import parse_cors_origins
from user_directory.containers import AppContainer
from user_directory.domain.validation import VALIDATION_FAILED

API_VERSION = "1.0.0"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Serving users from %s", app.state.container.settings.database_path
        )
        yield
        await app.state.container.close_resources()
        logger.info("Storage connections closed")

    app = FastAPI(lifespan=lifespan, version=API_VERSION)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(container.settings.cors_allow_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000,
        )
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return error_response(exc.status_code, "Endpoint not found")
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            return error_response(exc.status_code, "Method not allowed")
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            VALIDATION_FAILED,
            [_describe_request_error(error) for error in exc.errors()],
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_SERVER_ERROR
        )

    app.include_router(users_router)

    @app.get("/health")
    async def health() -> dict[str, object]:
        """Simple health check endpoint."""
        return {
            "success": True,
            "message": "Server is running",
            "timestamp": datetime.now(tz=UTC).isoformat(),
        }

    @app.get("/")
    async def index() -> dict[str, object]:
        """Describe the available endpoints."""
        return {
            "success": True,
            "message": "User directory CRUD API",
            "version": API_VERSION,
            "endpoints": {
                "health": "GET /health",
                "users": {
                    "list": "GET /api/users",
                    "get": "GET /api/users/:id",
                    "create": "POST /api/users",
                    "update": "PUT /api/users/:id",
                    "delete": "DELETE /api/users/:id",
                },
            },
        }

    return app


def _describe_request_error(error: dict[str, object]) -> str:
    """Return a readable message for a request parsing error."""
    if error.get("type") == "json_invalid":
        return "Request body must be valid JSON"
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', 'invalid value')}"
