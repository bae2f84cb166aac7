"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, auth middleware, request-id middleware, and routes.

Middleware Ordering (Critical):
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)
- This ensures all requests (including auth failures) get X-Request-ID

Actual execution order per request:
1. RequestIDMiddleware (sets request_id, starts timer)
2. AuthMiddleware (verifies bearer token, bootstraps user, sets viewer)
3. Route handler
4. AuthMiddleware (returns response)
5. RequestIDMiddleware (logs, sets response header)
"""

import json
from uuid import UUID

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from zenvi.api.routes import create_api_router
from zenvi.auth.middleware import AuthMiddleware
from zenvi.auth.verifier import JwtTokenVerifier, TokenVerifier
from zenvi.config import get_settings
from zenvi.db.session import get_session_factory
from zenvi.errors import ApiError, ApiErrorCode
from zenvi.logging import configure_logging, get_logger
from zenvi.middleware.request_id import RequestIDMiddleware
from zenvi.responses import (
    api_error_handler,
    error_json_response,
    http_exception_handler,
    unhandled_exception_handler,
)
from zenvi.services.bootstrap import ensure_user
from zenvi.storage.client import StorageClientBase, get_storage_client

logger = get_logger(__name__)


def create_bootstrap_callback():
    """Create a bootstrap callback that creates its own database session.

    The callback is called by the auth middleware for each authenticated request.
    It opens a fresh session from the current session factory, ensures the
    users row exists, and closes the session.
    """

    def bootstrap(user_id: UUID, username: str | None) -> None:
        db = get_session_factory()()
        try:
            ensure_user(db, user_id, username)
        finally:
            db.close()

    return bootstrap


def create_token_verifier() -> JwtTokenVerifier:
    """Create the HS256 token verifier from settings."""
    settings = get_settings()

    return JwtTokenVerifier(
        secret=settings.jwt_secret,
        issuer=settings.normalized_issuer,
        audiences=settings.audience_list,
    )


def create_app(
    skip_auth_middleware: bool = False,
    token_verifier: TokenVerifier | None = None,
    storage: StorageClientBase | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        skip_auth_middleware: If True, skip adding auth middleware (for testing).
        token_verifier: Optional custom token verifier (for testing).
        storage: Optional media storage client (for testing).

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    configure_logging(json_format=settings.log_json, level=settings.log_level)

    app = FastAPI(
        title="Zenvi API",
        description="Backend API for Zenvi - posts, follows, likes and direct messages",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.storage = storage or get_storage_client()

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Bad bodies, path or query params are 400 E_INVALID_REQUEST, not FastAPI's 422."""
        fields = [".".join(str(part) for part in error["loc"]) for error in exc.errors()]
        logger.info("request_validation_failed", fields=fields)
        return error_json_response(ApiErrorCode.E_INVALID_REQUEST, "Invalid request", 400)

    @app.middleware("http")
    async def reject_malformed_json(request: Request, call_next):
        """Reject unparseable JSON bodies before routing."""
        if request.method in ("POST", "PUT", "PATCH") and "application/json" in (
            request.headers.get("content-type", "")
        ):
            body = await request.body()
            if body:
                try:
                    json.loads(body)
                except json.JSONDecodeError:
                    return error_json_response(
                        ApiErrorCode.E_INVALID_REQUEST, "Malformed JSON body", 400
                    )
        return await call_next(request)

    app.include_router(create_api_router())

    # Add auth middleware (runs on all requests except public paths)
    if not skip_auth_middleware:
        app.add_middleware(
            AuthMiddleware,
            verifier=token_verifier or create_token_verifier(),
            bootstrap_callback=create_bootstrap_callback(),
        )
        logger.info("auth_middleware_enabled", env=settings.zenvi_env.value)

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.
    This ensures every response includes X-Request-ID, including auth failures.

    Args:
        app: The FastAPI application.
        log_requests: Whether to log access entries for each request.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
