"""Bearer-token authentication for every non-public route.

The middleware resolves the viewer once per request:
1. Public paths (health, docs) pass through untouched
2. The Authorization header must be "Bearer <token>" (scheme case-insensitive)
3. The token is verified by the configured TokenVerifier
4. The bootstrap callback makes sure a users row exists for the subject
5. A Viewer is attached to request.state for the get_viewer dependency

Every failure short-circuits with a 401 envelope (500 if bootstrap breaks).
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from zenvi.auth.verifier import TokenVerifier, username_from_claims
from zenvi.errors import ApiError, ApiErrorCode, UnauthorizedError
from zenvi.logging import get_logger
from zenvi.responses import error_json_response

logger = get_logger(__name__)

PUBLIC_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})

BEARER_PREFIX = "bearer "

# bootstrap(user_id, username_seed); ensures the users row exists
BootstrapCallback = Callable[[UUID, str | None], Any]


@dataclass(frozen=True)
class Viewer:
    """The authenticated caller.

    Attributes:
        user_id: Subject of the verified token; also the users.id primary key.
        claims: All verified token claims.
    """

    user_id: UUID
    claims: dict[str, Any]


class AuthMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        verifier: TokenVerifier,
        bootstrap_callback: BootstrapCallback | None = None,
    ):
        super().__init__(app)
        self.verifier = verifier
        self.bootstrap_callback = bootstrap_callback

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        token = self._bearer_token(request)
        if token is None:
            return error_json_response(
                ApiErrorCode.E_UNAUTHENTICATED,
                "Invalid authorization header format"
                if request.headers.get("authorization")
                else "Authentication required",
                401,
            )

        try:
            claims = self.verifier.verify(token)
        except ApiError as e:
            return error_json_response(e.code, e.message, e.status_code)

        user_id = UUID(str(claims["sub"]))

        if self.bootstrap_callback is not None:
            try:
                self.bootstrap_callback(user_id, username_from_claims(claims))
            except Exception:
                logger.exception("bootstrap_failed", user_id=str(user_id))
                return error_json_response(
                    ApiErrorCode.E_INTERNAL, "Internal server error", 500
                )

        request.state.viewer = Viewer(user_id=user_id, claims=claims)
        return await call_next(request)

    def _bearer_token(self, request: Request) -> str | None:
        """Return the bearer token, or None (logged) when the header is unusable."""
        header = request.headers.get("authorization")
        if not header:
            logger.warning("auth_failure", reason="missing_header")
            return None
        if not header.lower().startswith(BEARER_PREFIX):
            logger.warning("auth_failure", reason="invalid_header_format")
            return None
        token = header[len(BEARER_PREFIX) :].strip()
        if not token:
            logger.warning("auth_failure", reason="empty_token")
            return None
        return token


def get_viewer(request: Request) -> Viewer:
    """FastAPI dependency for the authenticated viewer.

    Raises:
        UnauthorizedError: No viewer on the request (auth middleware not installed).
    """
    viewer = getattr(request.state, "viewer", None)
    if viewer is None:
        raise UnauthorizedError()
    return viewer
