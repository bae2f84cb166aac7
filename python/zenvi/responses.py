"""API response envelopes and the exception handlers that produce them.

- Success: { "data": ... }
- Error:   { "error": { "code": "E_...", "message": "...", "request_id": "..." } }

request_id is filled from the logging context, so any error rendered while a
request is in flight (middleware included) can be correlated with the logs.
"""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from zenvi.errors import ApiError, ApiErrorCode
from zenvi.logging import get_logger, get_request_id

logger = get_logger(__name__)

# Framework-raised HTTP errors (unknown route, bad method, ...) mapped to our codes
STATUS_TO_ERROR_CODE: dict[int, ApiErrorCode] = {
    400: ApiErrorCode.E_INVALID_REQUEST,
    401: ApiErrorCode.E_UNAUTHENTICATED,
    403: ApiErrorCode.E_FORBIDDEN,
    404: ApiErrorCode.E_NOT_FOUND,
    405: ApiErrorCode.E_INVALID_REQUEST,
    422: ApiErrorCode.E_INVALID_REQUEST,
}


def success_response(data: Any) -> dict[str, Any]:
    return {"data": data}


def error_response(
    code: ApiErrorCode, message: str, request_id: str | None = None
) -> dict[str, Any]:
    """Build the error envelope.

    Args:
        code: The error code enum value.
        message: Safe, user-visible message.
        request_id: Correlation ID; taken from the logging context when None.
    """
    request_id = request_id or get_request_id()

    error: dict[str, Any] = {"code": code.value, "message": message}
    if request_id:
        error["request_id"] = request_id
    return {"error": error}


def error_json_response(code: ApiErrorCode, message: str, status_code: int) -> JSONResponse:
    """Render an error envelope outside the exception-handler path (middleware)."""
    return JSONResponse(status_code=status_code, content=error_response(code, message))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return error_json_response(exc.code, exc.message, exc.status_code)


async def http_exception_handler(request: Request, exc: Any) -> JSONResponse:
    """Render Starlette HTTPExceptions (404 for unknown routes, 405, ...) in our envelope."""
    code = STATUS_TO_ERROR_CODE.get(exc.status_code, ApiErrorCode.E_INTERNAL)
    message = str(exc.detail) if exc.detail else "An error occurred"
    return error_json_response(code, message, exc.status_code)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure server-side and return a bare 500; details never reach the client."""
    logger.exception("unhandled_exception", error_type=type(exc).__name__)
    return error_json_response(ApiErrorCode.E_INTERNAL, "Internal server error", 500)
