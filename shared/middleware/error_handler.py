import logging
from collections.abc import Awaitable, Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "validation_error",
    status.HTTP_503_SERVICE_UNAVAILABLE: "unavailable",
}


def error_body(request: Request, status_code: int, detail: object) -> dict:
    """Build the ``{"error": ..., "request_id": ...}`` envelope.

    ``detail`` may be a plain message or a dict carrying ``message`` plus
    extra fields (e.g. per-field validation errors), which are passed through.
    """
    error: dict = {"code": _STATUS_CODES.get(status_code, "http_error")}
    if isinstance(detail, dict):
        error.update(detail)
        error.setdefault("message", error["code"])
    else:
        error["message"] = str(detail)
    return {"error": error, "request_id": getattr(request.state, "request_id", None)}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def error_envelope_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {"code": "internal_error", "message": "An unexpected error occurred"},
                "request_id": getattr(request.state, "request_id", None),
            },
        )
