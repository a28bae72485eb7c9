"""
Request middleware: request ids, timing, and JSON bodies for escaped scanner errors
"""
import time
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from resume_scanner.utils.exceptions import OperationCancelled, ResumeScannerError, map_to_http_exception
from resume_scanner.utils.logging_config import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR = {
    "error": "Internal server error",
    "message": "An unexpected error occurred. Please try again later.",
}


def error_response(request_id: str, exc: HTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, dict) else {"message": str(exc.detail)}
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id,
            "status_code": exc.status_code,
            **detail,
        },
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every response with ``X-Request-ID`` and ``X-Processing-Time``.

    ResumeScannerError subclasses that escape a route are mapped through
    ``map_to_http_exception``; a cancelled request (client gone) is logged at
    info level and answered with 499. Anything else becomes a generic 500.
    """

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        request_id = uuid.uuid4().hex
        request.state.request_id = request_id
        route = f"{request.method} {request.url.path}"
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except OperationCancelled as exc:
            logger.info(f"{route} cancelled: {exc.message} [{request_id}]")
            response = error_response(request_id, map_to_http_exception(exc))
        except ResumeScannerError as exc:
            logger.error(
                f"{route} failed with {exc.error_code}: {exc.message} [{request_id}]",
                extra={"details": exc.details},
            )
            response = error_response(request_id, map_to_http_exception(exc))
        except Exception:
            logger.exception(f"Unhandled error in {route} [{request_id}]")
            response = error_response(request_id, HTTPException(status_code=500, detail=INTERNAL_ERROR))

        elapsed = time.perf_counter() - started
        if elapsed > self.slow_request_threshold:
            logger.warning(f"Slow request: {route} took {elapsed:.3f}s [{request_id}]")
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{elapsed:.3f}"
        return response
