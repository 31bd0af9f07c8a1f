from fastapi import Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
from app.core.exceptions import (
    AppError,
    NotAuthenticatedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailed,
)
from app.schemas.response import ErrorResponse, ErrorDetail
from app.utils.templating import redirect, render
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse
import logging
import uuid

logger = logging.getLogger(__name__)

def _get_error_code(status_code: int) -> str:
    code_map = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        413: "PAYLOAD_TOO_LARGE",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_SERVER_ERROR",
    }
    return code_map.get(status_code, f"HTTP_{status_code}")

def _is_api(request: Request) -> bool:
    return request.url.path.startswith(f"{settings.API_PREFIX}/")

def _json_error(request: Request, status_code: int, code: str, message: str, details=None) -> JSONResponse:
    request_id = str(uuid.uuid4())
    error_response = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
        timestamp=datetime.utcnow().isoformat(),
        path=request.url.path,
        request_id=request_id
    )
    logger.warning(f"[{request_id}] HTTP {status_code} {code}: {message}", extra={"request_id": request_id})
    return JSONResponse(status_code=status_code, content=error_response.model_dump())

def _home_url(request: Request) -> str:
    context = getattr(request.state, "user_context", None)
    return context.home_url if context else "/"

def _local_referer(request: Request) -> Optional[str]:
    """Path of the Referer header when it points back at this site."""
    referer = request.headers.get("referer")
    if not referer:
        return None
    parsed = urlparse(referer)
    if parsed.scheme not in ("", "http", "https") or (parsed.netloc and parsed.netloc != request.url.netloc):
        return None
    path = parsed.path or "/"
    if not path.startswith("/") or path.startswith("//"):
        return None
    return f"{path}?{parsed.query}" if parsed.query else path

def _not_found_page(request: Request, message: str = "Page not found"):
    return render(request, "errors/404.html", {"message": message}, status_code=404)

async def app_error_handler(request: Request, exc: AppError):
    if _is_api(request):
        details = exc.errors if isinstance(exc, ValidationFailed) else None
        return _json_error(request, exc.status_code, exc.code, exc.message, details)

    if isinstance(exc, NotAuthenticatedError):
        return redirect(request, "/auth/login", exc.message, "warning")
    if isinstance(exc, PermissionDeniedError):
        logger.info(f"Access denied to {request.url.path}")
        return redirect(request, _home_url(request), exc.message, "error")
    if isinstance(exc, NotFoundError):
        return _not_found_page(request, exc.message)

    # Expected errors that an endpoint did not convert itself
    target = _local_referer(request) or _home_url(request)
    return redirect(request, target, exc.message, "error")

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    if _is_api(request):
        request_id = str(uuid.uuid4())
        error_response = ErrorResponse(
            error=ErrorDetail(
                code="VALIDATION_ERROR",
                message="Request validation failed",
                details={"validation_errors": [
                    {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                    for e in exc.errors()
                ]}
            ),
            timestamp=datetime.utcnow().isoformat(),
            path=request.url.path,
            request_id=request_id
        )
        logger.warning(f"[{request_id}] Validation error: {exc.errors()}", extra={"request_id": request_id})
        return JSONResponse(status_code=422, content=error_response.model_dump())
    return _not_found_page(request)

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if _is_api(request):
        return _json_error(request, exc.status_code, _get_error_code(exc.status_code), message)
    if exc.status_code == 404:
        return _not_found_page(request)
    return HTMLResponse(message, status_code=exc.status_code, headers=getattr(exc, "headers", None))

async def global_exception_handler(request: Request, exc: Exception):
    request_id = str(uuid.uuid4())
    logger.error(f"[{request_id}] Unhandled exception: {exc}", exc_info=True, extra={"request_id": request_id})

    if _is_api(request):
        error_response = ErrorResponse(
            error=ErrorDetail(
                code="INTERNAL_SERVER_ERROR",
                message="An unexpected error occurred",
                details={"error_type": type(exc).__name__}
            ),
            timestamp=datetime.utcnow().isoformat(),
            path=request.url.path,
            request_id=request_id
        )
        return JSONResponse(status_code=500, content=error_response.model_dump())
    return render(request, "errors/500.html", {"request_id": request_id}, status_code=500)
