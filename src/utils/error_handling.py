"""
Request tracing, error responses and structured error logs.

Every response carries an X-Trace-ID header. Error bodies share one shape:
{"success": false, "error", "message", "trace_id", "timestamp"}. Server-side
failures are logged as one JSON document with the request (credentials,
tokens and passwords redacted) so a trace id reported by the mobile app can
be found in the logs.
"""

import json
import logging
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from contextvars import ContextVar

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

trace_id_var: ContextVar[str] = ContextVar('trace_id', default='')

logger = logging.getLogger(__name__)

# Service error_type -> HTTP status
ERROR_STATUS_CODES = {
    "RESOURCE_NOT_FOUND": 404,
    "CONFLICT": 409,
    "INVALID_REQUEST": 400,
    "FOREIGN_KEY_ERROR": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "PAYMENT_REQUIRED": 402,
    "CONFIGURATION_ERROR": 503,
    "UPSTREAM_ERROR": 502,
}

REDACTED = "***REDACTED***"
SENSITIVE_KEYS = ('password', 'token', 'secret', 'key', 'authorization', 'cookie', 'credential')
MAX_LOGGED_BODY = 5000


def is_sensitive(name: str) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in SENSITIVE_KEYS)


def redact(data: Any) -> Any:
    """Replace values under sensitive keys; JSON strings are parsed first so nested fields are caught"""
    if isinstance(data, dict):
        return {key: REDACTED if is_sensitive(str(key)) else redact(value) for key, value in data.items()}
    if isinstance(data, list):
        return [redact(item) for item in data]
    if isinstance(data, str):
        try:
            parsed = json.loads(data)
        except ValueError:
            parsed = None
        if isinstance(parsed, (dict, list)):
            return redact(parsed)
        if len(data) > MAX_LOGGED_BODY:
            return data[:MAX_LOGGED_BODY] + "...[TRUNCATED]"
    return data


def log_request_error(
    kind: str,
    message: str,
    request: Request,
    exception: Optional[BaseException] = None,
    context: Optional[Dict[str, Any]] = None,
    with_traceback: bool = False
) -> str:
    """Write one JSON error entry for the request and return its trace id"""
    trace_id = trace_id_var.get('') or str(uuid.uuid4())[:8]
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "trace_id": trace_id,
        "error_type": kind,
        "message": message,
        "request": {
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "headers": redact(dict(request.headers)),
            "client_ip": request.client.host if request.client else None,
        },
    }
    body = _captured_body(request)
    if body:
        entry["request"]["body"] = redact(body)
    if exception is not None:
        entry["exception"] = {"type": type(exception).__name__, "details": str(exception)}
        if with_traceback:
            entry["exception"]["traceback"] = traceback.format_exc()
    if context:
        entry["context"] = redact(context)

    logger.error(json.dumps(entry, indent=2, default=str))
    return trace_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns the trace id and keeps a copy of the request body for error logs"""

    async def dispatch(self, request: Request, call_next):
        trace_id = str(uuid.uuid4())[:8]
        trace_id_var.set(trace_id)
        request.state.trace_id = trace_id

        # Uploads are not buffered
        content_type = request.headers.get("content-type", "")
        request.state.captured_body = None if content_type.startswith("multipart/") else await request.body()

        response = await call_next(request)
        response.headers["X-Trace-ID"] = trace_id
        return response


def _captured_body(request: Request) -> Optional[str]:
    body = getattr(request.state, 'captured_body', None)
    if not body:
        return None
    try:
        return body.decode('utf-8')
    except UnicodeDecodeError:
        return "DECODE_ERROR"


def error_response(status_code: int, error: Any, message: Any, trace_id: Optional[str],
                   **extra: Any) -> JSONResponse:
    content = {"success": False, "error": error, "message": message}
    content.update(extra)
    if trace_id:
        content["trace_id"] = trace_id
    content["timestamp"] = datetime.now(timezone.utc).isoformat()
    return JSONResponse(status_code=status_code, content=content)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    trace_id = getattr(request.state, 'trace_id', None)
    if exc.status_code >= 500:
        trace_id = log_request_error(f"http_{exc.status_code}", str(exc.detail), request, exc)
    else:
        logger.info(f"HTTP {exc.status_code} on {request.method} {request.url.path}: {exc.detail}")

    response = error_response(exc.status_code, exc.detail, exc.detail, trace_id)
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """422 with one entry per invalid field"""
    details = [
        {
            "field": " -> ".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg", "Unknown validation error"),
            "type": error.get("type", "unknown"),
        }
        for error in exc.errors()
    ]
    trace_id = log_request_error(
        "validation_error_422",
        f"Request validation failed: {len(details)} validation errors",
        request,
        context={"validation_errors": details}
    )
    return error_response(
        422, "Validation Error", "Request validation failed", trace_id,
        detail=details, error_count=len(details)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled exceptions become a bare 500; details only go to the log"""
    trace_id = log_request_error(
        "internal_server_error", f"Unhandled exception: {exc}", request, exc, with_traceback=True
    )
    return error_response(500, "Internal Server Error", "An unexpected error occurred", trace_id)


def setup_error_handling(app):
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    logger.info("Error handling configured")


def raise_for_result(result, not_found: str = "Record not found") -> None:
    """Turn a failed ServiceResult into the matching HTTPException"""
    if result.success:
        return
    status_code = ERROR_STATUS_CODES.get(result.error_type, 500)
    if status_code == 404:
        raise HTTPException(status_code=404, detail=not_found)
    if status_code == 500:
        logger.error(f"Service failure ({result.error_type}): {result.error}")
        raise HTTPException(status_code=500, detail=f"Service error: {result.error}")
    raise HTTPException(status_code=status_code, detail=result.error)
