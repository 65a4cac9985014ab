from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from aycl_api.metrics import observe_http_request, resolve_http_path_label


logger = logging.getLogger("aycl_api.request")


def _request_fields(request: Request, status_code: int, started: float) -> dict:
    elapsed = time.perf_counter() - started
    fields = {
        "method": request.method,
        # Resolved after routing so the label is the route template, not the raw path.
        "path": resolve_http_path_label(request),
        "status_code": status_code,
        "duration_ms": round(elapsed * 1000, 2),
    }
    principal = getattr(request.state, "principal", None)
    if principal is not None:
        fields["user_id"] = principal.id
    observe_http_request(fields["method"], fields["path"], status_code, elapsed)
    return fields


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error("http.error", exc_info=True, extra=_request_fields(request, 500, started))
            raise

        fields = _request_fields(request, response.status_code, started)
        if response.status_code >= 500:
            logger.error("http.request", extra=fields)
        else:
            logger.info("http.request", extra=fields)
        return response
