from __future__ import annotations

import re
import uuid

from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from aycl_api.context import reset_correlation_id, set_correlation_id


HEADER = "x-correlation-id"

# Stored with each audit row, so it must fit audit_log.correlation_id.
_ACCEPTED = re.compile(r"^[\x21-\x7e]{1,128}$")


def resolve_incoming_correlation_id(raw: str | None) -> str:
    if raw and _ACCEPTED.match(raw):
        return raw
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds one correlation id per request and echoes it on every response."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        correlation_id = resolve_incoming_correlation_id(request.headers.get(HEADER))
        request.state.correlation_id = correlation_id

        current_span = trace.get_current_span()
        if current_span.is_recording():
            current_span.set_attribute("correlation_id", correlation_id)

        context_token = set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            reset_correlation_id(context_token)
        response.headers[HEADER] = correlation_id
        return response
