from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from starlette.requests import Request

from aycl_api.auth.tokens import TokenError, verify_access_token
from aycl_api.core.errors import HttpError


@dataclass
class Principal:
    id: str
    code11: str
    role: str
    permissions: set[str] = field(default_factory=set)
    scopes: dict[str, Any] = field(default_factory=dict)


def _extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization", "")
    if auth_header:
        scheme, _, credentials = auth_header.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()

    # Download links cannot carry headers.
    query_token = request.query_params.get("token")
    return query_token or None


async def require_auth(request: Request) -> Principal:
    cached = getattr(request.state, "principal", None)
    if isinstance(cached, Principal):
        return cached

    token = _extract_token(request)
    if not token:
        raise HttpError(401, "UNAUTHORIZED", "Authentication required")

    try:
        claims = verify_access_token(token)
    except TokenError as exc:
        raise HttpError(401, "INVALID_TOKEN", "Invalid or expired token", {"error": str(exc)}) from exc

    principal = Principal(
        id=claims.sub,
        code11=claims.code11,
        role=claims.role,
        permissions=set(claims.permissions),
        scopes=dict(claims.scopes),
    )
    request.state.principal = principal
    return principal
