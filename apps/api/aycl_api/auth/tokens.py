from __future__ import annotations

import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from jose import JWTError, jwt
from pydantic import BaseModel, Field, ValidationError

from aycl_api.core.config import get_settings


Role = Literal["admin", "seller", "reseller", "customer"]
TokenType = Literal["access", "refresh"]

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd])\s*$")
_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


class TokenError(Exception):
    """Raised for any token that must not be trusted."""


class TokenClaims(BaseModel):
    sub: str = Field(min_length=1)
    code11: str
    role: Role
    permissions: list[str] = Field(default_factory=list)
    scopes: dict[str, Any] = Field(default_factory=dict)


def parse_duration(value: str) -> timedelta:
    match = _DURATION_RE.match(value)
    if match is None:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def _sign(claims: TokenClaims, token_type: TokenType, secret: str, ttl: timedelta) -> str:
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    payload = claims.model_dump()
    payload.update({"typ": token_type, "jti": uuid.uuid4().hex, "iat": issued_at, "exp": issued_at + ttl})
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def _verify(token: str, token_type: TokenType, secret: str) -> TokenClaims:
    settings = get_settings()
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise TokenError(str(exc)) from exc

    if payload.get("typ") != token_type:
        raise TokenError(f"Expected a {token_type} token")
    try:
        return TokenClaims.model_validate(payload)
    except ValidationError as exc:
        raise TokenError("Token claims are malformed") from exc


def create_access_token(claims: TokenClaims) -> str:
    settings = get_settings()
    return _sign(claims, "access", settings.jwt_secret, parse_duration(settings.token_expires_in))


def create_refresh_token(claims: TokenClaims) -> str:
    settings = get_settings()
    return _sign(claims, "refresh", settings.jwt_refresh_secret, parse_duration(settings.refresh_token_expires_in))


def verify_access_token(token: str) -> TokenClaims:
    return _verify(token, "access", get_settings().jwt_secret)


def verify_refresh_token(token: str) -> TokenClaims:
    return _verify(token, "refresh", get_settings().jwt_refresh_secret)
