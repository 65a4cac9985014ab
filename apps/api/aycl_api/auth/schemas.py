from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    code11: str = Field(min_length=11, max_length=11)
    password: str = Field(min_length=8)


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(alias="refreshToken", min_length=10)


class TokenPair(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")


class LoginResponse(TokenPair):
    role: str
    user_id: str = Field(alias="userId")


class LogoutAllResponse(BaseModel):
    revoked: int


class Profile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    code11: str
    email: str | None
    role: str
    status: str
    last_login_at: datetime | None = Field(alias="lastLoginAt")
    permissions: list[str]
    scopes: dict[str, Any]
    referral_id: UUID | None = Field(alias="referralId")
    referral_code: str | None = Field(alias="referralCode")
    referral_link: str | None = Field(alias="referralLink")
