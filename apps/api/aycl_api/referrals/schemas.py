from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ReferralCreate(BaseModel):
    code: str = Field(min_length=4, max_length=64)
    owner_user_id: UUID | None = None


class ReferralRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    owner_user_id: str
    created_at: datetime


class ReferralStat(BaseModel):
    owner_user_id: str
    codes: int


class ReferralLink(BaseModel):
    id: UUID
    code: str
    link: str
