from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: str
    type: str
    payload: dict[str, Any]
    read_at: datetime | None
    created_at: datetime


class NotificationList(BaseModel):
    data: list[NotificationRead]


class NotificationBulkUpdate(BaseModel):
    ids: list[UUID]
    read: bool = True


class NotificationBulkUpdateResult(BaseModel):
    updated: int
