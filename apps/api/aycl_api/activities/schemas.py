from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import AfterValidator, AliasChoices, BaseModel, ConfigDict, Field, field_validator


ActivityType = Literal["email", "call", "meeting", "note", "system"]


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_to_utc)]


class ActivityCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: ActivityType
    company_id: UUID | None = None
    contact_id: UUID | None = None
    opportunity_id: UUID | None = None
    content: str | None = None
    metadata: dict[str, Any] | None = None
    occurred_at: UtcDatetime | None = None


class ActivityUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: ActivityType | None = None
    company_id: UUID | None = None
    contact_id: UUID | None = None
    opportunity_id: UUID | None = None
    content: str | None = None
    metadata: dict[str, Any] | None = None
    occurred_at: UtcDatetime | None = None

    @field_validator("type", "occurred_at", mode="before")
    @classmethod
    def reject_explicit_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    type: ActivityType
    actor_id: str
    company_id: UUID | None
    contact_id: UUID | None
    opportunity_id: UUID | None
    content: str | None
    metadata: dict[str, Any] = Field(validation_alias=AliasChoices("activity_metadata", "metadata"))
    occurred_at: datetime
    created_at: datetime


class ActivityFilters(BaseModel):
    company_id: UUID | None = None
    contact_id: UUID | None = None
    opportunity_id: UUID | None = None
    type: ActivityType | None = None
    date_from: UtcDatetime | None = None
    date_to: UtcDatetime | None = None
    query: str | None = None


class ActivityPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: list[ActivityRead]
    next_cursor: str | None = Field(default=None, alias="nextCursor")
