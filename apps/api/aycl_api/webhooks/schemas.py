from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, ValidationError

_http_url = TypeAdapter(HttpUrl)


def _check_http_url(value: str) -> str:
    # Validated as an http(s) URL but kept exactly as submitted.
    try:
        _http_url.validate_python(value)
    except ValidationError as exc:
        raise ValueError("must be an http or https URL") from exc
    return value


WebhookUrl = Annotated[str, AfterValidator(_check_http_url)]


class WebhookCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    url: WebhookUrl
    event: str = Field(min_length=1, max_length=128)
    secret: str | None = Field(default=None, max_length=255)


class WebhookRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    url: str
    event: str
    status: str
    created_by: str
    created_at: datetime


class WebhookList(BaseModel):
    data: list[WebhookRead]
