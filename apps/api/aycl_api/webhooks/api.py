from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from aycl_api.core.auth import Principal, require_auth
from aycl_api.core.database import get_db
from aycl_api.core.errors import HttpError
from aycl_api.webhooks.schemas import WebhookCreate, WebhookList, WebhookRead
from aycl_api.webhooks.service import webhook_service


router = APIRouter(prefix="/webhooks", tags=["webhooks"], dependencies=[Depends(require_auth)])


@router.get("", response_model=WebhookList)
def list_webhooks(db: Session = Depends(get_db)) -> WebhookList:
    return webhook_service.list_webhooks(db)


@router.post("", response_model=WebhookRead, status_code=status.HTTP_201_CREATED)
def create_webhook(
    dto: WebhookCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> WebhookRead:
    return webhook_service.create_webhook(db, principal, dto)


@router.delete("/{webhook_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_webhook(
    webhook_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> Response:
    webhook_service.delete_webhook(db, principal, webhook_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def webhook_route_not_found(path: str) -> None:
    raise HttpError(404, "WEBHOOK_ROUTE_NOT_FOUND", "Route not found")
