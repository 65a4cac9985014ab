from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aycl_api.core.auth import Principal, require_auth
from aycl_api.core.database import get_db
from aycl_api.core.errors import HttpError
from aycl_api.notifications.schemas import NotificationBulkUpdate, NotificationBulkUpdateResult, NotificationList
from aycl_api.notifications.service import notification_service


router = APIRouter(prefix="/notifications", tags=["notifications"], dependencies=[Depends(require_auth)])


@router.get("", response_model=NotificationList)
def list_notifications(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> NotificationList:
    return notification_service.list_notifications(db, principal)


@router.patch("", response_model=NotificationBulkUpdateResult)
def mark_notifications(
    dto: NotificationBulkUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> NotificationBulkUpdateResult:
    return notification_service.mark(db, principal, dto)


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def notification_route_not_found(path: str) -> None:
    raise HttpError(404, "NOTIFICATION_ROUTE_NOT_FOUND", "Route not found")
