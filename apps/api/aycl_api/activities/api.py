from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from aycl_api.activities.schemas import (
    ActivityCreate,
    ActivityFilters,
    ActivityPage,
    ActivityRead,
    ActivityType,
    ActivityUpdate,
)
from aycl_api.activities.service import activity_service
from aycl_api.core.auth import Principal, require_auth
from aycl_api.core.database import get_db
from aycl_api.core.errors import HttpError
from aycl_api.pagination import parse_cursor_pagination


router = APIRouter(prefix="/activities", tags=["activities"], dependencies=[Depends(require_auth)])


@router.get("", response_model=ActivityPage)
def list_activities(
    company_id: uuid.UUID | None = Query(default=None),
    contact_id: uuid.UUID | None = Query(default=None),
    opportunity_id: uuid.UUID | None = Query(default=None),
    activity_type: ActivityType | None = Query(default=None, alias="type"),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    query: str | None = Query(default=None),
    limit: int | None = Query(default=None),
    cursor: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> ActivityPage:
    filters = ActivityFilters(
        company_id=company_id,
        contact_id=contact_id,
        opportunity_id=opportunity_id,
        type=activity_type,
        date_from=date_from,
        date_to=date_to,
        query=query,
    )
    return activity_service.list_activities(db, filters, parse_cursor_pagination(limit, cursor))


@router.post("", response_model=ActivityRead, status_code=status.HTTP_201_CREATED)
def create_activity(
    dto: ActivityCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> ActivityRead:
    return activity_service.create_activity(db, principal, dto)


@router.get("/{activity_id}", response_model=ActivityRead)
def get_activity(activity_id: uuid.UUID, db: Session = Depends(get_db)) -> ActivityRead:
    return activity_service.get_activity(db, activity_id)


@router.patch("/{activity_id}", response_model=ActivityRead)
def patch_activity(
    activity_id: uuid.UUID,
    dto: ActivityUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> ActivityRead:
    return activity_service.update_activity(db, principal, activity_id, dto)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_activity(
    activity_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> Response:
    activity_service.delete_activity(db, principal, activity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def activity_route_not_found(path: str) -> None:
    raise HttpError(404, "ACTIVITY_ROUTE_NOT_FOUND", "Route not found")
