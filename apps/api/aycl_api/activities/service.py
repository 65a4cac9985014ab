from __future__ import annotations

import uuid

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from aycl_api.activities.models import Activity
from aycl_api.activities.schemas import ActivityCreate, ActivityFilters, ActivityPage, ActivityRead, ActivityUpdate
from aycl_api.core.auth import Principal
from aycl_api.core.errors import HttpError
from aycl_api.pagination import CursorPagination, SortKey, build_page
from aycl_api.services.audit import record_audit_log


def _sort_key(activity: Activity) -> SortKey:
    return SortKey(position=activity.occurred_at, id=activity.id)


def _snapshot(activity: Activity) -> dict:
    return ActivityRead.model_validate(activity).model_dump(mode="json")


class ActivityService:
    def list_activities(self, db: Session, filters: ActivityFilters, page: CursorPagination) -> ActivityPage:
        stmt = select(Activity)
        if filters.company_id is not None:
            stmt = stmt.where(Activity.company_id == filters.company_id)
        if filters.contact_id is not None:
            stmt = stmt.where(Activity.contact_id == filters.contact_id)
        if filters.opportunity_id is not None:
            stmt = stmt.where(Activity.opportunity_id == filters.opportunity_id)
        if filters.type is not None:
            stmt = stmt.where(Activity.type == filters.type)
        if filters.date_from is not None:
            stmt = stmt.where(Activity.occurred_at >= filters.date_from)
        if filters.date_to is not None:
            stmt = stmt.where(Activity.occurred_at <= filters.date_to)
        if filters.query:
            stmt = stmt.where(Activity.content.icontains(filters.query, autoescape=True))
        if page.after is not None:
            stmt = stmt.where(
                or_(
                    Activity.occurred_at < page.after.position,
                    and_(Activity.occurred_at == page.after.position, Activity.id < page.after.id),
                )
            )

        stmt = stmt.order_by(Activity.occurred_at.desc(), Activity.id.desc()).limit(page.limit + 1)
        rows = list(db.scalars(stmt))
        items, next_cursor = build_page(rows, page.limit, _sort_key)
        return ActivityPage(data=[ActivityRead.model_validate(item) for item in items], next_cursor=next_cursor)

    def get_activity(self, db: Session, activity_id: uuid.UUID) -> ActivityRead:
        return ActivityRead.model_validate(self._get_or_404(db, activity_id))

    def create_activity(self, db: Session, principal: Principal, dto: ActivityCreate) -> ActivityRead:
        activity = Activity(
            type=dto.type,
            actor_id=principal.id,
            company_id=dto.company_id,
            contact_id=dto.contact_id,
            opportunity_id=dto.opportunity_id,
            content=dto.content,
            activity_metadata=dto.metadata or {},
        )
        if dto.occurred_at is not None:
            activity.occurred_at = dto.occurred_at
        db.add(activity)
        db.commit()
        db.refresh(activity)

        result = ActivityRead.model_validate(activity)
        record_audit_log(
            db,
            actor_id=principal.id,
            action="activity.create",
            entity="activity",
            entity_id=str(result.id),
            after_state=result.model_dump(mode="json"),
        )
        return result

    def update_activity(
        self,
        db: Session,
        principal: Principal,
        activity_id: uuid.UUID,
        dto: ActivityUpdate,
    ) -> ActivityRead:
        activity = self._get_or_404(db, activity_id)
        changes = dto.model_dump(exclude_unset=True)
        if not changes:
            return ActivityRead.model_validate(activity)

        before = _snapshot(activity)
        for field_name, value in changes.items():
            if field_name == "metadata":
                activity.activity_metadata = value or {}
            else:
                setattr(activity, field_name, value)
        db.commit()
        db.refresh(activity)

        result = ActivityRead.model_validate(activity)
        record_audit_log(
            db,
            actor_id=principal.id,
            action="activity.update",
            entity="activity",
            entity_id=str(activity_id),
            before_state=before,
            after_state=result.model_dump(mode="json"),
        )
        return result

    def delete_activity(self, db: Session, principal: Principal, activity_id: uuid.UUID) -> None:
        activity = self._get_or_404(db, activity_id)
        before = _snapshot(activity)
        db.delete(activity)
        db.commit()

        record_audit_log(
            db,
            actor_id=principal.id,
            action="activity.delete",
            entity="activity",
            entity_id=str(activity_id),
            before_state=before,
        )

    @staticmethod
    def _get_or_404(db: Session, activity_id: uuid.UUID) -> Activity:
        activity = db.get(Activity, activity_id)
        if activity is None:
            raise HttpError(404, "ACTIVITY_NOT_FOUND", "Activity not found")
        return activity


activity_service = ActivityService()
