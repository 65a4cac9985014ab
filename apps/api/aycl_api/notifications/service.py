from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from aycl_api.core.auth import Principal
from aycl_api.core.database import utcnow
from aycl_api.notifications.models import Notification
from aycl_api.notifications.schemas import (
    NotificationBulkUpdate,
    NotificationBulkUpdateResult,
    NotificationList,
    NotificationRead,
)
from aycl_api.services.audit import record_audit_log

LIST_LIMIT = 50


class NotificationService:
    def list_notifications(self, db: Session, principal: Principal) -> NotificationList:
        stmt = (
            select(Notification)
            .where(Notification.user_id == principal.id)
            .order_by(Notification.created_at.desc())
            .limit(LIST_LIMIT)
        )
        return NotificationList(data=[NotificationRead.model_validate(row) for row in db.scalars(stmt)])

    def mark(self, db: Session, principal: Principal, dto: NotificationBulkUpdate) -> NotificationBulkUpdateResult:
        """Set or clear ``read_at`` on the caller's notifications in one statement.

        Ids that do not exist or belong to another user are skipped, so the
        reported count can be lower than the number of ids sent.
        """
        if not dto.ids:
            return NotificationBulkUpdateResult(updated=0)

        stmt = (
            update(Notification)
            .where(Notification.user_id == principal.id, Notification.id.in_(dto.ids))
            .values(read_at=utcnow() if dto.read else None)
            .execution_options(synchronize_session=False)
        )
        result = db.execute(stmt)
        db.commit()
        updated = result.rowcount

        record_audit_log(
            db,
            actor_id=principal.id,
            action="notification.mark_read" if dto.read else "notification.mark_unread",
            entity="notification",
            metadata={"ids": [str(item) for item in dto.ids], "updated": updated},
        )
        return NotificationBulkUpdateResult(updated=updated)


notification_service = NotificationService()
