from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from aycl_api.core.auth import Principal
from aycl_api.services.audit import record_audit_log
from aycl_api.webhooks.models import Webhook
from aycl_api.webhooks.schemas import WebhookCreate, WebhookList, WebhookRead


class WebhookService:
    def list_webhooks(self, db: Session) -> WebhookList:
        stmt = select(Webhook).order_by(Webhook.created_at.desc())
        return WebhookList(data=[WebhookRead.model_validate(row) for row in db.scalars(stmt)])

    def create_webhook(self, db: Session, principal: Principal, dto: WebhookCreate) -> WebhookRead:
        webhook = Webhook(
            name=dto.name,
            url=dto.url,
            event=dto.event,
            secret=dto.secret,
            status="active",
            created_by=principal.id,
        )
        db.add(webhook)
        db.commit()
        db.refresh(webhook)

        result = WebhookRead.model_validate(webhook)
        record_audit_log(
            db,
            actor_id=principal.id,
            action="webhook.create",
            entity="webhook",
            entity_id=str(result.id),
            after_state=result.model_dump(mode="json"),
        )
        return result

    def delete_webhook(self, db: Session, principal: Principal, webhook_id: uuid.UUID) -> None:
        """Delete a webhook; deleting an unknown id is not an error."""
        webhook = db.get(Webhook, webhook_id)
        before = None
        if webhook is not None:
            before = WebhookRead.model_validate(webhook).model_dump(mode="json")
            db.delete(webhook)
            db.commit()

        record_audit_log(
            db,
            actor_id=principal.id,
            action="webhook.delete",
            entity="webhook",
            entity_id=str(webhook_id),
            before_state=before,
        )


webhook_service = WebhookService()
