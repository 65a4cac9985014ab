from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from aycl_api.context import get_correlation_id
from aycl_api.metrics import observe_audit_write_failure
from aycl_api.models.audit import AuditLog
from aycl_api.otel import get_tracer


logger = logging.getLogger("aycl_api.audit")
tracer = get_tracer("aycl_api.audit")


def record_audit_log(
    db: Session,
    *,
    actor_id: str | None,
    action: str,
    entity: str,
    entity_id: str | None = None,
    before_state: dict[str, Any] | None = None,
    after_state: dict[str, Any] | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Append an audit entry without ever failing the caller.

    Call it after the primary change has been committed: on failure the
    session is rolled back, which only discards the audit row.
    """
    with tracer.start_as_current_span("audit.write") as span:
        span.set_attribute("audit.action", action)
        try:
            db.add(
                AuditLog(
                    actor_id=actor_id,
                    action=action,
                    entity=entity,
                    entity_id=entity_id,
                    before_state=before_state,
                    after_state=after_state,
                    event_metadata=metadata or {},
                    correlation_id=get_correlation_id(),
                )
            )
            db.commit()
        except Exception as exc:
            db.rollback()
            observe_audit_write_failure(action)
            logger.exception(
                "audit.write_failed",
                extra={"action": action, "entity": entity, "entity_id": entity_id, "error": str(exc)},
            )
