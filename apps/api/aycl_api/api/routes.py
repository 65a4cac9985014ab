from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from aycl_api.activities.api import router as activities_router
from aycl_api.auth.api import router as auth_router
from aycl_api.core.auth import Principal
from aycl_api.core.errors import HttpError
from aycl_api.core.rbac import require_roles
from aycl_api.metrics import generate_metrics_payload, metrics_content_type
from aycl_api.notifications.api import router as notifications_router
from aycl_api.referrals.api import router as referrals_router
from aycl_api.webhooks.api import router as webhooks_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(activities_router)
router.include_router(notifications_router)
router.include_router(referrals_router)
router.include_router(webhooks_router)


@router.get("/healthz", tags=["system"])
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/metrics", tags=["system"])
def metrics(request: Request, principal: Principal = Depends(require_roles("admin"))) -> Response:
    if not request.app.state.settings.metrics_enabled:
        raise HttpError(404, "ROUTE_NOT_FOUND", "Route not found")
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
