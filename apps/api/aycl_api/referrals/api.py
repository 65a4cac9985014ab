from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aycl_api.core.auth import Principal, require_auth
from aycl_api.core.database import get_db
from aycl_api.core.errors import HttpError
from aycl_api.referrals.schemas import ReferralCreate, ReferralLink, ReferralRead, ReferralStat
from aycl_api.referrals.service import referral_service


router = APIRouter(prefix="/referrals", tags=["referrals"], dependencies=[Depends(require_auth)])


@router.get("", response_model=list[ReferralRead])
def list_referrals(db: Session = Depends(get_db)) -> list[ReferralRead]:
    return referral_service.list_referrals(db)


@router.post("", response_model=ReferralRead, status_code=201)
def create_referral(
    dto: ReferralCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> ReferralRead:
    return referral_service.create_referral(db, principal, dto)


@router.get("/stats", response_model=list[ReferralStat])
def referral_stats(db: Session = Depends(get_db)) -> list[ReferralStat]:
    return referral_service.stats(db)


@router.get("/me", response_model=ReferralLink)
def my_referral(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> ReferralLink:
    return referral_service.ensure_referral_for_user(db, principal)


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def referral_route_not_found(path: str) -> None:
    raise HttpError(404, "REFERRAL_ROUTE_NOT_FOUND", "Route not found")
