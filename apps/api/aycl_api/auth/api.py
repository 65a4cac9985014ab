from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from aycl_api.auth.schemas import LoginRequest, LoginResponse, LogoutAllResponse, Profile, RefreshRequest, TokenPair
from aycl_api.auth.service import auth_service
from aycl_api.core.auth import Principal, require_auth
from aycl_api.core.database import get_db


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(dto: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    return auth_service.login(db, dto)


@router.post("/refresh", response_model=TokenPair)
def refresh(dto: RefreshRequest, db: Session = Depends(get_db)) -> TokenPair:
    return auth_service.refresh(db, dto.refresh_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    dto: RefreshRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> Response:
    auth_service.logout(db, principal, dto.refresh_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/logout-all", response_model=LogoutAllResponse)
def logout_all(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> LogoutAllResponse:
    return auth_service.logout_all(db, principal)


@router.get("/me", response_model=Profile)
def me(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
) -> Profile:
    return auth_service.me(db, principal)
