from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from aycl_api.auth.models import User, UserSession
from aycl_api.auth.passwords import verify_password
from aycl_api.auth.schemas import LoginRequest, LoginResponse, LogoutAllResponse, Profile, TokenPair
from aycl_api.auth.tokens import (
    TokenClaims,
    TokenError,
    create_access_token,
    create_refresh_token,
    parse_duration,
    verify_refresh_token,
)
from aycl_api.core.auth import Principal
from aycl_api.core.config import get_settings
from aycl_api.core.database import utcnow
from aycl_api.core.errors import HttpError
from aycl_api.services.audit import record_audit_log


logger = logging.getLogger("aycl_api.auth")


def _session_expiry(now: datetime) -> datetime:
    return now + parse_duration(get_settings().refresh_token_expires_in)


class AuthService:
    def login(self, db: Session, dto: LoginRequest) -> LoginResponse:
        user = db.scalar(select(User).where(User.code11 == dto.code11))
        # Unknown code, inactive account and wrong password are indistinguishable to the caller.
        if user is None or user.status != "active" or not verify_password(dto.password, user.password_hash):
            logger.warning("auth.login_failed", extra={"code": "INVALID_CREDENTIALS"})
            raise HttpError(401, "INVALID_CREDENTIALS", "Invalid login credentials")

        claims = TokenClaims(
            sub=str(user.id),
            code11=user.code11,
            role=user.role,
            permissions=list(user.permissions or []),
            scopes=dict(user.scopes or {}),
        )
        access_token = create_access_token(claims)
        refresh_token = create_refresh_token(claims)

        now = utcnow()
        db.add(UserSession(user_id=claims.sub, refresh_token=refresh_token, expires_at=_session_expiry(now)))
        user.last_login_at = now
        db.commit()

        record_audit_log(
            db,
            actor_id=claims.sub,
            action="auth.login",
            entity="user",
            entity_id=claims.sub,
            after_state={"lastLogin": now.isoformat()},
        )
        return LoginResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            role=user.role,
            user_id=claims.sub,
        )

    def refresh(self, db: Session, token: str) -> TokenPair:
        """Exchange a live refresh token for a new pair, revoking the old session."""
        try:
            claims = verify_refresh_token(token)
        except TokenError as exc:
            raise HttpError(401, "INVALID_REFRESH_TOKEN", "Refresh token invalid or expired") from exc

        now = utcnow()
        session_row = db.scalar(
            select(UserSession)
            .where(
                UserSession.refresh_token == token,
                UserSession.user_id == claims.sub,
                UserSession.revoked_at.is_(None),
                UserSession.expires_at > now,
            )
            .with_for_update()
        )
        if session_row is None:
            raise HttpError(401, "INVALID_REFRESH_TOKEN", "Refresh token invalid or expired")

        access_token = create_access_token(claims)
        refresh_token = create_refresh_token(claims)

        session_row.revoked_at = now
        db.add(UserSession(user_id=claims.sub, refresh_token=refresh_token, expires_at=_session_expiry(now)))
        db.commit()
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def logout(self, db: Session, principal: Principal, token: str) -> None:
        db.execute(
            update(UserSession)
            .where(
                UserSession.refresh_token == token,
                UserSession.user_id == principal.id,
                UserSession.revoked_at.is_(None),
            )
            .values(revoked_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        db.commit()
        record_audit_log(db, actor_id=principal.id, action="auth.logout", entity="user", entity_id=principal.id)

    def logout_all(self, db: Session, principal: Principal) -> LogoutAllResponse:
        result = db.execute(
            update(UserSession)
            .where(UserSession.user_id == principal.id, UserSession.revoked_at.is_(None))
            .values(revoked_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise HttpError(400, "NO_SESSIONS_REVOKED", "No active sessions found")
        db.commit()
        return LogoutAllResponse(revoked=result.rowcount)

    def me(self, db: Session, principal: Principal) -> Profile:
        try:
            user_id = uuid.UUID(principal.id)
        except ValueError as exc:
            raise HttpError(404, "USER_NOT_FOUND", "User not found") from exc
        user = db.get(User, user_id)
        if user is None:
            raise HttpError(404, "USER_NOT_FOUND", "User not found")
        return Profile(
            id=user.id,
            code11=user.code11,
            email=user.email,
            role=user.role,
            status=user.status,
            last_login_at=user.last_login_at,
            permissions=list(user.permissions or []),
            scopes=dict(user.scopes or {}),
            referral_id=user.referral_id,
            referral_code=user.referral_code,
            referral_link=user.referral_link,
        )


auth_service = AuthService()
