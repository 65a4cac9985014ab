from __future__ import annotations

import logging
import secrets
import uuid

from sqlalchemy import exists, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aycl_api.auth.models import User
from aycl_api.core.auth import Principal
from aycl_api.core.config import get_settings
from aycl_api.core.errors import HttpError
from aycl_api.referrals.models import Referral
from aycl_api.referrals.schemas import ReferralCreate, ReferralLink, ReferralRead, ReferralStat
from aycl_api.services.audit import record_audit_log


logger = logging.getLogger("aycl_api.referrals")

CODE_PREFIX = "AYCL-"
MAX_CODE_ATTEMPTS = 10


def build_referral_link(code: str) -> str:
    base = get_settings().referral_base_url.rstrip("/")
    return f"{base}/r/{code}"


class ReferralService:
    def list_referrals(self, db: Session) -> list[ReferralRead]:
        stmt = select(Referral).order_by(Referral.created_at.desc())
        return [ReferralRead.model_validate(row) for row in db.scalars(stmt)]

    def create_referral(self, db: Session, principal: Principal, dto: ReferralCreate) -> ReferralRead:
        referral = Referral(
            code=dto.code,
            owner_user_id=str(dto.owner_user_id) if dto.owner_user_id else principal.id,
        )
        db.add(referral)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise HttpError(409, "REFERRAL_CODE_TAKEN", "Referral code already exists", {"code": dto.code}) from exc
        db.refresh(referral)

        result = ReferralRead.model_validate(referral)
        record_audit_log(
            db,
            actor_id=principal.id,
            action="referral.create",
            entity="referral",
            entity_id=str(result.id),
            after_state=result.model_dump(mode="json"),
        )
        return result

    def stats(self, db: Session) -> list[ReferralStat]:
        stmt = (
            select(Referral.owner_user_id, func.count(Referral.id).label("codes"))
            .group_by(Referral.owner_user_id)
            .order_by(Referral.owner_user_id)
        )
        return [ReferralStat(owner_user_id=row.owner_user_id, codes=row.codes) for row in db.execute(stmt)]

    def ensure_referral_for_user(self, db: Session, principal: Principal) -> ReferralLink:
        """Return the caller's referral, linking or generating one when missing."""
        user = self._get_user_for_update(db, principal.id)

        referral_id = user.referral_id
        code = user.referral_code
        created: Referral | None = None

        if referral_id is None or code is None:
            owned = db.scalar(
                select(Referral)
                .where(Referral.owner_user_id == principal.id)
                .order_by(Referral.created_at.desc())
                .limit(1)
            )
            if owned is not None:
                referral_id, code = owned.id, owned.code
            else:
                created = Referral(code=self._generate_unique_code(db), owner_user_id=principal.id)
                db.add(created)
                db.flush()
                referral_id, code = created.id, created.code

        link = build_referral_link(code)
        user.referral_id = referral_id
        user.referral_code = code
        user.referral_link = link
        db.commit()

        if created is not None:
            record_audit_log(
                db,
                actor_id=principal.id,
                action="referral.create",
                entity="referral",
                entity_id=str(referral_id),
                after_state=ReferralRead.model_validate(created).model_dump(mode="json"),
            )
        return ReferralLink(id=referral_id, code=code, link=link)

    @staticmethod
    def _get_user_for_update(db: Session, user_id: str) -> User:
        try:
            parsed = uuid.UUID(user_id)
        except ValueError as exc:
            raise HttpError(404, "USER_NOT_FOUND", "User not found") from exc
        user = db.scalar(select(User).where(User.id == parsed).with_for_update())
        if user is None:
            raise HttpError(404, "USER_NOT_FOUND", "User not found")
        return user

    @staticmethod
    def _generate_unique_code(db: Session) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = f"{CODE_PREFIX}{secrets.token_hex(4).upper()}"
            taken = db.scalar(
                select(or_(exists().where(Referral.code == code), exists().where(User.referral_code == code)))
            )
            if not taken:
                return code
        logger.error("referral.code_generation_exhausted", extra={"error": f"{MAX_CODE_ATTEMPTS} attempts"})
        raise HttpError(500, "REFERRAL_CODE_EXHAUSTED", "Unable to generate unique referral code")


referral_service = ReferralService()
