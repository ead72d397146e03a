import uuid
from typing import Optional

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enum import PromoCodeStatus, UserRole
from app.core.security import SecurityService
from app.db.models.database import PromoCode, User
from app.db.sesson import get_session
from app.libs.formats.datetime import now as get_now
from app.schemas.shares.discounts import PromoCodeIssueSchema

MAX_CODE_ATTEMPTS = 10


def serialize_promo_code(promo: Optional[PromoCode]):
    if promo is None:
        return None
    return {
        "id": promo.id,
        "code": promo.code,
        "discount_percentage": promo.discount_percentage,
        "status": promo.status,
        "is_used": promo.is_used,
        "used_at": promo.used_at,
        "created_at": promo.created_at,
        "updated_at": promo.updated_at,
    }


class PromoCodeService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _latest_approved(self, student_id: uuid.UUID) -> Optional[PromoCode]:
        return await self.db.scalar(
            select(PromoCode)
            .where(
                PromoCode.student_id == student_id,
                PromoCode.status == PromoCodeStatus.APPROVED.value,
                PromoCode.code.is_not(None),
            )
            .order_by(PromoCode.created_at.desc())
            .limit(1)
        )

    async def _pending_request(self, student_id: uuid.UUID) -> Optional[PromoCode]:
        return await self.db.scalar(
            select(PromoCode)
            .where(
                PromoCode.student_id == student_id,
                PromoCode.status == PromoCodeStatus.REQUESTED.value,
            )
            .order_by(PromoCode.created_at.desc())
            .limit(1)
        )

    # ==============================
    # 🎓 STUDENT
    # ==============================

    async def get_my_promocode_async(self, student: User):
        promo = await self._latest_approved(student.id)
        pending = await self._pending_request(student.id)
        return {
            "promocode": serialize_promo_code(promo),
            "has_pending_request": pending is not None,
        }

    async def request_promocode_async(self, student: User):
        try:
            if await self._pending_request(student.id):
                raise HTTPException(
                    status_code=400, detail="You already have a pending request"
                )

            approved = await self._latest_approved(student.id)
            if approved and not approved.is_used:
                raise HTTPException(
                    status_code=400, detail="You already have an unused promocode"
                )

            request = PromoCode(
                student_id=student.id,
                status=PromoCodeStatus.REQUESTED.value,
            )
            self.db.add(request)
            await self.db.commit()
            logger.info(f"🎟 Promocode requested by {student.id}")
            return serialize_promo_code(request)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Promocode request failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")

    # ==============================
    # 🛠 STAFF
    # ==============================

    async def get_students_promocodes_async(self):
        students = (
            await self.db.scalars(
                select(User)
                .where(User.role == UserRole.USER.value)
                .order_by(User.points.desc(), User.created_at.asc())
            )
        ).all()

        codes = (
            await self.db.scalars(
                select(PromoCode)
                .where(PromoCode.student_id.in_([s.id for s in students]))
                .order_by(PromoCode.created_at.desc())
            )
        ).all()

        approved: dict[uuid.UUID, PromoCode] = {}
        pending: dict[uuid.UUID, PromoCode] = {}
        for code in codes:
            if code.status == PromoCodeStatus.APPROVED.value and code.code:
                approved.setdefault(code.student_id, code)
            elif code.status == PromoCodeStatus.REQUESTED.value:
                pending.setdefault(code.student_id, code)

        return [
            {
                "id": s.id,
                "full_name": s.full_name,
                "phone_number": s.phone_number,
                "email": s.email,
                "points": s.points,
                "has_promocode": s.id in approved,
                "has_pending_request": s.id in pending,
                "promocode": serialize_promo_code(approved.get(s.id)),
                "pending_request": serialize_promo_code(pending.get(s.id)),
            }
            for s in students
        ]

    async def _unique_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = SecurityService.generate_promo_code()
            taken = await self.db.scalar(select(PromoCode.id).where(PromoCode.code == code))
            if not taken:
                return code
        raise HTTPException(status_code=500, detail="Failed to generate unique promocode")

    async def issue_promocode_async(self, staff: User, schema: PromoCodeIssueSchema):
        try:
            student = await self.db.scalar(
                select(User).where(
                    User.id == schema.student_id, User.role == UserRole.USER.value
                )
            )
            if not student:
                raise HTTPException(status_code=404, detail="Student not found")

            code = await self._unique_code()

            promo = await self._pending_request(student.id)
            if promo is None:
                promo = PromoCode(student_id=student.id)
                self.db.add(promo)

            promo.code = code
            promo.discount_percentage = schema.discount_percentage
            promo.status = PromoCodeStatus.APPROVED.value
            promo.is_used = False
            promo.created_by = staff.id

            await self.db.commit()
            logger.info(f"🎟 Promocode {code} issued to {student.id} by {staff.id}")
            return serialize_promo_code(promo)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Promocode issue failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")

    # ==============================
    # 💳 CHECKOUT
    # ==============================

    async def find_redeemable_async(self, student: User, code: str) -> PromoCode:
        """Approved, unused code owned by the student. Raises 400 otherwise."""
        promo = await self.db.scalar(
            select(PromoCode).where(
                PromoCode.code == code.strip().upper(),
                PromoCode.student_id == student.id,
            )
        )
        if promo is None or promo.status != PromoCodeStatus.APPROVED.value:
            raise HTTPException(status_code=400, detail="Invalid promocode")
        if promo.is_used:
            raise HTTPException(status_code=400, detail="Promocode already used")
        return promo

    @staticmethod
    def mark_used(promo: PromoCode) -> None:
        promo.is_used = True
        promo.used_at = get_now()
