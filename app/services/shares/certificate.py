from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import UserRole
from app.db.models.database import Certificate, User
from app.db.sesson import get_session
from app.schemas.shares.certificate import CertificateCreate


def serialize_certificate(certificate: Certificate, with_contact: bool = True):
    student = certificate.student
    teacher = certificate.teacher
    student_out = None
    if student is not None:
        student_out = {"id": student.id, "full_name": student.full_name}
        if with_contact:
            student_out.update(email=student.email, phone_number=student.phone_number)
    return {
        "id": certificate.id,
        "student_id": certificate.student_id,
        "teacher_id": certificate.teacher_id,
        "title": certificate.title,
        "description": certificate.description,
        "image_url": certificate.image_url,
        "created_at": certificate.created_at,
        "student": student_out,
        "teacher": {"id": teacher.id, "full_name": teacher.full_name} if teacher else None,
    }


class CertificateService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    def _query(self):
        return select(Certificate).options(
            selectinload(Certificate.student), selectinload(Certificate.teacher)
        )

    async def create_certificate_async(self, teacher: User, schema: CertificateCreate):
        if not schema.student_id or not schema.image_url:
            raise HTTPException(400, "Student ID and image URL are required")
        try:
            student = await self.db.scalar(select(User).where(User.id == schema.student_id))
            if not student or student.role != UserRole.USER.value:
                raise HTTPException(404, "Student not found")

            certificate = Certificate(
                student_id=student.id,
                teacher_id=teacher.id,
                image_url=schema.image_url,
                title=schema.title or None,
                description=schema.description or None,
            )
            certificate.student = student
            certificate.teacher = teacher
            self.db.add(certificate)
            await self.db.commit()
            logger.info(f"🏅 Certificate {certificate.id} assigned to {student.id} by {teacher.id}")
            return serialize_certificate(certificate)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Certificate create failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def get_certificates_async(self, user: User):
        """Teachers see the certificates they assigned, staff see all."""
        stmt = self._query()
        if user.role == UserRole.TEACHER.value:
            stmt = stmt.where(Certificate.teacher_id == user.id)
        certificates = (
            await self.db.scalars(stmt.order_by(Certificate.created_at.desc()))
        ).all()
        return [serialize_certificate(c) for c in certificates]

    async def get_my_certificates_async(self, student: User):
        certificates = (
            await self.db.scalars(
                self._query()
                .where(Certificate.student_id == student.id)
                .order_by(Certificate.created_at.desc())
            )
        ).all()
        return [serialize_certificate(c, with_contact=False) for c in certificates]

    async def get_children_certificates_async(self, parent: User):
        children = select(User.id).where(
            User.parent_phone_number == parent.phone_number,
            User.role == UserRole.USER.value,
        )
        certificates = (
            await self.db.scalars(
                self._query()
                .where(Certificate.student_id.in_(children))
                .order_by(Certificate.created_at.desc())
            )
        ).all()
        return [serialize_certificate(c, with_contact=False) for c in certificates]
