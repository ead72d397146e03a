import uuid
from datetime import timedelta

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.database import StudentMessage, User
from app.db.sesson import get_session
from app.libs.formats.datetime import now as get_now
from app.schemas.admin.message import StudentMessageIn

MESSAGE_LIFETIME = timedelta(hours=24)
DASHBOARD_MESSAGE_LIMIT = 5


def message_matches(message: StudentMessage, user: User) -> bool:
    """Untargeted messages reach everyone; each set target must equal the student's value."""
    # students registered on an egyptian curriculum type may lack a curriculum
    curriculum = user.curriculum or ("egyptian" if user.curriculum_type else None)
    return (
        (not message.target_curriculum or message.target_curriculum == curriculum)
        and (not message.target_level or message.target_level == user.level)
        and (not message.target_language or message.target_language == user.language)
        and (not message.target_grade or message.target_grade == user.grade)
    )


def serialize_message(message: StudentMessage, creator: User | None = None):
    return {
        "id": message.id,
        "message": message.message,
        "is_active": message.is_active,
        "target_curriculum": message.target_curriculum,
        "target_curriculum_type": message.target_curriculum_type,
        "target_level": message.target_level,
        "target_language": message.target_language,
        "target_grade": message.target_grade,
        "created_by": message.created_by,
        "created_at": message.created_at,
        "updated_at": message.updated_at,
        "creator": {"id": creator.id, "full_name": creator.full_name} if creator else None,
    }


class StudentMessageService:
    """Announcements shown on the student dashboard for 24 hours."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _deactivate_stale(self) -> None:
        await self.db.execute(
            update(StudentMessage)
            .where(
                StudentMessage.is_active.is_(True),
                StudentMessage.created_at < get_now() - MESSAGE_LIFETIME,
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _apply(message: StudentMessage, schema: StudentMessageIn) -> None:
        message.message = schema.message.strip()
        message.is_active = True if schema.is_active is None else schema.is_active
        message.target_curriculum = schema.target_curriculum or None
        message.target_curriculum_type = schema.target_curriculum_type or None
        message.target_level = schema.target_level or None
        message.target_language = schema.target_language or None
        message.target_grade = schema.target_grade or None

    async def get_messages_async(self):
        try:
            await self._deactivate_stale()
            await self.db.commit()
            rows = (
                await self.db.execute(
                    select(StudentMessage, User)
                    .join(User, User.id == StudentMessage.created_by, isouter=True)
                    .order_by(StudentMessage.created_at.desc())
                )
            ).all()
            return [serialize_message(m, creator) for m, creator in rows]

        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Message list failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def create_message_async(self, staff: User, schema: StudentMessageIn):
        if not schema.message or not schema.message.strip():
            raise HTTPException(400, "Message is required")
        try:
            message = StudentMessage(created_by=staff.id)
            self._apply(message, schema)
            self.db.add(message)
            await self.db.commit()
            logger.info(f"📢 Student message {message.id} posted by {staff.id}")
            return serialize_message(message, staff)

        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Message create failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def update_message_async(self, message_id: uuid.UUID, schema: StudentMessageIn):
        if not schema.message or not schema.message.strip():
            raise HTTPException(400, "Message is required")
        try:
            message = await self.db.get(StudentMessage, message_id)
            if not message:
                raise HTTPException(404, "Message not found")
            self._apply(message, schema)
            await self.db.commit()
            creator = await self.db.get(User, message.created_by) if message.created_by else None
            return serialize_message(message, creator)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Message update failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def delete_message_async(self, message_id: uuid.UUID):
        try:
            message = await self.db.get(StudentMessage, message_id)
            if not message:
                raise HTTPException(404, "Message not found")
            await self.db.delete(message)
            await self.db.commit()
            return {"message": "Message deleted"}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Message delete failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def get_student_messages_async(self, student: User):
        try:
            await self._deactivate_stale()
            await self.db.commit()
            messages = (
                await self.db.scalars(
                    select(StudentMessage)
                    .where(StudentMessage.is_active.is_(True))
                    .order_by(StudentMessage.created_at.desc())
                )
            ).all()
            matching = [m for m in messages if message_matches(m, student)]
            return [serialize_message(m) for m in matching[:DASHBOARD_MESSAGE_LIMIT]]

        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Student messages failed: {e}")
            raise HTTPException(500, "Internal Error")
