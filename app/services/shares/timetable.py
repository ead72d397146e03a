import uuid
from typing import Optional

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import PurchaseStatus, UserRole
from app.db.models.database import Course, Purchase, Timetable, User
from app.db.sesson import get_session
from app.libs.formats.datetime import clock_minutes
from app.schemas.shares.timetable import TimetableCreate, TimetableUpdate


def ensure_time_order(start_time: str, end_time: str) -> None:
    if clock_minutes(end_time) <= clock_minutes(start_time):
        raise HTTPException(400, "End time must be after start time")


def serialize_timetable(timetable: Timetable):
    course = timetable.course
    return {
        "id": timetable.id,
        "course_id": timetable.course_id,
        "title": timetable.title,
        "description": timetable.description,
        "day_of_week": timetable.day_of_week,
        "start_time": timetable.start_time,
        "end_time": timetable.end_time,
        "created_at": timetable.created_at,
        "updated_at": timetable.updated_at,
        "course": {
            "id": course.id,
            "title": course.title,
            "user_id": course.user_id,
            "user": {"id": course.user.id, "full_name": course.user.full_name}
            if course.user
            else None,
        }
        if course
        else None,
    }


class TimetableService:
    """Weekly course sessions. Admins write; reads are limited to courses the caller teaches or attends."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    def _query(self):
        return select(Timetable).options(
            selectinload(Timetable.course).selectinload(Course.user)
        )

    async def _visible_course_ids(self, user: User) -> Optional[list[uuid.UUID]]:
        """None means unrestricted."""
        if user.role == UserRole.ADMIN.value:
            return None
        if user.role == UserRole.TEACHER.value:
            stmt = select(Course.id).where(Course.user_id == user.id)
        elif user.role == UserRole.USER.value:
            stmt = select(Purchase.course_id).where(
                Purchase.user_id == user.id,
                Purchase.status == PurchaseStatus.ACTIVE.value,
            )
        else:
            raise HTTPException(403, "Forbidden")
        return list((await self.db.scalars(stmt)).all())

    async def _ensure_course_visible(self, user: User, course_id: uuid.UUID) -> None:
        visible = await self._visible_course_ids(user)
        if visible is not None and course_id not in visible:
            raise HTTPException(403, "Forbidden")

    async def _list(self, *filters):
        timetables = (
            await self.db.scalars(
                self._query()
                .where(*filters)
                .order_by(Timetable.day_of_week.asc(), Timetable.start_time.asc())
            )
        ).all()
        return [serialize_timetable(t) for t in timetables]

    async def get_timetables_async(self, user: User, course_id: Optional[uuid.UUID]):
        visible = await self._visible_course_ids(user)
        if course_id and visible is not None and course_id not in visible:
            raise HTTPException(403, "Forbidden")

        filters = []
        if course_id:
            filters.append(Timetable.course_id == course_id)
        elif visible is not None:
            filters.append(Timetable.course_id.in_(visible))
        return await self._list(*filters)

    async def get_course_timetables_async(self, user: User, course_id: uuid.UUID):
        course = await self.db.scalar(select(Course.id).where(Course.id == course_id))
        if not course:
            raise HTTPException(404, "Course not found")
        await self._ensure_course_visible(user, course_id)
        return await self._list(Timetable.course_id == course_id)

    async def get_timetable_async(self, user: User, timetable_id: uuid.UUID):
        timetable = await self.db.scalar(self._query().where(Timetable.id == timetable_id))
        if not timetable:
            raise HTTPException(404, "Timetable not found")
        await self._ensure_course_visible(user, timetable.course_id)
        return serialize_timetable(timetable)

    async def create_timetable_async(self, admin: User, schema: TimetableCreate):
        try:
            course = await self.db.scalar(
                select(Course)
                .options(selectinload(Course.user))
                .where(Course.id == schema.course_id)
            )
            if not course:
                raise HTTPException(404, "Course not found")
            ensure_time_order(schema.start_time, schema.end_time)

            timetable = Timetable(**schema.model_dump(), created_by=admin.id)
            timetable.course = course
            self.db.add(timetable)
            await self.db.commit()
            logger.info(f"🗓️ Timetable {timetable.id} added to course {course.id}")
            return serialize_timetable(timetable)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Timetable create failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def update_timetable_async(self, timetable_id: uuid.UUID, schema: TimetableUpdate):
        try:
            timetable = await self.db.scalar(self._query().where(Timetable.id == timetable_id))
            if not timetable:
                raise HTTPException(404, "Timetable not found")

            values = schema.model_dump(exclude_unset=True)
            ensure_time_order(
                values.get("start_time") or timetable.start_time,
                values.get("end_time") or timetable.end_time,
            )
            for field, value in values.items():
                if value is not None or field == "description":
                    setattr(timetable, field, value)

            await self.db.commit()
            return serialize_timetable(timetable)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Timetable update failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def delete_timetable_async(self, timetable_id: uuid.UUID) -> None:
        try:
            timetable = await self.db.get(Timetable, timetable_id)
            if not timetable:
                raise HTTPException(404, "Timetable not found")
            await self.db.delete(timetable)
            await self.db.commit()

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Timetable delete failed: {e}")
            raise HTTPException(500, "Internal Error")
