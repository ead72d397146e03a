import uuid
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import STAFF_ROLES
from app.db.models.database import Course, LiveStream, User
from app.db.sesson import get_session
from app.libs.formats.datetime import now as get_now
from app.libs.formats.datetime import to_utc_naive
from app.libs.formats.meeting import detect_meeting_type, extract_meeting_id
from app.schemas.lecturer.livestream import LiveStreamCreate, LiveStreamUpdate
from app.services.lecturer.course import get_managed_course, next_content_position

DEFAULT_DURATION_MINUTES = 60


def is_expired(stream: LiveStream, now: Optional[datetime] = None) -> bool:
    """A stream ends duration minutes after it was scheduled; unscheduled streams never expire."""
    if not stream.scheduled_at or not stream.duration:
        return False
    now = now or get_now()
    return now > stream.scheduled_at + timedelta(minutes=stream.duration)


def parse_meeting(url: str):
    """(meeting_type, meeting_id) of a Zoom or Google Meet link, or 400."""
    meeting_type = detect_meeting_type(url)
    if not meeting_type:
        raise HTTPException(
            400, "Invalid meeting URL. Please provide a valid Zoom or Google Meet URL."
        )
    meeting_id = extract_meeting_id(url)
    if not meeting_id:
        raise HTTPException(400, "Could not extract meeting ID")
    return meeting_type.value, meeting_id


def serialize_stream(stream: LiveStream):
    return {
        "id": stream.id,
        "course_id": stream.course_id,
        "created_by": stream.created_by,
        "title": stream.title,
        "description": stream.description,
        "meeting_url": stream.meeting_url,
        "meeting_type": stream.meeting_type,
        "meeting_id": stream.meeting_id,
        "meeting_password": stream.meeting_password,
        "scheduled_at": stream.scheduled_at,
        "duration": stream.duration,
        "position": stream.position,
        "is_published": stream.is_published,
        "created_at": stream.created_at,
        "updated_at": stream.updated_at,
    }


class LiveStreamService:
    """Livestream management. Teachers see their own courses' streams, staff see all."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    def _scoped(self, user: User):
        stmt = select(LiveStream).options(selectinload(LiveStream.course))
        if user.role not in STAFF_ROLES:
            stmt = stmt.join(Course, Course.id == LiveStream.course_id).where(
                Course.user_id == user.id
            )
        return stmt

    async def _get_scoped(self, user: User, stream_id: uuid.UUID) -> LiveStream:
        stream = await self.db.scalar(self._scoped(user).where(LiveStream.id == stream_id))
        if not stream:
            raise HTTPException(404, "Live stream not found or access denied")
        return stream

    @staticmethod
    def _with_course(stream: LiveStream):
        return {
            **serialize_stream(stream),
            "course": {"id": stream.course.id, "title": stream.course.title}
            if stream.course
            else None,
        }

    async def get_streams_async(self, user: User):
        streams = (
            await self.db.scalars(
                self._scoped(user)
                .options(selectinload(LiveStream.attendances))
                .order_by(LiveStream.created_at.desc())
            )
        ).all()
        now = get_now()
        return [
            {
                **self._with_course(s),
                "attendance": [
                    {"id": a.id, "student_id": a.student_id, "clicked_at": a.clicked_at}
                    for a in s.attendances
                ],
                "attendance_count": len(s.attendances),
                "is_expired": is_expired(s, now),
            }
            for s in streams
        ]

    async def create_stream_async(self, user: User, schema: LiveStreamCreate):
        if not schema.title or not schema.meeting_url or not schema.course_id:
            raise HTTPException(400, "Missing required fields")
        meeting_type, meeting_id = parse_meeting(schema.meeting_url)
        try:
            course = await get_managed_course(self.db, user, schema.course_id, STAFF_ROLES)
            if not course:
                raise HTTPException(404, "Course not found or access denied")

            stream = LiveStream(
                course_id=course.id,
                created_by=user.id,
                title=schema.title.strip(),
                description=schema.description,
                meeting_url=schema.meeting_url,
                meeting_type=meeting_type,
                meeting_id=meeting_id,
                meeting_password=schema.meeting_password,
                scheduled_at=await to_utc_naive(schema.scheduled_at),
                duration=schema.duration or DEFAULT_DURATION_MINUTES,
                position=await next_content_position(self.db, course.id),
            )
            stream.course = course
            self.db.add(stream)
            await self.db.commit()
            logger.info(f"🎥 Live stream {stream.id} created in course {course.id}")
            return self._with_course(stream)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Live stream create failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def get_stream_async(self, user: User, stream_id: uuid.UUID):
        return self._with_course(await self._get_scoped(user, stream_id))

    async def update_stream_async(self, user: User, stream_id: uuid.UUID, schema: LiveStreamUpdate):
        values = schema.model_dump(exclude_unset=True)
        meeting = parse_meeting(schema.meeting_url) if schema.meeting_url else None
        try:
            stream = await self._get_scoped(user, stream_id)

            values.pop("meeting_url", None)
            if "scheduled_at" in values:
                values["scheduled_at"] = await to_utc_naive(values["scheduled_at"])
            if "duration" in values and values["duration"] is None:
                values["duration"] = DEFAULT_DURATION_MINUTES
            for field, value in values.items():
                setattr(stream, field, value)
            if meeting:
                stream.meeting_url = schema.meeting_url
                stream.meeting_type, stream.meeting_id = meeting

            await self.db.commit()
            return self._with_course(stream)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Live stream update failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def delete_stream_async(self, user: User, stream_id: uuid.UUID):
        try:
            stream = await self._get_scoped(user, stream_id)
            await self.db.delete(stream)
            await self.db.commit()
            return {"success": True}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Live stream delete failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def toggle_publish_async(self, user: User, stream_id: uuid.UUID):
        try:
            stream = await self._get_scoped(user, stream_id)
            stream.is_published = not stream.is_published
            await self.db.commit()
            return self._with_course(stream)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Live stream publish failed: {e}")
            raise HTTPException(500, "Internal Error")
