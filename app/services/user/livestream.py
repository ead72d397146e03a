import uuid

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enum import PurchaseStatus
from app.db.models.database import (
    Chapter,
    Course,
    LiveStream,
    LiveStreamAttendance,
    Purchase,
    Quiz,
    User,
)
from app.db.sesson import get_session
from app.libs.formats.datetime import now as get_now
from app.libs.formats.meeting import get_embed_url
from app.services.lecturer.livestream import is_expired, serialize_stream


def neighbours(content: list[dict], item_id: uuid.UUID, item_type: str):
    """(previous, next) entries around an item in position-sorted course content."""
    index = next(
        (i for i, c in enumerate(content) if c["id"] == item_id and c["type"] == item_type),
        -1,
    )
    if index < 0:
        return None, None
    previous = content[index - 1] if index > 0 else None
    following = content[index + 1] if index < len(content) - 1 else None
    return previous, following


class StudentLiveStreamService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _published_content(self, course_id: uuid.UUID) -> list[dict]:
        content = []
        for model, kind in ((Chapter, "chapter"), (Quiz, "quiz"), (LiveStream, "livestream")):
            rows = (
                await self.db.execute(
                    select(model.id, model.position).where(
                        model.course_id == course_id, model.is_published.is_(True)
                    )
                )
            ).all()
            content += [{"id": r.id, "position": r.position, "type": kind} for r in rows]
        return sorted(content, key=lambda c: c["position"])

    async def get_stream_async(self, user: User, course_id: uuid.UUID, stream_id: uuid.UUID):
        course = await self.db.scalar(
            select(Course).where(Course.id == course_id, Course.is_published.is_(True))
        )
        if not course:
            raise HTTPException(404, "Course not found")

        if not course.is_free:
            purchase = await self.db.scalar(
                select(Purchase.id).where(
                    Purchase.user_id == user.id,
                    Purchase.course_id == course_id,
                    Purchase.status == PurchaseStatus.ACTIVE.value,
                )
            )
            if not purchase:
                raise HTTPException(403, "Access denied")

        stream = await self.db.scalar(
            select(LiveStream).where(
                LiveStream.id == stream_id,
                LiveStream.course_id == course_id,
                LiveStream.is_published.is_(True),
            )
        )
        if not stream:
            raise HTTPException(404, "Live stream not found")
        if is_expired(stream):
            raise HTTPException(410, "Live stream has ended")

        content = await self._published_content(course_id)
        previous, following = neighbours(content, stream.id, "livestream")
        return {
            **serialize_stream(stream),
            "embed_url": get_embed_url(stream.meeting_id, stream.meeting_type)
            if stream.meeting_id
            else None,
            "next_content_id": following["id"] if following else None,
            "next_content_type": following["type"] if following else None,
            "previous_content_id": previous["id"] if previous else None,
            "previous_content_type": previous["type"] if previous else None,
        }

    async def attend_async(self, user: User, stream_id: uuid.UUID):
        try:
            stream = await self.db.scalar(select(LiveStream.id).where(LiveStream.id == stream_id))
            if not stream:
                raise HTTPException(404, "Live stream not found")

            attendance = await self.db.scalar(
                select(LiveStreamAttendance).where(
                    LiveStreamAttendance.live_stream_id == stream_id,
                    LiveStreamAttendance.student_id == user.id,
                )
            )
            if attendance is None:
                self.db.add(LiveStreamAttendance(live_stream_id=stream_id, student_id=user.id))
            else:
                attendance.clicked_at = get_now()

            await self.db.commit()
            logger.info(f"🎥 {user.id} joined live stream {stream_id}")
            return {"success": True}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Live stream attendance failed: {e}")
            raise HTTPException(500, "Internal Error")
