import uuid

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import STAFF_ROLES, UserRole, VideoType
from app.db.models.database import Attachment, Chapter, User, UserProgress
from app.db.sesson import get_session
from app.libs.formats.text import extract_youtube_id
from app.schemas.lecturer.chapter import (
    AttachmentCreate,
    ChapterCreate,
    ChapterUpdate,
    ChapterVideoUpload,
    ChapterYoutube,
)
from app.services.lecturer.course import get_managed_course


def serialize_attachment(attachment: Attachment):
    return {
        "id": attachment.id,
        "chapter_id": attachment.chapter_id,
        "name": attachment.name,
        "url": attachment.url,
        "created_at": attachment.created_at,
    }


def serialize_chapter(chapter: Chapter):
    return {
        "id": chapter.id,
        "course_id": chapter.course_id,
        "title": chapter.title,
        "description": chapter.description,
        "video_url": chapter.video_url,
        "video_type": chapter.video_type,
        "youtube_video_id": chapter.youtube_video_id,
        "position": chapter.position,
        "is_published": chapter.is_published,
        "is_free": chapter.is_free,
        "created_at": chapter.created_at,
        "updated_at": chapter.updated_at,
    }


class ChapterService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _require_course(self, user: User, course_id: uuid.UUID, manager_roles=None):
        course = await get_managed_course(self.db, user, course_id, manager_roles)
        if not course:
            raise HTTPException(401, "Unauthorized")
        return course

    async def _get_chapter(self, course_id: uuid.UUID, chapter_id: uuid.UUID) -> Chapter:
        chapter = await self.db.scalar(
            select(Chapter)
            .where(Chapter.id == chapter_id, Chapter.course_id == course_id)
            .options(selectinload(Chapter.attachments))
        )
        if not chapter:
            raise HTTPException(404, "Chapter not found")
        return chapter

    async def get_chapters_async(self, user: User, course_id: uuid.UUID):
        chapters = (
            await self.db.scalars(
                select(Chapter)
                .where(Chapter.course_id == course_id)
                .order_by(Chapter.position.asc())
            )
        ).all()
        progress = (
            await self.db.scalars(
                select(UserProgress).where(
                    UserProgress.user_id == user.id,
                    UserProgress.chapter_id.in_([c.id for c in chapters]),
                )
            )
        ).all()
        by_chapter = {p.chapter_id: p for p in progress}

        return [
            {
                **serialize_chapter(c),
                "user_progress": [
                    {
                        "id": by_chapter[c.id].id,
                        "is_completed": by_chapter[c.id].is_completed,
                    }
                ]
                if c.id in by_chapter
                else [],
            }
            for c in chapters
        ]

    async def create_chapter_async(self, user: User, course_id: uuid.UUID, schema: ChapterCreate):
        try:
            await self._require_course(user, course_id)

            last = await self.db.scalar(
                select(Chapter.position)
                .where(Chapter.course_id == course_id)
                .order_by(Chapter.position.desc())
                .limit(1)
            )
            chapter = Chapter(
                course_id=course_id,
                title=schema.title.strip(),
                position=(last or 0) + 1,
                is_free=schema.is_free,
            )
            self.db.add(chapter)
            await self.db.commit()
            logger.info(f"📖 Chapter {chapter.id} created in course {course_id}")
            return serialize_chapter(chapter)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Chapter create failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def get_chapter_async(self, user: User, course_id: uuid.UUID, chapter_id: uuid.UUID):
        await self._require_course(user, course_id, STAFF_ROLES)
        chapter = await self._get_chapter(course_id, chapter_id)
        return {
            **serialize_chapter(chapter),
            "attachments": [serialize_attachment(a) for a in chapter.attachments],
        }

    async def update_chapter_async(
        self,
        user: User,
        course_id: uuid.UUID,
        chapter_id: uuid.UUID,
        schema: ChapterUpdate,
    ):
        try:
            await self._require_course(user, course_id)
            chapter = await self._get_chapter(course_id, chapter_id)

            for field, value in schema.model_dump(exclude_unset=True).items():
                setattr(chapter, field, value)

            await self.db.commit()
            return serialize_chapter(chapter)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Chapter update failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def toggle_publish_async(self, user: User, course_id: uuid.UUID, chapter_id: uuid.UUID):
        try:
            course = await get_managed_course(self.db, user, course_id, STAFF_ROLES)
            if not course:
                raise HTTPException(401, "Unauthorized")
            chapter = await self._get_chapter(course_id, chapter_id)

            chapter.is_published = not chapter.is_published
            await self.db.commit()
            return serialize_chapter(chapter)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Chapter publish failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def set_uploaded_video_async(
        self,
        user: User,
        course_id: uuid.UUID,
        chapter_id: uuid.UUID,
        schema: ChapterVideoUpload,
    ):
        try:
            await self._require_course(user, course_id, STAFF_ROLES)
            chapter = await self._get_chapter(course_id, chapter_id)

            chapter.video_url = schema.video_url
            chapter.video_type = VideoType.UPLOAD.value
            chapter.youtube_video_id = None

            await self.db.commit()
            return {"success": True, "url": chapter.video_url}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Chapter video upload failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def set_youtube_video_async(
        self,
        user: User,
        course_id: uuid.UUID,
        chapter_id: uuid.UUID,
        schema: ChapterYoutube,
    ):
        try:
            await self._require_course(user, course_id, STAFF_ROLES)
            chapter = await self._get_chapter(course_id, chapter_id)

            video_id = extract_youtube_id(schema.youtube_url)
            if not video_id:
                raise HTTPException(400, "Invalid YouTube URL")

            chapter.video_url = schema.youtube_url
            chapter.video_type = VideoType.YOUTUBE.value
            chapter.youtube_video_id = video_id

            await self.db.commit()
            return serialize_chapter(chapter)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Chapter YouTube link failed: {e}")
            raise HTTPException(500, "Internal Error")

    # ==============================
    # 📎 ATTACHMENTS
    # ==============================

    async def add_attachment_async(
        self,
        user: User,
        course_id: uuid.UUID,
        chapter_id: uuid.UUID,
        schema: AttachmentCreate,
    ):
        try:
            await self._require_course(user, course_id)
            chapter = await self._get_chapter(course_id, chapter_id)

            attachment = Attachment(
                chapter_id=chapter.id, name=schema.name.strip(), url=schema.url
            )
            self.db.add(attachment)
            await self.db.commit()
            return serialize_attachment(attachment)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Attachment create failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def delete_attachment_async(
        self,
        user: User,
        course_id: uuid.UUID,
        chapter_id: uuid.UUID,
        attachment_id: uuid.UUID,
    ):
        try:
            await self._require_course(user, course_id, [UserRole.ADMIN.value])

            attachment = await self.db.scalar(
                select(Attachment).where(Attachment.id == attachment_id)
            )
            if not attachment:
                raise HTTPException(404, "Attachment not found")
            if attachment.chapter_id != chapter_id:
                raise HTTPException(403, "Attachment does not belong to this chapter")

            await self.db.delete(attachment)
            await self.db.commit()
            return {"success": True}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Attachment delete failed: {e}")
            raise HTTPException(500, "Internal Error")
