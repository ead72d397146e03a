import uuid

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enum import PurchaseStatus
from app.core.settings import settings
from app.db.models.database import (
    Activity,
    ActivitySubmission,
    Chapter,
    HomeworkSubmission,
    Purchase,
    User,
    UserProgress,
)
from app.db.sesson import get_session
from app.schemas.user.learning import ImageSubmission


def serialize_homework(homework: HomeworkSubmission | None):
    if homework is None:
        return None
    return {
        "id": homework.id,
        "student_id": homework.student_id,
        "chapter_id": homework.chapter_id,
        "image_url": homework.image_url,
        "corrected_image_urls": list(homework.corrected_image_urls or []),
        "created_at": homework.created_at,
        "updated_at": homework.updated_at,
    }


def serialize_activity(activity: Activity):
    return {
        "id": activity.id,
        "chapter_id": activity.chapter_id,
        "title": activity.title,
        "description": activity.description,
        "is_required": activity.is_required,
        "created_at": activity.created_at,
        "updated_at": activity.updated_at,
    }


def serialize_activity_submission(submission: ActivitySubmission | None):
    if submission is None:
        return None
    return {
        "id": submission.id,
        "student_id": submission.student_id,
        "activity_id": submission.activity_id,
        "image_url": submission.image_url,
        "created_at": submission.created_at,
        "updated_at": submission.updated_at,
    }


class LearningService:
    """Chapter progress, homework and activity submissions of a student."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _accessible_chapter(
        self, user: User, course_id: uuid.UUID, chapter_id: uuid.UUID
    ) -> Chapter:
        chapter = await self.db.scalar(
            select(Chapter).where(Chapter.id == chapter_id, Chapter.course_id == course_id)
        )
        if not chapter:
            raise HTTPException(404, "Chapter not found")
        if chapter.is_free:
            return chapter

        purchase = await self.db.scalar(
            select(Purchase.id).where(
                Purchase.user_id == user.id,
                Purchase.course_id == course_id,
                Purchase.status == PurchaseStatus.ACTIVE.value,
            )
        )
        if not purchase:
            raise HTTPException(403, "Access denied")
        return chapter

    # ==============================
    # ✅ PROGRESS
    # ==============================

    async def complete_chapter_async(self, user: User, chapter_id: uuid.UUID):
        try:
            progress = await self.db.scalar(
                select(UserProgress).where(
                    UserProgress.user_id == user.id,
                    UserProgress.chapter_id == chapter_id,
                )
            )
            first_completion = progress is None or not progress.is_completed

            if progress is None:
                progress = UserProgress(user_id=user.id, chapter_id=chapter_id)
                self.db.add(progress)
            progress.is_completed = True

            if first_completion:
                await self.db.execute(
                    update(User)
                    .where(User.id == user.id)
                    .values(points=func.coalesce(User.points, 0) + settings.COMPLETION_POINTS)
                    .execution_options(synchronize_session=False)
                )

            await self.db.commit()
            if first_completion:
                logger.info(f"⭐ {user.id} completed chapter {chapter_id}")
            return {
                "id": progress.id,
                "user_id": progress.user_id,
                "chapter_id": progress.chapter_id,
                "is_completed": progress.is_completed,
                "created_at": progress.created_at,
                "updated_at": progress.updated_at,
            }

        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Chapter progress failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def reset_chapter_async(self, user: User, chapter_id: uuid.UUID) -> None:
        try:
            progress = await self.db.scalar(
                select(UserProgress).where(
                    UserProgress.user_id == user.id,
                    UserProgress.chapter_id == chapter_id,
                )
            )
            if not progress:
                raise HTTPException(404, "Not Found")

            # points never go negative
            if progress.is_completed:
                await self.db.execute(
                    update(User)
                    .where(User.id == user.id, User.points >= settings.COMPLETION_POINTS)
                    .values(points=User.points - settings.COMPLETION_POINTS)
                    .execution_options(synchronize_session=False)
                )

            await self.db.delete(progress)
            await self.db.commit()

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Chapter progress reset failed: {e}")
            raise HTTPException(500, "Internal Error")

    # ==============================
    # 📝 HOMEWORK
    # ==============================

    async def get_homework_async(self, user: User, chapter_id: uuid.UUID):
        homework = await self.db.scalar(
            select(HomeworkSubmission).where(
                HomeworkSubmission.student_id == user.id,
                HomeworkSubmission.chapter_id == chapter_id,
            )
        )
        return serialize_homework(homework)

    async def submit_homework_async(
        self,
        user: User,
        course_id: uuid.UUID,
        chapter_id: uuid.UUID,
        schema: ImageSubmission,
    ):
        if not schema.image_url:
            raise HTTPException(400, "Image URL is required")
        try:
            await self._accessible_chapter(user, course_id, chapter_id)

            homework = await self.db.scalar(
                select(HomeworkSubmission).where(
                    HomeworkSubmission.student_id == user.id,
                    HomeworkSubmission.chapter_id == chapter_id,
                )
            )
            if homework is None:
                homework = HomeworkSubmission(student_id=user.id, chapter_id=chapter_id)
                self.db.add(homework)
            homework.image_url = schema.image_url

            await self.db.commit()
            return serialize_homework(homework)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Homework submit failed: {e}")
            raise HTTPException(500, "Internal Error")

    # ==============================
    # 🧩 ACTIVITIES
    # ==============================

    async def get_activities_async(self, user: User, course_id: uuid.UUID, chapter_id: uuid.UUID):
        await self._accessible_chapter(user, course_id, chapter_id)
        activities = (
            await self.db.scalars(
                select(Activity)
                .where(Activity.chapter_id == chapter_id)
                .order_by(Activity.created_at.asc())
            )
        ).all()
        return [serialize_activity(a) for a in activities]

    async def get_activity_submission_async(self, user: User, activity_id: uuid.UUID):
        submission = await self.db.scalar(
            select(ActivitySubmission).where(
                ActivitySubmission.student_id == user.id,
                ActivitySubmission.activity_id == activity_id,
            )
        )
        return serialize_activity_submission(submission)

    async def submit_activity_async(
        self,
        user: User,
        course_id: uuid.UUID,
        chapter_id: uuid.UUID,
        activity_id: uuid.UUID,
        schema: ImageSubmission,
    ):
        if not schema.image_url:
            raise HTTPException(400, "Image URL is required")
        try:
            activity = await self.db.scalar(select(Activity).where(Activity.id == activity_id))
            if not activity or activity.chapter_id != chapter_id:
                raise HTTPException(404, "Activity not found")
            await self._accessible_chapter(user, course_id, chapter_id)

            submission = await self.db.scalar(
                select(ActivitySubmission).where(
                    ActivitySubmission.student_id == user.id,
                    ActivitySubmission.activity_id == activity_id,
                )
            )
            if submission is None:
                submission = ActivitySubmission(student_id=user.id, activity_id=activity_id)
                self.db.add(submission)
            submission.image_url = schema.image_url

            await self.db.commit()
            return serialize_activity_submission(submission)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Activity submit failed: {e}")
            raise HTTPException(500, "Internal Error")
