import uuid

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import UserRole
from app.db.models.database import (
    Activity,
    ActivitySubmission,
    Chapter,
    Course,
    HomeworkSubmission,
    User,
)
from app.db.sesson import get_session
from app.schemas.lecturer.activity import ActivityCreate, HomeworkCorrection
from app.services.user.learning import (
    serialize_activity,
    serialize_activity_submission,
    serialize_homework,
)


def student_brief(student: User | None):
    if student is None:
        return None
    return {
        "id": student.id,
        "full_name": student.full_name,
        "email": student.email,
        "phone_number": student.phone_number,
    }


def chapter_brief(chapter: Chapter):
    return {
        "id": chapter.id,
        "title": chapter.title,
        "position": chapter.position,
        "course": {"id": chapter.course.id, "title": chapter.course.title}
        if chapter.course
        else None,
    }


def serialize_homework_detail(homework: HomeworkSubmission):
    return {
        **serialize_homework(homework),
        "student": student_brief(homework.student),
        "chapter": chapter_brief(homework.chapter),
    }


def serialize_submission_detail(submission: ActivitySubmission):
    activity = submission.activity
    return {
        **serialize_activity_submission(submission),
        "student": student_brief(submission.student),
        "activity": {
            "id": activity.id,
            "title": activity.title,
            "description": activity.description,
            "chapter": chapter_brief(activity.chapter),
        },
    }


class TeacherActivityService:
    """Activities and homework review. Teachers are limited to courses they own."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _owned_chapter(self, user: User, chapter_id: uuid.UUID) -> Chapter:
        chapter = await self.db.scalar(
            select(Chapter)
            .options(selectinload(Chapter.course))
            .where(Chapter.id == chapter_id)
        )
        if not chapter:
            raise HTTPException(404, "Chapter not found")
        if user.role == UserRole.TEACHER.value and chapter.course.user_id != user.id:
            raise HTTPException(403, "Forbidden - You don't own this course")
        return chapter

    async def _owned_course_ids(self, user: User) -> list[uuid.UUID]:
        return list(
            (await self.db.scalars(select(Course.id).where(Course.user_id == user.id))).all()
        )

    # ==============================
    # 🧩 ACTIVITIES
    # ==============================

    async def get_activities_async(self, user: User, chapter_id: uuid.UUID):
        await self._owned_chapter(user, chapter_id)

        counts = (
            select(
                ActivitySubmission.activity_id,
                func.count(ActivitySubmission.id).label("submissions"),
            )
            .group_by(ActivitySubmission.activity_id)
            .subquery()
        )
        rows = (
            await self.db.execute(
                select(Activity, func.coalesce(counts.c.submissions, 0))
                .join(counts, counts.c.activity_id == Activity.id, isouter=True)
                .where(Activity.chapter_id == chapter_id)
                .order_by(Activity.created_at.asc())
            )
        ).all()
        return [
            {**serialize_activity(activity), "submission_count": submissions}
            for activity, submissions in rows
        ]

    async def create_activity_async(
        self, user: User, chapter_id: uuid.UUID, schema: ActivityCreate
    ):
        try:
            await self._owned_chapter(user, chapter_id)
            if not schema.title or not schema.title.strip():
                raise HTTPException(400, "Title is required")

            activity = Activity(
                chapter_id=chapter_id,
                title=schema.title.strip(),
                description=schema.description,
                is_required=schema.is_required,
            )
            self.db.add(activity)
            await self.db.commit()
            logger.info(f"📝 Activity {activity.id} added to chapter {chapter_id}")
            return serialize_activity(activity)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Activity create failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def get_activity_submissions_async(self, user: User, activity_id: uuid.UUID):
        activity = await self.db.scalar(
            select(Activity)
            .options(selectinload(Activity.chapter).selectinload(Chapter.course))
            .where(Activity.id == activity_id)
        )
        if not activity:
            raise HTTPException(404, "Activity not found")
        if user.role == UserRole.TEACHER.value and activity.chapter.course.user_id != user.id:
            raise HTTPException(403, "Forbidden - You don't own this course")

        submissions = (
            await self.db.scalars(
                select(ActivitySubmission)
                .options(
                    selectinload(ActivitySubmission.student),
                    selectinload(ActivitySubmission.activity)
                    .selectinload(Activity.chapter)
                    .selectinload(Chapter.course),
                )
                .where(ActivitySubmission.activity_id == activity_id)
                .order_by(ActivitySubmission.created_at.desc())
            )
        ).all()
        return [serialize_submission_detail(s) for s in submissions]

    # ==============================
    # 📚 HOMEWORK
    # ==============================

    def _homework_query(self):
        return select(HomeworkSubmission).options(
            selectinload(HomeworkSubmission.student),
            selectinload(HomeworkSubmission.chapter).selectinload(Chapter.course),
        )

    async def get_homework_async(self, user: User, chapter_id: uuid.UUID):
        await self._owned_chapter(user, chapter_id)
        submissions = (
            await self.db.scalars(
                self._homework_query()
                .where(HomeworkSubmission.chapter_id == chapter_id)
                .order_by(HomeworkSubmission.created_at.desc())
            )
        ).all()
        return [serialize_homework_detail(h) for h in submissions]

    async def correct_homework_async(
        self, user: User, chapter_id: uuid.UUID, schema: HomeworkCorrection
    ):
        if not schema.homework_id or not schema.corrected_image_url:
            raise HTTPException(400, "Homework ID and corrected image URL are required")
        try:
            homework = await self.db.scalar(
                self._homework_query().where(
                    HomeworkSubmission.id == schema.homework_id,
                    HomeworkSubmission.chapter_id == chapter_id,
                )
            )
            if not homework:
                raise HTTPException(404, "Homework submission not found")
            if (
                user.role == UserRole.TEACHER.value
                and homework.chapter.course.user_id != user.id
            ):
                raise HTTPException(403, "Forbidden - You don't own this course")

            # JSON column: assign a new list so the change is flushed
            homework.corrected_image_urls = [
                *(homework.corrected_image_urls or []),
                schema.corrected_image_url,
            ]
            await self.db.commit()
            logger.info(f"✅ Homework {homework.id} corrected by {user.id}")
            return serialize_homework_detail(homework)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Homework correction failed: {e}")
            raise HTTPException(500, "Internal Error")

    # ==============================
    # 🎓 STUDENT VIEWS
    # ==============================

    async def get_student_homework_async(self, user: User, student_id: uuid.UUID):
        stmt = (
            self._homework_query()
            .join(Chapter, Chapter.id == HomeworkSubmission.chapter_id)
            .join(Course, Course.id == Chapter.course_id)
            .where(HomeworkSubmission.student_id == student_id)
        )
        if user.role == UserRole.TEACHER.value:
            stmt = stmt.where(Course.user_id == user.id)

        submissions = (
            await self.db.scalars(
                stmt.order_by(
                    Course.title.asc(),
                    Chapter.position.asc(),
                    HomeworkSubmission.created_at.desc(),
                )
            )
        ).all()
        return [serialize_homework_detail(h) for h in submissions]

    async def get_student_activities_async(self, user: User, student_id: uuid.UUID):
        stmt = (
            select(ActivitySubmission)
            .options(
                selectinload(ActivitySubmission.student),
                selectinload(ActivitySubmission.activity)
                .selectinload(Activity.chapter)
                .selectinload(Chapter.course),
            )
            .where(ActivitySubmission.student_id == student_id)
        )
        if user.role == UserRole.TEACHER.value:
            course_ids = await self._owned_course_ids(user)
            if not course_ids:
                return []
            stmt = (
                stmt.join(Activity, Activity.id == ActivitySubmission.activity_id)
                .join(Chapter, Chapter.id == Activity.chapter_id)
                .where(Chapter.course_id.in_(course_ids))
            )

        submissions = (
            await self.db.scalars(stmt.order_by(ActivitySubmission.created_at.desc()))
        ).all()
        return [serialize_submission_detail(s) for s in submissions]
