import uuid
from typing import Optional

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import STAFF_ROLES, UserRole
from app.db.models.database import Chapter, Course, LiveStream, Quiz, User
from app.db.sesson import get_session
from app.schemas.lecturer.courses import (
    TARGET_FIELDS,
    CourseCreate,
    CourseCreateForUser,
    CourseUpdate,
)
from app.services.shares.subscription_access import SubscriptionAccessService

DEFAULT_COURSE_TITLE = "Untitled course"


def serialize_course(course: Course):
    return {
        "id": course.id,
        "user_id": course.user_id,
        "title": course.title,
        "description": course.description,
        "image_url": course.image_url,
        "price": course.price,
        "is_free": course.is_free,
        "is_published": course.is_published,
        "target_curriculum": course.target_curriculum,
        "target_curriculum_type": course.target_curriculum_type,
        "target_level": course.target_level,
        "target_language": course.target_language,
        "target_grade": course.target_grade,
        "created_at": course.created_at,
        "updated_at": course.updated_at,
    }


async def get_managed_course(
    db: AsyncSession,
    user: User,
    course_id: uuid.UUID,
    manager_roles: Optional[list[str]] = None,
    options: tuple = (),
) -> Optional[Course]:
    """Course the user may edit: their own, or any course for manager_roles."""
    manager_roles = manager_roles if manager_roles is not None else [UserRole.ADMIN.value]
    stmt = select(Course).where(Course.id == course_id)
    if user.role not in manager_roles:
        stmt = stmt.where(Course.user_id == user.id)
    if options:
        stmt = stmt.options(*options)
    return await db.scalar(stmt)


class CourseService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db
        self.access = SubscriptionAccessService(db)

    async def create_course_async(self, user: User, schema: CourseCreate):
        try:
            course = Course(user_id=user.id, title=schema.title.strip(), is_free=schema.is_free)
            self.db.add(course)
            await self.db.commit()
            logger.info(f"📚 Course {course.id} created by {user.id}")
            return serialize_course(course)
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Course create failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def create_course_for_user_async(self, staff: User, schema: CourseCreateForUser):
        try:
            target = await self.db.scalar(select(User).where(User.id == schema.target_user_id))
            if not target:
                raise HTTPException(404, "User not found")
            if target.role not in (
                UserRole.TEACHER.value,
                UserRole.ADMIN.value,
                UserRole.SUPERVISOR.value,
            ):
                raise HTTPException(
                    400, "Courses can only be created for teachers, admins or supervisors"
                )

            course = Course(
                user_id=target.id,
                title=(schema.title or "").strip() or DEFAULT_COURSE_TITLE,
            )
            self.db.add(course)
            await self.db.commit()
            logger.info(f"📚 Course {course.id} created for {target.id} by {staff.id}")
            return serialize_course(course)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Course create-for-user failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def update_course_async(self, user: User, course_id: uuid.UUID, schema: CourseUpdate):
        try:
            course = await get_managed_course(self.db, user, course_id)
            if not course:
                raise HTTPException(404, "Course not found or unauthorized")

            values = schema.model_dump(exclude_unset=True)
            targets_changed = any(
                field in values and values[field] != getattr(course, field)
                for field in TARGET_FIELDS
            )
            for field, value in values.items():
                setattr(course, field, value)

            granted = 0
            if course.is_published and targets_changed:
                granted = await self.access.grant_course_access_to_subscriptions_async(course)

            await self.db.commit()
            return {**serialize_course(course), "courses_granted": granted}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Course update failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def delete_course_async(self, user: User, course_id: uuid.UUID):
        try:
            course = await self.db.scalar(select(Course).where(Course.id == course_id))
            if not course:
                raise HTTPException(404, "Course not found")
            if course.user_id != user.id and user.role != UserRole.ADMIN.value:
                raise HTTPException(403, "Forbidden")

            await self.db.delete(course)
            await self.db.commit()
            logger.info(f"🗑 Course {course_id} deleted by {user.id}")
            return {"success": True}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Course delete failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def toggle_publish_async(self, user: User, course_id: uuid.UUID):
        """Publish an unpublished course (after completeness checks) or unpublish it."""
        try:
            course = await get_managed_course(
                self.db, user, course_id, options=(selectinload(Course.chapters),)
            )
            if not course:
                raise HTTPException(404, "Course not found")

            granted = 0
            if course.is_published:
                course.is_published = False
            else:
                has_published_chapter = any(c.is_published for c in course.chapters)
                if (
                    not course.title
                    or not course.description
                    or not course.image_url
                    or not has_published_chapter
                ):
                    raise HTTPException(401, "Missing required fields")
                course.is_published = True
                granted = await self.access.grant_course_access_to_subscriptions_async(course)

            await self.db.commit()
            logger.info(f"📣 Course {course.id} published={course.is_published}")
            return {**serialize_course(course), "courses_granted": granted}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Course publish failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def get_teacher_courses_async(self, user: User):
        stmt = (
            select(Course)
            .options(selectinload(Course.chapters), selectinload(Course.quizzes))
            .order_by(Course.created_at.desc())
        )
        if user.role not in STAFF_ROLES:
            stmt = stmt.where(Course.user_id == user.id)

        courses = (await self.db.scalars(stmt)).all()
        return [
            {
                **serialize_course(course),
                "chapters": [
                    {
                        "id": c.id,
                        "title": c.title,
                        "is_published": c.is_published,
                        "position": c.position,
                    }
                    for c in course.chapters
                ],
                "quizzes": [
                    {
                        "id": q.id,
                        "title": q.title,
                        "is_published": q.is_published,
                        "position": q.position,
                    }
                    for q in course.quizzes
                ],
            }
            for course in courses
        ]

    async def get_own_courses_async(self, user: User):
        courses = (
            await self.db.scalars(
                select(Course)
                .where(Course.user_id == user.id)
                .order_by(Course.created_at.desc())
            )
        ).all()
        return [serialize_course(c) for c in courses]

    async def get_all_published_async(self):
        rows = (
            await self.db.execute(
                select(Course.id, Course.title, Course.is_published)
                .where(Course.is_published.is_(True))
                .order_by(Course.created_at.desc())
            )
        ).all()
        return [
            {"id": row.id, "title": row.title, "is_published": row.is_published}
            for row in rows
        ]


async def next_content_position(db: AsyncSession, course_id: uuid.UUID) -> int:
    """One past the highest position used by the course's chapters, quizzes and livestreams."""
    positions = [
        await db.scalar(select(func.max(model.position)).where(model.course_id == course_id))
        for model in (Chapter, Quiz, LiveStream)
    ]
    return max((p or 0) for p in positions) + 1
