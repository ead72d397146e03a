import uuid

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import PurchaseStatus, UserRole
from app.db.models.database import (
    Chapter,
    Course,
    Purchase,
    User,
    UserProgress,
)
from app.db.sesson import get_session
from app.schemas.auth.user import TeacherCreateStudent
from app.services.shares.auth import AuthService


def _count(column, group_column):
    return (
        select(group_column.label("user_id"), func.count(column).label("total"))
        .group_by(group_column)
        .subquery()
    )


def serialize_course_brief(course: Course):
    return {
        "id": course.id,
        "title": course.title,
        "price": course.price,
        "user_id": course.user_id,
        "is_free": course.is_free,
    }


class TeacherStudentsService:
    """Student accounts as seen from the teacher dashboard."""

    def __init__(
        self,
        db: AsyncSession = Depends(get_session),
        auth: AuthService = Depends(AuthService),
    ):
        self.db = db
        self.auth = auth

    async def create_account_async(self, teacher: User, schema: TeacherCreateStudent):
        try:
            student = await self.auth.create_student_account_async(schema, require_parent=False)
            await self.db.commit()
            logger.info(f"🎓 Student {student.id} created by teacher {teacher.id}")
            return {
                "success": True,
                "user": {
                    "id": student.id,
                    "full_name": student.full_name,
                    "phone_number": student.phone_number,
                    "role": student.role,
                },
            }

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Teacher account creation failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def get_users_async(self, user: User):
        """
        Teachers get the students holding an ACTIVE purchase in one of their
        published courses. Staff get every USER, TEACHER and ADMIN account.
        """
        if user.role == UserRole.TEACHER.value:
            student_ids = (
                select(Purchase.user_id)
                .join(Course, Course.id == Purchase.course_id)
                .where(
                    Course.user_id == user.id,
                    Course.is_published.is_(True),
                    Purchase.status == PurchaseStatus.ACTIVE.value,
                )
                .distinct()
            )
            filters = [User.id.in_(student_ids), User.role == UserRole.USER.value]
        else:
            filters = [
                User.role.in_(
                    [UserRole.USER.value, UserRole.TEACHER.value, UserRole.ADMIN.value]
                )
            ]

        courses = _count(Course.id, Course.user_id)
        purchases = _count(Purchase.id, Purchase.user_id)
        progress = _count(UserProgress.id, UserProgress.user_id)
        rows = (
            await self.db.execute(
                select(
                    User,
                    func.coalesce(courses.c.total, 0),
                    func.coalesce(purchases.c.total, 0),
                    func.coalesce(progress.c.total, 0),
                )
                .join(courses, courses.c.user_id == User.id, isouter=True)
                .join(purchases, purchases.c.user_id == User.id, isouter=True)
                .join(progress, progress.c.user_id == User.id, isouter=True)
                .where(*filters)
                .order_by(User.created_at.desc())
            )
        ).all()
        return [
            {
                "id": u.id,
                "full_name": u.full_name,
                "phone_number": u.phone_number,
                "email": u.email,
                "curriculum": u.curriculum,
                "curriculum_type": u.curriculum_type,
                "level": u.level,
                "language": u.language,
                "grade": u.grade,
                "role": u.role,
                "balance": u.balance,
                "points": u.points,
                "created_at": u.created_at,
                "updated_at": u.updated_at,
                "counts": {
                    "courses": course_count,
                    "purchases": purchase_count,
                    "user_progress": progress_count,
                },
            }
            for u, course_count, purchase_count, progress_count in rows
        ]

    async def get_user_progress_async(self, user: User, student_id: uuid.UUID):
        """
        Progress, purchases and the reference chapter list of one student.
        A teacher only sees rows from courses they own; staff see everything,
        with chapters taken from the student's purchased courses.
        """
        target = await self.db.scalar(select(User.id).where(User.id == student_id))
        if not target:
            raise HTTPException(404, "User not found")

        is_teacher = user.role == UserRole.TEACHER.value
        owned_ids = []
        if is_teacher:
            owned_ids = list(
                (await self.db.scalars(select(Course.id).where(Course.user_id == user.id))).all()
            )

        purchase_stmt = (
            select(Purchase)
            .options(selectinload(Purchase.course))
            .where(Purchase.user_id == student_id)
            .order_by(Purchase.created_at.desc())
        )
        progress_stmt = (
            select(UserProgress)
            .options(selectinload(UserProgress.chapter).selectinload(Chapter.course))
            .where(UserProgress.user_id == student_id)
            .order_by(UserProgress.updated_at.desc())
        )
        if is_teacher:
            purchase_stmt = purchase_stmt.where(Purchase.course_id.in_(owned_ids))
            progress_stmt = progress_stmt.join(
                Chapter, Chapter.id == UserProgress.chapter_id
            ).where(Chapter.course_id.in_(owned_ids))

        purchases = (await self.db.scalars(purchase_stmt)).all()
        progress = (await self.db.scalars(progress_stmt)).all()

        course_ids = owned_ids if is_teacher else [p.course_id for p in purchases]
        chapters = []
        if course_ids:
            chapters = (
                await self.db.scalars(
                    select(Chapter)
                    .options(selectinload(Chapter.course))
                    .join(Course, Course.id == Chapter.course_id)
                    .where(Chapter.course_id.in_(course_ids), Chapter.is_published.is_(True))
                    .order_by(Course.title.asc(), Chapter.position.asc())
                )
            ).all()

        return {
            "user_progress": [
                {
                    "id": p.id,
                    "chapter_id": p.chapter_id,
                    "is_completed": p.is_completed,
                    "updated_at": p.updated_at,
                    "chapter": {
                        "id": p.chapter.id,
                        "title": p.chapter.title,
                        "position": p.chapter.position,
                        "course": {"id": p.chapter.course.id, "title": p.chapter.course.title},
                    },
                }
                for p in progress
            ],
            "purchases": [
                {
                    "id": p.id,
                    "course_id": p.course_id,
                    "status": p.status,
                    "price_paid": p.price_paid,
                    "created_at": p.created_at,
                    "course": serialize_course_brief(p.course),
                }
                for p in purchases
            ],
            "all_chapters": [
                {
                    "id": c.id,
                    "title": c.title,
                    "position": c.position,
                    "course": {"id": c.course.id, "title": c.course.title},
                }
                for c in chapters
            ],
        }
