from datetime import timedelta

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import PurchaseStatus
from app.db.models.database import (
    Certificate,
    Chapter,
    Course,
    LiveStream,
    Purchase,
    Quiz,
    QuizResult,
    User,
    UserProgress,
)
from app.db.sesson import get_session
from app.libs.formats.datetime import now as get_now
from app.services.lecturer.livestream import is_expired
from app.services.user.courses import course_progress

NEW_CONTENT_WINDOW = timedelta(hours=24)
NEW_CONTENT_PER_KIND = 10
NEW_CONTENT_LIMIT = 15


def average_best_score(results) -> int:
    """Mean of the best percentage per quiz, rounded; 0 without attempts."""
    best = {}
    for r in results:
        if r.percentage > best.get(r.quiz_id, -1):
            best[r.quiz_id] = r.percentage
    return round(sum(best.values()) / len(best)) if best else 0


def _course_item(course: Course):
    return {"course_id": course.id, "course_title": course.title, "course_image": course.image_url}


class StudentDashboardService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _purchased_courses(self, user: User):
        return (
            await self.db.scalars(
                select(Course)
                .options(selectinload(Course.chapters), selectinload(Course.quizzes))
                .join(Purchase, Purchase.course_id == Course.id)
                .where(
                    Purchase.user_id == user.id,
                    Purchase.status == PurchaseStatus.ACTIVE.value,
                )
                .order_by(Course.created_at.desc())
            )
        ).all()

    async def get_dashboard_async(self, user: User):
        results = (
            await self.db.scalars(select(QuizResult).where(QuizResult.student_id == user.id))
        ).all()

        last_progress = await self.db.scalar(
            select(UserProgress)
            .options(selectinload(UserProgress.chapter).selectinload(Chapter.course))
            .where(UserProgress.user_id == user.id, UserProgress.is_completed.is_(False))
            .order_by(UserProgress.updated_at.desc())
            .limit(1)
        )

        courses = await self._purchased_courses(user)
        chapter_ids = {c.id for course in courses for c in course.chapters if c.is_published}
        quiz_ids = {q.id for course in courses for q in course.quizzes if q.is_published}

        completed = set(
            (
                await self.db.scalars(
                    select(UserProgress.chapter_id).where(
                        UserProgress.user_id == user.id,
                        UserProgress.is_completed.is_(True),
                    )
                )
            ).all()
        ) & chapter_ids
        attempted = {r.quiz_id for r in results} & quiz_ids

        courses_with_progress = []
        for course in courses:
            published_chapters = [c.id for c in course.chapters if c.is_published]
            published_quizzes = [q.id for q in course.quizzes if q.is_published]
            courses_with_progress.append(
                {
                    "id": course.id,
                    "title": course.title,
                    "description": course.description,
                    "image_url": course.image_url,
                    "price": course.price,
                    "chapters": [{"id": cid} for cid in published_chapters],
                    "quizzes": [{"id": qid} for qid in published_quizzes],
                    "progress": course_progress(
                        published_chapters, published_quizzes, completed, attempted
                    ),
                }
            )

        last_watched = None
        if last_progress:
            chapter = last_progress.chapter
            last_watched = {
                "id": chapter.id,
                "title": chapter.title,
                "course_id": chapter.course_id,
                "position": chapter.position,
                "course": {"title": chapter.course.title, "image_url": chapter.course.image_url},
            }

        return {
            "user": {
                "id": user.id,
                "full_name": user.full_name,
                "email": user.email,
                "image_url": user.image_url,
                "role": user.role,
                "balance": user.balance,
                "points": user.points,
            },
            "last_watched_chapter": last_watched,
            "student_stats": {
                "total_courses": len(courses),
                "total_chapters": len(chapter_ids),
                "completed_chapters": len(completed),
                "total_quizzes": len(quiz_ids),
                "completed_quizzes": len(attempted),
                "average_score": average_best_score(results),
            },
            "courses_with_progress": courses_with_progress,
        }

    async def get_new_content_async(self, user: User):
        """Content published or updated in the last 24 hours of purchased courses, newest first."""
        course_ids = select(Purchase.course_id).where(
            Purchase.user_id == user.id, Purchase.status == PurchaseStatus.ACTIVE.value
        )
        now = get_now()
        since = now - NEW_CONTENT_WINDOW

        items = []
        for model, kind, segment in (
            (Chapter, "chapter", "chapters"),
            (Quiz, "quiz", "quizzes"),
            (LiveStream, "livestream", "livestreams"),
        ):
            rows = (
                await self.db.scalars(
                    select(model)
                    .options(selectinload(model.course))
                    .where(
                        model.course_id.in_(course_ids),
                        model.is_published.is_(True),
                        model.updated_at >= since,
                    )
                    .order_by(model.updated_at.desc())
                    .limit(NEW_CONTENT_PER_KIND)
                )
            ).all()
            for row in rows:
                item = {
                    "id": row.id,
                    "type": kind,
                    "title": row.title,
                    "description": row.description,
                    **_course_item(row.course),
                    "created_at": row.updated_at,
                    "link": f"/courses/{row.course_id}/{segment}/{row.id}",
                }
                if kind == "livestream":
                    item.update(scheduled_at=row.scheduled_at, is_expired=is_expired(row, now))
                items.append(item)

        certificates = (
            await self.db.scalars(
                select(Certificate)
                .options(selectinload(Certificate.teacher))
                .where(Certificate.student_id == user.id, Certificate.created_at >= since)
                .order_by(Certificate.created_at.desc())
                .limit(NEW_CONTENT_PER_KIND)
            )
        ).all()
        for cert in certificates:
            assigner = cert.teacher.full_name if cert.teacher else None
            items.append(
                {
                    "id": cert.id,
                    "type": "certificate",
                    "title": cert.title or "New Certificate",
                    "description": cert.description or f"Certificate assigned by {assigner}",
                    "assigner_name": assigner,
                    "image_url": cert.image_url,
                    "created_at": cert.created_at,
                    "link": "/dashboard/certificates",
                }
            )

        items.sort(key=lambda i: i["created_at"], reverse=True)
        return {"new_content": items[:NEW_CONTENT_LIMIT]}
