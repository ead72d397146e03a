import uuid
from typing import Optional

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import PurchaseStatus
from app.db.models.database import (
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
from app.services.lecturer.chapter import serialize_attachment, serialize_chapter
from app.services.lecturer.course import serialize_course
from app.services.shares.subscription_access import SubscriptionAccessService


def course_progress(
    chapter_ids: list[uuid.UUID],
    quiz_ids: list[uuid.UUID],
    completed_chapters: set,
    attempted_quizzes: set,
) -> float:
    """Completed chapters plus attempted quizzes over all published content, in percent."""
    total = len(chapter_ids) + len(quiz_ids)
    if total == 0:
        return 0
    done = sum(1 for cid in chapter_ids if cid in completed_chapters) + sum(
        1 for qid in quiz_ids if qid in attempted_quizzes
    )
    return done / total * 100


class CoursesService:
    """Published course catalog as seen by students."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db
        self.access = SubscriptionAccessService(db)

    async def _published_course(self, course_id: uuid.UUID) -> Course:
        course = await self.db.scalar(
            select(Course).where(Course.id == course_id, Course.is_published.is_(True))
        )
        if not course:
            raise HTTPException(404, "Not found")
        return course

    async def get_courses_async(self, user: Optional[User], include_progress: bool):
        courses = (
            await self.db.scalars(
                select(Course)
                .where(Course.is_published.is_(True))
                .options(
                    selectinload(Course.user),
                    selectinload(Course.chapters),
                    selectinload(Course.quizzes),
                )
                .order_by(Course.created_at.desc())
            )
        ).all()

        published_chapters = {
            c.id: [ch.id for ch in c.chapters if ch.is_published] for c in courses
        }
        published_quizzes = {
            c.id: [q.id for q in c.quizzes if q.is_published] for c in courses
        }

        completed_chapters: set = set()
        attempted_quizzes: set = set()
        purchased: set = set()
        if include_progress and user:
            all_chapter_ids = [i for ids in published_chapters.values() for i in ids]
            all_quiz_ids = [i for ids in published_quizzes.values() for i in ids]
            completed_chapters = set(
                (
                    await self.db.scalars(
                        select(UserProgress.chapter_id).where(
                            UserProgress.user_id == user.id,
                            UserProgress.chapter_id.in_(all_chapter_ids),
                            UserProgress.is_completed.is_(True),
                        )
                    )
                ).all()
            )
            attempted_quizzes = set(
                (
                    await self.db.scalars(
                        select(QuizResult.quiz_id).where(
                            QuizResult.student_id == user.id,
                            QuizResult.quiz_id.in_(all_quiz_ids),
                        )
                    )
                ).all()
            )
            purchased = set(
                (
                    await self.db.scalars(
                        select(Purchase.course_id).where(
                            Purchase.user_id == user.id,
                            Purchase.status == PurchaseStatus.ACTIVE.value,
                        )
                    )
                ).all()
            )

        items = []
        for course in courses:
            progress = 0
            if course.id in purchased:
                progress = course_progress(
                    published_chapters[course.id],
                    published_quizzes[course.id],
                    completed_chapters,
                    attempted_quizzes,
                )
            items.append(
                {
                    **serialize_course(course),
                    "user": {
                        "id": course.user.id,
                        "full_name": course.user.full_name,
                        "image_url": course.user.image_url,
                    }
                    if course.user
                    else None,
                    "chapters": [{"id": i} for i in published_chapters[course.id]],
                    "quizzes": [{"id": i} for i in published_quizzes[course.id]],
                    "progress": progress,
                }
            )
        return items

    async def get_course_async(self, user: User, course_id: uuid.UUID):
        course = await self.db.scalar(
            select(Course)
            .where(Course.id == course_id, Course.is_published.is_(True))
            .options(selectinload(Course.chapters).selectinload(Chapter.attachments))
        )
        if not course:
            raise HTTPException(404, "Not found")

        purchases = (
            await self.db.scalars(
                select(Purchase).where(
                    Purchase.user_id == user.id, Purchase.course_id == course.id
                )
            )
        ).all()

        return {
            **serialize_course(course),
            "chapters": [
                {
                    **serialize_chapter(ch),
                    "attachments": [serialize_attachment(a) for a in ch.attachments],
                }
                for ch in course.chapters
                if ch.is_published
            ],
            "purchases": [
                {
                    "id": p.id,
                    "status": p.status,
                    "price_paid": p.price_paid,
                    "created_at": p.created_at,
                }
                for p in purchases
            ],
        }

    async def get_course_access_async(self, user: User, course_id: uuid.UUID):
        try:
            course = await self._published_course(course_id)
            result = await self.access.get_course_access_async(user.id, course)
            # overdue subscriptions found during the check are expired for good
            await self.db.commit()
            return result
        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Course access check failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def get_course_content_async(self, user: Optional[User], course_id: uuid.UUID):
        """Published chapters, quizzes and livestreams merged by position."""
        chapters = (
            await self.db.scalars(
                select(Chapter).where(
                    Chapter.course_id == course_id, Chapter.is_published.is_(True)
                )
            )
        ).all()
        quizzes = (
            await self.db.scalars(
                select(Quiz).where(Quiz.course_id == course_id, Quiz.is_published.is_(True))
            )
        ).all()
        streams = (
            await self.db.scalars(
                select(LiveStream).where(
                    LiveStream.course_id == course_id, LiveStream.is_published.is_(True)
                )
            )
        ).all()

        completed: set = set()
        results: dict = {}
        if user:
            completed = set(
                (
                    await self.db.scalars(
                        select(UserProgress.chapter_id).where(
                            UserProgress.user_id == user.id,
                            UserProgress.chapter_id.in_([c.id for c in chapters]),
                            UserProgress.is_completed.is_(True),
                        )
                    )
                ).all()
            )
            for r in (
                await self.db.scalars(
                    select(QuizResult)
                    .where(
                        QuizResult.student_id == user.id,
                        QuizResult.quiz_id.in_([q.id for q in quizzes]),
                    )
                    .order_by(QuizResult.attempt_number.asc())
                )
            ).all():
                results.setdefault(r.quiz_id, []).append(
                    {
                        "id": r.id,
                        "score": r.score,
                        "total_points": r.total_points,
                        "percentage": r.percentage,
                    }
                )

        content = [
            {
                "type": "chapter",
                "id": c.id,
                "title": c.title,
                "position": c.position,
                "is_free": c.is_free,
                "is_completed": c.id in completed,
            }
            for c in chapters
        ]
        content += [
            {
                "type": "quiz",
                "id": q.id,
                "title": q.title,
                "position": q.position,
                "quiz_results": results.get(q.id, []),
            }
            for q in quizzes
        ]
        content += [
            {
                "type": "livestream",
                "id": s.id,
                "title": s.title,
                "position": s.position,
                "scheduled_at": s.scheduled_at,
                "meeting_type": s.meeting_type,
            }
            for s in streams
        ]
        return sorted(content, key=lambda item: item["position"])
