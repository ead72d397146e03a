from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import PurchaseStatus, UserRole
from app.db.models.database import Course, Purchase, Quiz, QuizResult, User, UserProgress
from app.db.sesson import get_session
from app.services.user.dashboard import average_best_score

RECENT_RESULTS = 5


class ParentService:
    """Read-only view of the students linked to a parent through parent_phone_number."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_children_async(self, parent: User):
        children = (
            await self.db.scalars(
                select(User)
                .options(
                    selectinload(User.purchases)
                    .selectinload(Purchase.course)
                    .options(
                        selectinload(Course.chapters),
                        selectinload(Course.quizzes),
                    ),
                    selectinload(User.user_progress).selectinload(UserProgress.chapter),
                    selectinload(User.quiz_results)
                    .selectinload(QuizResult.quiz)
                    .selectinload(Quiz.course),
                )
                .where(
                    User.parent_phone_number == parent.phone_number,
                    User.role == UserRole.USER.value,
                )
            )
        ).all()
        return [self._child_summary(child) for child in children]

    @staticmethod
    def _child_summary(child: User):
        courses = [
            p.course for p in child.purchases if p.status == PurchaseStatus.ACTIVE.value
        ]
        course_ids = {c.id for c in courses}
        chapters = [ch for c in courses for ch in c.chapters if ch.is_published]
        quizzes = [q for c in courses for q in c.quizzes if q.is_published]
        quiz_ids = {q.id for q in quizzes}

        completed_chapters = sum(
            1 for p in child.user_progress if p.is_completed and p.chapter.course_id in course_ids
        )
        results = sorted(
            (r for r in child.quiz_results if r.quiz_id in quiz_ids),
            key=lambda r: r.submitted_at,
            reverse=True,
        )

        return {
            "id": child.id,
            "full_name": child.full_name,
            "phone_number": child.phone_number,
            "email": child.email,
            "curriculum": child.curriculum,
            "curriculum_type": child.curriculum_type,
            "level": child.level,
            "grade": child.grade,
            "points": child.points or 0,
            "courses_count": len(courses),
            "completed_chapters": completed_chapters,
            "total_chapters": len(chapters),
            "total_quizzes": len(quizzes),
            "completed_quizzes": len({r.quiz_id for r in results}),
            "average_score": average_best_score(results),
            "courses": [
                {
                    "id": c.id,
                    "title": c.title,
                    "image_url": c.image_url,
                    "chapters": [
                        {"id": ch.id, "title": ch.title, "position": ch.position}
                        for ch in c.chapters
                        if ch.is_published
                    ],
                    "quizzes": [
                        {"id": q.id, "title": q.title, "position": q.position}
                        for q in c.quizzes
                        if q.is_published
                    ],
                }
                for c in courses
            ],
            "user_progress": [
                {
                    "is_completed": p.is_completed,
                    "chapter": {"id": p.chapter.id, "course_id": p.chapter.course_id},
                }
                for p in child.user_progress
            ],
            "recent_quiz_results": [
                {
                    "id": r.id,
                    "quiz_id": r.quiz_id,
                    "score": r.score,
                    "total_points": r.total_points,
                    "percentage": r.percentage,
                    "attempt_number": r.attempt_number,
                    "submitted_at": r.submitted_at,
                    "quiz": {
                        "id": r.quiz.id,
                        "title": r.quiz.title,
                        "course": {"title": r.quiz.course.title},
                    },
                }
                for r in results[:RECENT_RESULTS]
            ],
        }
