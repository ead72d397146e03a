from collections import defaultdict

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import UserRole
from app.db.models.database import (
    Chapter,
    Course,
    LiveStream,
    Purchase,
    Question,
    Quiz,
    QuizResult,
    User,
)
from app.db.sesson import get_session


class LecturerService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _count_map(self, model, key) -> dict:
        return dict((await self.db.execute(select(key, func.count(model.id)).group_by(key))).all())

    async def get_teachers_async(self):
        """Every teacher with their courses, quizzes and live streams."""
        teachers = (
            await self.db.scalars(
                select(User)
                .where(User.role == UserRole.TEACHER.value)
                .order_by(User.created_at.desc())
            )
        ).all()
        teacher_ids = [t.id for t in teachers]
        if not teacher_ids:
            return []

        # 🔹 batched loads grouped per teacher
        courses = (
            await self.db.scalars(
                select(Course)
                .where(Course.user_id.in_(teacher_ids))
                .order_by(Course.created_at.desc())
            )
        ).all()
        quizzes = (
            await self.db.scalars(
                select(Quiz)
                .options(selectinload(Quiz.course))
                .join(Course, Course.id == Quiz.course_id)
                .where(Course.user_id.in_(teacher_ids))
                .order_by(Quiz.created_at.desc())
            )
        ).all()
        streams = (
            await self.db.scalars(
                select(LiveStream)
                .options(selectinload(LiveStream.course))
                .join(Course, Course.id == LiveStream.course_id)
                .where(Course.user_id.in_(teacher_ids))
                .order_by(LiveStream.created_at.desc())
            )
        ).all()

        chapter_counts = await self._count_map(Chapter, Chapter.course_id)
        quiz_counts = await self._count_map(Quiz, Quiz.course_id)
        stream_counts = await self._count_map(LiveStream, LiveStream.course_id)
        purchase_counts = await self._count_map(Purchase, Purchase.course_id)
        question_counts = await self._count_map(Question, Question.quiz_id)
        result_counts = await self._count_map(QuizResult, QuizResult.quiz_id)

        by_teacher = defaultdict(lambda: {"courses": [], "quizzes": [], "live_streams": []})
        for c in courses:
            by_teacher[c.user_id]["courses"].append(
                {
                    "id": c.id,
                    "title": c.title,
                    "is_published": c.is_published,
                    "price": c.price,
                    "created_at": c.created_at,
                    "counts": {
                        "chapters": chapter_counts.get(c.id, 0),
                        "quizzes": quiz_counts.get(c.id, 0),
                        "live_streams": stream_counts.get(c.id, 0),
                        "purchases": purchase_counts.get(c.id, 0),
                    },
                }
            )
        for q in quizzes:
            by_teacher[q.course.user_id]["quizzes"].append(
                {
                    "id": q.id,
                    "title": q.title,
                    "is_published": q.is_published,
                    "position": q.position,
                    "course": {"id": q.course.id, "title": q.course.title},
                    "counts": {
                        "questions": question_counts.get(q.id, 0),
                        "quiz_results": result_counts.get(q.id, 0),
                    },
                }
            )
        for s in streams:
            by_teacher[s.course.user_id]["live_streams"].append(
                {
                    "id": s.id,
                    "title": s.title,
                    "is_published": s.is_published,
                    "scheduled_at": s.scheduled_at,
                    "course": {"id": s.course.id, "title": s.course.title},
                    "created_at": s.created_at,
                }
            )

        items = []
        for teacher in teachers:
            content = by_teacher[teacher.id]
            items.append(
                {
                    "id": teacher.id,
                    "full_name": teacher.full_name,
                    "phone_number": teacher.phone_number,
                    "email": teacher.email,
                    "created_at": teacher.created_at,
                    **content,
                    "total_courses": len(content["courses"]),
                    "total_quizzes": len(content["quizzes"]),
                    "total_live_streams": len(content["live_streams"]),
                    "published_courses": sum(c["is_published"] for c in content["courses"]),
                    "published_quizzes": sum(q["is_published"] for q in content["quizzes"]),
                    "published_live_streams": sum(
                        s["is_published"] for s in content["live_streams"]
                    ),
                }
            )
        return items
