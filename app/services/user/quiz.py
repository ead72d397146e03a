import uuid

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import QuestionType
from app.db.models.database import Course, Question, Quiz, QuizAnswer, QuizResult, User
from app.db.sesson import get_session
from app.schemas.lecturer.quiz import QuizSubmit
from app.services.lecturer.quiz import serialize_question, serialize_result
from app.services.shares.subscription_access import SubscriptionAccessService


def is_correct_answer(question: Question, answer: str) -> bool:
    """Short answers compare case-insensitively, choices must match exactly (trimmed)."""
    given = (answer or "").strip()
    expected = (question.correct_answer or "").strip()
    if not given:
        return False
    if question.type == QuestionType.SHORT_ANSWER.value:
        return given.lower() == expected.lower()
    return given == expected


def grade(questions: list[Question], answers: dict) -> tuple[list[dict], int, int, int]:
    """Per-question outcome plus (score, total_points, percentage)."""
    graded = []
    score = 0
    total = 0
    for question in questions:
        given = answers.get(question.id, "")
        correct = is_correct_answer(question, given)
        obtained = question.points if correct else 0
        score += obtained
        total += question.points
        graded.append(
            {
                "question": question,
                "student_answer": given,
                "is_correct": correct,
                "points_obtained": obtained,
            }
        )
    percentage = round(score / total * 100) if total else 0
    return graded, score, total, percentage


class StudentQuizService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db
        self.access = SubscriptionAccessService(db)

    async def _require_access(self, user: User, course_id: uuid.UUID, expired_payload: bool):
        course = await self.db.scalar(
            select(Course).where(Course.id == course_id, Course.is_published.is_(True))
        )
        if not course:
            raise HTTPException(404, "Course not found")

        access = await self.access.get_course_access_async(user.id, course)
        # overdue subscriptions expired by the check stay expired even when access is denied
        await self.db.commit()
        if access["has_access"]:
            return course
        if expired_payload and access.get("subscription_expired"):
            raise HTTPException(
                403,
                {
                    "error": "SUBSCRIPTION_EXPIRED",
                    "subscription_end_date": access["subscription_end_date"].isoformat()
                    if access.get("subscription_end_date")
                    else None,
                },
            )
        raise HTTPException(403, "Course access required")

    async def _published_quiz(self, course_id: uuid.UUID, quiz_id: uuid.UUID) -> Quiz:
        quiz = await self.db.scalar(
            select(Quiz)
            .where(
                Quiz.id == quiz_id,
                Quiz.course_id == course_id,
                Quiz.is_published.is_(True),
            )
            .options(selectinload(Quiz.questions))
        )
        if not quiz:
            raise HTTPException(404, "Quiz not found")
        return quiz

    async def _attempts(self, user: User, quiz_id: uuid.UUID) -> int:
        return (
            await self.db.scalar(
                select(func.count(QuizResult.id)).where(
                    QuizResult.student_id == user.id, QuizResult.quiz_id == quiz_id
                )
            )
            or 0
        )

    async def get_quiz_async(self, user: User, course_id: uuid.UUID, quiz_id: uuid.UUID):
        await self._require_access(user, course_id, expired_payload=True)
        quiz = await self._published_quiz(course_id, quiz_id)

        previous = await self._attempts(user, quiz.id)
        if previous >= quiz.max_attempts:
            raise HTTPException(400, "Maximum attempts reached for this quiz")

        await self.db.commit()
        return {
            "id": quiz.id,
            "course_id": quiz.course_id,
            "title": quiz.title,
            "description": quiz.description,
            "timer": quiz.timer,
            "questions": [serialize_question(q, with_answer=False) for q in quiz.questions],
            "current_attempt": previous + 1,
            "max_attempts": quiz.max_attempts,
            "previous_attempts": previous,
        }

    async def get_quiz_info_async(self, user: User, course_id: uuid.UUID, quiz_id: uuid.UUID):
        await self._require_access(user, course_id, expired_payload=False)
        quiz = await self._published_quiz(course_id, quiz_id)
        previous = await self._attempts(user, quiz.id)
        await self.db.commit()
        return {
            "id": quiz.id,
            "title": quiz.title,
            "max_attempts": quiz.max_attempts,
            "timer": quiz.timer,
            "current_attempt": previous + 1,
            "previous_attempts": previous,
        }

    async def submit_quiz_async(
        self,
        user: User,
        course_id: uuid.UUID,
        quiz_id: uuid.UUID,
        schema: QuizSubmit,
    ):
        try:
            await self._require_access(user, course_id, expired_payload=True)
            quiz = await self._published_quiz(course_id, quiz_id)

            previous = await self._attempts(user, quiz.id)
            if previous >= quiz.max_attempts:
                raise HTTPException(400, "Maximum attempts reached for this quiz")

            answers = {a.question_id: a.answer for a in schema.answers}
            graded, score, total, percentage = grade(quiz.questions, answers)

            result = QuizResult(
                student_id=user.id,
                quiz_id=quiz.id,
                course_id=course_id,
                score=score,
                total_points=total,
                percentage=percentage,
                attempt_number=previous + 1,
                answers=[
                    QuizAnswer(
                        question_id=g["question"].id,
                        student_answer=g["student_answer"],
                        correct_answer=g["question"].correct_answer,
                        is_correct=g["is_correct"],
                        points_obtained=g["points_obtained"],
                    )
                    for g in graded
                ],
            )
            self.db.add(result)
            await self.db.commit()
            logger.info(
                f"📝 {user.id} submitted quiz {quiz.id} attempt {result.attempt_number}: "
                f"{score}/{total}"
            )
            return serialize_result(result)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Quiz submit failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def get_latest_result_async(self, user: User, course_id: uuid.UUID, quiz_id: uuid.UUID):
        await self._require_access(user, course_id, expired_payload=False)
        result = await self.db.scalar(
            select(QuizResult)
            .where(QuizResult.student_id == user.id, QuizResult.quiz_id == quiz_id)
            .options(selectinload(QuizResult.answers))
            .order_by(QuizResult.attempt_number.desc())
            .limit(1)
        )
        if not result:
            raise HTTPException(404, "Quiz result not found")

        questions = {
            q.id: q
            for q in (
                await self.db.scalars(select(Question).where(Question.quiz_id == quiz_id))
            ).all()
        }
        data = serialize_result(result)
        for answer in data["answers"]:
            question = questions.get(answer["question_id"])
            answer["question"] = (
                {
                    "text": question.text,
                    "type": question.type,
                    "points": question.points,
                    "position": question.position,
                }
                if question
                else None
            )
        data["answers"].sort(
            key=lambda a: a["question"]["position"] if a["question"] else 0
        )
        await self.db.commit()
        return data
