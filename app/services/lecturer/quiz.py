import uuid
from typing import List

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import STAFF_ROLES, QuestionType
from app.db.models.database import Course, Question, Quiz, QuizResult, User
from app.db.sesson import get_session
from app.schemas.lecturer.quiz import QuestionIn, QuizCreate, QuizPublish, QuizUpdate
from app.services.lecturer.course import get_managed_course, next_content_position


def build_question(schema: QuestionIn, position: int) -> Question:
    """
    Question row from input:
    - multiple choice keeps trimmed, non-empty options
    - a numeric correct answer is the index of the option text
    """
    options = None
    correct = schema.correct_answer
    if schema.type == QuestionType.MULTIPLE_CHOICE:
        options = [o.strip() for o in (schema.options or []) if o and o.strip()]
        if isinstance(correct, int):
            correct = options[correct] if 0 <= correct < len(options) else ""
    elif schema.type == QuestionType.TRUE_FALSE:
        options = schema.options or None

    return Question(
        text=schema.text.strip(),
        type=schema.type.value,
        options=options,
        correct_answer=str(correct).strip(),
        points=schema.points,
        position=position,
        image_url=schema.image_url or None,
    )


def build_questions(questions: List[QuestionIn]) -> List[Question]:
    return [build_question(q, index + 1) for index, q in enumerate(questions)]


def serialize_question(question: Question, with_answer: bool = True):
    data = {
        "id": question.id,
        "text": question.text,
        "type": question.type,
        "options": question.options,
        "points": question.points,
        "position": question.position,
        "image_url": question.image_url,
    }
    if with_answer:
        data["correct_answer"] = question.correct_answer
    return data


def serialize_quiz(quiz: Quiz, with_answers: bool = True):
    return {
        "id": quiz.id,
        "course_id": quiz.course_id,
        "title": quiz.title,
        "description": quiz.description,
        "position": quiz.position,
        "is_published": quiz.is_published,
        "max_attempts": quiz.max_attempts,
        "timer": quiz.timer,
        "created_at": quiz.created_at,
        "updated_at": quiz.updated_at,
        "questions": [serialize_question(q, with_answers) for q in quiz.questions],
    }


def serialize_result(result: QuizResult):
    return {
        "id": result.id,
        "student_id": result.student_id,
        "quiz_id": result.quiz_id,
        "course_id": result.course_id,
        "score": result.score,
        "total_points": result.total_points,
        "percentage": result.percentage,
        "attempt_number": result.attempt_number,
        "submitted_at": result.submitted_at,
        "answers": [
            {
                "id": a.id,
                "question_id": a.question_id,
                "student_answer": a.student_answer,
                "correct_answer": a.correct_answer,
                "is_correct": a.is_correct,
                "points_obtained": a.points_obtained,
            }
            for a in result.answers
        ],
    }


class QuizService:
    """Quiz authoring for course owners and staff."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _load_quiz(self, quiz_id: uuid.UUID, course_id: uuid.UUID | None = None) -> Quiz:
        stmt = (
            select(Quiz)
            .where(Quiz.id == quiz_id)
            .options(selectinload(Quiz.questions), selectinload(Quiz.course))
        )
        if course_id is not None:
            stmt = stmt.where(Quiz.course_id == course_id)
        quiz = await self.db.scalar(stmt)
        if not quiz:
            raise HTTPException(404, "Quiz not found")
        return quiz

    async def _replace_questions(self, quiz: Quiz, questions: List[QuestionIn]) -> None:
        quiz.questions.clear()
        await self.db.flush()
        quiz.questions.extend(build_questions(questions))

    async def _apply_update(self, quiz: Quiz, schema: QuizUpdate, allow_move: bool) -> None:
        excluded = {"questions"} if allow_move else {"questions", "course_id"}
        values = schema.model_dump(exclude_unset=True, exclude=excluded)
        for field, value in values.items():
            if value is None and field in ("course_id", "title", "position", "max_attempts"):
                continue
            setattr(quiz, field, value)
        if schema.questions is not None:
            await self._replace_questions(quiz, schema.questions)

    # ==============================
    # 👩‍🏫 TEACHER
    # ==============================

    async def create_quiz_async(self, user: User, schema: QuizCreate):
        try:
            course = await get_managed_course(self.db, user, schema.course_id, STAFF_ROLES)
            if not course:
                raise HTTPException(404, "Course not found or unauthorized")

            position = schema.position or await next_content_position(self.db, course.id)
            quiz = Quiz(
                course_id=course.id,
                title=schema.title.strip(),
                description=schema.description,
                position=position,
                timer=schema.timer,
                max_attempts=schema.max_attempts,
                questions=build_questions(schema.questions),
            )
            self.db.add(quiz)
            await self.db.commit()
            logger.info(f"❓ Quiz {quiz.id} created in course {course.id}")
            return serialize_quiz(quiz)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Quiz create failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def update_course_quiz_async(
        self, user: User, course_id: uuid.UUID, quiz_id: uuid.UUID, schema: QuizUpdate
    ):
        try:
            course = await get_managed_course(self.db, user, course_id, STAFF_ROLES)
            if not course:
                raise HTTPException(404, "Course not found or unauthorized")

            quiz = await self._load_quiz(quiz_id, course_id)
            await self._apply_update(quiz, schema, allow_move=False)
            await self.db.commit()
            return serialize_quiz(quiz)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Quiz update failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def delete_course_quiz_async(
        self, user: User, course_id: uuid.UUID, quiz_id: uuid.UUID
    ) -> None:
        try:
            course = await get_managed_course(self.db, user, course_id, STAFF_ROLES)
            if not course:
                raise HTTPException(404, "Course not found or unauthorized")

            quiz = await self._load_quiz(quiz_id, course_id)
            await self.db.delete(quiz)
            await self.db.commit()
            logger.info(f"🗑 Quiz {quiz_id} deleted by {user.id}")

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Quiz delete failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def set_published_async(self, user: User, quiz_id: uuid.UUID, schema: QuizPublish):
        try:
            stmt = select(Quiz).where(Quiz.id == quiz_id).options(selectinload(Quiz.questions))
            if user.role not in STAFF_ROLES:
                stmt = stmt.join(Course, Course.id == Quiz.course_id).where(
                    Course.user_id == user.id
                )
            quiz = await self.db.scalar(stmt)
            if not quiz:
                raise HTTPException(404, "Quiz not found or unauthorized")

            quiz.is_published = schema.is_published
            await self.db.commit()
            return serialize_quiz(quiz)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Quiz publish failed: {e}")
            raise HTTPException(500, "Internal Error")

    # ==============================
    # 🛠 ADMIN / SUPERVISOR
    # ==============================

    async def get_all_quizzes_async(self):
        quizzes = (
            await self.db.scalars(
                select(Quiz)
                .options(
                    selectinload(Quiz.course).selectinload(Course.user),
                    selectinload(Quiz.questions),
                )
                .order_by(Quiz.created_at.desc())
            )
        ).all()
        return [
            {
                **serialize_quiz(q, with_answers=False),
                "questions": [{"id": question.id} for question in q.questions],
                "course": {
                    "id": q.course.id,
                    "title": q.course.title,
                    "user": {
                        "id": q.course.user.id,
                        "full_name": q.course.user.full_name,
                        "role": q.course.user.role,
                    },
                },
            }
            for q in quizzes
        ]

    async def get_quiz_async(self, quiz_id: uuid.UUID):
        quiz = await self._load_quiz(quiz_id)
        return {
            **serialize_quiz(quiz),
            "course": {"id": quiz.course.id, "title": quiz.course.title},
        }

    async def update_quiz_async(self, quiz_id: uuid.UUID, schema: QuizUpdate):
        try:
            quiz = await self._load_quiz(quiz_id)
            if schema.course_id and schema.course_id != quiz.course_id:
                course = await self.db.scalar(select(Course).where(Course.id == schema.course_id))
                if not course:
                    raise HTTPException(404, "Course not found")

            await self._apply_update(quiz, schema, allow_move=True)
            await self.db.commit()
            return serialize_quiz(quiz)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Quiz update failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def delete_quiz_async(self, quiz_id: uuid.UUID):
        try:
            quiz = await self._load_quiz(quiz_id)
            await self.db.delete(quiz)
            await self.db.commit()
            return {"success": True}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Quiz delete failed: {e}")
            raise HTTPException(500, "Internal Error")

    async def get_quiz_results_async(self, quiz_id: uuid.UUID | None):
        stmt = select(QuizResult).options(
            selectinload(QuizResult.answers),
            selectinload(QuizResult.student),
            selectinload(QuizResult.quiz).selectinload(Quiz.course),
        )
        if quiz_id:
            stmt = stmt.where(QuizResult.quiz_id == quiz_id)

        results = (await self.db.scalars(stmt.order_by(QuizResult.submitted_at.desc()))).all()
        return [
            {
                **serialize_result(r),
                "user": {
                    "full_name": r.student.full_name,
                    "phone_number": r.student.phone_number,
                },
                "quiz": {
                    "title": r.quiz.title,
                    "course": {"id": r.quiz.course.id, "title": r.quiz.course.title},
                },
            }
            for r in results
        ]
