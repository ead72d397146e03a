import uuid
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from app.core.enum import QuestionType


class QuestionIn(BaseModel):
    text: str = Field(..., min_length=1)
    type: QuestionType
    options: Optional[List[str]] = None
    # option index or option text for multiple choice
    correct_answer: Union[int, str] = ""
    points: int = Field(1, ge=0)
    image_url: Optional[str] = None


class QuizCreate(BaseModel):
    course_id: uuid.UUID
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    questions: List[QuestionIn] = []
    position: Optional[int] = Field(None, ge=1)
    timer: Optional[int] = Field(None, ge=1)
    max_attempts: int = Field(1, ge=1)


class QuizUpdate(BaseModel):
    course_id: Optional[uuid.UUID] = None
    title: Optional[str] = None
    description: Optional[str] = None
    questions: Optional[List[QuestionIn]] = None
    position: Optional[int] = Field(None, ge=1)
    timer: Optional[int] = Field(None, ge=1)
    max_attempts: Optional[int] = Field(None, ge=1)


class QuizPublish(BaseModel):
    is_published: bool


class AnswerIn(BaseModel):
    question_id: uuid.UUID
    answer: str = ""


class QuizSubmit(BaseModel):
    answers: List[AnswerIn] = []
