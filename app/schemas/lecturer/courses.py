import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CourseCreate(BaseModel):
    title: str = Field(..., min_length=1)
    is_free: bool = False


class CourseCreateForUser(BaseModel):
    target_user_id: uuid.UUID
    title: Optional[str] = None


class CourseUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    is_free: Optional[bool] = None
    target_curriculum: Optional[str] = None
    target_curriculum_type: Optional[str] = None
    target_level: Optional[str] = None
    target_language: Optional[str] = None
    target_grade: Optional[str] = None


TARGET_FIELDS = (
    "target_curriculum",
    "target_curriculum_type",
    "target_level",
    "target_language",
    "target_grade",
)
