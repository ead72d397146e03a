from typing import Optional

from pydantic import BaseModel


class StudentMessageIn(BaseModel):
    message: Optional[str] = None
    is_active: Optional[bool] = None
    target_curriculum: Optional[str] = None
    target_curriculum_type: Optional[str] = None
    target_level: Optional[str] = None
    target_language: Optional[str] = None
    target_grade: Optional[str] = None
