import uuid
from typing import Optional

from pydantic import BaseModel


class ActivityCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    is_required: bool = True


class HomeworkCorrection(BaseModel):
    homework_id: Optional[uuid.UUID] = None
    corrected_image_url: Optional[str] = None
