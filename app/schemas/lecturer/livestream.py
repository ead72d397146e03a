import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LiveStreamCreate(BaseModel):
    course_id: Optional[uuid.UUID] = None
    title: Optional[str] = None
    description: Optional[str] = None
    meeting_url: Optional[str] = None
    meeting_password: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=1)


class LiveStreamUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    meeting_url: Optional[str] = None
    meeting_password: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=1)
    is_published: Optional[bool] = None
