import uuid
from typing import Annotated, Optional

from pydantic import BaseModel, Field

ClockTime = Annotated[str, Field(pattern=r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$")]
DayOfWeek = Annotated[int, Field(ge=0, le=6)]


class TimetableCreate(BaseModel):
    course_id: uuid.UUID
    day_of_week: DayOfWeek
    start_time: ClockTime
    end_time: ClockTime
    title: str = Field(..., min_length=1)
    description: Optional[str] = None


class TimetableUpdate(BaseModel):
    day_of_week: Optional[DayOfWeek] = None
    start_time: Optional[ClockTime] = None
    end_time: Optional[ClockTime] = None
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
