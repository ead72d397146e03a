import uuid

from pydantic import BaseModel, Field


class PromoCodeIssueSchema(BaseModel):
    student_id: uuid.UUID
    discount_percentage: int = Field(..., ge=1, le=100, description="Percent off, 1-100")

