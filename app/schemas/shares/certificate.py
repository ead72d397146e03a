import uuid
from typing import Optional

from pydantic import BaseModel


class CertificateCreate(BaseModel):
    student_id: Optional[uuid.UUID] = None
    image_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
