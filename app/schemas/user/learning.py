from typing import Optional

from pydantic import BaseModel


class ImageSubmission(BaseModel):
    image_url: Optional[str] = None
