from typing import Optional

from pydantic import BaseModel, Field


class ChapterCreate(BaseModel):
    title: str = Field(..., min_length=1)
    is_free: bool = False


class ChapterUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    is_free: Optional[bool] = None
    position: Optional[int] = Field(None, ge=1)


class ChapterVideoUpload(BaseModel):
    video_url: str = Field(..., min_length=1)


class ChapterYoutube(BaseModel):
    youtube_url: str = Field(..., min_length=1)


class AttachmentCreate(BaseModel):
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)

