import uuid

from fastapi import APIRouter, Body, Depends, status

from app.core.deps import AuthorizationService
from app.schemas.lecturer.chapter import (
    AttachmentCreate,
    ChapterCreate,
    ChapterUpdate,
    ChapterVideoUpload,
    ChapterYoutube,
)
from app.services.lecturer.chapter import ChapterService

router = APIRouter(prefix="/courses/{course_id}/chapters", tags=["Chapters"])


@router.get("")
async def get_chapters(
    course_id: uuid.UUID,
    chapter_service: ChapterService = Depends(ChapterService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await chapter_service.get_chapters_async(user, course_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_chapter(
    course_id: uuid.UUID,
    schema: ChapterCreate = Body(),
    chapter_service: ChapterService = Depends(ChapterService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await chapter_service.create_chapter_async(user, course_id, schema)


@router.get("/{chapter_id}")
async def get_chapter(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    chapter_service: ChapterService = Depends(ChapterService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await chapter_service.get_chapter_async(user, course_id, chapter_id)


@router.patch("/{chapter_id}")
async def update_chapter(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    schema: ChapterUpdate = Body(),
    chapter_service: ChapterService = Depends(ChapterService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await chapter_service.update_chapter_async(user, course_id, chapter_id, schema)


@router.patch("/{chapter_id}/publish")
async def toggle_chapter_publish(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    chapter_service: ChapterService = Depends(ChapterService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await chapter_service.toggle_publish_async(user, course_id, chapter_id)


@router.post("/{chapter_id}/upload")
async def upload_chapter_video(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    schema: ChapterVideoUpload = Body(),
    chapter_service: ChapterService = Depends(ChapterService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await chapter_service.set_uploaded_video_async(user, course_id, chapter_id, schema)


@router.post("/{chapter_id}/youtube")
async def link_chapter_youtube(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    schema: ChapterYoutube = Body(),
    chapter_service: ChapterService = Depends(ChapterService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await chapter_service.set_youtube_video_async(user, course_id, chapter_id, schema)


@router.post("/{chapter_id}/attachments", status_code=status.HTTP_201_CREATED)
async def add_chapter_attachment(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    schema: AttachmentCreate = Body(),
    chapter_service: ChapterService = Depends(ChapterService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await chapter_service.add_attachment_async(user, course_id, chapter_id, schema)


@router.delete("/{chapter_id}/attachments/{attachment_id}")
async def delete_chapter_attachment(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    attachment_id: uuid.UUID,
    chapter_service: ChapterService = Depends(ChapterService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await chapter_service.delete_attachment_async(
        user, course_id, chapter_id, attachment_id
    )
