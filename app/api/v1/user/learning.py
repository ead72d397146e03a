import uuid

from fastapi import APIRouter, Body, Depends, Response, status

from app.core.deps import AuthorizationService
from app.schemas.user.learning import ImageSubmission
from app.services.user.learning import LearningService

router = APIRouter(prefix="/courses/{course_id}/chapters/{chapter_id}", tags=["Learning"])


@router.put("/progress")
async def complete_chapter(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    learning_service: LearningService = Depends(LearningService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await learning_service.complete_chapter_async(user, chapter_id)


@router.delete("/progress", status_code=status.HTTP_204_NO_CONTENT)
async def reset_chapter(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    learning_service: LearningService = Depends(LearningService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    await learning_service.reset_chapter_async(user, chapter_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/homework")
async def get_homework(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    learning_service: LearningService = Depends(LearningService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await learning_service.get_homework_async(user, chapter_id)


@router.post("/homework")
async def submit_homework(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    schema: ImageSubmission = Body(),
    learning_service: LearningService = Depends(LearningService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await learning_service.submit_homework_async(user, course_id, chapter_id, schema)


@router.get("/activities")
async def get_activities(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    learning_service: LearningService = Depends(LearningService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await learning_service.get_activities_async(user, course_id, chapter_id)


@router.get("/activities/{activity_id}/submission")
async def get_activity_submission(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    activity_id: uuid.UUID,
    learning_service: LearningService = Depends(LearningService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await learning_service.get_activity_submission_async(user, activity_id)


@router.post("/activities/{activity_id}/submission")
async def submit_activity(
    course_id: uuid.UUID,
    chapter_id: uuid.UUID,
    activity_id: uuid.UUID,
    schema: ImageSubmission = Body(),
    learning_service: LearningService = Depends(LearningService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await learning_service.submit_activity_async(
        user, course_id, chapter_id, activity_id, schema
    )
