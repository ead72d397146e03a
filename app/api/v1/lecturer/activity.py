import uuid

from fastapi import APIRouter, Body, Depends, status

from app.core.deps import AuthorizationService
from app.core.enum import CONTENT_ROLES, TEACHING_ROLES
from app.schemas.lecturer.activity import ActivityCreate, HomeworkCorrection
from app.services.lecturer.activity import TeacherActivityService

router = APIRouter(prefix="/teacher", tags=["Teacher Activities"])


@router.get("/chapters/{chapter_id}/activities")
async def get_chapter_activities(
    chapter_id: uuid.UUID,
    activity_service: TeacherActivityService = Depends(TeacherActivityService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(TEACHING_ROLES)
    return await activity_service.get_activities_async(user, chapter_id)


@router.post("/chapters/{chapter_id}/activities", status_code=status.HTTP_201_CREATED)
async def create_chapter_activity(
    chapter_id: uuid.UUID,
    schema: ActivityCreate = Body(),
    activity_service: TeacherActivityService = Depends(TeacherActivityService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(TEACHING_ROLES)
    return await activity_service.create_activity_async(user, chapter_id, schema)


@router.get("/activities/{activity_id}/submissions")
async def get_activity_submissions(
    activity_id: uuid.UUID,
    activity_service: TeacherActivityService = Depends(TeacherActivityService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(TEACHING_ROLES)
    return await activity_service.get_activity_submissions_async(user, activity_id)


@router.get("/homework/{chapter_id}")
async def get_chapter_homework(
    chapter_id: uuid.UUID,
    activity_service: TeacherActivityService = Depends(TeacherActivityService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(TEACHING_ROLES)
    return await activity_service.get_homework_async(user, chapter_id)


@router.patch("/homework/{chapter_id}")
async def correct_homework(
    chapter_id: uuid.UUID,
    schema: HomeworkCorrection = Body(),
    activity_service: TeacherActivityService = Depends(TeacherActivityService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES)
    return await activity_service.correct_homework_async(user, chapter_id, schema)


@router.get("/students/{student_id}/homework")
async def get_student_homework(
    student_id: uuid.UUID,
    activity_service: TeacherActivityService = Depends(TeacherActivityService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(TEACHING_ROLES)
    return await activity_service.get_student_homework_async(user, student_id)


@router.get("/students/{student_id}/activities")
async def get_student_activities(
    student_id: uuid.UUID,
    activity_service: TeacherActivityService = Depends(TeacherActivityService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(TEACHING_ROLES)
    return await activity_service.get_student_activities_async(user, student_id)
