import uuid

from fastapi import APIRouter, Body, Depends

from app.core.deps import AuthorizationService
from app.core.enum import CONTENT_ROLES, TEACHING_ROLES, UserRole
from app.schemas.auth.user import TeacherCreateStudent
from app.services.lecturer.students import TeacherStudentsService

router = APIRouter(prefix="/teacher", tags=["Teacher Students"])


@router.post("/create-account")
async def create_student_account(
    schema: TeacherCreateStudent = Body(),
    students_service: TeacherStudentsService = Depends(TeacherStudentsService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    teacher = await authorization.require_role([UserRole.TEACHER.value])
    return await students_service.create_account_async(teacher, schema)


@router.get("/users")
async def get_users(
    students_service: TeacherStudentsService = Depends(TeacherStudentsService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES)
    return await students_service.get_users_async(user)


@router.get("/users/{user_id}/progress")
async def get_user_progress(
    user_id: uuid.UUID,
    students_service: TeacherStudentsService = Depends(TeacherStudentsService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(TEACHING_ROLES)
    return await students_service.get_user_progress_async(user, user_id)
