import uuid

from fastapi import APIRouter, Body, Depends, Query

from app.core.deps import AuthorizationService
from app.core.enum import STAFF_ROLES
from app.schemas.auth.user import ResetPassword, SuspendUser, UpdateBalance
from app.services.admin.user import UserService
from app.services.lecturer.students import TeacherStudentsService

router = APIRouter(prefix="/admin/users", tags=["ADMIN USER"])


@router.get("")
async def get_users(
    authorization: AuthorizationService = Depends(AuthorizationService),
    user_service: UserService = Depends(UserService),
    role: str | None = Query(None, description="USER | TEACHER | ADMIN | SUPERVISOR | PARENT"),
    search: str | None = Query(None, description="Name, email or phone"),
    sort_by: str = Query("created_at"),
    order: str = Query("desc", description="asc|desc"),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
):
    await authorization.require_role(STAFF_ROLES)
    return await user_service.get_users_async(role, search, sort_by, order, page, size)


@router.get("/export")
async def export_users(
    authorization: AuthorizationService = Depends(AuthorizationService),
    user_service: UserService = Depends(UserService),
):
    await authorization.require_role(STAFF_ROLES)
    return await user_service.export_user_async()


@router.patch("/{user_id}/balance")
async def update_balance(
    user_id: uuid.UUID,
    schema: UpdateBalance = Body(...),
    authorization: AuthorizationService = Depends(AuthorizationService),
    user_service: UserService = Depends(UserService),
):
    staff = await authorization.require_role(STAFF_ROLES)
    return await user_service.update_balance_async(staff, user_id, schema)


@router.patch("/{user_id}/suspend")
async def suspend_user(
    user_id: uuid.UUID,
    schema: SuspendUser = Body(...),
    authorization: AuthorizationService = Depends(AuthorizationService),
    user_service: UserService = Depends(UserService),
):
    staff = await authorization.require_role(STAFF_ROLES)
    return await user_service.suspend_user_async(staff, user_id, schema)


@router.patch("/{user_id}/password")
async def reset_password(
    user_id: uuid.UUID,
    schema: ResetPassword = Body(...),
    authorization: AuthorizationService = Depends(AuthorizationService),
    user_service: UserService = Depends(UserService),
):
    staff = await authorization.require_role(STAFF_ROLES)
    return await user_service.reset_password_async(staff, user_id, schema)


@router.get("/{user_id}/progress")
async def get_user_progress(
    user_id: uuid.UUID,
    authorization: AuthorizationService = Depends(AuthorizationService),
    students_service: TeacherStudentsService = Depends(TeacherStudentsService),
):
    staff = await authorization.require_role(STAFF_ROLES)
    return await students_service.get_user_progress_async(staff, user_id)
