from fastapi import APIRouter, Depends

from app.core.deps import AuthorizationService
from app.core.enum import UserRole
from app.services.admin.message import StudentMessageService
from app.services.user.dashboard import StudentDashboardService
from app.services.user.parent import ParentService

router = APIRouter(tags=["Dashboards"])


@router.get("/dashboard/student")
async def get_student_dashboard(
    dashboard_service: StudentDashboardService = Depends(StudentDashboardService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    student = await authorization.require_role([UserRole.USER.value])
    return await dashboard_service.get_dashboard_async(student)


@router.get("/dashboard/messages")
async def get_dashboard_messages(
    message_service: StudentMessageService = Depends(StudentMessageService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    student = await authorization.require_role([UserRole.USER.value])
    return await message_service.get_student_messages_async(student)


@router.get("/student/new-content")
async def get_new_content(
    dashboard_service: StudentDashboardService = Depends(StudentDashboardService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    if user.role != UserRole.USER.value:
        return {"new_content": []}
    return await dashboard_service.get_new_content_async(user)


@router.get("/parent/children")
async def get_children(
    parent_service: ParentService = Depends(ParentService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    parent = await authorization.require_role([UserRole.PARENT.value])
    return await parent_service.get_children_async(parent)
