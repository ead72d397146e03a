from fastapi import APIRouter, Depends

from app.core.deps import AuthorizationService
from app.core.enum import STAFF_ROLES
from app.services.admin.lecturer import LecturerService

router = APIRouter(prefix="/admin/teachers", tags=["ADMIN TEACHERS"])


@router.get("")
async def get_teachers(
    authorization: AuthorizationService = Depends(AuthorizationService),
    lecturer_service: LecturerService = Depends(LecturerService),
):
    await authorization.require_role(STAFF_ROLES)
    return await lecturer_service.get_teachers_async()
