import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from app.core.deps import AuthorizationService
from app.schemas.shares.wallets import CoursePurchaseSchema
from app.services.shares.wallets import WalletsService
from app.services.user.courses import CoursesService

router = APIRouter(prefix="/courses", tags=["User Courses"])


@router.get("")
async def get_courses(
    include_progress: bool = Query(False),
    courses_service: CoursesService = Depends(CoursesService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user_if_any()
    return await courses_service.get_courses_async(user, include_progress)


@router.get("/{course_id}")
async def get_course(
    course_id: uuid.UUID,
    courses_service: CoursesService = Depends(CoursesService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await courses_service.get_course_async(user, course_id)


@router.get("/{course_id}/access")
async def get_course_access(
    course_id: uuid.UUID,
    courses_service: CoursesService = Depends(CoursesService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await courses_service.get_course_access_async(user, course_id)


@router.get("/{course_id}/content")
async def get_course_content(
    course_id: uuid.UUID,
    courses_service: CoursesService = Depends(CoursesService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user_if_any()
    return await courses_service.get_course_content_async(user, course_id)


@router.post("/{course_id}/purchase")
async def purchase_course(
    course_id: uuid.UUID,
    schema: Optional[CoursePurchaseSchema] = Body(None),
    wallets_service: WalletsService = Depends(WalletsService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await wallets_service.purchase_course_async(
        user, course_id, schema or CoursePurchaseSchema()
    )
