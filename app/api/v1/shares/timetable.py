import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from app.core.deps import AuthorizationService
from app.core.enum import UserRole
from app.schemas.shares.timetable import TimetableCreate, TimetableUpdate
from app.services.shares.timetable import TimetableService

router = APIRouter(prefix="/timetables", tags=["Timetables"])


@router.get("")
async def get_timetables(
    course_id: Optional[uuid.UUID] = Query(None),
    timetable_service: TimetableService = Depends(TimetableService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await timetable_service.get_timetables_async(user, course_id)


@router.post("")
async def create_timetable(
    schema: TimetableCreate = Body(),
    timetable_service: TimetableService = Depends(TimetableService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    admin = await authorization.require_role([UserRole.ADMIN.value])
    return await timetable_service.create_timetable_async(admin, schema)


@router.get("/course/{course_id}")
async def get_course_timetables(
    course_id: uuid.UUID,
    timetable_service: TimetableService = Depends(TimetableService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await timetable_service.get_course_timetables_async(user, course_id)


@router.get("/{timetable_id}")
async def get_timetable(
    timetable_id: uuid.UUID,
    timetable_service: TimetableService = Depends(TimetableService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role()
    return await timetable_service.get_timetable_async(user, timetable_id)


@router.patch("/{timetable_id}")
async def update_timetable(
    timetable_id: uuid.UUID,
    schema: TimetableUpdate = Body(),
    timetable_service: TimetableService = Depends(TimetableService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role([UserRole.ADMIN.value])
    return await timetable_service.update_timetable_async(timetable_id, schema)


@router.delete("/{timetable_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_timetable(
    timetable_id: uuid.UUID,
    timetable_service: TimetableService = Depends(TimetableService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role([UserRole.ADMIN.value])
    await timetable_service.delete_timetable_async(timetable_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
