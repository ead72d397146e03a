import uuid

from fastapi import APIRouter, Body, Depends, status

from app.core.deps import AuthorizationService
from app.core.enum import STAFF_ROLES, UserRole
from app.schemas.lecturer.livestream import LiveStreamCreate, LiveStreamUpdate
from app.services.lecturer.livestream import LiveStreamService

router = APIRouter(prefix="/admin/livestreams", tags=["Admin Live Streams"])


@router.get("")
async def get_streams(
    stream_service: LiveStreamService = Depends(LiveStreamService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    admin = await authorization.require_role([UserRole.ADMIN.value])
    return await stream_service.get_streams_async(admin)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_stream(
    schema: LiveStreamCreate = Body(),
    stream_service: LiveStreamService = Depends(LiveStreamService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    admin = await authorization.require_role([UserRole.ADMIN.value])
    return await stream_service.create_stream_async(admin, schema)


@router.get("/{stream_id}")
async def get_stream(
    stream_id: uuid.UUID,
    stream_service: LiveStreamService = Depends(LiveStreamService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    staff = await authorization.require_role(STAFF_ROLES)
    return await stream_service.get_stream_async(staff, stream_id)


@router.patch("/{stream_id}")
async def update_stream(
    stream_id: uuid.UUID,
    schema: LiveStreamUpdate = Body(),
    stream_service: LiveStreamService = Depends(LiveStreamService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    staff = await authorization.require_role(STAFF_ROLES)
    return await stream_service.update_stream_async(staff, stream_id, schema)


@router.delete("/{stream_id}")
async def delete_stream(
    stream_id: uuid.UUID,
    stream_service: LiveStreamService = Depends(LiveStreamService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    staff = await authorization.require_role(STAFF_ROLES)
    return await stream_service.delete_stream_async(staff, stream_id)


@router.patch("/{stream_id}/publish")
async def toggle_stream_publish(
    stream_id: uuid.UUID,
    stream_service: LiveStreamService = Depends(LiveStreamService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    admin = await authorization.require_role([UserRole.ADMIN.value])
    return await stream_service.toggle_publish_async(admin, stream_id)
