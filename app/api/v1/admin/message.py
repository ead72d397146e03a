import uuid

from fastapi import APIRouter, Body, Depends

from app.core.deps import AuthorizationService
from app.core.enum import STAFF_ROLES, UserRole
from app.schemas.admin.message import StudentMessageIn
from app.services.admin.message import StudentMessageService

router = APIRouter(prefix="/admin/messages", tags=["ADMIN MESSAGES"])


@router.get("")
async def get_messages(
    message_service: StudentMessageService = Depends(StudentMessageService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(STAFF_ROLES)
    return await message_service.get_messages_async()


@router.post("")
async def create_message(
    schema: StudentMessageIn = Body(),
    message_service: StudentMessageService = Depends(StudentMessageService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    staff = await authorization.require_role(STAFF_ROLES)
    return await message_service.create_message_async(staff, schema)


@router.patch("/{message_id}")
async def update_message(
    message_id: uuid.UUID,
    schema: StudentMessageIn = Body(),
    message_service: StudentMessageService = Depends(StudentMessageService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role([UserRole.ADMIN.value])
    return await message_service.update_message_async(message_id, schema)


@router.delete("/{message_id}")
async def delete_message(
    message_id: uuid.UUID,
    message_service: StudentMessageService = Depends(StudentMessageService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role([UserRole.ADMIN.value])
    return await message_service.delete_message_async(message_id)
