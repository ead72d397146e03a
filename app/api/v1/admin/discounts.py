from fastapi import APIRouter, Body, Depends

from app.core.deps import AuthorizationService
from app.core.enum import CONTENT_ROLES
from app.schemas.shares.discounts import PromoCodeIssueSchema
from app.services.shares.discounts import PromoCodeService

router = APIRouter(prefix="/admin/promocodes", tags=["Admin Promocodes"])


@router.get("")
async def get_students_promocodes(
    service: PromoCodeService = Depends(PromoCodeService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(CONTENT_ROLES)
    return await service.get_students_promocodes_async()


@router.post("")
async def issue_promocode(
    schema: PromoCodeIssueSchema = Body(...),
    service: PromoCodeService = Depends(PromoCodeService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    staff = await authorization.require_role(CONTENT_ROLES)
    return await service.issue_promocode_async(staff, schema)
