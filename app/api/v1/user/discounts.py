from fastapi import APIRouter, Depends

from app.core.deps import AuthorizationService
from app.core.enum import UserRole
from app.services.shares.discounts import PromoCodeService

router = APIRouter(prefix="/user/promocode", tags=["User Promocodes"])


@router.get("")
async def get_my_promocode(
    service: PromoCodeService = Depends(PromoCodeService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role([UserRole.USER.value])
    return await service.get_my_promocode_async(user)


@router.post("")
async def request_promocode(
    service: PromoCodeService = Depends(PromoCodeService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role([UserRole.USER.value])
    return await service.request_promocode_async(user)
