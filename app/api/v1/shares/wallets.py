from fastapi import APIRouter, Depends, Query

from app.core.deps import AuthorizationService
from app.services.shares.wallets import WalletsService
from app.services.user.points import PointsService

router = APIRouter(tags=["Wallets"])


@router.get("/user/balance")
async def get_balance(
    wallets_service: WalletsService = Depends(WalletsService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await wallets_service.get_balance_async(user)


@router.get("/balance/transactions")
async def get_transactions(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    wallets_service: WalletsService = Depends(WalletsService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await wallets_service.get_transactions_async(user, page, size)


@router.get("/user/points")
async def get_points(
    points_service: PointsService = Depends(PointsService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await points_service.get_points_async(user)


@router.post("/user/points/add")
async def add_points(
    points_service: PointsService = Depends(PointsService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await points_service.add_points_async(user)
