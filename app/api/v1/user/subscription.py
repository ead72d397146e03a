from fastapi import APIRouter, Body, Depends

from app.core.deps import AuthorizationService
from app.core.enum import UserRole
from app.schemas.shares.subscription import SubscriptionCreate
from app.services.admin.subscription_plan import SubscriptionPlanService
from app.services.user.subscription import UserSubscriptionService

router = APIRouter(tags=["User Subscriptions"])


@router.get("/subscription-plans")
async def get_available_plans(
    plan_service: SubscriptionPlanService = Depends(SubscriptionPlanService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await plan_service.get_available_plans_async(user)


@router.get("/subscriptions")
async def get_subscriptions(
    subscription_service: UserSubscriptionService = Depends(UserSubscriptionService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await subscription_service.get_subscriptions_async(user)


@router.post("/subscriptions")
async def create_subscription(
    schema: SubscriptionCreate = Body(...),
    subscription_service: UserSubscriptionService = Depends(UserSubscriptionService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role([UserRole.USER.value], status_code=401)
    return await subscription_service.create_subscription_async(user, schema)
