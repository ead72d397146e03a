import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from app.core.deps import AuthorizationService
from app.core.enum import STAFF_ROLES, UserRole
from app.schemas.shares.subscription import (
    SubscriptionPlanCreate,
    SubscriptionPlanUpdate,
    SubscriptionRequestReview,
)
from app.services.admin.subscription_plan import SubscriptionPlanService
from app.services.admin.subscription_request import SubscriptionRequestService

router = APIRouter(prefix="/admin", tags=["ADMIN SUBSCRIPTIONS"])


# ==============================
# 📦 PLANS
# ==============================


@router.get("/subscription-plans")
async def get_plans(
    plan_service: SubscriptionPlanService = Depends(SubscriptionPlanService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(STAFF_ROLES, status_code=401)
    return await plan_service.get_plans_async()


@router.post("/subscription-plans")
async def create_plan(
    schema: SubscriptionPlanCreate = Body(...),
    plan_service: SubscriptionPlanService = Depends(SubscriptionPlanService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(STAFF_ROLES, status_code=401)
    return await plan_service.create_plan_async(schema)


@router.patch("/subscription-plans/{plan_id}")
async def update_plan(
    plan_id: uuid.UUID,
    schema: SubscriptionPlanUpdate = Body(...),
    plan_service: SubscriptionPlanService = Depends(SubscriptionPlanService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role([UserRole.ADMIN.value], status_code=401)
    return await plan_service.update_plan_async(plan_id, schema)


@router.delete("/subscription-plans/{plan_id}")
async def delete_plan(
    plan_id: uuid.UUID,
    plan_service: SubscriptionPlanService = Depends(SubscriptionPlanService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role([UserRole.ADMIN.value], status_code=401)
    return await plan_service.delete_plan_async(plan_id)


# ==============================
# 🧾 REQUESTS
# ==============================


@router.get("/subscription-requests")
async def get_requests(
    curriculum: Optional[str] = Query(None),
    level: Optional[str] = Query(None),
    language: Optional[str] = Query(None),
    grade: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="PENDING | APPROVED | DENIED"),
    request_service: SubscriptionRequestService = Depends(SubscriptionRequestService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role([UserRole.ADMIN.value])
    return await request_service.get_requests_async(curriculum, level, language, grade, status)


@router.patch("/subscription-requests/{request_id}")
async def review_request(
    request_id: uuid.UUID,
    schema: SubscriptionRequestReview = Body(...),
    request_service: SubscriptionRequestService = Depends(SubscriptionRequestService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    admin = await authorization.require_role([UserRole.ADMIN.value])
    return await request_service.review_request_async(admin, request_id, schema)


@router.post("/subscriptions/grant-access")
async def grant_access(
    request_service: SubscriptionRequestService = Depends(SubscriptionRequestService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role([UserRole.ADMIN.value])
    return await request_service.grant_access_async()
