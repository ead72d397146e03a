import uuid
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import RequestStatus, SubscriptionStatus
from app.db.models.database import Subscription, SubscriptionPlan, SubscriptionRequest, User
from app.db.sesson import get_session
from app.libs.formats.datetime import now as get_now
from app.schemas.shares.subscription import SubscriptionRequestReview
from app.services.admin.subscription_plan import serialize_plan
from app.services.shares.subscription_access import SubscriptionAccessService


def serialize_request_detail(request: SubscriptionRequest):
    user = request.user
    subscription = request.subscription
    return {
        "id": request.id,
        "status": request.status,
        "transaction_image": request.transaction_image,
        "reviewed_by": request.reviewed_by,
        "reviewed_at": request.reviewed_at,
        "created_at": request.created_at,
        "user": {
            "id": user.id,
            "full_name": user.full_name,
            "phone_number": user.phone_number,
            "email": user.email,
        }
        if user
        else None,
        "plan": serialize_plan(request.plan) if request.plan else None,
        "subscription": {
            "id": subscription.id,
            "status": subscription.status,
            "start_date": subscription.start_date,
            "end_date": subscription.end_date,
        }
        if subscription
        else None,
    }


class SubscriptionRequestService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db
        self.access = SubscriptionAccessService(db)

    async def get_requests_async(
        self,
        curriculum: Optional[str],
        level: Optional[str],
        language: Optional[str],
        grade: Optional[str],
        status: Optional[str],
    ):
        stmt = (
            select(SubscriptionRequest)
            .join(SubscriptionPlan, SubscriptionPlan.id == SubscriptionRequest.plan_id)
            .options(
                selectinload(SubscriptionRequest.user),
                selectinload(SubscriptionRequest.plan),
                selectinload(SubscriptionRequest.subscription),
            )
        )
        if curriculum:
            stmt = stmt.where(SubscriptionPlan.curriculum == curriculum)
        if level:
            stmt = stmt.where(SubscriptionPlan.level == level)
        if language:
            stmt = stmt.where(SubscriptionPlan.language == language)
        if grade:
            stmt = stmt.where(SubscriptionPlan.grade == grade)
        if status:
            stmt = stmt.where(SubscriptionRequest.status == status)

        requests = (
            await self.db.scalars(stmt.order_by(SubscriptionRequest.created_at.desc()))
        ).all()
        return [serialize_request_detail(r) for r in requests]

    async def review_request_async(
        self, admin: User, request_id: uuid.UUID, schema: SubscriptionRequestReview
    ):
        if schema.action not in ("approve", "deny"):
            raise HTTPException(status_code=400, detail="Invalid action")
        try:
            request = await self.db.scalar(
                select(SubscriptionRequest)
                .where(SubscriptionRequest.id == request_id)
                .options(
                    selectinload(SubscriptionRequest.user),
                    selectinload(SubscriptionRequest.plan),
                    selectinload(SubscriptionRequest.subscription).selectinload(
                        Subscription.plan
                    ),
                )
            )
            if not request:
                raise HTTPException(status_code=404, detail="Request not found")
            if request.status != RequestStatus.PENDING.value:
                raise HTTPException(status_code=400, detail="Request already processed")

            now = get_now()
            request.reviewed_by = admin.id
            request.reviewed_at = now
            subscription = request.subscription
            granted = 0

            if schema.action == "approve":
                request.status = RequestStatus.APPROVED.value
                subscription.status = SubscriptionStatus.ACTIVE.value
                subscription.start_date = now
                subscription.end_date = now + timedelta(days=request.plan.duration)
                granted = await self.access.grant_subscription_courses_async(subscription)
            else:
                request.status = RequestStatus.DENIED.value
                subscription.status = SubscriptionStatus.DENIED.value

            await self.db.commit()
            logger.info(
                f"🧾 Subscription request {request.id} {request.status} by {admin.id}, "
                f"{granted} course(s) granted"
            )
            return {**serialize_request_detail(request), "courses_granted": granted}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Subscription review failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")

    async def grant_access_async(self):
        try:
            result = await self.access.grant_access_to_all_active_subscriptions_async()
            await self.db.commit()
            return {"success": True, **result}
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Grant access failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")
