from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import RequestStatus, SubscriptionStatus
from app.db.models.database import Subscription, SubscriptionPlan, SubscriptionRequest, User
from app.db.sesson import get_session
from app.schemas.shares.subscription import SubscriptionCreate
from app.services.admin.subscription_plan import serialize_plan
from app.services.shares.subscription_access import SubscriptionAccessService


def serialize_request(request: SubscriptionRequest | None):
    if request is None:
        return None
    return {
        "id": request.id,
        "status": request.status,
        "transaction_image": request.transaction_image,
        "reviewed_by": request.reviewed_by,
        "reviewed_at": request.reviewed_at,
        "created_at": request.created_at,
    }


def serialize_subscription(subscription: Subscription):
    return {
        "id": subscription.id,
        "status": subscription.status,
        "start_date": subscription.start_date,
        "end_date": subscription.end_date,
        "created_at": subscription.created_at,
        "plan": serialize_plan(subscription.plan) if subscription.plan else None,
        "request": serialize_request(subscription.request),
    }


class UserSubscriptionService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db
        self.access = SubscriptionAccessService(db)

    async def get_subscriptions_async(self, user: User):
        try:
            await self.access.check_user_subscription_async(user.id)
            await self.access.grant_access_for_user_async(user.id)
            await self.db.commit()

            subscriptions = (
                await self.db.scalars(
                    select(Subscription)
                    .where(Subscription.user_id == user.id)
                    .options(
                        selectinload(Subscription.plan),
                        selectinload(Subscription.request),
                    )
                    .order_by(Subscription.created_at.desc())
                )
            ).all()
            return [serialize_subscription(s) for s in subscriptions]

        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Listing subscriptions failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")

    async def create_subscription_async(self, user: User, schema: SubscriptionCreate):
        if not schema.plan_id or not schema.transaction_image:
            raise HTTPException(status_code=400, detail="Missing required fields")
        try:
            plan = await self.db.scalar(
                select(SubscriptionPlan).where(
                    SubscriptionPlan.id == schema.plan_id,
                    SubscriptionPlan.is_active.is_(True),
                )
            )
            if not plan:
                raise HTTPException(status_code=404, detail="Plan not found or inactive")

            existing = await self.db.scalar(
                select(Subscription.id).where(
                    Subscription.user_id == user.id,
                    Subscription.plan_id == plan.id,
                    Subscription.status.in_(
                        [
                            SubscriptionStatus.PENDING.value,
                            SubscriptionStatus.APPROVED.value,
                            SubscriptionStatus.ACTIVE.value,
                        ]
                    ),
                )
            )
            if existing:
                raise HTTPException(
                    status_code=400,
                    detail="You already have a pending or active subscription for this plan",
                )

            subscription = Subscription(
                user_id=user.id,
                plan_id=plan.id,
                status=SubscriptionStatus.PENDING.value,
            )
            subscription.plan = plan
            subscription.request = SubscriptionRequest(
                user_id=user.id,
                plan_id=plan.id,
                transaction_image=schema.transaction_image,
                status=RequestStatus.PENDING.value,
            )
            self.db.add(subscription)
            await self.db.commit()
            logger.info(f"🧾 Subscription request {subscription.id} by {user.id}")
            return serialize_subscription(subscription)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Subscription create failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")
