import uuid
from typing import Any, Dict, Optional

from fastapi import Depends
from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enum import PurchaseStatus, SubscriptionStatus
from app.db.models.database import Course, Purchase, Subscription, SubscriptionPlan
from app.db.sesson import get_session
from app.libs.formats.datetime import now as get_now


def course_matches_plan(course: Course, plan: Optional[SubscriptionPlan]) -> bool:
    """Course targets the plan's curriculum and grade, and its level when the plan sets one."""
    if plan is None:
        return False
    return (
        course.target_curriculum == plan.curriculum
        and course.target_grade == plan.grade
        and (not plan.level or course.target_level == plan.level)
    )


def course_grantable_by_plan(course: Course, plan: SubscriptionPlan) -> bool:
    """Looser match used when granting: level is ignored when either side has none."""
    if not course.is_published or not course.target_curriculum or not course.target_grade:
        return False
    if course.target_curriculum != plan.curriculum or course.target_grade != plan.grade:
        return False
    if plan.level and course.target_level:
        return plan.level == course.target_level
    return True


class SubscriptionAccessService:
    """Course access granted through purchases and subscriptions."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _upsert_active_purchase(self, user_id: uuid.UUID, course_id: uuid.UUID) -> bool:
        """Ensure an ACTIVE purchase exists. Returns True when access changed."""
        purchase = await self.db.scalar(
            select(Purchase).where(
                Purchase.user_id == user_id, Purchase.course_id == course_id
            )
        )
        if purchase is None:
            self.db.add(
                Purchase(
                    user_id=user_id,
                    course_id=course_id,
                    status=PurchaseStatus.ACTIVE.value,
                )
            )
            return True
        if purchase.status != PurchaseStatus.ACTIVE.value:
            purchase.status = PurchaseStatus.ACTIVE.value
            return True
        return False

    async def expire_subscription_async(self, subscription: Subscription) -> None:
        """Mark a subscription EXPIRED and revoke the purchases it granted.
        Purchases paid from balance (price_paid set) are kept.
        """
        subscription.status = SubscriptionStatus.EXPIRED.value
        plan = subscription.plan

        stmt = select(Course.id).where(
            Course.is_published.is_(True),
            Course.target_curriculum == plan.curriculum,
            Course.target_grade == plan.grade,
        )
        if plan.level:
            stmt = stmt.where(Course.target_level == plan.level)
        course_ids = list((await self.db.scalars(stmt)).all())

        if course_ids:
            await self.db.execute(
                update(Purchase)
                .where(
                    Purchase.user_id == subscription.user_id,
                    Purchase.course_id.in_(course_ids),
                    Purchase.status == PurchaseStatus.ACTIVE.value,
                    Purchase.price_paid.is_(None),
                )
                .values(status=PurchaseStatus.INACTIVE.value, updated_at=get_now())
            )
        logger.info(
            f"⌛ Subscription {subscription.id} expired, revoked {len(course_ids)} course(s)"
        )

    async def check_user_subscription_async(self, user_id: uuid.UUID) -> Dict[str, Any]:
        """Expire overdue subscriptions of the user and return the remaining active ones.
        Caller commits.
        """
        subscriptions = (
            await self.db.scalars(
                select(Subscription)
                .where(
                    Subscription.user_id == user_id,
                    Subscription.status == SubscriptionStatus.ACTIVE.value,
                )
                .options(selectinload(Subscription.plan))
                .order_by(Subscription.end_date.desc())
            )
        ).all()

        now = get_now()
        active = []
        for subscription in subscriptions:
            if subscription.end_date and subscription.end_date < now:
                await self.expire_subscription_async(subscription)
            else:
                active.append(subscription)

        return {
            "has_active_subscription": bool(active),
            "subscription": active[0] if active else None,
            "subscriptions": active,
        }

    async def has_subscription_access_async(self, user_id: uuid.UUID, course: Course) -> bool:
        check = await self.check_user_subscription_async(user_id)
        return any(course_matches_plan(course, s.plan) for s in check["subscriptions"])

    async def latest_expired_subscription_async(self, user_id: uuid.UUID) -> Optional[Subscription]:
        return await self.db.scalar(
            select(Subscription)
            .where(
                Subscription.user_id == user_id,
                Subscription.status == SubscriptionStatus.EXPIRED.value,
            )
            .options(selectinload(Subscription.plan))
            .order_by(Subscription.end_date.desc())
            .limit(1)
        )

    async def get_course_access_async(self, user_id: uuid.UUID, course: Course) -> Dict[str, Any]:
        """
        Access decision for a published course:
        - free course
        - ACTIVE purchase
        - active subscription matching the course targets
        - otherwise whether an expired subscription used to cover it
        """
        if course.is_free:
            return {"has_access": True, "reason": "free"}

        purchase = await self.db.scalar(
            select(Purchase).where(
                Purchase.user_id == user_id,
                Purchase.course_id == course.id,
                Purchase.status == PurchaseStatus.ACTIVE.value,
            )
        )
        if purchase:
            return {"has_access": True, "reason": "purchase"}

        if await self.has_subscription_access_async(user_id, course):
            return {"has_access": True, "reason": "subscription"}

        expired = await self.latest_expired_subscription_async(user_id)
        if expired and course_matches_plan(course, expired.plan):
            return {
                "has_access": False,
                "subscription_expired": True,
                "subscription_end_date": expired.end_date,
            }
        return {"has_access": False, "subscription_expired": False}

    async def grant_course_access_to_subscriptions_async(self, course: Course) -> int:
        """Give every matching active subscriber access to a (re)published course.
        Caller commits.
        """
        if not course.is_published or not course.target_curriculum or not course.target_grade:
            return 0

        subscriptions = (
            await self.db.scalars(
                select(Subscription)
                .join(SubscriptionPlan, SubscriptionPlan.id == Subscription.plan_id)
                .where(
                    Subscription.status == SubscriptionStatus.ACTIVE.value,
                    SubscriptionPlan.curriculum == course.target_curriculum,
                    SubscriptionPlan.grade == course.target_grade,
                )
                .options(selectinload(Subscription.plan))
            )
        ).all()

        granted = 0
        for subscription in subscriptions:
            if not course_grantable_by_plan(course, subscription.plan):
                continue
            if await self._upsert_active_purchase(subscription.user_id, course.id):
                granted += 1

        if granted:
            logger.info(f"🎟 Course {course.id} granted to {granted} subscriber(s)")
        return granted

    async def grant_subscription_courses_async(self, subscription: Subscription) -> int:
        """Grant every published course matching an ACTIVE subscription's plan."""
        plan = subscription.plan
        courses = (
            await self.db.scalars(
                select(Course).where(
                    Course.is_published.is_(True),
                    Course.target_curriculum == plan.curriculum,
                    Course.target_grade == plan.grade,
                )
            )
        ).all()

        granted = 0
        for course in courses:
            if not course_grantable_by_plan(course, plan):
                continue
            if await self._upsert_active_purchase(subscription.user_id, course.id):
                granted += 1
        return granted

    async def grant_access_for_user_async(self, user_id: uuid.UUID) -> int:
        """Grant courses for every active subscription of one user. Caller commits."""
        subscriptions = (
            await self.db.scalars(
                select(Subscription)
                .where(
                    Subscription.user_id == user_id,
                    Subscription.status == SubscriptionStatus.ACTIVE.value,
                )
                .options(selectinload(Subscription.plan))
            )
        ).all()

        granted = 0
        for subscription in subscriptions:
            granted += await self.grant_subscription_courses_async(subscription)
        return granted

    async def grant_access_to_all_active_subscriptions_async(self) -> Dict[str, int]:
        subscriptions = (
            await self.db.scalars(
                select(Subscription)
                .where(Subscription.status == SubscriptionStatus.ACTIVE.value)
                .options(selectinload(Subscription.plan))
            )
        ).all()

        granted = 0
        for subscription in subscriptions:
            granted += await self.grant_subscription_courses_async(subscription)

        return {"subscriptions_processed": len(subscriptions), "courses_granted": granted}

    async def expire_overdue_subscriptions_async(self) -> int:
        """Expire every ACTIVE subscription past its end date. Commits."""
        subscriptions = (
            await self.db.scalars(
                select(Subscription)
                .where(
                    Subscription.status == SubscriptionStatus.ACTIVE.value,
                    Subscription.end_date.is_not(None),
                    Subscription.end_date < get_now(),
                )
                .options(selectinload(Subscription.plan))
            )
        ).all()

        for subscription in subscriptions:
            await self.expire_subscription_async(subscription)
        await self.db.commit()
        return len(subscriptions)
