import uuid

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.database import SubscriptionPlan, User
from app.db.sesson import get_session
from app.schemas.shares.subscription import SubscriptionPlanCreate, SubscriptionPlanUpdate


def serialize_plan(plan: SubscriptionPlan):
    return {
        "id": plan.id,
        "curriculum": plan.curriculum,
        "grade": plan.grade,
        "level": plan.level,
        "language": plan.language,
        "price": plan.price,
        "duration": plan.duration,
        "description": plan.description,
        "is_active": plan.is_active,
        "created_at": plan.created_at,
        "updated_at": plan.updated_at,
    }


def student_curriculum(user: User) -> str | None:
    """Curriculum of a student; egyptian-type students may only have curriculum_type set."""
    if user.curriculum:
        return user.curriculum
    if user.curriculum_type == "egyptian":
        return "egyptian"
    return None


class SubscriptionPlanService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_available_plans_async(self, user: User):
        curriculum = student_curriculum(user)
        if not curriculum or not user.grade:
            return []

        stmt = select(SubscriptionPlan).where(
            SubscriptionPlan.is_active.is_(True),
            SubscriptionPlan.curriculum == curriculum,
            SubscriptionPlan.grade == user.grade,
        )
        if user.level:
            stmt = stmt.where(SubscriptionPlan.level == user.level)
        if user.language:
            stmt = stmt.where(SubscriptionPlan.language == user.language)

        plans = (await self.db.scalars(stmt.order_by(SubscriptionPlan.price.asc()))).all()
        return [serialize_plan(p) for p in plans]

    async def get_plans_async(self):
        plans = (
            await self.db.scalars(
                select(SubscriptionPlan).order_by(
                    SubscriptionPlan.curriculum.asc(), SubscriptionPlan.grade.asc()
                )
            )
        ).all()
        return [serialize_plan(p) for p in plans]

    async def create_plan_async(self, schema: SubscriptionPlanCreate):
        if not schema.curriculum or not schema.grade or schema.price is None:
            raise HTTPException(status_code=400, detail="Missing required fields")
        try:
            duplicate = await self.db.scalar(
                select(SubscriptionPlan.id).where(
                    SubscriptionPlan.curriculum == schema.curriculum,
                    SubscriptionPlan.grade == schema.grade,
                    SubscriptionPlan.level.is_(None)
                    if schema.level is None
                    else SubscriptionPlan.level == schema.level,
                    SubscriptionPlan.language.is_(None)
                    if schema.language is None
                    else SubscriptionPlan.language == schema.language,
                )
            )
            if duplicate:
                raise HTTPException(
                    status_code=400,
                    detail="A plan for this curriculum, grade, level and language already exists",
                )

            plan = SubscriptionPlan(
                curriculum=schema.curriculum,
                grade=schema.grade,
                level=schema.level,
                language=schema.language,
                price=schema.price,
                duration=schema.duration,
                description=schema.description,
                is_active=schema.is_active,
            )
            self.db.add(plan)
            await self.db.commit()
            logger.info(f"📦 Subscription plan {plan.id} created")
            return serialize_plan(plan)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Plan create failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")

    async def update_plan_async(self, plan_id: uuid.UUID, schema: SubscriptionPlanUpdate):
        try:
            plan = await self.db.scalar(
                select(SubscriptionPlan).where(SubscriptionPlan.id == plan_id)
            )
            if not plan:
                raise HTTPException(status_code=404, detail="Plan not found")

            for field, value in schema.model_dump(exclude_unset=True).items():
                setattr(plan, field, value)

            await self.db.commit()
            return serialize_plan(plan)

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Plan update failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")

    async def delete_plan_async(self, plan_id: uuid.UUID):
        try:
            plan = await self.db.scalar(
                select(SubscriptionPlan).where(SubscriptionPlan.id == plan_id)
            )
            if not plan:
                raise HTTPException(status_code=404, detail="Plan not found")

            await self.db.delete(plan)
            await self.db.commit()
            logger.info(f"🗑 Subscription plan {plan_id} deleted")
            return {"success": True}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Plan delete failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")
