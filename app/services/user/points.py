from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.settings import settings
from app.db.models.database import User
from app.db.sesson import get_session


class PointsService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_points_async(self, user: User):
        return {"points": user.points}

    async def add_points_async(self, user: User, amount: int | None = None):
        try:
            points = await self.db.scalar(
                update(User)
                .where(User.id == user.id)
                .values(points=func.coalesce(User.points, 0) + (amount or settings.COMPLETION_POINTS))
                .returning(User.points)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return {"points": points}
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Adding points failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")
