import uuid
from datetime import timedelta
from typing import Optional

from fastapi import Depends
from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import SecurityService
from app.core.settings import settings
from app.db.models.database import User
from app.db.sesson import get_session
from app.libs.formats.datetime import now as get_now


class SessionService:
    """One active login per user, tracked by User.session_id."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def create_session_async(self, user: User) -> str:
        """Start a new session, replacing any previous one. Caller commits."""
        session_id = SecurityService.generate_session_id()
        user.session_id = session_id
        user.last_login_at = get_now()
        return session_id

    async def end_session_async(self, user: User) -> None:
        user.session_id = None
        await self.db.commit()

    async def end_session_by_id_async(self, session_id: str) -> bool:
        result = await self.db.execute(
            update(User).where(User.session_id == session_id).values(session_id=None)
        )
        await self.db.commit()
        return bool(result.rowcount)

    async def validate_session_async(
        self, user_id: uuid.UUID, session_id: Optional[str]
    ) -> bool:
        if not session_id:
            return False
        found = await self.db.scalar(
            select(User.id).where(User.id == user_id, User.session_id == session_id)
        )
        return found is not None

    async def is_user_active_async(self, user_id: uuid.UUID) -> bool:
        session_id = await self.db.scalar(select(User.session_id).where(User.id == user_id))
        return session_id is not None

    async def cleanup_expired_sessions_async(self) -> int:
        """End sessions whose login is older than SESSION_MAX_AGE_HOURS."""
        cutoff = get_now() - timedelta(hours=settings.SESSION_MAX_AGE_HOURS)
        result = await self.db.execute(
            update(User)
            .where(User.session_id.is_not(None), User.last_login_at < cutoff)
            .values(session_id=None)
        )
        await self.db.commit()
        if result.rowcount:
            logger.info(f"🧹 Ended {result.rowcount} expired session(s)")
        return result.rowcount or 0
