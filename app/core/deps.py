# app/core/deps.py
import uuid
from typing import List, Optional

import httpx
from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.context import get_request, read_access_token
from app.core.security import SecurityService
from app.db.models.database import User
from app.db.sesson import get_session


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared client opened in the app lifespan."""
    return request.app.state.http


class AuthorizationService:
    def __init__(
        self,
        db: AsyncSession = Depends(get_session),
        security: SecurityService = Depends(SecurityService),
    ):
        self.db = db
        self.security = security

    # ==============================
    # 🧩 CORE AUTH CHECKS
    # ==============================

    @staticmethod
    def read_token() -> Optional[str]:
        return read_access_token(get_request())

    async def _load_user(self, token: str) -> User:
        try:
            payload = await self.security.decode_access_token(token)
        except ValueError:
            raise HTTPException(status_code=401, detail="Invalid token")

        try:
            user_id = uuid.UUID(str(payload.get("sub")))
        except ValueError:
            raise HTTPException(status_code=401, detail="Invalid token")

        user = await self.db.scalar(select(User).where(User.id == user_id))
        if not user:
            raise HTTPException(status_code=401, detail="Invalid token")

        # single active session: a newer login replaces session_id
        if not user.session_id or payload.get("sid") != user.session_id:
            raise HTTPException(status_code=401, detail="Session expired")

        return user

    async def get_current_user(self) -> User:
        token = self.read_token()
        if not token:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return await self._load_user(token)

    async def get_current_user_if_any(self) -> Optional[User]:
        """Current user, or None for anonymous or stale sessions."""
        token = self.read_token()
        if not token:
            return None
        try:
            return await self._load_user(token)
        except HTTPException:
            return None

    # ==============================
    # 🧩 ROLE-BASED ACCESS CONTROL
    # ==============================

    async def require_role(
        self,
        required_roles: Optional[List[str]] = None,
        status_code: int = 403,
    ) -> User:
        """Authenticated, non-suspended user whose role is one of required_roles."""
        current_user = await self.get_current_user()

        if current_user.is_suspended:
            raise HTTPException(status_code=403, detail="Account suspended")

        if required_roles and current_user.role not in required_roles:
            raise HTTPException(status_code=status_code, detail="Forbidden")

        return current_user
