from __future__ import annotations

from typing import Any, Optional

from fastapi import Depends, HTTPException, Response
from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.context import ACCESS_TOKEN_COOKIE
from app.core.enum import UserRole
from app.core.security import SecurityService
from app.core.settings import settings
from app.db.models.database import User
from app.db.sesson import get_session
from app.libs.formats.text import first_name, is_valid_email, parent_email
from app.schemas.auth.user import LoginUser, TeacherCreateStudent, UserCreate
from app.services.shares.captcha import CaptchaService
from app.services.shares.session import SessionService


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "full_name": user.full_name,
        "phone_number": user.phone_number,
        "email": user.email,
        "role": user.role,
        "points": user.points,
        "balance": user.balance,
        "is_suspended": user.is_suspended,
        "parent_phone_number": user.parent_phone_number,
        "curriculum": user.curriculum,
        "curriculum_type": user.curriculum_type,
        "level": user.level,
        "language": user.language,
        "grade": user.grade,
        "image_url": user.image_url,
        "last_login_at": user.last_login_at,
        "created_at": user.created_at,
    }


class AuthService:
    def __init__(
        self,
        db: AsyncSession = Depends(get_session),
        security: SecurityService = Depends(SecurityService),
        captcha: CaptchaService = Depends(CaptchaService),
    ):
        self.db = db
        self.security = security
        self.captcha = captcha
        self.sessions = SessionService(db)

    # ==============================
    # 🧾 ACCOUNT CREATION
    # ==============================

    async def create_student_account_async(
        self,
        schema: UserCreate | TeacherCreateStudent,
        require_parent: bool = True,
    ) -> User:
        """
        Create a student and, when needed, the parent account in one transaction.
        - all validation failures are 400
        - parent account is reused when the parent phone already belongs to a PARENT
        """
        parent_phone = (schema.parent_phone_number or "").strip() or None

        if not schema.full_name or not schema.phone_number or not schema.email or not schema.password or not schema.confirm_password:
            raise HTTPException(status_code=400, detail="Missing required fields")
        if require_parent and not parent_phone:
            raise HTTPException(status_code=400, detail="Missing required fields")
        if schema.password != schema.confirm_password:
            raise HTTPException(status_code=400, detail="Passwords do not match")
        if not is_valid_email(schema.email):
            raise HTTPException(status_code=400, detail="Invalid email format")

        existing = await self.db.scalar(
            select(User).where(
                or_(User.phone_number == schema.phone_number, User.email == schema.email)
            )
        )
        if existing:
            raise HTTPException(
                status_code=400, detail="Phone number or email already exists"
            )

        if parent_phone == schema.phone_number:
            raise HTTPException(
                status_code=400,
                detail="Parent phone number cannot be the same as the student phone number",
            )

        password_hash = await self.security.hash_password(schema.password)

        if parent_phone:
            parent = await self.db.scalar(
                select(User).where(User.phone_number == parent_phone)
            )
            if parent and parent.role != UserRole.PARENT.value:
                raise HTTPException(
                    status_code=400,
                    detail="Parent phone number is already registered to another account",
                )
            if parent is None:
                self.db.add(
                    User(
                        full_name=f"{first_name(schema.full_name)}'s Parent",
                        phone_number=parent_phone,
                        email=parent_email(parent_phone, settings.PARENT_EMAIL_DOMAIN),
                        password=password_hash,
                        role=UserRole.PARENT.value,
                    )
                )

        student = User(
            full_name=schema.full_name,
            phone_number=schema.phone_number,
            email=schema.email,
            password=password_hash,
            parent_phone_number=parent_phone,
            role=UserRole.USER.value,
            curriculum=schema.curriculum,
            curriculum_type=schema.curriculum_type,
            level=schema.level,
            language=schema.language,
            grade=schema.grade,
        )
        self.db.add(student)
        await self.db.flush()
        return student

    async def register_async(self, schema: UserCreate) -> dict[str, Any]:
        if not await self.captcha.verify_async(schema.recaptcha_token):
            raise HTTPException(status_code=400, detail="reCAPTCHA verification failed")
        try:
            student = await self.create_student_account_async(schema, require_parent=True)
            await self.db.commit()
            logger.info(f"✅ Registered student {student.id}")
            return {"success": True, "user": serialize_user(student)}
        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Register failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")

    # ==============================
    # 🔐 LOGIN / LOGOUT
    # ==============================

    async def login_async(self, schema: LoginUser, res: Response) -> dict[str, Any]:
        if not schema.phone_number or not schema.password:
            raise HTTPException(
                status_code=401,
                detail={"error_code": "MissingCredentials", "message": "Missing credentials"},
            )

        try:
            user: Optional[User] = await self.db.scalar(
                select(User).where(User.phone_number == schema.phone_number)
            )
            if not user:
                raise HTTPException(
                    status_code=401,
                    detail={"error_code": "UserNotFound", "message": "User not found"},
                )
            if not await self.security.verify_password(schema.password, user.password or ""):
                raise HTTPException(
                    status_code=401,
                    detail={"error_code": "WrongPassword", "message": "Wrong password"},
                )
            if user.is_suspended:
                raise HTTPException(
                    status_code=403,
                    detail={"error_code": "AccountSuspended", "message": "Account suspended"},
                )

            session_id = await self.sessions.create_session_async(user)
            await self.db.commit()

            token = await self.security.create_access_token(
                str(user.id), {"role": user.role, "sid": session_id}
            )
            res.set_cookie(
                key=ACCESS_TOKEN_COOKIE,
                value=token,
                httponly=True,
                secure=settings.COOKIE_SECURE,
                samesite="lax",
                max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
                path="/",
            )
            logger.info(f"🔓 User {user.id} logged in")
            return {"message": "Login successful", "user": serialize_user(user)}
        except HTTPException:
            await self.db.rollback()
            raise

    async def logout_async(self, user: Optional[User], res: Response) -> dict[str, Any]:
        if user is not None:
            await self.sessions.end_session_async(user)
            logger.info(f"🔒 User {user.id} logged out")
        res.delete_cookie(
            key=ACCESS_TOKEN_COOKIE,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite="lax",
            path="/",
        )
        return {"success": True}

    async def me_async(self, user: User) -> dict[str, Any]:
        return serialize_user(user)

    async def session_async(self, user: User) -> dict[str, Any]:
        return {
            "valid": await self.sessions.validate_session_async(user.id, user.session_id),
            "user": serialize_user(user),
        }

