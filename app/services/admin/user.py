import uuid
from decimal import Decimal
from io import BytesIO

import pandas as pd
from fastapi import Depends, HTTPException, Response
from loguru import logger
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enum import BalanceTransactionType, PurchaseStatus, UserRole
from app.core.security import SecurityService
from app.db.models.database import BalanceTransaction, Purchase, User, UserProgress
from app.db.sesson import get_session
from app.schemas.auth.user import ResetPassword, SuspendUser, UpdateBalance

SORTABLE_COLUMNS = {"created_at", "full_name", "email", "balance", "points", "last_login_at"}


class UserService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_users_async(
        self,
        role: str | None,
        search: str | None,
        sort_by: str,
        order: str,
        page: int,
        size: int,
    ):
        purchases_subq = (
            select(Purchase.user_id, func.count(Purchase.id).label("purchase_count"))
            .where(Purchase.status == PurchaseStatus.ACTIVE.value)
            .group_by(Purchase.user_id)
            .subquery()
        )
        progress_subq = (
            select(UserProgress.user_id, func.count(UserProgress.id).label("completed"))
            .where(UserProgress.is_completed.is_(True))
            .group_by(UserProgress.user_id)
            .subquery()
        )

        stmt = (
            select(
                User,
                func.coalesce(purchases_subq.c.purchase_count, 0),
                func.coalesce(progress_subq.c.completed, 0),
            )
            .join(purchases_subq, purchases_subq.c.user_id == User.id, isouter=True)
            .join(progress_subq, progress_subq.c.user_id == User.id, isouter=True)
        )

        if role:
            stmt = stmt.where(User.role == role)
        if search:
            stmt = stmt.where(
                or_(
                    User.full_name.ilike(f"%{search}%"),
                    User.email.ilike(f"%{search}%"),
                    User.phone_number.ilike(f"%{search}%"),
                )
            )

        # 🔹 total
        total_items = (
            await self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        )

        # 🔹 paging
        sort_column = getattr(User, sort_by) if sort_by in SORTABLE_COLUMNS else User.created_at
        sort_expr = sort_column.asc() if order.lower() == "asc" else sort_column.desc()
        stmt = stmt.order_by(sort_expr).offset((page - 1) * size).limit(size)

        records = (await self.db.execute(stmt)).all()

        users = [
            {
                "id": user.id,
                "full_name": user.full_name,
                "email": user.email,
                "phone_number": user.phone_number,
                "parent_phone_number": user.parent_phone_number,
                "role": user.role,
                "balance": user.balance,
                "points": user.points,
                "is_suspended": user.is_suspended,
                "is_online": user.session_id is not None,
                "last_login_at": user.last_login_at,
                "created_at": user.created_at,
                "total_purchases": purchase_count,
                "completed_chapters": completed,
            }
            for user, purchase_count, completed in records
        ]

        total_pages = (total_items + size - 1) // size

        return {
            "page": page,
            "size": size,
            "total_items": total_items,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_previous": page > 1,
            "items": users,
        }

    async def export_user_async(self):
        stmt = (
            select(User, func.count(Purchase.id).label("purchase_count"))
            .join(Purchase, Purchase.user_id == User.id, isouter=True)
            .group_by(User.id)
            .order_by(User.created_at.desc())
        )
        records = (await self.db.execute(stmt)).all()

        users = [
            {
                "ID": str(user.id),
                "Full name": user.full_name,
                "Email": user.email,
                "Phone": user.phone_number,
                "Parent phone": user.parent_phone_number,
                "Role": user.role,
                "Balance": float(user.balance or 0),
                "Points": user.points,
                "Suspended": user.is_suspended,
                "Courses": purchase_count,
                "Created at": user.created_at,
                "Last login": user.last_login_at,
            }
            for user, purchase_count in records
        ]

        df = pd.DataFrame(
            users,
            columns=[
                "ID",
                "Full name",
                "Email",
                "Phone",
                "Parent phone",
                "Role",
                "Balance",
                "Points",
                "Suspended",
                "Courses",
                "Created at",
                "Last login",
            ],
        )

        output = BytesIO()
        df.to_excel(output, index=False, engine="openpyxl")
        output.seek(0)

        headers = {"Content-Disposition": "attachment; filename=user_export.xlsx"}

        return Response(
            content=output.getvalue(),
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers=headers,
        )

    async def update_balance_async(
        self, admin: User, user_id: uuid.UUID, schema: UpdateBalance
    ):
        if schema.new_balance is None or schema.new_balance < 0:
            raise HTTPException(status_code=400, detail="Invalid balance amount")
        try:
            user = await self.db.scalar(
                select(User).where(User.id == user_id).with_for_update()
            )
            if not user:
                raise HTTPException(status_code=404, detail="User not found")

            new_balance = Decimal(schema.new_balance).quantize(Decimal("0.01"))
            delta = new_balance - (user.balance or Decimal("0"))
            user.balance = new_balance

            if delta != 0:
                self.db.add(
                    BalanceTransaction(
                        user_id=user.id,
                        amount=delta,
                        type=BalanceTransactionType.ADJUSTMENT.value,
                        description="Balance set by staff",
                        balance_after=new_balance,
                        reference_id=admin.id,
                    )
                )

            await self.db.commit()
            logger.info(f"💰 Balance of {user.id} set to {new_balance} by {admin.id}")
            return {"message": "Balance updated successfully", "balance": new_balance}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Balance update failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")

    async def suspend_user_async(
        self, admin: User, user_id: uuid.UUID, schema: SuspendUser
    ):
        try:
            user = await self.db.scalar(select(User).where(User.id == user_id))
            if not user:
                raise HTTPException(status_code=404, detail="User not found")

            if user.role in (UserRole.ADMIN.value, UserRole.SUPERVISOR.value):
                raise HTTPException(
                    status_code=400, detail="Cannot suspend admin or supervisor accounts"
                )

            user.is_suspended = schema.is_suspended
            if schema.is_suspended:
                # kick the active session
                user.session_id = None

            await self.db.commit()
            logger.info(
                f"🚫 User {user.id} suspended={schema.is_suspended} by {admin.id}"
            )
            return {
                "message": "User suspended" if schema.is_suspended else "User unsuspended",
                "is_suspended": user.is_suspended,
            }

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Suspend failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")

    async def reset_password_async(
        self, admin: User, user_id: uuid.UUID, schema: ResetPassword
    ):
        try:
            user = await self.db.scalar(select(User).where(User.id == user_id))
            if not user:
                raise HTTPException(status_code=404, detail="User not found")
            if user.role == UserRole.ADMIN.value and admin.role != UserRole.ADMIN.value:
                raise HTTPException(status_code=403, detail="Forbidden")

            user.password = await SecurityService.hash_password(schema.new_password)
            user.session_id = None
            await self.db.commit()
            return {"message": "Password updated successfully"}

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Password reset failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")
