import uuid
from decimal import ROUND_HALF_UP, Decimal

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enum import BalanceTransactionType, PurchaseStatus
from app.db.models.database import BalanceTransaction, Course, Purchase, User
from app.db.sesson import get_session
from app.schemas.shares.wallets import CoursePurchaseSchema
from app.services.shares.discounts import PromoCodeService


def serialize_transaction(tx: BalanceTransaction):
    return {
        "id": tx.id,
        "amount": tx.amount,
        "type": tx.type,
        "description": tx.description,
        "balance_after": tx.balance_after,
        "reference_id": tx.reference_id,
        "created_at": tx.created_at,
    }


class WalletsService:
    """User balance, its transaction ledger and course checkout from balance."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_balance_async(self, user: User):
        return {"balance": user.balance}

    async def get_transactions_async(self, user: User, page: int, size: int):
        total_items = (
            await self.db.scalar(
                select(func.count(BalanceTransaction.id)).where(
                    BalanceTransaction.user_id == user.id
                )
            )
            or 0
        )
        rows = (
            await self.db.scalars(
                select(BalanceTransaction)
                .where(BalanceTransaction.user_id == user.id)
                .order_by(BalanceTransaction.created_at.desc())
                .offset((page - 1) * size)
                .limit(size)
            )
        ).all()

        total_pages = (total_items + size - 1) // size
        return {
            "page": page,
            "size": size,
            "total_items": total_items,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_previous": page > 1,
            "items": [serialize_transaction(tx) for tx in rows],
        }

    async def purchase_course_async(
        self, user: User, course_id: uuid.UUID, schema: CoursePurchaseSchema
    ):
        """
        Buy a course from balance:
        - optional promocode (approved, unused, owned by the buyer) takes a percentage off
        - debit, ledger entry, promocode usage and the ACTIVE purchase commit together
        """
        try:
            course = await self.db.scalar(
                select(Course).where(
                    Course.id == course_id, Course.is_published.is_(True)
                )
            )
            if not course:
                raise HTTPException(status_code=404, detail="Course not found")
            if course.is_free:
                raise HTTPException(status_code=400, detail="Course is free")

            purchase = await self.db.scalar(
                select(Purchase).where(
                    Purchase.user_id == user.id, Purchase.course_id == course.id
                )
            )
            if purchase and purchase.status == PurchaseStatus.ACTIVE.value:
                raise HTTPException(status_code=400, detail="Course already purchased")

            base_price = Decimal(course.price or 0)
            price = base_price
            promo = None
            if schema.promo_code:
                promo_service = PromoCodeService(self.db)
                promo = await promo_service.find_redeemable_async(user, schema.promo_code)
                discount = (
                    base_price * Decimal(promo.discount_percentage) / Decimal(100)
                ).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
                price = base_price - discount

            # lock the buyer row before the debit
            buyer = await self.db.scalar(
                select(User).where(User.id == user.id).with_for_update()
            )
            if buyer.balance < price:
                raise HTTPException(status_code=400, detail="Insufficient balance")

            buyer.balance = buyer.balance - price

            if purchase is None:
                purchase = Purchase(user_id=buyer.id, course_id=course.id)
                self.db.add(purchase)
            purchase.status = PurchaseStatus.ACTIVE.value
            purchase.price_paid = price

            if promo is not None:
                PromoCodeService.mark_used(promo)

            await self.db.flush()
            self.db.add(
                BalanceTransaction(
                    user_id=buyer.id,
                    amount=-price,
                    type=BalanceTransactionType.PURCHASE.value,
                    description=f"Purchase of course {course.title}",
                    balance_after=buyer.balance,
                    reference_id=purchase.id,
                    meta={
                        "course_id": str(course.id),
                        "base_price": str(base_price),
                        "promo_code": promo.code if promo else None,
                    },
                )
            )

            await self.db.commit()
            logger.info(f"🛒 {buyer.id} bought course {course.id} for {price}")
            return {
                "success": True,
                "purchase_id": purchase.id,
                "price_paid": price,
                "discount_applied": promo is not None,
                "balance": buyer.balance,
            }

        except HTTPException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"❌ Course purchase failed: {e}")
            raise HTTPException(status_code=500, detail="Internal Error")
