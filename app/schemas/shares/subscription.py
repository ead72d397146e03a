import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class SubscriptionPlanCreate(BaseModel):
    curriculum: Optional[str] = None
    grade: Optional[str] = None
    level: Optional[str] = None
    language: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    duration: int = Field(30, ge=1, description="Days")
    description: Optional[str] = None
    is_active: bool = True


class SubscriptionPlanUpdate(BaseModel):
    price: Optional[Decimal] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=1)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class SubscriptionCreate(BaseModel):
    plan_id: Optional[uuid.UUID] = None
    transaction_image: Optional[str] = None


class SubscriptionRequestReview(BaseModel):
    action: str = Field(..., description="approve | deny")