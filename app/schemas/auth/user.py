import uuid
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, Field


class StudentProfile(BaseModel):
    curriculum: Optional[str] = None
    curriculum_type: Optional[str] = None
    level: Optional[str] = None
    language: Optional[str] = None
    grade: Optional[str] = None


class UserCreate(StudentProfile):
    full_name: str = ""
    phone_number: str = ""
    email: str = ""
    parent_phone_number: str = ""
    password: Annotated[str, Field(max_length=72)] = ""
    confirm_password: str = ""
    recaptcha_token: Optional[str] = None


class TeacherCreateStudent(StudentProfile):
    full_name: str = ""
    phone_number: str = ""
    email: str = ""
    parent_phone_number: Optional[str] = None
    password: Annotated[str, Field(max_length=72)] = ""
    confirm_password: str = ""


class LoginUser(BaseModel):
    phone_number: Optional[str] = None
    password: Optional[str] = None


class UpdateBalance(BaseModel):
    new_balance: Optional[Decimal] = None


class SuspendUser(BaseModel):
    is_suspended: bool


class ResetPassword(BaseModel):
    new_password: Annotated[str, Field(min_length=6, max_length=72)]


class UserOut(BaseModel):
    id: uuid.UUID
    full_name: str
    phone_number: str
    email: str
    role: str
    points: int
    balance: Decimal
    is_suspended: bool
    curriculum: Optional[str] = None
    curriculum_type: Optional[str] = None
    level: Optional[str] = None
    language: Optional[str] = None
    grade: Optional[str] = None

    class Config:
        from_attributes = True
