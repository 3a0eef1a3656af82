from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from app.models.user import UserRole


class UserCreate(BaseModel):
    """Account created by a school admin inside their school"""
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1)
    full_name_bn: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole = UserRole.TEACHER
    send_welcome_email: bool = False


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    full_name_bn: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
