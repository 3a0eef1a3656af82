from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer
from typing import Optional
from datetime import datetime

from app.models.user import UserRole


class SchoolRegister(BaseModel):
    """Public sign-up: creates the school and its first admin"""
    school_name: str = Field(..., min_length=2, max_length=255)
    school_name_bn: Optional[str] = None
    eiin: Optional[str] = None
    district: Optional[str] = None
    school_phone: Optional[str] = None

    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1)
    full_name_bn: Optional[str] = None
    phone: Optional[str] = Field(None, pattern=r'^(\+?880)?01[3-9]\d{8}$', description="Bangladeshi mobile number")


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class ChangePassword(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: Optional[str] = None
    full_name_bn: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    school_id: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    @field_serializer('role')
    def serialize_role(self, role: UserRole) -> str:
        return role.value


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class AccessToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
