from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class SchoolUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    name_bn: Optional[str] = None
    eiin: Optional[str] = None
    address: Optional[str] = None
    address_bn: Optional[str] = None
    district: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    principal_name: Optional[str] = None
    established_year: Optional[int] = Field(None, ge=1800, le=2100)


class SchoolResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    name_bn: Optional[str] = None
    code: Optional[str] = None
    eiin: Optional[str] = None
    address: Optional[str] = None
    address_bn: Optional[str] = None
    district: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    principal_name: Optional[str] = None
    established_year: Optional[int] = None
    is_active: bool
    created_at: datetime


class PublicSchoolProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    name_bn: Optional[str] = None
    eiin: Optional[str] = None
    address: Optional[str] = None
    address_bn: Optional[str] = None
    district: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    principal_name: Optional[str] = None
    established_year: Optional[int] = None
    student_count: int = 0
    teacher_count: int = 0
