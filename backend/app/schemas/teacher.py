from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import Optional, List
from datetime import date, datetime


class ClassAssignment(BaseModel):
    class_name: str
    section: Optional[str] = None
    subject: Optional[str] = None


class TeacherBase(BaseModel):
    teacher_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    name_bn: Optional[str] = None
    designation: Optional[str] = None
    designation_bn: Optional[str] = None
    subject: Optional[str] = None
    qualification: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    joining_date: Optional[date] = None
    salary: Optional[float] = Field(None, ge=0)
    classes: List[ClassAssignment] = []
    user_id: Optional[str] = None
    is_active: bool = True


class TeacherCreate(TeacherBase):
    pass


class TeacherUpdate(BaseModel):
    teacher_id: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    name_bn: Optional[str] = None
    designation: Optional[str] = None
    designation_bn: Optional[str] = None
    subject: Optional[str] = None
    qualification: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    joining_date: Optional[date] = None
    salary: Optional[float] = Field(None, ge=0)
    classes: Optional[List[ClassAssignment]] = None
    user_id: Optional[str] = None
    is_active: Optional[bool] = None


class TeacherResponse(TeacherBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    email: Optional[str] = None
    created_at: datetime
