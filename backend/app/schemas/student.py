from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import Optional, List
from datetime import date, datetime

from app.models.student import StudentStatus


class StudentBase(BaseModel):
    student_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    name_bn: Optional[str] = None
    class_name: str = Field(..., min_length=1, max_length=50)
    section: Optional[str] = None
    roll_number: Optional[str] = None

    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    blood_group: Optional[str] = Field(None, max_length=5)

    father_name: Optional[str] = None
    father_name_bn: Optional[str] = None
    mother_name: Optional[str] = None
    mother_name_bn: Optional[str] = None
    guardian_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    guardian_relation: Optional[str] = None

    address: Optional[str] = None
    district: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    photo_url: Optional[str] = None

    status: StudentStatus = StudentStatus.ACTIVE
    admission_date: Optional[date] = None

    user_id: Optional[str] = None
    parent_id: Optional[str] = None


class StudentCreate(StudentBase):
    pass


class StudentUpdate(BaseModel):
    student_id: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    name_bn: Optional[str] = None
    class_name: Optional[str] = None
    section: Optional[str] = None
    roll_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    blood_group: Optional[str] = Field(None, max_length=5)
    father_name: Optional[str] = None
    father_name_bn: Optional[str] = None
    mother_name: Optional[str] = None
    mother_name_bn: Optional[str] = None
    guardian_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    guardian_relation: Optional[str] = None
    address: Optional[str] = None
    district: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    photo_url: Optional[str] = None
    status: Optional[StudentStatus] = None
    admission_date: Optional[date] = None
    user_id: Optional[str] = None
    parent_id: Optional[str] = None


class StudentResponse(StudentBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    email: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class StudentBulkCreate(BaseModel):
    # Rows are validated one by one so a bad row doesn't reject the batch
    students: List[dict] = Field(..., min_length=1, max_length=1000)
