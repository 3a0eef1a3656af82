from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date, datetime

from app.models.academic_year import AcademicYearStatus, TermStatus


class AcademicYearCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    name_bn: Optional[str] = None
    start_date: date
    end_date: date
    description: Optional[str] = None
    description_bn: Optional[str] = None
    is_active: bool = False
    is_current: bool = False
    status: AcademicYearStatus = AcademicYearStatus.DRAFT


class AcademicYearUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    name_bn: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None
    description_bn: Optional[str] = None
    is_active: Optional[bool] = None
    status: Optional[AcademicYearStatus] = None


class AcademicYearStatusUpdate(BaseModel):
    status: AcademicYearStatus


class AcademicYearResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    name: str
    name_bn: Optional[str] = None
    start_date: date
    end_date: date
    description: Optional[str] = None
    description_bn: Optional[str] = None
    is_active: bool
    is_current: bool
    status: str
    created_at: datetime


class AcademicTermCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    name_bn: Optional[str] = None
    start_date: date
    end_date: date
    description: Optional[str] = None
    description_bn: Optional[str] = None
    exam_scheduled: bool = False
    result_published: bool = False
    status: TermStatus = TermStatus.UPCOMING


class AcademicTermResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    academic_year_id: str
    name: str
    name_bn: Optional[str] = None
    start_date: date
    end_date: date
    description: Optional[str] = None
    description_bn: Optional[str] = None
    exam_scheduled: bool
    result_published: bool
    status: str
    created_at: datetime
