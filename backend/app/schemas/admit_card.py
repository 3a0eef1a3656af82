from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import date, datetime

from app.models.admit_card import AdmitCardStatus


class ExamDetails(BaseModel):
    template_id: str = Field(..., min_length=1)
    exam_type: str = Field(..., min_length=1)
    exam_name: str = Field(..., min_length=1)
    exam_name_bn: Optional[str] = None
    exam_center: str = Field(..., min_length=1)
    exam_date: Optional[date] = None
    subjects: Optional[List[Any]] = None


class CandidateDetails(BaseModel):
    student_id: Optional[str] = None
    student_name: str = Field(..., min_length=1)
    student_name_bn: Optional[str] = None
    roll_number: str = Field(..., min_length=1)
    registration_number: Optional[str] = None
    class_name: Optional[str] = None
    section: Optional[str] = None
    photo_url: Optional[str] = None


class AdmitCardCreate(ExamDetails, CandidateDetails):
    pass


class AdmitCardBatchCreate(ExamDetails):
    # Rows are validated one by one so each failure is reported by index
    students: List[Dict[str, Any]] = Field(..., min_length=1, max_length=500)


class AdmitCardStatusUpdate(BaseModel):
    status: str


class AdmitCardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    student_id: Optional[str] = None
    template_id: str
    card_number: str
    student_name: str
    student_name_bn: Optional[str] = None
    roll_number: str
    registration_number: Optional[str] = None
    class_name: Optional[str] = None
    section: Optional[str] = None
    photo_url: Optional[str] = None
    exam_type: str
    exam_name: str
    exam_name_bn: Optional[str] = None
    exam_center: str
    exam_date: Optional[date] = None
    subjects: Optional[List[Any]] = None
    verification_code: str
    qr_data: Optional[Dict[str, Any]] = None
    valid_until: Optional[date] = None
    status: AdmitCardStatus
    credits_used: int
    created_by: Optional[str] = None
    created_at: datetime


class AdmitCardHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    admit_card_id: str
    action: str
    performed_by: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime
