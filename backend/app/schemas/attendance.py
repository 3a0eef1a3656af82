from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import date, datetime

from app.models.attendance import AttendanceStatus


class AttendanceEntry(BaseModel):
    student_id: str
    status: AttendanceStatus
    remarks: Optional[str] = None


class AttendanceMark(BaseModel):
    date: date
    records: List[AttendanceEntry] = Field(..., min_length=1)


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    date: date
    status: str
    remarks: Optional[str] = None
    marked_by: Optional[str] = None
    created_at: datetime


class AttendanceSummary(BaseModel):
    total: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0
    leave: int = 0
    attendance_rate: float = 0.0
