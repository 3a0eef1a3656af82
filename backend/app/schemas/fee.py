from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import date, datetime


class FeeItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    name_bn: Optional[str] = None
    # Validated in the endpoint so a bad amount reads as a 400 {error}
    amount: float


class FeeReceiptCreate(BaseModel):
    student_id: str
    items: List[FeeItemCreate]
    academic_year: Optional[str] = None
    month: Optional[str] = None
    paid_amount: float = Field(0, ge=0)
    payment_method: Optional[str] = None
    payment_date: Optional[date] = None
    notes: Optional[str] = None


class FeePayment(BaseModel):
    amount: float
    payment_method: Optional[str] = None
    payment_date: Optional[date] = None


class FeeItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    name_bn: Optional[str] = None
    amount: float


class FeeReceiptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    student_id: str
    receipt_number: str
    academic_year: Optional[str] = None
    month: Optional[str] = None
    total_amount: float
    paid_amount: float
    due_amount: float
    payment_method: Optional[str] = None
    payment_date: Optional[date] = None
    status: str
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    items: List[FeeItemResponse] = []
