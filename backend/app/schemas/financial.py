from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date, datetime

from app.models.financial import LedgerEntryType, LedgerCategory, LedgerPaymentMethod, FeeFrequency


class LedgerEntryCreate(BaseModel):
    type: LedgerEntryType
    category: LedgerCategory
    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    payment_method: LedgerPaymentMethod = LedgerPaymentMethod.CASH
    reference: Optional[str] = Field(None, max_length=100)
    transaction_date: Optional[date] = None


class LedgerEntryUpdate(BaseModel):
    type: Optional[LedgerEntryType] = None
    category: Optional[LedgerCategory] = None
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = Field(None, min_length=1)
    payment_method: Optional[LedgerPaymentMethod] = None
    reference: Optional[str] = Field(None, max_length=100)
    transaction_date: Optional[date] = None


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    type: str
    category: str
    amount: float
    description: str
    payment_method: str
    reference: Optional[str] = None
    transaction_date: date
    created_by: Optional[str] = None
    created_at: datetime


class BudgetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: LedgerCategory
    total_amount: float = Field(..., gt=0)
    start_date: date
    end_date: date
    is_active: bool = True


class BudgetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    name: str
    description: Optional[str] = None
    category: str
    total_amount: float
    start_date: date
    end_date: date
    is_active: bool
    created_at: datetime


class FeeStructureCreate(BaseModel):
    class_name: str = Field(..., min_length=1, max_length=50)
    fee_type: str = Field(..., min_length=1, max_length=100)
    fee_type_bn: Optional[str] = None
    amount: float = Field(..., gt=0)
    frequency: FeeFrequency = FeeFrequency.MONTHLY
    due_day: Optional[int] = Field(None, ge=1, le=31)
    is_active: bool = True


class FeeStructureUpdate(BaseModel):
    fee_type_bn: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0)
    frequency: Optional[FeeFrequency] = None
    due_day: Optional[int] = Field(None, ge=1, le=31)
    is_active: Optional[bool] = None


class FeeStructureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    class_name: str
    fee_type: str
    fee_type_bn: Optional[str] = None
    amount: float
    frequency: str
    due_day: Optional[int] = None
    is_active: bool
    created_at: datetime
