from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from datetime import datetime

from app.models.credit import PaymentMethod


class CreditBalanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    school_id: str
    current_credits: int
    bonus_credits: int
    used_credits: int
    updated_at: Optional[datetime] = None


class CreditPackageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    name_bn: Optional[str] = None
    description: Optional[str] = None
    credits: int = Field(..., gt=0)
    bonus_credits: int = Field(0, ge=0)
    price: float = Field(0, ge=0)
    currency: str = "BDT"
    is_active: bool = True
    is_popular: bool = False


class CreditPackageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    name_bn: Optional[str] = None
    description: Optional[str] = None
    credits: int
    bonus_credits: int
    price: float
    currency: str
    is_active: bool
    is_popular: bool
    is_free: bool


class CreditPurchase(BaseModel):
    package_id: str
    payment_method: PaymentMethod
    payment_number: Optional[str] = Field(None, max_length=30)
    transaction_id: Optional[str] = Field(None, max_length=100)


class CreditDeduct(BaseModel):
    # Positive check happens in CreditManager so the error keeps the {error} shape
    amount: int
    feature: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class CreditAdd(BaseModel):
    """Super admin grant"""
    school_id: str
    amount: int = Field(..., gt=0)
    reason: Optional[str] = None
    type: str = Field("bonus", pattern="^(bonus|adjustment|refund)$")


class CreditTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    user_id: Optional[str] = None
    package_id: Optional[str] = None
    type: str
    credits: int
    amount: float
    payment_method: Optional[str] = None
    payment_number: Optional[str] = None
    transaction_id: Optional[str] = None
    status: str
    description: Optional[str] = None
    balance_before: int
    balance_after: int
    created_at: datetime


class CreditUsageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    feature: str
    credits_used: int
    description: Optional[str] = None
    document_id: Optional[str] = None
    extra_metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
