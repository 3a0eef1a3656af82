from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from app.models.inventory import MovementType, ItemCondition


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    name_bn: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    unit_price: float = Field(0, ge=0)
    current_quantity: int = Field(0, ge=0)
    minimum_threshold: Optional[int] = Field(None, ge=0)
    unit: str = "piece"
    location: Optional[str] = None
    condition: ItemCondition = ItemCondition.GOOD
    supplier: Optional[str] = None


class ItemUpdate(BaseModel):
    # Quantity changes go through movements
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    name_bn: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    unit_price: Optional[float] = Field(None, ge=0)
    minimum_threshold: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = None
    location: Optional[str] = None
    condition: Optional[ItemCondition] = None
    supplier: Optional[str] = None


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    name: str
    name_bn: Optional[str] = None
    category: str
    description: Optional[str] = None
    unit_price: float
    current_quantity: int
    minimum_threshold: int
    unit: str
    location: Optional[str] = None
    condition: str
    supplier: Optional[str] = None
    is_low_stock: bool
    total_value: float
    created_at: datetime


class MovementCreate(BaseModel):
    item_id: str
    type: MovementType
    quantity: int
    reason: Optional[str] = None
    reference: Optional[str] = None


class MovementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    item_id: str
    type: str
    quantity: int
    previous_quantity: int
    new_quantity: int
    reason: Optional[str] = None
    reference: Optional[str] = None
    performed_by: Optional[str] = None
    created_at: datetime
