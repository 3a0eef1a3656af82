from sqlalchemy import Column, String, DateTime, Integer, Float, ForeignKey, Text
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class MovementType(str, enum.Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"


class ItemCondition(str, enum.Enum):
    NEW = "new"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DAMAGED = "damaged"


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    name_bn = Column(String(255), nullable=True)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    unit_price = Column(Float, default=0, nullable=False)
    current_quantity = Column(Integer, default=0, nullable=False)
    minimum_threshold = Column(Integer, default=10, nullable=False)
    unit = Column(String(30), default="piece", nullable=False)
    location = Column(String(100), nullable=True)
    condition = Column(String(20), default=ItemCondition.GOOD.value, nullable=False)
    supplier = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_low_stock(self) -> bool:
        return self.current_quantity <= self.minimum_threshold

    @property
    def total_value(self) -> float:
        return round(self.current_quantity * (self.unit_price or 0), 2)

    def __repr__(self):
        return f"<InventoryItem {self.name} qty={self.current_quantity}>"


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(GUID, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(String(20), nullable=False)  # MovementType
    quantity = Column(Integer, nullable=False)
    previous_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    reason = Column(String(500), nullable=True)
    reference = Column(String(100), nullable=True)  # voucher / memo number
    performed_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<InventoryMovement {self.type} {self.quantity}>"
