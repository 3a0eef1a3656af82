from sqlalchemy import Column, String, DateTime, Date, Float, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class FeeStatus(str, enum.Enum):
    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"


def fee_status_for(total: float, paid: float) -> str:
    """Receipt status from amounts"""
    if paid <= 0:
        return FeeStatus.UNPAID.value
    if paid >= total:
        return FeeStatus.PAID.value
    return FeeStatus.PARTIAL.value


class FeeReceipt(Base):
    """Fee receipt (amounts in BDT)"""
    __tablename__ = "fee_receipts"
    __table_args__ = (
        UniqueConstraint("school_id", "receipt_number", name="uq_fee_receipts_school_number"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)

    receipt_number = Column(String(30), nullable=False, index=True)
    academic_year = Column(String(20), nullable=True)
    month = Column(String(20), nullable=True)

    total_amount = Column(Float, nullable=False)
    paid_amount = Column(Float, default=0, nullable=False)
    due_amount = Column(Float, default=0, nullable=False)
    payment_method = Column(String(20), nullable=True)
    payment_date = Column(Date, nullable=True)
    status = Column(String(20), default=FeeStatus.UNPAID.value, nullable=False)
    notes = Column(Text, nullable=True)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship(
        "FeeItem",
        back_populates="receipt",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def apply_payment(self, amount: float) -> None:
        self.paid_amount = round((self.paid_amount or 0) + amount, 2)
        self.due_amount = round(self.total_amount - self.paid_amount, 2)
        self.status = fee_status_for(self.total_amount, self.paid_amount)

    def __repr__(self):
        return f"<FeeReceipt {self.receipt_number} {self.status}>"


class FeeItem(Base):
    """Line item on a fee receipt"""
    __tablename__ = "fee_items"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    receipt_id = Column(GUID, ForeignKey("fee_receipts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    name_bn = Column(String(255), nullable=True)
    amount = Column(Float, nullable=False)

    receipt = relationship("FeeReceipt", back_populates="items")

    def __repr__(self):
        return f"<FeeItem {self.name} {self.amount}>"
