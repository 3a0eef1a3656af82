from sqlalchemy import Column, String, DateTime, Date, Integer, Float, Boolean, ForeignKey, Text, UniqueConstraint
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class LedgerEntryType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class LedgerCategory(str, enum.Enum):
    FEE = "fee"
    SALARY = "salary"
    UTILITY = "utility"
    EQUIPMENT = "equipment"
    MAINTENANCE = "maintenance"
    OTHER = "other"


class LedgerPaymentMethod(str, enum.Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    BKASH = "bkash"
    NAGAD = "nagad"
    ROCKET = "rocket"
    UPAY = "upay"
    OTHER = "other"


class FeeFrequency(str, enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    ONE_TIME = "one_time"


class LedgerEntry(Base):
    """School income or expense (BDT); separate from credit purchases"""
    __tablename__ = "financial_transactions"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(String(10), nullable=False)  # LedgerEntryType
    category = Column(String(20), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=False)
    payment_method = Column(String(20), nullable=False)
    reference = Column(String(100), nullable=True)
    transaction_date = Column(Date, nullable=False, index=True)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<LedgerEntry {self.type} {self.amount} {self.category}>"


class Budget(Base):
    """Spending plan for one category over a date window; usage is summed from expenses"""
    __tablename__ = "budgets"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(20), nullable=False)
    total_amount = Column(Float, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class FeeStructure(Base):
    """Standard fee for a class, e.g. class 6 tuition 800 BDT monthly"""
    __tablename__ = "fee_structures"
    __table_args__ = (
        UniqueConstraint("school_id", "class_name", "fee_type", name="uq_fee_structures_school_class_type"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)

    class_name = Column(String(50), nullable=False)
    fee_type = Column(String(100), nullable=False)
    fee_type_bn = Column(String(100), nullable=True)
    amount = Column(Float, nullable=False)
    frequency = Column(String(20), default=FeeFrequency.MONTHLY.value, nullable=False)
    due_day = Column(Integer, nullable=True)  # Day of month for monthly fees
    is_active = Column(Boolean, default=True, nullable=False)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<FeeStructure class {self.class_name} {self.fee_type}>"
