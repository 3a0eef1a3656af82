from sqlalchemy import Column, String, DateTime, Integer, Float, Boolean, ForeignKey, JSON, Text, CheckConstraint
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class CreditTransactionType(str, enum.Enum):
    PURCHASE = "purchase"
    USAGE = "usage"
    REFUND = "refund"
    BONUS = "bonus"
    ADJUSTMENT = "adjustment"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    BKASH = "bkash"
    NAGAD = "nagad"
    ROCKET = "rocket"
    CARD = "card"
    FREE = "free"
    SYSTEM = "system"


class CreditBalance(Base):
    """Per-school credit balance. Only mutated through CreditManager."""
    __tablename__ = "credit_balances"
    __table_args__ = (
        CheckConstraint("current_credits >= 0", name="ck_credit_balances_non_negative"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, unique=True)

    current_credits = Column(Integer, default=0, nullable=False)  # Spendable right now
    bonus_credits = Column(Integer, default=0, nullable=False)    # Lifetime bonus received
    used_credits = Column(Integer, default=0, nullable=False)     # Lifetime consumed

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<CreditBalance school_id={self.school_id} current={self.current_credits}>"


class CreditPackage(Base):
    """Purchasable credit bundle (price in BDT; price 0 means the monthly free package)"""
    __tablename__ = "credit_packages"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    name_bn = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    credits = Column(Integer, nullable=False)
    bonus_credits = Column(Integer, default=0, nullable=False)
    price = Column(Float, default=0, nullable=False)
    currency = Column(String(10), default="BDT", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_popular = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def is_free(self) -> bool:
        return not self.price

    def __repr__(self):
        return f"<CreditPackage {self.name} credits={self.credits} price={self.price}>"


class CreditTransaction(Base):
    """Ledger row: one per balance change"""
    __tablename__ = "credit_transactions"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    package_id = Column(GUID, ForeignKey("credit_packages.id", ondelete="SET NULL"), nullable=True)

    type = Column(String(20), nullable=False)  # CreditTransactionType
    credits = Column(Integer, nullable=False)  # Positive for addition, negative for usage
    amount = Column(Float, default=0, nullable=False)  # BDT paid
    payment_method = Column(String(20), nullable=True)
    payment_number = Column(String(30), nullable=True)
    transaction_id = Column(String(100), nullable=True)
    status = Column(String(20), default="completed", nullable=False)
    description = Column(String(500), nullable=True)

    balance_before = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<CreditTransaction {self.type} credits={self.credits}>"


class CreditUsageLog(Base):
    """What the credits were spent on"""
    __tablename__ = "credit_usage_logs"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    feature = Column(String(100), nullable=False)  # document type or module name
    credits_used = Column(Integer, nullable=False)
    description = Column(String(500), nullable=True)
    document_id = Column(GUID, nullable=True)
    extra_metadata = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<CreditUsageLog {self.feature} credits={self.credits_used}>"
