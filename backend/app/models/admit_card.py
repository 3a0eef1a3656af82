from sqlalchemy import Column, String, DateTime, Date, Integer, ForeignKey, JSON, Text
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class AdmitCardStatus(str, enum.Enum):
    GENERATED = "generated"
    DOWNLOADED = "downloaded"
    PRINTED = "printed"


class AdmitCard(Base):
    """Exam entry permission for one student in one examination"""
    __tablename__ = "admit_cards"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="SET NULL"), nullable=True, index=True)
    template_id = Column(String(100), nullable=False)

    card_number = Column(String(30), unique=True, nullable=False, index=True)  # AC-{year}-{8 chars}

    # Candidate
    student_name = Column(String(255), nullable=False)
    student_name_bn = Column(String(255), nullable=True)
    roll_number = Column(String(20), nullable=False)
    registration_number = Column(String(50), nullable=True)
    class_name = Column(String(50), nullable=True)
    section = Column(String(20), nullable=True)
    photo_url = Column(Text, nullable=True)

    # Exam
    exam_type = Column(String(50), nullable=False)  # e.g. ssc, hsc, annual, half-yearly
    exam_name = Column(String(255), nullable=False, index=True)
    exam_name_bn = Column(String(255), nullable=True)
    exam_center = Column(String(255), nullable=False)
    exam_date = Column(Date, nullable=True)
    subjects = Column(JSON, nullable=True)  # [{"name": ..., "date": ..., "time": ...}]

    verification_code = Column(String(12), unique=True, nullable=False, index=True)
    qr_data = Column(JSON, nullable=True)
    valid_until = Column(Date, nullable=True)

    status = Column(String(20), default=AdmitCardStatus.GENERATED.value, nullable=False)
    credits_used = Column(Integer, default=0, nullable=False)
    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<AdmitCard {self.card_number} {self.student_name}>"


class AdmitCardHistory(Base):
    """Audit trail of admit card actions"""
    __tablename__ = "admit_card_history"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    admit_card_id = Column(GUID, ForeignKey("admit_cards.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(50), nullable=False)  # generated, downloaded, printed, status_changed
    performed_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<AdmitCardHistory {self.action}>"
