from sqlalchemy import Column, String, DateTime, Date, Text, ForeignKey, UniqueConstraint, Index
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class StudentStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    GRADUATED = "graduated"
    TRANSFERRED = "transferred"


class Student(Base):
    """Student record (not a login; see user_id / parent_id for the linked accounts)"""
    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("school_id", "student_id", name="uq_students_school_student_id"),
        Index("ix_students_school_class", "school_id", "class_name", "section"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)

    # Identity
    student_id = Column(String(50), nullable=False)  # School-issued ID, printed on documents
    name = Column(String(255), nullable=False)
    name_bn = Column(String(255), nullable=True)
    class_name = Column(String(50), nullable=False)
    section = Column(String(20), nullable=True)
    roll_number = Column(String(20), nullable=True)

    # Personal
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    blood_group = Column(String(5), nullable=True)

    # Family
    father_name = Column(String(255), nullable=True)
    father_name_bn = Column(String(255), nullable=True)
    mother_name = Column(String(255), nullable=True)
    mother_name_bn = Column(String(255), nullable=True)
    guardian_name = Column(String(255), nullable=True)
    guardian_phone = Column(String(20), nullable=True)
    guardian_relation = Column(String(50), nullable=True)

    # Contact
    address = Column(Text, nullable=True)
    district = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    photo_url = Column(Text, nullable=True)

    status = Column(String(20), default=StudentStatus.ACTIVE.value, nullable=False)
    admission_date = Column(Date, nullable=True)

    # Linked accounts
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    parent_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Student {self.student_id} {self.name}>"
