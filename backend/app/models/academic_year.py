from sqlalchemy import Column, String, DateTime, Date, Boolean, ForeignKey, Text, UniqueConstraint
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class AcademicYearStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TermStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"


class AcademicYear(Base):
    """Session such as 'Academic Year 2025'. At most one per school is current."""
    __tablename__ = "academic_years"
    __table_args__ = (
        UniqueConstraint("school_id", "name", name="uq_academic_years_school_name"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    name_bn = Column(String(100), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    description_bn = Column(Text, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
    is_current = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default=AcademicYearStatus.DRAFT.value, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<AcademicYear {self.name}{' (current)' if self.is_current else ''}>"


class AcademicTerm(Base):
    """Term inside an academic year (first term, half-yearly, final)"""
    __tablename__ = "academic_terms"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    academic_year_id = Column(GUID, ForeignKey("academic_years.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    name_bn = Column(String(100), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    description_bn = Column(Text, nullable=True)
    exam_scheduled = Column(Boolean, default=False, nullable=False)
    result_published = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default=TermStatus.UPCOMING.value, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
