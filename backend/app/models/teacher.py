from sqlalchemy import Column, String, Boolean, DateTime, Date, Float, JSON, ForeignKey, UniqueConstraint
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class Teacher(Base):
    """Teacher record; user_id links the teacher-portal account"""
    __tablename__ = "teachers"
    __table_args__ = (
        UniqueConstraint("school_id", "teacher_id", name="uq_teachers_school_teacher_id"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)

    teacher_id = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    name_bn = Column(String(255), nullable=True)
    designation = Column(String(100), nullable=True)
    designation_bn = Column(String(100), nullable=True)
    subject = Column(String(100), nullable=True)
    qualification = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    joining_date = Column(Date, nullable=True)
    salary = Column(Float, nullable=True)

    # [{"class_name": "8", "section": "A"}, ...]
    classes = Column(JSON, default=list, nullable=False)

    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def teaches(self, class_name: str, section: str = None) -> bool:
        """True if the class (and section, when given) is assigned to this teacher"""
        for entry in self.classes or []:
            if str(entry.get("class_name")) != str(class_name):
                continue
            if section is None or not entry.get("section") or entry.get("section") == section:
                return True
        return False

    def __repr__(self):
        return f"<Teacher {self.teacher_id} {self.name}>"
