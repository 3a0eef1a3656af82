from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class School(Base):
    """Tenant. Every school-scoped row carries school_id."""
    __tablename__ = "schools"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    name_bn = Column(String(255), nullable=True)
    code = Column(String(50), unique=True, nullable=True)
    eiin = Column(String(20), nullable=True)  # Educational Institute Identification Number

    address = Column(Text, nullable=True)
    address_bn = Column(Text, nullable=True)
    district = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    logo_url = Column(Text, nullable=True)
    principal_name = Column(String(255), nullable=True)
    established_year = Column(Integer, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<School {self.name}>"
