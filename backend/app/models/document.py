from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Text, Boolean, JSON
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class DocumentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class DocumentTemplate(Base):
    """Layout/config for a document type. school_id NULL means a global template."""
    __tablename__ = "document_templates"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=True, index=True)

    name = Column(String(255), nullable=False)
    name_bn = Column(String(255), nullable=True)
    type = Column(String(100), nullable=False, index=True)  # key of DOCUMENT_TYPES
    category = Column(String(100), nullable=True)
    category_bn = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    description_bn = Column(Text, nullable=True)

    template = Column(JSON, nullable=True)  # fields, layout
    settings = Column(JSON, nullable=True)  # size, orientation, colors

    required_credits = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    usage_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<DocumentTemplate {self.type} {self.name}>"


class GeneratedDocument(Base):
    """A rendered PDF and the credits it cost"""
    __tablename__ = "generated_documents"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    template_id = Column(GUID, ForeignKey("document_templates.id", ondelete="SET NULL"), nullable=True)

    document_type = Column(String(100), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    recipient_name = Column(String(255), nullable=True)
    data = Column(JSON, nullable=True)

    # File details
    file_key = Column(String(500), nullable=True)
    file_size = Column(Integer, nullable=True)  # in bytes

    status = Column(String(20), default=DocumentStatus.PENDING.value, nullable=False)
    credits_used = Column(Integer, default=0, nullable=False)
    verification_code = Column(String(20), unique=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    @property
    def download_url(self) -> str:
        from app.core.config import settings
        return f"{settings.API_PREFIX}/documents/generated/{self.id}/download"

    def __repr__(self):
        return f"<GeneratedDocument {self.document_type} {self.title}>"
