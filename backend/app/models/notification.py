from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Text, UniqueConstraint
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class NotificationType(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"


class NotificationPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RecipientType(str, enum.Enum):
    USER = "user"      # recipient_id
    ROLE = "role"      # recipient_role within the school
    ALL = "all"        # everyone in the school
    PUBLIC = "public"  # public notice board


class Notification(Base):
    """Bilingual notification"""
    __tablename__ = "notifications"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    title_bn = Column(String(255), nullable=True)
    message = Column(Text, nullable=False)
    message_bn = Column(Text, nullable=True)
    type = Column(String(20), default=NotificationType.INFO.value, nullable=False)
    priority = Column(String(20), default=NotificationPriority.MEDIUM.value, nullable=False)
    category = Column(String(100), nullable=True)
    category_bn = Column(String(100), nullable=True)

    recipient_type = Column(String(20), default=RecipientType.ALL.value, nullable=False)
    recipient_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    recipient_role = Column(String(20), nullable=True)

    sender_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    sender_name = Column(String(255), nullable=True)

    is_live = Column(Boolean, default=False, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    action_required = Column(Boolean, default=False, nullable=False)
    action_url = Column(String(500), nullable=True)
    expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Notification {self.title} -> {self.recipient_type}>"


class NotificationRead(Base):
    """Per-user read receipt; a shared notice is read independently by every recipient"""
    __tablename__ = "notification_reads"
    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="uq_notification_reads_notification_user"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    notification_id = Column(GUID, ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    read_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<NotificationRead {self.notification_id} by {self.user_id}>"
