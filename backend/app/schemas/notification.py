from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from datetime import datetime

from app.models.notification import NotificationType, NotificationPriority, RecipientType
from app.models.user import UserRole


class NotificationBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    title_bn: Optional[str] = None
    message: str = Field(..., min_length=1)
    message_bn: Optional[str] = None
    type: NotificationType = NotificationType.INFO
    priority: NotificationPriority = NotificationPriority.MEDIUM
    category: Optional[str] = None
    category_bn: Optional[str] = None
    is_live: bool = False
    action_required: bool = False
    action_url: Optional[str] = None
    expires_at: Optional[datetime] = None


class NotificationCreate(NotificationBase):
    recipient_type: RecipientType = RecipientType.ALL
    recipient_id: Optional[str] = None
    recipient_role: Optional[UserRole] = None

    @model_validator(mode='after')
    def validate_recipient(self):
        if self.recipient_type == RecipientType.USER and not self.recipient_id:
            raise ValueError("recipient_id is required when recipient_type is 'user'")
        if self.recipient_type == RecipientType.ROLE and not self.recipient_role:
            raise ValueError("recipient_role is required when recipient_type is 'role'")
        return self


class NotificationSend(NotificationBase):
    """Fan-out: one notification per recipient user"""
    recipient_role: Optional[UserRole] = None
    recipient_ids: Optional[List[str]] = None
    send_email: bool = False

    @model_validator(mode='after')
    def validate_targets(self):
        if not self.recipient_role and not self.recipient_ids:
            raise ValueError("Either recipient_role or recipient_ids is required")
        return self


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: Optional[str] = None
    title: str
    title_bn: Optional[str] = None
    message: str
    message_bn: Optional[str] = None
    type: str
    priority: str
    category: Optional[str] = None
    category_bn: Optional[str] = None
    recipient_type: str
    recipient_id: Optional[str] = None
    recipient_role: Optional[str] = None
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    is_live: bool
    is_public: bool
    action_required: bool
    action_url: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
