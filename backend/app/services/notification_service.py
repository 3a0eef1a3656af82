"""
Notification Service - who sees which notification, and fan-out sends
"""

from typing import Dict, Any, List, Optional, Sequence
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, exists
from sqlalchemy.sql.elements import ColumnElement

from app.core.logging_config import logger
from app.models.notification import Notification, NotificationRead, RecipientType
from app.models.school import School
from app.models.user import User
from app.schemas.notification import NotificationSend
from app.services.email_service import email_service


def visible_to(user: User) -> ColumnElement:
    """
    Filter for notifications the user may see: same school, and addressed to
    them directly, to their role, or to everyone.
    """
    return and_(
        Notification.school_id == str(user.school_id),
        or_(
            and_(
                Notification.recipient_type == RecipientType.USER.value,
                Notification.recipient_id == str(user.id),
            ),
            and_(
                Notification.recipient_type == RecipientType.ROLE.value,
                Notification.recipient_role == user.role.value,
            ),
            Notification.recipient_type == RecipientType.ALL.value,
        ),
    )


def not_expired(now: Optional[datetime] = None) -> ColumnElement:
    now = now or datetime.utcnow()
    return or_(Notification.expires_at.is_(None), Notification.expires_at > now)


def unread_by(user: User) -> ColumnElement:
    """Notifications the user has no read receipt for"""
    return ~exists().where(
        NotificationRead.notification_id == Notification.id,
        NotificationRead.user_id == str(user.id),
    )


async def read_receipts(db: AsyncSession, user: User, notification_ids: Sequence[str]) -> Dict[str, datetime]:
    """{notification_id: read_at} for the given notifications"""
    if not notification_ids:
        return {}
    result = await db.execute(
        select(NotificationRead.notification_id, NotificationRead.read_at).where(
            NotificationRead.user_id == str(user.id),
            NotificationRead.notification_id.in_([str(i) for i in notification_ids]),
        )
    )
    return {str(notification_id): read_at for notification_id, read_at in result.all()}


class NotificationService:

    @staticmethod
    async def mark_read(db: AsyncSession, user: User, notification_ids: Sequence[str]) -> int:
        """Add read receipts for the unread ones among notification_ids; returns how many. Flushes only."""
        already = await read_receipts(db, user, notification_ids)
        now = datetime.utcnow()
        pending = [i for i in dict.fromkeys(str(i) for i in notification_ids) if i not in already]
        for notification_id in pending:
            db.add(NotificationRead(notification_id=notification_id, user_id=str(user.id), read_at=now))
        await db.flush()
        return len(pending)

    @staticmethod
    async def send(
        db: AsyncSession,
        sender: User,
        payload: NotificationSend
    ) -> Dict[str, Any]:
        """
        Create one user-addressed notification per recipient in the sender's
        school and optionally email each of them. Flushes only.
        """
        school_id = str(sender.school_id)
        query = select(User).where(User.school_id == school_id, User.is_active.is_(True))
        if payload.recipient_ids:
            query = query.where(User.id.in_(payload.recipient_ids))
        if payload.recipient_role:
            query = query.where(User.role == payload.recipient_role)

        result = await db.execute(query)
        recipients: List[User] = list(result.scalars().all())

        fields = payload.model_dump(exclude={"recipient_role", "recipient_ids", "send_email"})
        fields["type"] = payload.type.value
        fields["priority"] = payload.priority.value

        for recipient in recipients:
            db.add(Notification(
                school_id=school_id,
                recipient_type=RecipientType.USER.value,
                recipient_id=str(recipient.id),
                sender_id=str(sender.id),
                sender_name=sender.full_name or sender.email,
                **fields,
            ))
        await db.flush()

        emails_sent = 0
        if payload.send_email and recipients and email_service.is_configured:
            school = await db.get(School, school_id)
            outcome = await email_service.send_bulk_notification(
                [{"email": r.email, "name": r.full_name or ""} for r in recipients],
                payload.title,
                payload.message,
                payload.title_bn,
                payload.message_bn,
                school.name if school else None,
            )
            emails_sent = outcome["success_count"]

        logger.info(
            f"[Notifications] Sent '{payload.title}' to {len(recipients)} users "
            f"({emails_sent} emails) in school {school_id}"
        )
        return {"notifications_created": len(recipients), "emails_sent": emails_sent}


# Singleton instance
notification_service = NotificationService()
