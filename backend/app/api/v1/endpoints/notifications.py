from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime
from typing import Optional, Sequence

from app.api.deps import get_school_user, get_current_admin, get_staff_user
from app.core.database import get_db
from app.core.exceptions import AuthorizationError, ResourceNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models.notification import Notification, RecipientType
from app.models.user import User
from app.schemas.notification import NotificationCreate, NotificationSend, NotificationResponse
from app.services.notification_service import (
    notification_service,
    visible_to,
    not_expired,
    unread_by,
    read_receipts,
)
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


def notification_payload(notification: Notification, read_at: Optional[datetime] = None) -> dict:
    payload = NotificationResponse.model_validate(notification).model_dump(mode="json")
    payload["is_read"] = read_at is not None
    payload["read_at"] = read_at.isoformat() if read_at else None
    return payload


async def payloads_for(db: AsyncSession, user: User, notifications: Sequence[Notification]) -> list:
    """Serialize with the caller's own read state"""
    receipts = await read_receipts(db, user, [n.id for n in notifications])
    return [notification_payload(n, receipts.get(str(n.id))) for n in notifications]


async def _get_visible(db: AsyncSession, user: User, notification_id: str) -> Notification:
    result = await db.execute(
        select(Notification).where(Notification.id == notification_id, visible_to(user))
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise ResourceNotFoundError("Notification", notification_id)
    return notification


@router.get("")
async def list_notifications(
    unread_only: bool = False,
    category: Optional[str] = None,
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(Notification).where(visible_to(current_user), not_expired())
    if unread_only:
        query = query.where(unread_by(current_user))
    if category:
        query = query.where(Notification.category == category)
    query = query.order_by(Notification.created_at.desc())

    page = await paginate(db, query, pagination.page, pagination.page_size)
    page["items"] = await payloads_for(db, current_user, page["items"])
    return success(page)


@router.get("/live")
async def live_notifications(
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    """Ticker notifications: live and not yet expired"""
    result = await db.execute(
        select(Notification)
        .where(visible_to(current_user), Notification.is_live.is_(True), not_expired())
        .order_by(Notification.created_at.desc())
    )
    return success(await payloads_for(db, current_user, result.scalars().all()))


@router.get("/stats")
async def notification_stats(
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    scope = (visible_to(current_user), not_expired())

    total = (await db.execute(select(func.count(Notification.id)).where(*scope))).scalar() or 0
    unread = (await db.execute(
        select(func.count(Notification.id)).where(*scope, unread_by(current_user))
    )).scalar() or 0
    by_type = await db.execute(
        select(Notification.type, func.count(Notification.id)).where(*scope).group_by(Notification.type)
    )
    by_priority = await db.execute(
        select(Notification.priority, func.count(Notification.id)).where(*scope).group_by(Notification.priority)
    )

    return success({
        "total": total,
        "unread": unread,
        "by_type": dict(by_type.all()),
        "by_priority": dict(by_priority.all()),
    })


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_notification(
    data: NotificationCreate,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(current_user.school_id)

    if data.recipient_type == RecipientType.USER:
        recipient = await db.execute(
            select(User.id).where(User.id == data.recipient_id, User.school_id == school_id)
        )
        if recipient.scalar_one_or_none() is None:
            raise ValidationError("Recipient not found in this school", field="recipient_id")

    values = data.model_dump()
    values["type"] = data.type.value
    values["priority"] = data.priority.value
    values["recipient_type"] = data.recipient_type.value
    values["recipient_role"] = data.recipient_role.value if data.recipient_role else None
    if data.recipient_type != RecipientType.USER:
        values["recipient_id"] = None

    notification = Notification(
        school_id=school_id,
        sender_id=str(current_user.id),
        sender_name=current_user.full_name or current_user.email,
        is_public=data.recipient_type == RecipientType.PUBLIC,
        **values,
    )
    db.add(notification)
    await db.commit()
    await db.refresh(notification)

    logger.info(f"[Notifications] '{notification.title}' -> {notification.recipient_type} in school {school_id}")
    return success(notification_payload(notification))


@router.post("/send")
async def send_notification(
    data: NotificationSend,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """One notification per recipient user, optionally emailed"""
    result = await notification_service.send(db, admin, data)
    await db.commit()
    return success(result, message=f"{result['notifications_created']} notifications sent")


@router.post("/mark-all-read")
async def mark_all_read(
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    """Read receipts for the caller only; other recipients keep their unread state"""
    result = await db.execute(
        select(Notification.id).where(visible_to(current_user), unread_by(current_user))
    )
    updated = await notification_service.mark_read(db, current_user, list(result.scalars().all()))
    await db.commit()
    return success({"updated": updated})


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await _get_visible(db, current_user, notification_id)
    await notification_service.mark_read(db, current_user, [notification.id])
    await db.commit()
    receipts = await read_receipts(db, current_user, [notification.id])
    return success(notification_payload(notification, receipts.get(str(notification.id))))


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.school_id == str(current_user.school_id),
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise ResourceNotFoundError("Notification", notification_id)
    if not current_user.is_admin and notification.sender_id != str(current_user.id):
        raise AuthorizationError("Only an admin or the sender can delete this notification")

    await db.delete(notification)
    await db.commit()
    return success(message="Notification deleted")


async def recent_notifications(db: AsyncSession, user: User, limit: int = 50) -> dict:
    """Latest visible notifications plus the unread count"""
    result = await db.execute(
        select(Notification)
        .where(visible_to(user), not_expired())
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    unread = await db.execute(
        select(func.count(Notification.id)).where(visible_to(user), not_expired(), unread_by(user))
    )
    return {
        "notifications": await payloads_for(db, user, result.scalars().all()),
        "unread": unread.scalar() or 0,
    }
