from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, exists
from datetime import datetime, date

from app.api.deps import get_current_admin, get_school_user
from app.core.database import get_db
from app.models.credit import CreditTransaction, CreditTransactionType, CreditUsageLog
from app.models.document import GeneratedDocument, DocumentStatus
from app.models.fee import FeeReceipt
from app.models.library import LibraryBook, BorrowedBook, BorrowStatus
from app.models.notification import Notification
from app.models.student import Student, StudentStatus
from app.models.teacher import Teacher
from app.models.user import User
from app.services.document_catalog import usage_description_bn
from app.services.notification_service import visible_to, not_expired, unread_by
from app.utils.credit_manager import credit_manager, month_start
from app.utils.responses import success

router = APIRouter()

TRANSACTION_LABELS_BN = {
    CreditTransactionType.PURCHASE.value: "ক্রেডিট ক্রয়",
    CreditTransactionType.BONUS.value: "বোনাস ক্রেডিট",
    CreditTransactionType.REFUND.value: "ক্রেডিট ফেরত",
    CreditTransactionType.ADJUSTMENT.value: "ক্রেডিট সমন্বয়",
}


def _describe_transaction(tx: CreditTransaction) -> str:
    # Usage rows are shown through their documents instead
    return f"{TRANSACTION_LABELS_BN.get(tx.type, tx.type)} - {tx.credits} ক্রেডিট"


@router.get("/stats")
async def dashboard_stats(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """School overview for the admin home page"""
    school_id = str(admin.school_id)

    async def scalar(query) -> float:
        return (await db.execute(query)).scalar() or 0

    by_class = await db.execute(
        select(Student.class_name, func.count(Student.id))
        .where(Student.school_id == school_id)
        .group_by(Student.class_name)
    )

    balance = await credit_manager.get_or_create_balance(db, school_id)

    fees = await db.execute(
        select(
            func.coalesce(func.sum(FeeReceipt.paid_amount), 0),
            func.coalesce(func.sum(FeeReceipt.due_amount), 0),
        ).where(FeeReceipt.school_id == school_id)
    )
    collected, due = fees.one()

    active_loan = (BorrowedBook.school_id == school_id, BorrowedBook.status == BorrowStatus.ACTIVE.value)
    completed_doc = (
        GeneratedDocument.school_id == school_id,
        GeneratedDocument.status == DocumentStatus.COMPLETED.value,
    )

    stats = {
        "students": {
            "total": await scalar(select(func.count(Student.id)).where(Student.school_id == school_id)),
            "active": await scalar(select(func.count(Student.id)).where(
                Student.school_id == school_id, Student.status == StudentStatus.ACTIVE.value
            )),
            "by_class": dict(by_class.all()),
        },
        "teachers": {
            "total": await scalar(select(func.count(Teacher.id)).where(Teacher.school_id == school_id)),
            "active": await scalar(select(func.count(Teacher.id)).where(
                Teacher.school_id == school_id, Teacher.is_active.is_(True)
            )),
        },
        "credits": {
            "current": balance.current_credits,
            "used": balance.used_credits,
        },
        "documents": {
            "total": await scalar(select(func.count(GeneratedDocument.id)).where(*completed_doc)),
            "this_month": await scalar(select(func.count(GeneratedDocument.id)).where(
                *completed_doc, GeneratedDocument.created_at >= month_start()
            )),
        },
        "fees": {
            "collected": round(float(collected), 2),
            "due": round(float(due), 2),
        },
        "library": {
            "books": await scalar(select(func.count(LibraryBook.id)).where(LibraryBook.school_id == school_id)),
            "borrowed": await scalar(select(func.count(BorrowedBook.id)).where(*active_loan)),
            "overdue": await scalar(select(func.count(BorrowedBook.id)).where(
                *active_loan, BorrowedBook.due_date < date.today()
            )),
        },
        "notifications": {
            "unread": await scalar(select(func.count(Notification.id)).where(
                visible_to(admin), not_expired(), unread_by(admin)
            )),
        },
    }
    await db.commit()
    return success(stats)


@router.get("/recent-activity")
async def recent_activity(
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    """Latest generated documents, credit transactions and other credit usage, newest first"""
    school_id = str(current_user.school_id)

    documents = await db.execute(
        select(GeneratedDocument)
        .where(GeneratedDocument.school_id == school_id)
        .order_by(GeneratedDocument.created_at.desc())
        .limit(limit)
    )
    transactions = await db.execute(
        select(CreditTransaction)
        .where(
            CreditTransaction.school_id == school_id,
            CreditTransaction.type != CreditTransactionType.USAGE.value,
        )
        .order_by(CreditTransaction.created_at.desc())
        .limit(limit)
    )
    # Admit cards and fee receipts spend credits without a GeneratedDocument row
    usage = await db.execute(
        select(CreditUsageLog)
        .where(
            CreditUsageLog.school_id == school_id,
            ~exists().where(GeneratedDocument.id == CreditUsageLog.document_id),
        )
        .order_by(CreditUsageLog.created_at.desc())
        .limit(limit)
    )

    activity = [
        {
            "id": doc.id,
            "type": "document",
            "title": doc.title,
            "description": doc.recipient_name or doc.document_type,
            "description_bn": usage_description_bn(doc.document_type, doc.credits_used),
            "credits": -doc.credits_used,
            "created_at": doc.created_at,
        }
        for doc in documents.scalars().all()
    ]
    activity.extend(
        {
            "id": tx.id,
            "type": "transaction",
            "title": tx.type,
            "description": tx.description,
            "description_bn": _describe_transaction(tx),
            "credits": tx.credits,
            "created_at": tx.created_at,
        }
        for tx in transactions.scalars().all()
    )

    activity.extend(
        {
            "id": log.id,
            "type": "usage",
            "title": log.feature,
            "description": log.description,
            "description_bn": usage_description_bn(log.feature, log.credits_used),
            "credits": -log.credits_used,
            "created_at": log.created_at,
        }
        for log in usage.scalars().all()
    )

    activity.sort(key=lambda entry: entry["created_at"] or datetime.min, reverse=True)
    activity = activity[:limit]
    for entry in activity:
        entry["created_at"] = entry["created_at"].isoformat() if entry["created_at"] else None

    return success(activity)
