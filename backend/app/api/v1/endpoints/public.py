"""
Public endpoints - no authentication.

School profiles, the price list and document catalog, verification of
printed documents and admit cards (by the code in their QR), and the
public notice board.
"""
from fastapi import APIRouter, Depends, Request, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime
from typing import Optional

from app.api.v1.endpoints.credits import active_packages
from app.api.v1.endpoints.documents import catalog_payload
from app.core.database import get_db
from app.core.exceptions import ResourceNotFoundError, SchoolNotFoundError
from app.core.rate_limiter import limiter
from app.models.admit_card import AdmitCard
from app.models.document import GeneratedDocument, DocumentStatus
from app.models.notification import Notification
from app.models.school import School
from app.models.student import Student
from app.models.teacher import Teacher
from app.schemas.notification import NotificationResponse
from app.schemas.school import PublicSchoolProfile
from app.services.admit_card_service import admit_card_service
from app.services.document_catalog import DOCUMENT_TYPES
from app.services.notification_service import not_expired
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


@router.get("/schools/{school_id}")
async def get_school_profile(
    school_id: str,
    db: AsyncSession = Depends(get_db)
):
    school = await db.get(School, school_id)
    if not school or not school.is_active:
        raise SchoolNotFoundError(school_id)

    students = await db.execute(select(func.count(Student.id)).where(Student.school_id == school.id))
    teachers = await db.execute(
        select(func.count(Teacher.id)).where(Teacher.school_id == school.id, Teacher.is_active.is_(True))
    )

    profile = PublicSchoolProfile.model_validate(school)
    profile.student_count = students.scalar() or 0
    profile.teacher_count = teachers.scalar() or 0
    return success(profile.model_dump(mode="json"))


@router.get("/credits/packages")
async def list_public_packages(db: AsyncSession = Depends(get_db)):
    return success(await active_packages(db))


@router.get("/documents/types")
async def list_public_document_types(category: Optional[str] = None):
    return success(catalog_payload(category))


@router.get("/documents/verify/{code}")
@limiter.limit("30/minute")
async def verify_document(
    request: Request,
    code: str,
    db: AsyncSession = Depends(get_db)
):
    """Confirm a printed document is genuine"""
    result = await db.execute(
        select(GeneratedDocument).where(
            GeneratedDocument.verification_code == code.strip().upper(),
            GeneratedDocument.status == DocumentStatus.COMPLETED.value,
        )
    )
    document = result.scalar_one_or_none()
    if not document:
        raise ResourceNotFoundError("Document", code)

    school = await db.get(School, document.school_id)
    entry = DOCUMENT_TYPES.get(document.document_type, {})
    return success({
        "valid": True,
        "document_type": document.document_type,
        "document_type_name": entry.get("name"),
        "document_type_name_bn": entry.get("name_bn"),
        "title": document.title,
        "recipient_name": document.recipient_name,
        "school_name": school.name if school else None,
        "issued_at": document.created_at.isoformat(),
    })


@router.get("/admit-cards/verify/{code}")
@limiter.limit("30/minute")
async def verify_admit_card(
    request: Request,
    code: str,
    db: AsyncSession = Depends(get_db)
):
    """{valid, card}; valid is false once the card has expired"""
    result = await db.execute(
        select(AdmitCard).where(AdmitCard.verification_code == code.strip().upper())
    )
    card = result.scalar_one_or_none()
    if not card:
        raise ResourceNotFoundError("Admit card", code)

    school = await db.get(School, card.school_id)
    return success({
        "valid": admit_card_service.is_valid(card),
        "card": {
            "card_number": card.card_number,
            "student_name": card.student_name,
            "student_name_bn": card.student_name_bn,
            "roll_number": card.roll_number,
            "class_name": card.class_name,
            "exam_name": card.exam_name,
            "exam_name_bn": card.exam_name_bn,
            "exam_center": card.exam_center,
            "exam_date": card.exam_date.isoformat() if card.exam_date else None,
            "valid_until": card.valid_until.isoformat() if card.valid_until else None,
            "school_name": school.name if school else None,
        },
    })


@router.get("/notifications")
async def list_public_notifications(
    school_id: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(pagination_params),
    db: AsyncSession = Depends(get_db)
):
    """Public notice board: public, live and not expired"""
    query = select(Notification).where(
        Notification.is_public.is_(True),
        Notification.is_live.is_(True),
        not_expired(datetime.utcnow()),
    )
    if school_id:
        query = query.where(Notification.school_id == school_id)
    query = query.order_by(Notification.created_at.desc())

    return success(await paginate(
        db, query, pagination.page, pagination.page_size, item_schema=NotificationResponse
    ))
