from fastapi import APIRouter, Depends, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import Optional

from app.api.deps import get_school_user, get_staff_user, get_current_admin
from app.core.database import get_db
from app.models.admit_card import AdmitCard, AdmitCardHistory
from app.models.school import School
from app.models.user import User
from app.schemas.admit_card import (
    AdmitCardCreate,
    AdmitCardBatchCreate,
    AdmitCardStatusUpdate,
    AdmitCardResponse,
    AdmitCardHistoryResponse,
    CandidateDetails,
    ExamDetails,
)
from app.services.admit_card_service import admit_card_service
from app.services.pdf_renderer import pdf_renderer
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


def card_payload(card: AdmitCard) -> dict:
    payload = AdmitCardResponse.model_validate(card).model_dump(mode="json")
    payload["is_valid"] = admit_card_service.is_valid(card)
    return payload


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_admit_card(
    data: AdmitCardCreate,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    """Issue one admit card (charged per card)"""
    values = data.model_dump()
    candidate = CandidateDetails.model_validate({k: values[k] for k in CandidateDetails.model_fields})
    exam = ExamDetails.model_validate({k: values[k] for k in ExamDetails.model_fields})

    card = await admit_card_service.create_card(db, current_user, candidate, exam)
    await db.commit()
    await db.refresh(card)

    return success(card_payload(card))


@router.post("/batch", status_code=status.HTTP_201_CREATED)
async def create_admit_card_batch(
    data: AdmitCardBatchCreate,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Issue cards for many students sharing one exam. Rows that fail
    (validation, unknown student, credits ran out) are listed in errors.
    """
    exam = ExamDetails.model_validate(data.model_dump(exclude={"students"}))
    result = await admit_card_service.create_batch(db, current_user, data.students, exam)
    await db.commit()

    return success({
        "admit_cards": [card_payload(card) for card in result["admit_cards"]],
        "errors": result["errors"],
        "summary": result["summary"],
    })


@router.get("")
async def list_admit_cards(
    exam_name: Optional[str] = None,
    exam_type: Optional[str] = None,
    class_name: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(AdmitCard).where(AdmitCard.school_id == str(current_user.school_id))
    if exam_name:
        query = query.where(AdmitCard.exam_name == exam_name)
    if exam_type:
        query = query.where(AdmitCard.exam_type == exam_type)
    if class_name:
        query = query.where(AdmitCard.class_name == class_name)
    if status_filter:
        query = query.where(AdmitCard.status == status_filter)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            AdmitCard.student_name.ilike(pattern),
            AdmitCard.roll_number.ilike(pattern),
            AdmitCard.card_number.ilike(pattern),
        ))
    query = query.order_by(AdmitCard.created_at.desc())

    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=AdmitCardResponse))


@router.get("/{card_id}")
async def get_admit_card(
    card_id: str,
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    card = await admit_card_service.get_card(db, str(current_user.school_id), card_id)
    return success(card_payload(card))


@router.patch("/{card_id}/status")
async def update_admit_card_status(
    card_id: str,
    data: AdmitCardStatusUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    card = await admit_card_service.get_card(db, str(current_user.school_id), card_id)
    admit_card_service.update_status(db, card, data.status, current_user)
    await db.commit()
    await db.refresh(card)

    return success(card_payload(card))


@router.get("/{card_id}/history")
async def get_admit_card_history(
    card_id: str,
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    card = await admit_card_service.get_card(db, str(current_user.school_id), card_id)
    result = await db.execute(
        select(AdmitCardHistory)
        .where(AdmitCardHistory.admit_card_id == card.id)
        .order_by(AdmitCardHistory.created_at)
    )
    return success([
        AdmitCardHistoryResponse.model_validate(entry).model_dump(mode="json")
        for entry in result.scalars().all()
    ])


@router.get("/{card_id}/pdf")
async def download_admit_card(
    card_id: str,
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    """Render the card; a generated card becomes downloaded"""
    school_id = str(current_user.school_id)
    card = await admit_card_service.get_card(db, school_id, card_id)
    school = await db.get(School, school_id)

    content = await run_in_threadpool(pdf_renderer.render_admit_card, card, school)
    admit_card_service.mark_downloaded(db, card, current_user)
    await db.commit()

    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{card.card_number}.pdf"'},
    )
