from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import require_roles
from app.api.v1.endpoints.attendance import student_attendance
from app.api.v1.endpoints.fee_receipts import student_fees
from app.api.v1.endpoints.notifications import recent_notifications
from app.core.database import get_db
from app.core.exceptions import StudentNotFoundError
from app.models.admit_card import AdmitCard
from app.models.student import Student
from app.models.user import User, UserRole
from app.schemas.admit_card import AdmitCardResponse
from app.schemas.student import StudentResponse
from app.utils.responses import success

router = APIRouter()

get_parent = require_roles(UserRole.PARENT)


async def get_child(db: AsyncSession, parent: User, student_id: str) -> Student:
    """A student whose parent_id is the caller; anyone else's child is a 404"""
    result = await db.execute(
        select(Student).where(
            Student.id == student_id,
            Student.parent_id == str(parent.id),
            Student.school_id == str(parent.school_id),
        )
    )
    student = result.scalar_one_or_none()
    if not student:
        raise StudentNotFoundError(student_id)
    return student


@router.get("/children")
async def list_children(
    parent: User = Depends(get_parent),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Student)
        .where(Student.parent_id == str(parent.id), Student.school_id == str(parent.school_id))
        .order_by(Student.name)
    )
    return success([StudentResponse.model_validate(s).model_dump(mode="json") for s in result.scalars().all()])


@router.get("/children/{student_id}")
async def get_child_profile(
    student_id: str,
    parent: User = Depends(get_parent),
    db: AsyncSession = Depends(get_db)
):
    student = await get_child(db, parent, student_id)
    return success(StudentResponse.model_validate(student).model_dump(mode="json"))


@router.get("/children/{student_id}/attendance")
async def get_child_attendance(
    student_id: str,
    parent: User = Depends(get_parent),
    db: AsyncSession = Depends(get_db)
):
    student = await get_child(db, parent, student_id)
    return success(await student_attendance(db, student))


@router.get("/children/{student_id}/fees")
async def get_child_fees(
    student_id: str,
    parent: User = Depends(get_parent),
    db: AsyncSession = Depends(get_db)
):
    student = await get_child(db, parent, student_id)
    return success(await student_fees(db, student.id))


@router.get("/children/{student_id}/admit-cards")
async def get_child_admit_cards(
    student_id: str,
    parent: User = Depends(get_parent),
    db: AsyncSession = Depends(get_db)
):
    student = await get_child(db, parent, student_id)
    result = await db.execute(
        select(AdmitCard).where(AdmitCard.student_id == student.id).order_by(AdmitCard.created_at.desc())
    )
    return success([AdmitCardResponse.model_validate(c).model_dump(mode="json") for c in result.scalars().all()])


@router.get("/notifications")
async def get_parent_notifications(
    parent: User = Depends(get_parent),
    db: AsyncSession = Depends(get_db)
):
    return success(await recent_notifications(db, parent))
