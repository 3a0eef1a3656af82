from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import date

from app.api.deps import require_roles
from app.api.v1.endpoints.attendance import student_attendance
from app.api.v1.endpoints.fee_receipts import student_fees
from app.api.v1.endpoints.library import loan_payload
from app.api.v1.endpoints.notifications import recent_notifications
from app.core.database import get_db
from app.core.exceptions import ResourceNotFoundError
from app.models.admit_card import AdmitCard
from app.models.library import BorrowedBook, LibraryBook
from app.models.student import Student
from app.models.user import User, UserRole
from app.schemas.admit_card import AdmitCardResponse
from app.schemas.student import StudentResponse
from app.utils.responses import success

router = APIRouter()

get_student_user = require_roles(UserRole.STUDENT)


async def get_own_record(db: AsyncSession, user: User) -> Student:
    """The Student linked to this login"""
    result = await db.execute(
        select(Student).where(Student.user_id == str(user.id), Student.school_id == str(user.school_id))
    )
    student = result.scalar_one_or_none()
    if not student:
        raise ResourceNotFoundError("Student profile", user.id)
    return student


@router.get("/me")
async def get_me(
    user: User = Depends(get_student_user),
    db: AsyncSession = Depends(get_db)
):
    student = await get_own_record(db, user)
    return success(StudentResponse.model_validate(student).model_dump(mode="json"))


@router.get("/fees")
async def get_my_fees(
    user: User = Depends(get_student_user),
    db: AsyncSession = Depends(get_db)
):
    student = await get_own_record(db, user)
    return success(await student_fees(db, student.id))


@router.get("/attendance")
async def get_my_attendance(
    user: User = Depends(get_student_user),
    db: AsyncSession = Depends(get_db)
):
    student = await get_own_record(db, user)
    return success(await student_attendance(db, student))


@router.get("/library")
async def get_my_loans(
    user: User = Depends(get_student_user),
    db: AsyncSession = Depends(get_db)
):
    student = await get_own_record(db, user)
    result = await db.execute(
        select(BorrowedBook, LibraryBook.title, LibraryBook.title_bn)
        .join(LibraryBook, LibraryBook.id == BorrowedBook.book_id)
        .where(BorrowedBook.student_id == student.id)
        .order_by(BorrowedBook.borrow_date.desc())
    )

    today = date.today()
    loans = []
    for loan, title, title_bn in result.all():
        payload = loan_payload(loan, today)
        payload["book_title"] = title
        payload["book_title_bn"] = title_bn
        loans.append(payload)
    return success(loans)


@router.get("/admit-cards")
async def get_my_admit_cards(
    user: User = Depends(get_student_user),
    db: AsyncSession = Depends(get_db)
):
    student = await get_own_record(db, user)
    result = await db.execute(
        select(AdmitCard).where(AdmitCard.student_id == student.id).order_by(AdmitCard.created_at.desc())
    )
    return success([AdmitCardResponse.model_validate(c).model_dump(mode="json") for c in result.scalars().all()])


@router.get("/notifications")
async def get_my_notifications(
    user: User = Depends(get_student_user),
    db: AsyncSession = Depends(get_db)
):
    return success(await recent_notifications(db, user))
