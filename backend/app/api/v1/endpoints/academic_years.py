from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from datetime import date
from enum import Enum
from typing import Optional

from app.api.deps import get_current_admin, get_school_user
from app.core.database import get_db
from app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models.academic_year import AcademicYear, AcademicYearStatus, AcademicTerm, TermStatus
from app.models.student import Student, StudentStatus
from app.models.user import User
from app.schemas.academic_year import (
    AcademicYearCreate,
    AcademicYearUpdate,
    AcademicYearStatusUpdate,
    AcademicYearResponse,
    AcademicTermCreate,
    AcademicTermResponse,
)
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


def _plain(values: dict) -> dict:
    return {k: v.value if isinstance(v, Enum) else v for k, v in values.items()}


def _check_dates(start_date: date, end_date: date) -> None:
    if end_date <= start_date:
        raise ValidationError("End date must be after the start date", field="end_date")


def _payload(year: AcademicYear) -> dict:
    return AcademicYearResponse.model_validate(year).model_dump(mode="json")


async def _get_year(db: AsyncSession, school_id: str, year_id: str) -> AcademicYear:
    result = await db.execute(
        select(AcademicYear).where(AcademicYear.id == year_id, AcademicYear.school_id == school_id)
    )
    year = result.scalar_one_or_none()
    if not year:
        raise ResourceNotFoundError("Academic year", year_id)
    return year


async def _name_taken(db: AsyncSession, school_id: str, name: str, exclude_id: Optional[str] = None) -> bool:
    query = select(AcademicYear.id).where(AcademicYear.school_id == school_id, AcademicYear.name == name)
    if exclude_id:
        query = query.where(AcademicYear.id != exclude_id)
    return (await db.execute(query)).scalar_one_or_none() is not None


async def _clear_current(db: AsyncSession, school_id: str) -> None:
    """Only one current year per school; other schools are untouched"""
    await db.execute(
        update(AcademicYear)
        .where(AcademicYear.school_id == school_id, AcademicYear.is_current.is_(True))
        .values(is_current=False)
        .execution_options(synchronize_session="fetch")
    )


@router.get("/stats")
async def academic_year_stats(
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(current_user.school_id)

    async def count(query) -> int:
        return (await db.execute(query)).scalar() or 0

    years = select(func.count(AcademicYear.id)).where(AcademicYear.school_id == school_id)
    terms = select(func.count(AcademicTerm.id)).where(AcademicTerm.school_id == school_id)
    current = await db.execute(
        select(AcademicYear.name).where(AcademicYear.school_id == school_id, AcademicYear.is_current.is_(True))
    )

    return success({
        "total_years": await count(years),
        "active_years": await count(years.where(AcademicYear.is_active.is_(True))),
        "completed_years": await count(years.where(AcademicYear.status == AcademicYearStatus.COMPLETED.value)),
        "current_year": current.scalar_one_or_none(),
        "total_terms": await count(terms),
        "ongoing_terms": await count(terms.where(AcademicTerm.status == TermStatus.ONGOING.value)),
        "total_students": await count(select(func.count(Student.id)).where(
            Student.school_id == school_id, Student.status == StudentStatus.ACTIVE.value
        )),
    })


@router.get("/current")
async def current_academic_year(
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    """The school's current year, or null when none is set"""
    result = await db.execute(
        select(AcademicYear).where(
            AcademicYear.school_id == str(current_user.school_id),
            AcademicYear.is_current.is_(True),
        )
    )
    year = result.scalar_one_or_none()
    return success(_payload(year) if year else None)


@router.get("")
async def list_academic_years(
    status_filter: Optional[AcademicYearStatus] = Query(None, alias="status"),
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(AcademicYear).where(AcademicYear.school_id == str(current_user.school_id))
    if status_filter:
        query = query.where(AcademicYear.status == status_filter.value)
    query = query.order_by(AcademicYear.start_date.desc())
    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=AcademicYearResponse))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_academic_year(
    data: AcademicYearCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(admin.school_id)
    _check_dates(data.start_date, data.end_date)
    if await _name_taken(db, school_id, data.name):
        raise ConflictError(f"Academic year '{data.name}' already exists", field="name")

    if data.is_current:
        await _clear_current(db, school_id)
    year = AcademicYear(school_id=school_id, **_plain(data.model_dump()))
    db.add(year)
    await db.commit()
    await db.refresh(year)

    logger.info(f"[AcademicYears] Created '{year.name}' in school {school_id}")
    return success(_payload(year))


@router.get("/{year_id}")
async def get_academic_year(
    year_id: str,
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    year = await _get_year(db, str(current_user.school_id), year_id)
    terms = await db.execute(
        select(AcademicTerm).where(AcademicTerm.academic_year_id == year.id).order_by(AcademicTerm.start_date)
    )
    payload = _payload(year)
    payload["terms"] = [
        AcademicTermResponse.model_validate(term).model_dump(mode="json") for term in terms.scalars().all()
    ]
    return success(payload)


@router.put("/{year_id}")
async def update_academic_year(
    year_id: str,
    data: AcademicYearUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """is_current is changed only through set-current"""
    school_id = str(admin.school_id)
    year = await _get_year(db, school_id, year_id)
    values = _plain(data.model_dump(exclude_unset=True))
    for required in ("name", "start_date", "end_date", "is_active", "status"):
        if required in values and values[required] is None:
            raise ValidationError(f"{required} cannot be empty", field=required)

    _check_dates(values.get("start_date", year.start_date), values.get("end_date", year.end_date))
    if values.get("name") and await _name_taken(db, school_id, values["name"], exclude_id=year.id):
        raise ConflictError(f"Academic year '{values['name']}' already exists", field="name")

    for field, value in values.items():
        setattr(year, field, value)
    await db.commit()
    await db.refresh(year)
    return success(_payload(year))


@router.patch("/{year_id}/status")
async def update_academic_year_status(
    year_id: str,
    data: AcademicYearStatusUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    year = await _get_year(db, str(admin.school_id), year_id)
    if year.is_current and data.status in (AcademicYearStatus.COMPLETED, AcademicYearStatus.ARCHIVED):
        raise ValidationError("Set another year as current before closing this one", field="status")

    year.status = data.status.value
    await db.commit()
    await db.refresh(year)
    return success(_payload(year))


@router.patch("/{year_id}/set-current")
async def set_current_academic_year(
    year_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Make this the school's only current year; it also becomes active"""
    school_id = str(admin.school_id)
    year = await _get_year(db, school_id, year_id)

    await _clear_current(db, school_id)
    year.is_current = True
    year.is_active = True
    year.status = AcademicYearStatus.ACTIVE.value
    await db.commit()
    await db.refresh(year)

    logger.info(f"[AcademicYears] '{year.name}' is now current in school {school_id}")
    return success(_payload(year))


@router.delete("/{year_id}")
async def delete_academic_year(
    year_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    year = await _get_year(db, str(admin.school_id), year_id)
    terms = await db.execute(select(func.count(AcademicTerm.id)).where(AcademicTerm.academic_year_id == year.id))
    if terms.scalar():
        raise ConflictError("Cannot delete an academic year that still has terms")

    await db.delete(year)
    await db.commit()
    return success(message="Academic year deleted")


# ==================== Terms ====================

@router.get("/{year_id}/terms")
async def list_terms(
    year_id: str,
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    year = await _get_year(db, str(current_user.school_id), year_id)
    result = await db.execute(
        select(AcademicTerm).where(AcademicTerm.academic_year_id == year.id).order_by(AcademicTerm.start_date)
    )
    return success([AcademicTermResponse.model_validate(t).model_dump(mode="json") for t in result.scalars().all()])


@router.post("/{year_id}/terms", status_code=status.HTTP_201_CREATED)
async def create_term(
    year_id: str,
    data: AcademicTermCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    year = await _get_year(db, str(admin.school_id), year_id)
    _check_dates(data.start_date, data.end_date)
    if data.start_date < year.start_date or data.end_date > year.end_date:
        raise ValidationError(
            f"Term must fall between {year.start_date.isoformat()} and {year.end_date.isoformat()}",
            field="start_date",
        )

    term = AcademicTerm(school_id=year.school_id, academic_year_id=year.id, **_plain(data.model_dump()))
    db.add(term)
    await db.commit()
    await db.refresh(term)
    return success(AcademicTermResponse.model_validate(term).model_dump(mode="json"))
