from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import Optional

from app.api.deps import get_school_user, get_current_admin, get_super_admin
from app.core.database import get_db
from app.core.exceptions import SchoolNotFoundError
from app.models.school import School
from app.models.user import User
from app.schemas.school import SchoolUpdate, SchoolResponse
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


async def _current_school(db: AsyncSession, user: User) -> School:
    school = await db.get(School, str(user.school_id))
    if not school:
        raise SchoolNotFoundError(user.school_id)
    return school


@router.get("/current")
async def get_current_school(
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    school = await _current_school(db, current_user)
    return success(SchoolResponse.model_validate(school).model_dump(mode="json"))


@router.put("/current")
async def update_current_school(
    data: SchoolUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school = await _current_school(db, admin)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(school, field, value)
    await db.commit()
    await db.refresh(school)
    return success(SchoolResponse.model_validate(school).model_dump(mode="json"))


@router.get("")
async def list_schools(
    search: Optional[str] = Query(None, max_length=100),
    is_active: Optional[bool] = None,
    pagination: PaginationParams = Depends(pagination_params),
    _: User = Depends(get_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """All tenants (platform operators only)"""
    query = select(School)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(School.name.ilike(pattern), School.name_bn.ilike(pattern), School.eiin.ilike(pattern)))
    if is_active is not None:
        query = query.where(School.is_active.is_(is_active))
    query = query.order_by(School.created_at.desc())

    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=SchoolResponse))
