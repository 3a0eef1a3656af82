from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import Optional

from app.api.deps import get_current_admin, get_staff_user
from app.core.database import get_db
from app.core.exceptions import ConflictError, TeacherNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models.teacher import Teacher
from app.models.user import User
from app.schemas.teacher import TeacherCreate, TeacherUpdate, TeacherResponse
from app.services.account_links import ensure_teacher_link
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


async def _get_teacher(db: AsyncSession, school_id: str, teacher_id: str) -> Teacher:
    result = await db.execute(
        select(Teacher).where(Teacher.id == teacher_id, Teacher.school_id == school_id)
    )
    teacher = result.scalar_one_or_none()
    if not teacher:
        raise TeacherNotFoundError(teacher_id)
    return teacher


async def _teacher_id_taken(db: AsyncSession, school_id: str, teacher_id: str, exclude_id: Optional[str] = None) -> bool:
    query = select(Teacher.id).where(Teacher.school_id == school_id, Teacher.teacher_id == teacher_id)
    if exclude_id:
        query = query.where(Teacher.id != exclude_id)
    result = await db.execute(query)
    return result.scalar_one_or_none() is not None


@router.get("")
async def list_teachers(
    subject: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(Teacher).where(Teacher.school_id == str(current_user.school_id))
    if subject:
        query = query.where(Teacher.subject == subject)
    if is_active is not None:
        query = query.where(Teacher.is_active.is_(is_active))
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Teacher.name.ilike(pattern),
            Teacher.name_bn.ilike(pattern),
            Teacher.teacher_id.ilike(pattern),
        ))
    query = query.order_by(Teacher.name)

    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=TeacherResponse))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_teacher(
    data: TeacherCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(admin.school_id)
    if await _teacher_id_taken(db, school_id, data.teacher_id):
        raise ConflictError(f"Teacher ID '{data.teacher_id}' already exists", field="teacher_id")
    await ensure_teacher_link(db, school_id, data.model_dump())

    teacher = Teacher(school_id=school_id, **data.model_dump())
    db.add(teacher)
    await db.commit()
    await db.refresh(teacher)

    logger.info(f"[Teachers] Created {teacher.teacher_id} in school {school_id}")
    return success(TeacherResponse.model_validate(teacher).model_dump(mode="json"))


@router.get("/{teacher_id}")
async def get_teacher(
    teacher_id: str,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    teacher = await _get_teacher(db, str(current_user.school_id), teacher_id)
    return success(TeacherResponse.model_validate(teacher).model_dump(mode="json"))


@router.put("/{teacher_id}")
async def update_teacher(
    teacher_id: str,
    data: TeacherUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(admin.school_id)
    teacher = await _get_teacher(db, school_id, teacher_id)
    values = data.model_dump(exclude_unset=True)

    if values.get("teacher_id") and await _teacher_id_taken(db, school_id, values["teacher_id"], exclude_id=teacher.id):
        raise ConflictError(f"Teacher ID '{values['teacher_id']}' already exists", field="teacher_id")
    for required in ("teacher_id", "name"):
        if required in values and values[required] is None:
            raise ValidationError(f"{required} cannot be empty", field=required)
    await ensure_teacher_link(db, school_id, values, exclude_id=teacher.id)

    for field, value in values.items():
        setattr(teacher, field, value)
    await db.commit()
    await db.refresh(teacher)

    return success(TeacherResponse.model_validate(teacher).model_dump(mode="json"))


@router.delete("/{teacher_id}")
async def delete_teacher(
    teacher_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    teacher = await _get_teacher(db, str(admin.school_id), teacher_id)
    await db.delete(teacher)
    await db.commit()

    logger.info(f"[Teachers] Deleted {teacher.teacher_id} from school {admin.school_id}")
    return success(message="Teacher deleted")
