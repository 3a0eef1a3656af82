from fastapi import APIRouter, Depends, Query, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import Optional

from app.api.deps import get_school_user, get_current_admin, get_staff_user
from app.core.database import get_db
from app.core.exceptions import ConflictError, StudentNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models.student import Student, StudentStatus
from app.models.user import User
from app.schemas.student import StudentCreate, StudentUpdate, StudentResponse, StudentBulkCreate
from app.services.account_links import ensure_student_links
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


async def get_school_student(db: AsyncSession, school_id: str, student_id: str) -> Student:
    """Student by primary key within the school, else 404"""
    result = await db.execute(
        select(Student).where(Student.id == student_id, Student.school_id == school_id)
    )
    student = result.scalar_one_or_none()
    if not student:
        raise StudentNotFoundError(student_id)
    return student


async def _student_id_taken(db: AsyncSession, school_id: str, student_id: str, exclude_id: Optional[str] = None) -> bool:
    query = select(Student.id).where(Student.school_id == school_id, Student.student_id == student_id)
    if exclude_id:
        query = query.where(Student.id != exclude_id)
    result = await db.execute(query)
    return result.scalar_one_or_none() is not None


def _student_values(data) -> dict:
    values = data.model_dump(exclude_unset=True)
    if "status" in values and isinstance(values["status"], StudentStatus):
        values["status"] = values["status"].value
    return values


@router.get("")
async def list_students(
    class_name: Optional[str] = None,
    section: Optional[str] = None,
    status_filter: Optional[StudentStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(Student).where(Student.school_id == str(current_user.school_id))
    if class_name:
        query = query.where(Student.class_name == class_name)
    if section:
        query = query.where(Student.section == section)
    if status_filter:
        query = query.where(Student.status == status_filter.value)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Student.name.ilike(pattern),
            Student.name_bn.ilike(pattern),
            Student.student_id.ilike(pattern),
        ))
    query = query.order_by(Student.class_name, Student.section, Student.roll_number, Student.name)

    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=StudentResponse))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_student(
    data: StudentCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(admin.school_id)
    if await _student_id_taken(db, school_id, data.student_id):
        raise ConflictError(f"Student ID '{data.student_id}' already exists", field="student_id")
    await ensure_student_links(db, school_id, data.model_dump())

    student = Student(school_id=school_id, **_student_values(data))
    db.add(student)
    await db.commit()
    await db.refresh(student)

    logger.info(f"[Students] Created {student.student_id} in school {school_id}")
    return success(StudentResponse.model_validate(student).model_dump(mode="json"))


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
async def bulk_create_students(
    data: StudentBulkCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Import many students. Each row is validated on its own; failures are
    reported by index and do not stop the other rows.
    """
    school_id = str(admin.school_id)
    created = []
    errors = []
    seen_ids = set()
    seen_logins = set()

    for index, row in enumerate(data.students):
        row_student_id = row.get("student_id") if isinstance(row, dict) else None
        try:
            student_data = StudentCreate.model_validate(row)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ()))
            errors.append({"index": index, "student_id": row_student_id, "error": f"{field}: {first.get('msg')}"})
            continue

        if student_data.student_id in seen_ids or await _student_id_taken(db, school_id, student_data.student_id):
            errors.append({
                "index": index,
                "student_id": student_data.student_id,
                "error": f"Student ID '{student_data.student_id}' already exists",
            })
            continue

        try:
            if student_data.user_id and student_data.user_id in seen_logins:
                raise ConflictError("This login is already linked to another student", field="user_id")
            await ensure_student_links(db, school_id, student_data.model_dump())
        except (ValidationError, ConflictError) as e:
            errors.append({"index": index, "student_id": student_data.student_id, "error": e.message})
            continue

        seen_ids.add(student_data.student_id)
        if student_data.user_id:
            seen_logins.add(student_data.user_id)
        student = Student(school_id=school_id, **_student_values(student_data))
        db.add(student)
        created.append(student)

    await db.commit()
    for student in created:
        await db.refresh(student)

    logger.info(f"[Students] Bulk import in school {school_id}: {len(created)} created, {len(errors)} failed")
    return success({
        "created": [StudentResponse.model_validate(s).model_dump(mode="json") for s in created],
        "errors": errors,
        "summary": {"total": len(data.students), "successful": len(created), "failed": len(errors)},
    })


@router.get("/{student_id}")
async def get_student(
    student_id: str,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    student = await get_school_student(db, str(current_user.school_id), student_id)
    return success(StudentResponse.model_validate(student).model_dump(mode="json"))


@router.put("/{student_id}")
async def update_student(
    student_id: str,
    data: StudentUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(admin.school_id)
    student = await get_school_student(db, school_id, student_id)
    values = _student_values(data)

    if values.get("student_id") and await _student_id_taken(db, school_id, values["student_id"], exclude_id=student.id):
        raise ConflictError(f"Student ID '{values['student_id']}' already exists", field="student_id")
    for required in ("student_id", "name", "class_name"):
        if required in values and values[required] is None:
            raise ValidationError(f"{required} cannot be empty", field=required)
    await ensure_student_links(db, school_id, values, exclude_id=student.id)

    for field, value in values.items():
        setattr(student, field, value)
    await db.commit()
    await db.refresh(student)

    return success(StudentResponse.model_validate(student).model_dump(mode="json"))


@router.delete("/{student_id}")
async def delete_student(
    student_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    student = await get_school_student(db, str(admin.school_id), student_id)
    await db.delete(student)
    await db.commit()

    logger.info(f"[Students] Deleted {student.student_id} from school {admin.school_id}")
    return success(message="Student deleted")
