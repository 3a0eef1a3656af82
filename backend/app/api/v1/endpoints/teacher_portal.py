from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, or_
from datetime import date
from typing import Optional, List

from app.api.deps import require_roles
from app.api.v1.endpoints.notifications import recent_notifications
from app.core.database import get_db
from app.core.exceptions import AuthorizationError, ResourceNotFoundError
from app.models.attendance import AttendanceRecord
from app.models.student import Student
from app.models.teacher import Teacher
from app.models.user import User, UserRole
from app.schemas.student import StudentResponse
from app.schemas.teacher import TeacherResponse
from app.utils.responses import success

router = APIRouter()

get_teacher_user = require_roles(UserRole.TEACHER)


async def get_own_teacher(db: AsyncSession, user: User) -> Teacher:
    result = await db.execute(
        select(Teacher).where(Teacher.user_id == str(user.id), Teacher.school_id == str(user.school_id))
    )
    teacher = result.scalar_one_or_none()
    if not teacher:
        raise ResourceNotFoundError("Teacher profile", user.id)
    return teacher


def _class_filter(teacher: Teacher):
    """Students in any of the teacher's assigned classes (a blank section means every section)"""
    clauses = []
    for entry in teacher.classes or []:
        condition = Student.class_name == str(entry.get("class_name"))
        if entry.get("section"):
            condition = and_(condition, Student.section == entry["section"])
        clauses.append(condition)
    return or_(*clauses) if clauses else None


async def _assigned_classes(db: AsyncSession, teacher: Teacher) -> List[dict]:
    classes = []
    for entry in teacher.classes or []:
        query = select(func.count(Student.id)).where(
            Student.school_id == teacher.school_id,
            Student.class_name == str(entry.get("class_name")),
        )
        if entry.get("section"):
            query = query.where(Student.section == entry["section"])
        classes.append({
            "class_name": entry.get("class_name"),
            "section": entry.get("section"),
            "subject": entry.get("subject"),
            "student_count": (await db.execute(query)).scalar() or 0,
        })
    return classes


@router.get("/dashboard")
async def get_dashboard(
    user: User = Depends(get_teacher_user),
    db: AsyncSession = Depends(get_db)
):
    teacher = await get_own_teacher(db, user)
    classes = await _assigned_classes(db, teacher)

    marked_today = await db.execute(
        select(func.count(AttendanceRecord.id)).where(
            AttendanceRecord.school_id == teacher.school_id,
            AttendanceRecord.marked_by == str(user.id),
            AttendanceRecord.date == date.today(),
        )
    )
    notifications = await recent_notifications(db, user, limit=5)

    return success({
        "teacher": TeacherResponse.model_validate(teacher).model_dump(mode="json"),
        "classes": classes,
        "total_students": sum(c["student_count"] for c in classes),
        "attendance_marked_today": marked_today.scalar() or 0,
        "unread_notifications": notifications["unread"],
    })


@router.get("/classes")
async def get_classes(
    user: User = Depends(get_teacher_user),
    db: AsyncSession = Depends(get_db)
):
    teacher = await get_own_teacher(db, user)
    return success(await _assigned_classes(db, teacher))


@router.get("/classes/{class_name}/students")
async def get_class_students(
    class_name: str,
    section: Optional[str] = None,
    user: User = Depends(get_teacher_user),
    db: AsyncSession = Depends(get_db)
):
    """Roster of an assigned class; other classes are off limits"""
    teacher = await get_own_teacher(db, user)
    if not teacher.teaches(class_name, section):
        raise AuthorizationError("This class is not assigned to you")

    query = select(Student).where(Student.school_id == teacher.school_id, Student.class_name == class_name)
    if section:
        query = query.where(Student.section == section)
    else:
        scope = _class_filter(teacher)
        if scope is not None:
            query = query.where(scope)
    result = await db.execute(query.order_by(Student.section, Student.roll_number, Student.name))

    return success([StudentResponse.model_validate(s).model_dump(mode="json") for s in result.scalars().all()])


@router.get("/notifications")
async def get_teacher_notifications(
    user: User = Depends(get_teacher_user),
    db: AsyncSession = Depends(get_db)
):
    return success(await recent_notifications(db, user))
