"""
Account links - login accounts attached to student and teacher records

A Student may point at its own STUDENT login (user_id) and a PARENT login
(parent_id); a Teacher may point at a TEACHER login. The portals resolve
"my record" through these columns, so each link must name an active user of
the same school with the matching role, and a student or teacher login may
back only one record.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.exceptions import ConflictError, ValidationError
from app.models.student import Student
from app.models.teacher import Teacher
from app.models.user import User, UserRole


async def ensure_linked_user(
    db: AsyncSession,
    school_id: str,
    user_id: Optional[str],
    role: UserRole,
    field: str
) -> None:
    """
    Raises:
        ValidationError: no such user in the school, or it has another role
    """
    if user_id is None:
        return
    result = await db.execute(
        select(User).where(User.id == str(user_id), User.school_id == str(school_id))
    )
    user = result.scalar_one_or_none()
    if not user:
        raise ValidationError(f"No user '{user_id}' in this school", field=field)
    if user.role != role:
        raise ValidationError(f"User '{user_id}' is not a {role.value} account", field=field)


async def ensure_student_links(
    db: AsyncSession,
    school_id: str,
    values: dict,
    exclude_id: Optional[str] = None
) -> None:
    """Check user_id / parent_id in a student create or update payload"""
    await ensure_linked_user(db, school_id, values.get("user_id"), UserRole.STUDENT, "user_id")
    await ensure_linked_user(db, school_id, values.get("parent_id"), UserRole.PARENT, "parent_id")

    if values.get("user_id"):
        query = select(Student.id).where(Student.user_id == str(values["user_id"]))
        if exclude_id:
            query = query.where(Student.id != exclude_id)
        if (await db.execute(query)).first():
            raise ConflictError("This login is already linked to another student", field="user_id")


async def ensure_teacher_link(
    db: AsyncSession,
    school_id: str,
    values: dict,
    exclude_id: Optional[str] = None
) -> None:
    await ensure_linked_user(db, school_id, values.get("user_id"), UserRole.TEACHER, "user_id")

    if values.get("user_id"):
        query = select(Teacher.id).where(Teacher.user_id == str(values["user_id"]))
        if exclude_id:
            query = query.where(Teacher.id != exclude_id)
        if (await db.execute(query)).first():
            raise ConflictError("This login is already linked to another teacher", field="user_id")
