from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import date
from typing import Optional, List, Dict, Any

from app.api.deps import get_staff_user
from app.api.v1.endpoints.students import get_school_student
from app.core.database import get_db
from app.core.exceptions import ValidationError
from app.core.logging_config import logger
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.student import Student
from app.models.user import User
from app.schemas.attendance import AttendanceMark, AttendanceResponse
from app.utils.responses import success

router = APIRouter()


def summarize(records: List[AttendanceRecord]) -> Dict[str, Any]:
    """{total, present, absent, late, leave, attendance_rate}; late counts as attended"""
    summary = {s.value: 0 for s in AttendanceStatus}
    for record in records:
        if record.status in summary:
            summary[record.status] += 1
    total = len(records)
    attended = summary[AttendanceStatus.PRESENT.value] + summary[AttendanceStatus.LATE.value]
    return {
        "total": total,
        **summary,
        "attendance_rate": round(attended * 100 / total, 2) if total else 0.0,
    }


async def student_attendance(db: AsyncSession, student: Student, limit: int = 100) -> Dict[str, Any]:
    """Recent records plus the summary over all of them"""
    result = await db.execute(
        select(AttendanceRecord)
        .where(AttendanceRecord.student_id == student.id)
        .order_by(AttendanceRecord.date.desc())
    )
    records = list(result.scalars().all())
    return {
        "records": [AttendanceResponse.model_validate(r).model_dump(mode="json") for r in records[:limit]],
        "summary": summarize(records),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def mark_attendance(
    data: AttendanceMark,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    """Upsert one record per student for the given date"""
    school_id = str(current_user.school_id)
    student_ids = [entry.student_id for entry in data.records]
    if len(set(student_ids)) != len(student_ids):
        raise ValidationError("Each student may appear only once", field="records")

    result = await db.execute(
        select(Student.id).where(Student.school_id == school_id, Student.id.in_(student_ids))
    )
    known = set(result.scalars().all())
    unknown = [sid for sid in student_ids if sid not in known]
    if unknown:
        raise ValidationError(f"Unknown students: {', '.join(unknown)}", field="records")

    existing_result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.student_id.in_(student_ids),
            AttendanceRecord.date == data.date,
        )
    )
    existing = {r.student_id: r for r in existing_result.scalars().all()}

    created = updated = 0
    for entry in data.records:
        record = existing.get(entry.student_id)
        if record:
            record.status = entry.status.value
            record.remarks = entry.remarks
            record.marked_by = str(current_user.id)
            updated += 1
        else:
            db.add(AttendanceRecord(
                school_id=school_id,
                student_id=entry.student_id,
                date=data.date,
                status=entry.status.value,
                remarks=entry.remarks,
                marked_by=str(current_user.id),
            ))
            created += 1
    await db.commit()

    logger.info(f"[Attendance] {data.date}: {created} created, {updated} updated in school {school_id}")
    return success({"date": data.date.isoformat(), "created": created, "updated": updated})


@router.get("")
async def list_attendance(
    class_name: Optional[str] = None,
    section: Optional[str] = None,
    attendance_date: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    """A day's register: every matching student with their status (null when unmarked)"""
    school_id = str(current_user.school_id)
    day = attendance_date or date.today()

    students_query = select(Student).where(Student.school_id == school_id)
    if class_name:
        students_query = students_query.where(Student.class_name == class_name)
    if section:
        students_query = students_query.where(Student.section == section)
    students = list((await db.execute(students_query.order_by(Student.roll_number, Student.name))).scalars().all())

    records_result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.school_id == school_id,
            AttendanceRecord.date == day,
            AttendanceRecord.student_id.in_([s.id for s in students]),
        )
    )
    records = {r.student_id: r for r in records_result.scalars().all()}

    return success({
        "date": day.isoformat(),
        "students": [
            {
                "student_id": s.id,
                "school_student_id": s.student_id,
                "name": s.name,
                "name_bn": s.name_bn,
                "roll_number": s.roll_number,
                "status": records[s.id].status if s.id in records else None,
                "remarks": records[s.id].remarks if s.id in records else None,
            }
            for s in students
        ],
        "summary": summarize(list(records.values())),
    })


@router.get("/students/{student_id}")
async def get_student_attendance(
    student_id: str,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    student = await get_school_student(db, str(current_user.school_id), student_id)
    return success(await student_attendance(db, student))
