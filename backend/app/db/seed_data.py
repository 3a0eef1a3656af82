"""
Database seeding script for a demo school

Usage:
    shikkhahub-seed          # seed (safe to run twice)
    shikkhahub-seed clear    # delete everything
"""
import asyncio
import sys
from datetime import date, datetime, timedelta

from sqlalchemy import select, delete

from app.core.config import settings
from app.core.database import init_db, session_scope
from app.core.logging_config import logger
from app.core.security import get_password_hash
from app.models import (
    School, User, UserRole, Student, Teacher,
    CreditBalance, CreditPackage, CreditTransaction, CreditUsageLog,
    DocumentTemplate, GeneratedDocument, AdmitCard, AdmitCardHistory, FeeReceipt, FeeItem,
    Notification, NotificationRead, NotificationPriority, RecipientType,
    LibraryBook, BorrowedBook, InventoryItem, InventoryMovement,
    TransportRoute, TransportVehicle, StudentTransport, AttendanceRecord,
    AcademicYear, AcademicTerm, AcademicYearStatus,
    LedgerEntry, LedgerEntryType, LedgerCategory, Budget, FeeStructure, FeeFrequency,
)


DEMO_SCHOOL_CODE = "DEMO-001"
DEMO_PASSWORD = "Demo@12345"

DEMO_SCHOOL = {
    "name": "Dhaka Model High School",
    "name_bn": "ঢাকা মডেল উচ্চ বিদ্যালয়",
    "code": DEMO_SCHOOL_CODE,
    "eiin": "108234",
    "address": "House 12, Road 5, Dhanmondi, Dhaka",
    "address_bn": "বাড়ি ১২, রোড ৫, ধানমন্ডি, ঢাকা",
    "district": "Dhaka",
    "phone": "01711000000",
    "email": "info@dhakamodel.edu.bd",
    "principal_name": "Md. Abdul Karim",
    "established_year": 1985,
}

DEMO_USERS = [
    {"email": "superadmin@shikkhahub.com", "full_name": "Platform Admin", "role": UserRole.SUPER_ADMIN, "school": False},
    {"email": "admin@dhakamodel.edu.bd", "full_name": "Rahima Begum", "full_name_bn": "রহিমা বেগম", "role": UserRole.ADMIN},
    {"email": "teacher@dhakamodel.edu.bd", "full_name": "Kamal Hossain", "full_name_bn": "কামাল হোসেন", "role": UserRole.TEACHER},
    {"email": "student@dhakamodel.edu.bd", "full_name": "Nusrat Jahan", "full_name_bn": "নুসরাত জাহান", "role": UserRole.STUDENT},
    {"email": "parent@dhakamodel.edu.bd", "full_name": "Abdur Rahman", "full_name_bn": "আব্দুর রহমান", "role": UserRole.PARENT},
]

SAMPLE_STUDENTS = [
    {"student_id": "2024-0601", "name": "Nusrat Jahan", "name_bn": "নুসরাত জাহান", "class_name": "6", "section": "A", "roll_number": "1", "gender": "female", "father_name": "Abdur Rahman", "mother_name": "Salma Khatun"},
    {"student_id": "2024-0602", "name": "Tanvir Ahmed", "name_bn": "তানভীর আহমেদ", "class_name": "6", "section": "A", "roll_number": "2", "gender": "male", "father_name": "Abdur Rahman", "mother_name": "Salma Khatun"},
    {"student_id": "2024-0603", "name": "Sadia Islam", "name_bn": "সাদিয়া ইসলাম", "class_name": "6", "section": "B", "roll_number": "1", "gender": "female", "father_name": "Rafiqul Islam", "mother_name": "Nasrin Akter"},
    {"student_id": "2024-0701", "name": "Arif Hasan", "name_bn": "আরিফ হাসান", "class_name": "7", "section": "A", "roll_number": "1", "gender": "male", "father_name": "Jahid Hasan", "mother_name": "Rokeya Begum"},
    {"student_id": "2024-1001", "name": "Mim Chowdhury", "name_bn": "মিম চৌধুরী", "class_name": "10", "section": "A", "roll_number": "1", "gender": "female", "father_name": "Enamul Chowdhury", "mother_name": "Farzana Chowdhury"},
]

SAMPLE_PACKAGES = [
    {"name": "Free Trial", "name_bn": "ফ্রি ট্রায়াল", "credits": 20, "bonus_credits": 0, "price": 0, "description": "One-time starter credits"},
    {"name": "Basic", "name_bn": "বেসিক", "credits": 100, "bonus_credits": 10, "price": 500, "description": "For small schools"},
    {"name": "Standard", "name_bn": "স্ট্যান্ডার্ড", "credits": 500, "bonus_credits": 75, "price": 2000, "description": "Most schools pick this", "is_popular": True},
    {"name": "Premium", "name_bn": "প্রিমিয়াম", "credits": 1500, "bonus_credits": 300, "price": 5000, "description": "Large schools and exam seasons"},
]

SAMPLE_BOOKS = [
    {"title": "Pather Panchali", "title_bn": "পথের পাঁচালী", "author": "Bibhutibhushan Bandyopadhyay", "category": "Literature", "total_copies": 3},
    {"title": "Gitanjali", "title_bn": "গীতাঞ্জলি", "author": "Rabindranath Tagore", "category": "Poetry", "total_copies": 2},
    {"title": "Agnibina", "title_bn": "অগ্নিবীণা", "author": "Kazi Nazrul Islam", "category": "Poetry", "total_copies": 2},
    {"title": "General Mathematics (Class 6)", "title_bn": "সাধারণ গণিত (ষষ্ঠ শ্রেণি)", "author": "NCTB", "category": "Textbook", "total_copies": 10},
]

SAMPLE_INVENTORY = [
    {"name": "Student Bench", "name_bn": "ছাত্র বেঞ্চ", "category": "Furniture", "unit_price": 3500, "current_quantity": 120, "minimum_threshold": 20, "unit": "piece"},
    {"name": "Whiteboard Marker", "name_bn": "হোয়াইটবোর্ড মার্কার", "category": "Stationery", "unit_price": 60, "current_quantity": 8, "minimum_threshold": 25, "unit": "piece"},
    {"name": "A4 Paper", "name_bn": "এ৪ কাগজ", "category": "Stationery", "unit_price": 550, "current_quantity": 15, "minimum_threshold": 10, "unit": "ream"},
    {"name": "Desktop Computer", "name_bn": "ডেস্কটপ কম্পিউটার", "category": "Electronics", "unit_price": 45000, "current_quantity": 12, "minimum_threshold": 2, "unit": "piece"},
]


async def seed_school(db) -> School:
    result = await db.execute(select(School).where(School.code == DEMO_SCHOOL_CODE))
    school = result.scalar_one_or_none()
    if school:
        print(f"Demo school already exists: {school.name}")
        return school

    school = School(**DEMO_SCHOOL)
    db.add(school)
    await db.flush()
    print(f"Created school: {school.name}")
    return school


async def seed_users(db, school: School) -> dict:
    users = {}
    for data in DEMO_USERS:
        data = dict(data)
        in_school = data.pop("school", True)
        result = await db.execute(select(User).where(User.email == data["email"]))
        user = result.scalar_one_or_none()
        if not user:
            user = User(
                **data,
                school_id=school.id if in_school else None,
                hashed_password=get_password_hash(DEMO_PASSWORD),
            )
            db.add(user)
            print(f"Created {data['role'].value}: {data['email']}")
        users[data["role"]] = user
    await db.flush()
    return users


async def seed_students(db, school: School, users: dict) -> list:
    existing = await db.execute(select(Student).where(Student.school_id == school.id))
    students = list(existing.scalars().all())
    if students:
        print(f"Students already seeded ({len(students)})")
        return students

    student_user = users[UserRole.STUDENT]
    parent_user = users[UserRole.PARENT]
    for data in SAMPLE_STUDENTS:
        student = Student(
            school_id=school.id,
            admission_date=date(2024, 1, 2),
            district="Dhaka",
            guardian_name=data["father_name"],
            guardian_phone="01811000000",
            guardian_relation="father",
            **data,
        )
        # Nusrat and Tanvir are siblings under the demo parent account
        if data["father_name"] == "Abdur Rahman":
            student.parent_id = parent_user.id
        if data["name"] == student_user.full_name:
            student.user_id = student_user.id
        db.add(student)
        students.append(student)

    await db.flush()
    print(f"Created {len(students)} students")
    return students


async def seed_teacher(db, school: School, users: dict) -> Teacher:
    teacher_user = users[UserRole.TEACHER]
    result = await db.execute(select(Teacher).where(Teacher.user_id == teacher_user.id))
    teacher = result.scalar_one_or_none()
    if teacher:
        return teacher

    teacher = Teacher(
        school_id=school.id,
        teacher_id="T-001",
        name=teacher_user.full_name,
        name_bn=teacher_user.full_name_bn,
        designation="Assistant Teacher",
        designation_bn="সহকারী শিক্ষক",
        subject="Mathematics",
        qualification="M.Sc in Mathematics",
        email=teacher_user.email,
        joining_date=date(2018, 7, 1),
        classes=[
            {"class_name": "6", "section": "A", "subject": "Mathematics"},
            {"class_name": "7", "section": None, "subject": "Mathematics"},
        ],
        user_id=teacher_user.id,
    )
    db.add(teacher)
    await db.flush()
    print(f"Created teacher: {teacher.name}")
    return teacher


async def seed_credits(db, school: School) -> None:
    result = await db.execute(select(CreditPackage))
    if not result.scalars().first():
        for data in SAMPLE_PACKAGES:
            db.add(CreditPackage(**data))
        print(f"Created {len(SAMPLE_PACKAGES)} credit packages")

    result = await db.execute(select(CreditBalance).where(CreditBalance.school_id == school.id))
    if not result.scalar_one_or_none():
        db.add(CreditBalance(
            school_id=school.id,
            current_credits=settings.DEFAULT_SCHOOL_CREDITS,
            bonus_credits=settings.DEFAULT_SCHOOL_CREDITS,
        ))
        print(f"Credit balance opened with {settings.DEFAULT_SCHOOL_CREDITS} credits")
    await db.flush()


async def seed_library(db, school: School) -> None:
    result = await db.execute(select(LibraryBook).where(LibraryBook.school_id == school.id))
    if result.scalars().first():
        return
    for data in SAMPLE_BOOKS:
        db.add(LibraryBook(school_id=school.id, available_copies=data["total_copies"], **data))
    await db.flush()
    print(f"Created {len(SAMPLE_BOOKS)} library books")


async def seed_inventory(db, school: School) -> None:
    result = await db.execute(select(InventoryItem).where(InventoryItem.school_id == school.id))
    if result.scalars().first():
        return
    for data in SAMPLE_INVENTORY:
        db.add(InventoryItem(school_id=school.id, location="Store room", **data))
    await db.flush()
    print(f"Created {len(SAMPLE_INVENTORY)} inventory items")


async def seed_transport(db, school: School, students: list) -> None:
    result = await db.execute(select(TransportRoute).where(TransportRoute.school_id == school.id))
    if result.scalars().first():
        return

    route = TransportRoute(
        school_id=school.id,
        route_name="Mirpur - Dhanmondi",
        route_name_bn="মিরপুর - ধানমন্ডি",
        start_point="Mirpur 10",
        end_point="Dhanmondi 5",
        pickup_points=[
            {"name": "Mirpur 10", "time": "06:45"},
            {"name": "Shyamoli", "time": "07:05"},
            {"name": "Kalabagan", "time": "07:20"},
        ],
        morning_time="06:45",
        afternoon_time="13:30",
        distance_km=11.5,
        monthly_fee=1500,
    )
    db.add(route)
    await db.flush()

    vehicle = TransportVehicle(
        school_id=school.id,
        route_id=route.id,
        vehicle_number="DHAKA METRO-BA-11-2345",
        vehicle_type="bus",
        capacity=40,
        driver_name="Shahidul Islam",
        driver_phone="01911000000",
    )
    db.add(vehicle)
    await db.flush()

    if students:
        db.add(StudentTransport(
            school_id=school.id,
            student_id=students[0].id,
            route_id=route.id,
            vehicle_id=vehicle.id,
            pickup_point="Shyamoli",
            drop_point="Shyamoli",
            monthly_fee=route.monthly_fee,
        ))
    await db.flush()
    print("Created transport route, vehicle and assignment")


async def seed_notifications(db, school: School, users: dict) -> None:
    result = await db.execute(select(Notification).where(Notification.school_id == school.id))
    if result.scalars().first():
        return

    admin = users[UserRole.ADMIN]
    db.add(Notification(
        school_id=school.id,
        title="Welcome to Shikkha Hub",
        title_bn="শিক্ষা হাবে স্বাগতম",
        message="Your school account is ready. Start by adding students and teachers.",
        message_bn="আপনার স্কুল অ্যাকাউন্ট প্রস্তুত। শিক্ষার্থী ও শিক্ষক যোগ করে শুরু করুন।",
        recipient_type=RecipientType.ALL.value,
        sender_id=admin.id,
        sender_name=admin.full_name,
    ))
    db.add(Notification(
        school_id=school.id,
        title="Half-yearly exam routine published",
        title_bn="অর্ধবার্ষিক পরীক্ষার রুটিন প্রকাশিত",
        message="The half-yearly examination starts next month. Collect admit cards from the office.",
        message_bn="আগামী মাসে অর্ধবার্ষিক পরীক্ষা শুরু। অফিস থেকে প্রবেশপত্র সংগ্রহ করুন।",
        priority=NotificationPriority.HIGH.value,
        category="Exam",
        category_bn="পরীক্ষা",
        recipient_type=RecipientType.PUBLIC.value,
        is_public=True,
        is_live=True,
        sender_id=admin.id,
        sender_name=admin.full_name,
        expires_at=datetime.utcnow() + timedelta(days=30),
    ))
    await db.flush()
    print("Created notifications")


async def seed_academic_year(db, school: School) -> None:
    result = await db.execute(select(AcademicYear).where(AcademicYear.school_id == school.id))
    if result.scalars().first():
        return

    year_number = date.today().year
    year = AcademicYear(
        school_id=school.id,
        name=f"Academic Year {year_number}",
        name_bn=f"শিক্ষাবর্ষ {year_number}",
        start_date=date(year_number, 1, 1),
        end_date=date(year_number, 12, 31),
        is_active=True,
        is_current=True,
        status=AcademicYearStatus.ACTIVE.value,
    )
    db.add(year)
    await db.flush()

    for name, name_bn, start, end in (
        ("First Term", "প্রথম সাময়িক", date(year_number, 1, 1), date(year_number, 4, 30)),
        ("Half Yearly", "অর্ধবার্ষিক", date(year_number, 5, 1), date(year_number, 8, 31)),
        ("Annual", "বার্ষিক", date(year_number, 9, 1), date(year_number, 12, 31)),
    ):
        db.add(AcademicTerm(
            school_id=school.id,
            academic_year_id=year.id,
            name=f"{name} {year_number}",
            name_bn=name_bn,
            start_date=start,
            end_date=end,
        ))
    await db.flush()
    print("Created academic year with 3 terms")


async def seed_finance(db, school: School, users: dict) -> None:
    result = await db.execute(select(FeeStructure).where(FeeStructure.school_id == school.id))
    if result.scalars().first():
        return

    admin = users[UserRole.ADMIN]
    for class_name, tuition in (("6", 800), ("7", 850), ("10", 1000)):
        db.add(FeeStructure(
            school_id=school.id,
            class_name=class_name,
            fee_type="Tuition Fee",
            fee_type_bn="বেতন",
            amount=tuition,
            frequency=FeeFrequency.MONTHLY.value,
            due_day=10,
            created_by=admin.id,
        ))

    today = date.today()
    db.add_all([
        LedgerEntry(
            school_id=school.id, type=LedgerEntryType.INCOME.value, category=LedgerCategory.FEE.value,
            amount=42000, description="Tuition collected", payment_method="cash",
            transaction_date=today, created_by=admin.id,
        ),
        LedgerEntry(
            school_id=school.id, type=LedgerEntryType.EXPENSE.value, category=LedgerCategory.UTILITY.value,
            amount=6500, description="DESCO electricity bill", payment_method="bkash",
            transaction_date=today, created_by=admin.id,
        ),
    ])
    db.add(Budget(
        school_id=school.id, name="Utilities", category=LedgerCategory.UTILITY.value, total_amount=60000,
        start_date=date(today.year, 1, 1), end_date=date(today.year, 12, 31), created_by=admin.id,
    ))
    await db.flush()
    print("Created fee structures, ledger entries and a budget")


async def seed_all():
    """Seed the demo school; rows that already exist are left alone"""
    print("=" * 50)
    print("Starting database seeding...")
    print("=" * 50)

    await init_db()

    try:
        async with session_scope() as db:
            school = await seed_school(db)
            users = await seed_users(db, school)
            students = await seed_students(db, school, users)
            await seed_teacher(db, school, users)
            await seed_credits(db, school)
            await seed_library(db, school)
            await seed_inventory(db, school)
            await seed_transport(db, school, students)
            await seed_notifications(db, school, users)
            await seed_academic_year(db, school)
            await seed_finance(db, school, users)
            await db.commit()
    except Exception as e:
        logger.error(f"Seeding failed: {e}", exc_info=True)
        raise

    print("=" * 50)
    print("Database seeding completed successfully!")
    print(f"Demo password for every account: {DEMO_PASSWORD}")
    print("=" * 50)


async def clear_all():
    """Clear all data from database"""
    print("Clearing all data...")
    async with session_scope() as db:
        # Delete in reverse order of dependencies
        for model in (
            AcademicTerm, AcademicYear, LedgerEntry, Budget, FeeStructure,
            StudentTransport, TransportVehicle, TransportRoute,
            InventoryMovement, InventoryItem, BorrowedBook, LibraryBook,
            NotificationRead, Notification, FeeItem, FeeReceipt, AdmitCardHistory, AdmitCard,
            GeneratedDocument, DocumentTemplate, CreditUsageLog, CreditTransaction,
            CreditBalance, CreditPackage, AttendanceRecord, Student, Teacher, User, School,
        ):
            await db.execute(delete(model))
        await db.commit()
        print("All data cleared!")


def main():
    if len(sys.argv) > 1 and sys.argv[1] == "clear":
        asyncio.run(clear_all())
    else:
        asyncio.run(seed_all())


if __name__ == "__main__":
    main()
