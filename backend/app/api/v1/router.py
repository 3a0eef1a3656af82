from fastapi import APIRouter
from app.api.v1.endpoints import (
    health,
    auth,
    users,
    schools,
    students,
    teachers,
    attendance,
    credits,
    documents,
    admit_cards,
    fee_receipts,
    financial,
    academic_years,
    notifications,
    library,
    inventory,
    transport,
    parent_portal,
    student_portal,
    teacher_portal,
    dashboard,
    public,
)

api_router = APIRouter()

# Deep health checks (use /health/ready for the load balancer)
api_router.include_router(health.router)

# Authentication and accounts
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(schools.router, prefix="/schools", tags=["Schools"])

# School records
api_router.include_router(students.router, prefix="/students", tags=["Students"])
api_router.include_router(teachers.router, prefix="/teachers", tags=["Teachers"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
api_router.include_router(academic_years.router, prefix="/academic-years", tags=["Academic Years"])

# Credits and documents
api_router.include_router(credits.router, prefix="/credits", tags=["Credits"])
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(admit_cards.router, prefix="/admit-cards", tags=["Admit Cards"])
api_router.include_router(fee_receipts.router, prefix="/fee-receipts", tags=["Fee Receipts"])
api_router.include_router(financial.router, prefix="/financial", tags=["Finance"])

# Communication
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

# School operations
api_router.include_router(library.router, prefix="/library", tags=["Library"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["Inventory"])
api_router.include_router(transport.router, prefix="/transport", tags=["Transport"])

# Role portals
api_router.include_router(parent_portal.router, prefix="/parent", tags=["Parent Portal"])
api_router.include_router(student_portal.router, prefix="/student-portal", tags=["Student Portal"])
api_router.include_router(teacher_portal.router, prefix="/teacher-portal", tags=["Teacher Portal"])

# Overview and public pages
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(public.router, prefix="/public", tags=["Public"])
