# API endpoints
from . import (
    health, auth, users, schools, students, teachers, attendance, academic_years, credits, documents,
    admit_cards, fee_receipts, financial, notifications, library, inventory, transport, parent_portal,
    student_portal, teacher_portal, dashboard, public,
)

__all__ = [
    "health", "auth", "users", "schools", "students", "teachers", "attendance", "academic_years", "credits",
    "documents", "admit_cards", "fee_receipts", "financial", "notifications", "library", "inventory",
    "transport", "parent_portal", "student_portal", "teacher_portal", "dashboard", "public",
]
