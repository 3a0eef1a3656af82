# Re-export all models for convenient imports
from app.models.school import School
from app.models.user import User, UserRole
from app.models.student import Student, StudentStatus
from app.models.teacher import Teacher
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.credit import (
    CreditBalance,
    CreditPackage,
    CreditTransaction,
    CreditUsageLog,
    CreditTransactionType,
    PaymentMethod,
)
from app.models.document import DocumentTemplate, GeneratedDocument, DocumentStatus
from app.models.admit_card import AdmitCard, AdmitCardHistory, AdmitCardStatus
from app.models.fee import FeeReceipt, FeeItem, FeeStatus
from app.models.notification import Notification, NotificationRead, NotificationType, NotificationPriority, RecipientType
from app.models.library import LibraryBook, BorrowedBook, BorrowStatus
from app.models.inventory import InventoryItem, InventoryMovement, MovementType, ItemCondition
from app.models.transport import TransportRoute, TransportVehicle, StudentTransport
from app.models.financial import (
    LedgerEntry,
    Budget,
    FeeStructure,
    LedgerEntryType,
    LedgerCategory,
    LedgerPaymentMethod,
    FeeFrequency,
)
from app.models.academic_year import AcademicYear, AcademicTerm, AcademicYearStatus, TermStatus

__all__ = [
    # Tenancy & accounts
    "School",
    "User",
    "UserRole",
    # Records
    "Student",
    "StudentStatus",
    "Teacher",
    "AttendanceRecord",
    "AttendanceStatus",
    # Credits
    "CreditBalance",
    "CreditPackage",
    "CreditTransaction",
    "CreditUsageLog",
    "CreditTransactionType",
    "PaymentMethod",
    # Documents
    "DocumentTemplate",
    "GeneratedDocument",
    "DocumentStatus",
    "AdmitCard",
    "AdmitCardHistory",
    "AdmitCardStatus",
    "FeeReceipt",
    "FeeItem",
    "FeeStatus",
    # Notifications
    "Notification",
    "NotificationRead",
    "NotificationType",
    "NotificationPriority",
    "RecipientType",
    # Library / inventory / transport
    "LibraryBook",
    "BorrowedBook",
    "BorrowStatus",
    "InventoryItem",
    "InventoryMovement",
    "MovementType",
    "ItemCondition",
    "TransportRoute",
    "TransportVehicle",
    "StudentTransport",
    # Finance
    "LedgerEntry",
    "Budget",
    "FeeStructure",
    "LedgerEntryType",
    "LedgerCategory",
    "LedgerPaymentMethod",
    "FeeFrequency",
    # Academic calendar
    "AcademicYear",
    "AcademicTerm",
    "AcademicYearStatus",
    "TermStatus",
]
