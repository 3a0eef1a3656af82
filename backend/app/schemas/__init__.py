# Pydantic schemas
from app.schemas.auth import SchoolRegister, UserLogin, RefreshRequest, ChangePassword, UserResponse, Token, AccessToken
from app.schemas.user import UserCreate, UserUpdate
from app.schemas.school import SchoolUpdate, SchoolResponse, PublicSchoolProfile
from app.schemas.student import StudentCreate, StudentUpdate, StudentResponse, StudentBulkCreate
from app.schemas.teacher import ClassAssignment, TeacherCreate, TeacherUpdate, TeacherResponse
from app.schemas.attendance import AttendanceEntry, AttendanceMark, AttendanceResponse, AttendanceSummary
from app.schemas.credit import (
    CreditBalanceResponse,
    CreditPackageCreate,
    CreditPackageResponse,
    CreditPurchase,
    CreditDeduct,
    CreditAdd,
    CreditTransactionResponse,
    CreditUsageResponse,
)
from app.schemas.document import TemplateCreate, TemplateUpdate, TemplateResponse, DocumentGenerate, GeneratedDocumentResponse
from app.schemas.admit_card import (
    ExamDetails,
    CandidateDetails,
    AdmitCardCreate,
    AdmitCardBatchCreate,
    AdmitCardStatusUpdate,
    AdmitCardResponse,
    AdmitCardHistoryResponse,
)
from app.schemas.fee import FeeItemCreate, FeeReceiptCreate, FeePayment, FeeItemResponse, FeeReceiptResponse
from app.schemas.notification import NotificationCreate, NotificationSend, NotificationResponse
from app.schemas.library import BookCreate, BookUpdate, BookResponse, BorrowRequest, ReturnRequest, BorrowResponse
from app.schemas.inventory import ItemCreate, ItemUpdate, ItemResponse, MovementCreate, MovementResponse
from app.schemas.transport import (
    RouteCreate,
    RouteUpdate,
    RouteResponse,
    VehicleCreate,
    VehicleUpdate,
    VehicleResponse,
    AssignmentCreate,
    AssignmentUpdate,
    AssignmentResponse,
)
