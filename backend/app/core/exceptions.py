"""
Custom Exceptions for Shikkha Hub
=================================

Use these instead of generic Exception to:
1. Make errors more specific and debuggable
2. Let the API layer map them to the right HTTP status
3. Provide meaningful (often bilingual) error messages to schools

Usage:
    from app.core.exceptions import StudentNotFoundError, InsufficientCreditsError

    if not student:
        raise StudentNotFoundError(student_id)

Every error is rendered on the wire as {"error": message, "code": ..., "details": ...}
by the handler registered in app.main.
"""

from typing import Optional, Any, Dict


class ShikkhaError(Exception):
    """Base exception for all Shikkha Hub errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(ShikkhaError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="AUTH_FAILED")


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid, expired or of the wrong type"""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class AuthorizationError(ShikkhaError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(ShikkhaError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class StudentNotFoundError(ResourceNotFoundError):
    def __init__(self, student_id: Any):
        super().__init__("Student", student_id)


class TeacherNotFoundError(ResourceNotFoundError):
    def __init__(self, teacher_id: Any):
        super().__init__("Teacher", teacher_id)


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: Any):
        super().__init__("User", user_id)


class SchoolNotFoundError(ResourceNotFoundError):
    def __init__(self, school_id: Any):
        super().__init__("School", school_id)


class DocumentNotFoundError(ResourceNotFoundError):
    def __init__(self, document_id: Any):
        super().__init__("Document", document_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(ShikkhaError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class ConflictError(ShikkhaError):
    """Resource already exists or is still referenced"""

    status_code = 409

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="CONFLICT", details=details)


# ============================================
# Credit / Payment Errors
# ============================================

class CreditError(ShikkhaError):
    """Credit operation failed"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, code="CREDIT_ERROR")


class InsufficientCreditsError(CreditError):
    """School doesn't have enough credits"""

    status_code = 402

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Insufficient credits. Required: {required}, Available: {available}"
        )
        self.code = "INSUFFICIENT_CREDITS"
        self.details = {"required": required, "available": available}


class FreePackageAlreadyClaimedError(CreditError):
    """Free package may be claimed once per calendar month"""

    def __init__(self):
        super().__init__("এই মাসে ইতিমধ্যে ফ্রি প্যাকেজ নিয়েছেন")
        self.code = "FREE_PACKAGE_ALREADY_CLAIMED"


# ============================================
# Module-specific Errors
# ============================================

class DocumentGenerationError(ShikkhaError):
    """Document rendering failed"""

    def __init__(self, message: str, doc_type: Optional[str] = None):
        super().__init__(message, code="DOCUMENT_GENERATION_FAILED")
        if doc_type:
            self.details["doc_type"] = doc_type


class StockError(ShikkhaError):
    """Inventory movement would make stock negative"""

    status_code = 400

    def __init__(self, message: str = "Insufficient stock", available: Optional[int] = None):
        super().__init__(message, code="INSUFFICIENT_STOCK")
        if available is not None:
            self.details["available"] = available


class BookUnavailableError(ShikkhaError):
    """No copies left to borrow"""

    status_code = 400

    def __init__(self, book_id: Any):
        super().__init__("Book is not available", code="BOOK_UNAVAILABLE")
        self.details["book_id"] = str(book_id)


class StorageError(ShikkhaError):
    """Storage operation failed"""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message, code="STORAGE_ERROR")
        if key:
            self.details["key"] = key


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: ShikkhaError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    body: Dict[str, Any] = {"error": error.message, "code": error.code}
    if error.details:
        body["details"] = error.details
    return body
