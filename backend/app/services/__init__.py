from app.services.document_storage import DocumentStorage, document_storage
from app.services.pdf_renderer import PDFRenderer, pdf_renderer
from app.services.email_service import EmailService, email_service
from app.services.document_service import DocumentService, document_service
from app.services.admit_card_service import AdmitCardService, admit_card_service
from app.services.notification_service import NotificationService, notification_service

__all__ = [
    # Documents
    "DocumentStorage",
    "document_storage",
    "PDFRenderer",
    "pdf_renderer",
    "DocumentService",
    "document_service",
    "AdmitCardService",
    "admit_card_service",
    # Messaging
    "EmailService",
    "email_service",
    "NotificationService",
    "notification_service",
]
