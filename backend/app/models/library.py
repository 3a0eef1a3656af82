from sqlalchemy import Column, String, DateTime, Date, Integer, Float, ForeignKey, Text, CheckConstraint
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class BorrowStatus(str, enum.Enum):
    ACTIVE = "active"
    RETURNED = "returned"
    OVERDUE = "overdue"


class LibraryBook(Base):
    __tablename__ = "library_books"
    __table_args__ = (
        CheckConstraint("available_copies >= 0", name="ck_library_books_available_non_negative"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(500), nullable=False)
    title_bn = Column(String(500), nullable=True)
    author = Column(String(255), nullable=False)
    author_bn = Column(String(255), nullable=True)
    isbn = Column(String(30), nullable=True, index=True)
    category = Column(String(100), nullable=True)
    publisher = Column(String(255), nullable=True)
    publish_year = Column(Integer, nullable=True)
    total_copies = Column(Integer, default=1, nullable=False)
    available_copies = Column(Integer, default=1, nullable=False)
    location = Column(String(100), nullable=True)  # shelf / rack
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<LibraryBook {self.title} {self.available_copies}/{self.total_copies}>"


class BorrowedBook(Base):
    __tablename__ = "library_borrowed_books"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(GUID, ForeignKey("library_books.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)

    borrow_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=True)
    status = Column(String(20), default=BorrowStatus.ACTIVE.value, nullable=False)
    fine = Column(Float, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def is_overdue(self, today=None) -> bool:
        today = today or datetime.utcnow().date()
        return self.status == BorrowStatus.ACTIVE.value and self.due_date < today

    def __repr__(self):
        return f"<BorrowedBook book={self.book_id} student={self.student_id} {self.status}>"
